"""
Commitment Module

Canonical serialization and Merkle commitments over ordered query results.

Usage:
    builder = CommitmentBuilder()
    tree = builder.build(points)
    root = builder.get_root(tree)
    proof = builder.get_proof(tree, 2)
    assert verify_proof(hash_leaf(points[2]), 2, proof, root)
"""

from .canonical import CanonicalizationError, canonicalize
from .merkle_tree import (
    DEFAULT_ALGORITHM,
    SUPPORTED_ALGORITHMS,
    CommitmentBuilder,
    CommitmentTree,
    compute_root,
    empty_root,
    hash_leaf,
    hash_pair,
    verify_proof,
)

__all__ = [
    'CanonicalizationError',
    'canonicalize',
    'DEFAULT_ALGORITHM',
    'SUPPORTED_ALGORITHMS',
    'CommitmentBuilder',
    'CommitmentTree',
    'compute_root',
    'empty_root',
    'hash_leaf',
    'hash_pair',
    'verify_proof',
]
