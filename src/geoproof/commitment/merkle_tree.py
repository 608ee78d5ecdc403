#!/usr/bin/env python3
"""
Merkle Commitment Module

Bottom-up hash tree over an ordered item list.

Commitment rules:
1. Leaf hash: H(canonicalize(item)), lowercase hex
2. Parent hash: H(bytes(left) + bytes(right))
3. An odd level pairs its last entry with itself
4. Empty list: root is H(b"")
5. Single item: root is the leaf hash, proof is empty

Proof entries carry no left/right tag; the position is implied by the
index parity at each level (even: current + sibling, odd: sibling + current).
"""

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from .canonical import canonicalize

logger = logging.getLogger(__name__)

SUPPORTED_ALGORITHMS = ('sha256', 'sha3_256', 'blake2s')
DEFAULT_ALGORITHM = 'sha256'


def _check_algorithm(algorithm: str) -> str:
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise ValueError(f"Unsupported hash algorithm {algorithm!r}; expected one of {SUPPORTED_ALGORITHMS}")
    return algorithm


def digest(data: bytes, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """Hex digest of ``data``."""
    return hashlib.new(_check_algorithm(algorithm), data).hexdigest()


def empty_root(algorithm: str = DEFAULT_ALGORITHM) -> str:
    """Root committed for an empty item list."""
    return digest(b"", algorithm)


def hash_leaf(item: Any, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """Leaf digest of a single item."""
    return digest(canonicalize(item), algorithm)


def hash_pair(left: str, right: str, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """Parent digest of two hex child digests."""
    return digest(bytes.fromhex(left) + bytes.fromhex(right), algorithm)


@dataclass(frozen=True)
class CommitmentTree:
    """
    Hash pyramid, top level first.

    ``levels[0]`` holds the root alone and ``levels[-1]`` the leaf hashes.
    An empty tree has no levels.
    """
    levels: List[List[str]] = field(default_factory=list)
    algorithm: str = DEFAULT_ALGORITHM

    @property
    def leaf_count(self) -> int:
        return len(self.levels[-1]) if self.levels else 0

    @property
    def leaves(self) -> List[str]:
        return list(self.levels[-1]) if self.levels else []

    @property
    def root(self) -> str:
        return self.levels[0][0] if self.levels else empty_root(self.algorithm)

    @property
    def height(self) -> int:
        return len(self.levels)

    def proof(self, index: int) -> List[str]:
        """Sibling digests for leaf ``index``, leaf level first."""
        if not 0 <= index < self.leaf_count:
            raise IndexError(f"leaf index {index} out of range for {self.leaf_count} leaves")

        proof = []
        position = index
        # Skip the root level
        for level in reversed(self.levels[1:]):
            sibling = position ^ 1
            proof.append(level[sibling] if sibling < len(level) else level[position])
            position //= 2
        return proof


class CommitmentBuilder:
    """
    Builds commitment trees and hands out roots and proofs.

    Stateless apart from the chosen algorithm, so one builder can serve
    concurrent queries.
    """

    def __init__(self, algorithm: str = DEFAULT_ALGORITHM):
        self.algorithm = _check_algorithm(algorithm)

    def build(self, items: Sequence[Any]) -> CommitmentTree:
        """
        Build the tree over ``items`` in the given order.

        Raises CanonicalizationError if an item cannot be serialized.
        """
        leaves = [hash_leaf(item, self.algorithm) for item in items]
        if not leaves:
            return CommitmentTree(levels=[], algorithm=self.algorithm)

        levels = [leaves]
        current = leaves
        while len(current) > 1:
            parents = []
            for i in range(0, len(current), 2):
                left = current[i]
                right = current[i + 1] if i + 1 < len(current) else left
                parents.append(hash_pair(left, right, self.algorithm))
            levels.append(parents)
            current = parents

        levels.reverse()
        logger.debug(f"Built commitment over {len(leaves)} items with {len(levels)} levels")
        return CommitmentTree(levels=levels, algorithm=self.algorithm)

    def get_root(self, tree: CommitmentTree) -> str:
        return tree.root

    def get_proof(self, tree: CommitmentTree, index: int) -> List[str]:
        return tree.proof(index)

    def get_proofs(self, tree: CommitmentTree) -> List[List[str]]:
        """Proofs for every leaf, aligned by index."""
        return [tree.proof(i) for i in range(tree.leaf_count)]


def compute_root(leaf_hash: str, index: int, proof: Sequence[str],
                 algorithm: str = DEFAULT_ALGORITHM) -> str:
    """Fold a proof into the root it implies for ``leaf_hash`` at ``index``."""
    current = leaf_hash
    position = index
    for sibling in proof:
        if position % 2 == 0:
            current = hash_pair(current, sibling, algorithm)
        else:
            current = hash_pair(sibling, current, algorithm)
        position //= 2
    return current


def verify_proof(leaf_hash: str, index: int, proof: Sequence[str], root: str,
                 algorithm: str = DEFAULT_ALGORITHM,
                 leaf_count: Optional[int] = None) -> bool:
    """
    Check that ``leaf_hash`` sits at ``index`` under ``root``.

    Pass ``leaf_count`` when known: without it the self-paired last leaf of
    an odd level also verifies at the phantom position right after it.
    """
    _check_algorithm(algorithm)
    if index < 0:
        return False
    if leaf_count is not None and index >= leaf_count:
        return False
    if index >= 2 ** len(proof):
        return False

    try:
        computed = compute_root(leaf_hash, index, proof, algorithm)
    except ValueError:
        # Malformed hex in the leaf or a proof entry
        return False
    return computed == root.lower()
