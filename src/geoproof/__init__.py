# GeoProof
# Quadtree point index with Merkle commitments over query results

from .data_structures import GeoPoint, InsertResult, QueryKind, QueryResult
from .spatial import Boundary, SpatialIndex
from .commitment import CommitmentBuilder, CommitmentTree, CanonicalizationError, verify_proof
from .core import GeoProofConfig, QueryCoordinator
from .serialization import save_result, load_result, verify_result_payload

__version__ = "0.1.0"

__all__ = [
    'GeoPoint',
    'InsertResult',
    'QueryKind',
    'QueryResult',
    'Boundary',
    'SpatialIndex',
    'CommitmentBuilder',
    'CommitmentTree',
    'CanonicalizationError',
    'verify_proof',
    'GeoProofConfig',
    'QueryCoordinator',
    'save_result',
    'load_result',
    'verify_result_payload',
]
