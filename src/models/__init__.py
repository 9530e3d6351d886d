from .contracts import (
    ProjectType,
    ProjectRoot,
    PathLayout,
    ContractBytecode,
    ContractKind,
    ContractKindType,
    ContractFromArtifact,
    Contract,
    classify,
    compare_contracts,
    order_contracts,
)
from .artifacts import (
    Artifact,
    BuildCache,
    CacheEntry,
)
from .contest import Contest, ContestRecord, ContestStatus, load_contests

__all__ = [
    'ProjectType',
    'ProjectRoot',
    'PathLayout',
    'ContractBytecode',
    'ContractKind',
    'ContractKindType',
    'ContractFromArtifact',
    'Contract',
    'classify',
    'compare_contracts',
    'order_contracts',
    'Artifact',
    'BuildCache',
    'CacheEntry',
    'Contest',
    'ContestRecord',
    'ContestStatus',
    'load_contests',
]
