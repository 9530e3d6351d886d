"""project discovery, build orchestration and artifact resolution"""
from .project_discovery import find_all_project_roots
from .foundry_parser import FoundryConfigParser, parse_foundry_config
from .build import BuildOrchestrator
from .cache_reader import read_cache_file
from .contract_resolver import ContractResolver, ImportGraphResolver, dependency_order
from .pipeline import ProjectResolver, ExtractionResult
from .toolchain import SubprocessToolchain

__all__ = [
    "find_all_project_roots",
    "FoundryConfigParser",
    "parse_foundry_config",
    "BuildOrchestrator",
    "read_cache_file",
    "ContractResolver",
    "ImportGraphResolver",
    "dependency_order",
    "ProjectResolver",
    "ExtractionResult",
    "SubprocessToolchain",
    "find_all_contracts",
]


def find_all_contracts(repo_dir, toolchain=None):
    """build every root under repo_dir and return the concatenated contract list"""
    return ProjectResolver(toolchain=toolchain).extract_all(repo_dir).contracts
