"""contract resolution from a project's build cache (import graph, classification, ordering)"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Dict, List, Optional

import networkx as nx

from src.compiler.artifacts import read_artifact, read_contract_from_artifact
from src.config import config
from src.models.artifacts import Artifact, BuildCache
from src.models.contracts import (
    Contract,
    ContractFromArtifact,
    ContractKind,
    order_contracts,
)
from src.utils.correlation import submit_in_run

logger = logging.getLogger(__name__)


class ImportGraphResolver:
    """resolves an artifact's import directives to imported contracts (one level deep)"""

    def __init__(self, cache: BuildCache):
        self.cache = cache

    def _cache_key(self, imported_file: Path) -> Path:
        # ast absolute paths are relative to the project root unless truly absolute
        return self.cache.root / imported_file

    def imported_artifact_paths(self, artifact: Artifact) -> List[Path]:
        """every artifact of every imported file, across all compiler versions"""
        paths: List[Path] = []
        for imported_file in artifact.imported_files():
            entry = self.cache.get(self._cache_key(imported_file))
            if entry is None:
                continue
            paths.extend(entry.artifacts())
        return paths

    def resolve_imports(self, artifact: Artifact) -> List[ContractFromArtifact]:
        imported_contracts = []
        for artifact_path in self.imported_artifact_paths(artifact):
            imported = read_contract_from_artifact(artifact_path)
            if imported is not None:
                imported_contracts.append(imported)

        # interfaces first
        return order_contracts(imported_contracts)

    def build_graph(self) -> nx.DiGraph:
        """file-level import graph; edge (a, b) means a imports b"""
        graph = nx.DiGraph()
        for source_file in self.cache.source_files():
            graph.add_node(source_file, in_cache=True)
            entry = self.cache.get(source_file)
            seen = set()
            for artifact_path in entry.artifacts():
                artifact = read_artifact(artifact_path)
                if artifact is None:
                    continue
                for imported_file in artifact.imported_files():
                    target = self._cache_key(imported_file)
                    if target in seen:
                        continue
                    seen.add(target)
                    if target not in graph:
                        graph.add_node(target, in_cache=self.cache.get(target) is not None)
                    graph.add_edge(source_file, target)
        return graph


def dependency_order(graph: nx.DiGraph) -> List[Path]:
    """imported files before their importers"""
    try:
        return list(reversed(list(nx.topological_sort(graph))))
    except nx.NetworkXUnfeasible:
        logger.warning("Cycle detected in import graph. Using approximate order.")
        # fewest outgoing imports first
        return sorted(graph.nodes, key=lambda n: (graph.out_degree(n), str(n)))


class ContractResolver:
    """builds the ordered contract list of one compiled project"""

    def __init__(self, cache: BuildCache, max_workers: Optional[int] = None):
        self.cache = cache
        self.max_workers = max_workers or config.ARTIFACT_WORKERS
        self.imports = ImportGraphResolver(cache)

    def get_contracts_from_cache_entry(self, source_file: Path) -> List[Contract]:
        """zero or more contracts for one source file, one per artifact with bytecode and ast"""
        entry = self.cache.get(source_file)
        if entry is None:
            return []

        contracts = []
        for version, artifact_file in entry.artifacts_versions():
            artifact = read_artifact(artifact_file)
            if artifact is None or artifact.ast is None:
                continue

            imported_contracts = self.imports.resolve_imports(artifact)

            if artifact.bytecode is None:
                continue

            contracts.append(Contract(
                name=artifact.name,
                kind=ContractKind.from_bytecode(artifact.bytecode),
                version=version,
                imported_contracts=imported_contracts,
                source_file=source_file,
                artifact_path=artifact_file,
            ))
        return contracts

    def get_contracts(self) -> List[Contract]:
        source_files = self.cache.source_files()
        results: Dict[Path, List[Contract]] = {}

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_file = {
                submit_in_run(executor, self.get_contracts_from_cache_entry, source_file): source_file
                for source_file in source_files
            }

            for future in as_completed(future_to_file):
                source_file = future_to_file[future]
                try:
                    results[source_file] = future.result()
                except Exception as e:
                    logger.error(f"Failed to resolve contracts for {source_file}: {e}",
                                 extra={"source_file": str(source_file)})
                    results[source_file] = []

        # recombine in source order so completion order does not leak into the result
        flattened = [c for source_file in source_files for c in results[source_file]]
        contracts = order_contracts(flattened)

        logger.info(f"Number of contracts = {len(contracts)}", extra={"contracts": len(contracts)})
        return contracts
