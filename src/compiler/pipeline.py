"""repository extraction pipeline: discover roots, build, read cache, resolve contracts"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

import networkx as nx

from src.compiler.build import BuildOrchestrator
from src.compiler.cache_reader import read_cache_file
from src.compiler.contract_resolver import ContractResolver
from src.compiler.errors import CrawlerError, UnsupportedProjectTypeError
from src.compiler.foundry_parser import parse_foundry_config
from src.compiler.project_discovery import find_all_project_roots
from src.compiler.toolchain import SubprocessToolchain
from src.interfaces import IToolchain
from src.models.contracts import Contract, PathLayout, ProjectRoot, ProjectType
from src.utils.logging import PipelineLogger

logger = logging.getLogger(__name__)


@dataclass
class RootExtraction:
    """contracts extracted from one build root"""
    project_root: ProjectRoot
    layout: PathLayout
    contracts: List[Contract] = field(default_factory=list)
    import_graph: Optional[nx.DiGraph] = None
    duration_seconds: float = 0.0


@dataclass
class RootFailure:
    """a build root whose extraction was abandoned"""
    project_root: ProjectRoot
    error: Exception

    @property
    def error_type(self) -> str:
        return type(self.error).__name__

    def __str__(self) -> str:
        return f"{self.project_root.path}: {self.error_type}: {self.error}"


@dataclass
class ExtractionResult:
    repo_dir: Path
    roots: List[RootExtraction] = field(default_factory=list)
    failures: List[RootFailure] = field(default_factory=list)

    @property
    def contracts(self) -> List[Contract]:
        """per-root ordered lists, concatenated without re-sorting"""
        return [c for root in self.roots for c in root.contracts]

    @property
    def success(self) -> bool:
        return not self.failures


class ProjectResolver:
    """runs the extraction pipeline over every build root of a repository"""

    def __init__(
        self,
        toolchain: Optional[IToolchain] = None,
        event_log: Optional[PipelineLogger] = None,
        max_workers: Optional[int] = None,
        build_import_graph: bool = False,
    ):
        self.toolchain = toolchain or SubprocessToolchain()
        self.event_log = event_log
        self.max_workers = max_workers
        self.build_import_graph = build_import_graph
        self.orchestrator = BuildOrchestrator(self.toolchain, event_log=event_log)

    @staticmethod
    def resolve_layout(project_root: ProjectRoot) -> PathLayout:
        """hardhat roots are read through the foundry descriptor materialized during the build"""
        if project_root.project_type in (ProjectType.FOUNDRY, ProjectType.HARDHAT):
            return parse_foundry_config(project_root.path)
        raise UnsupportedProjectTypeError(project_root.project_type)

    def extract_root(self, project_root: ProjectRoot) -> RootExtraction:
        """build and extract one root; raises on any per-root failure"""
        start = time.time()
        logger.info(f"Project root {project_root.path}",
                    extra={"project_root": str(project_root.path), "project_type": project_root.project_type.value})

        self.orchestrator.build(project_root.path, project_root.project_type)

        layout = self.resolve_layout(project_root)
        cache = read_cache_file(layout)

        resolver = ContractResolver(cache, max_workers=self.max_workers)
        contracts = resolver.get_contracts()
        import_graph = resolver.imports.build_graph() if self.build_import_graph else None

        extraction = RootExtraction(
            project_root=project_root,
            layout=layout,
            contracts=contracts,
            import_graph=import_graph,
            duration_seconds=time.time() - start,
        )

        if self.event_log:
            self.event_log.log_extraction(
                project_root=str(project_root.path),
                project_type=project_root.project_type.value,
                source_files=len(cache),
                contracts=len(contracts),
                interfaces=sum(1 for c in contracts if c.kind.is_interface),
                duration_seconds=extraction.duration_seconds,
            )
        return extraction

    def extract_all(self, repo_dir: Union[str, Path]) -> ExtractionResult:
        """
        Extract contracts from every build root under repo_dir.

        Roots are processed one at a time. A failing root is recorded in
        the result and does not stop its siblings.
        """
        repo_dir = Path(repo_dir).resolve()
        result = ExtractionResult(repo_dir=repo_dir)

        project_roots = find_all_project_roots(repo_dir)
        if self.event_log:
            self.event_log.log_discovery(
                repo_dir=str(repo_dir),
                project_roots=[(str(r.path), r.project_type.value) for r in project_roots],
            )

        for project_root in project_roots:
            try:
                result.roots.append(self.extract_root(project_root))
            except (CrawlerError, OSError) as e:
                failure = RootFailure(project_root=project_root, error=e)
                logger.error(f"Extraction failed for {failure}",
                             extra={"project_root": str(project_root.path), "error_type": failure.error_type})
                if self.event_log:
                    self.event_log.log_error(
                        project_root=str(project_root.path),
                        error_type=failure.error_type,
                        error_message=str(e),
                    )
                result.failures.append(failure)

        logger.info(f"Found {len(result.contracts)} contracts in {len(result.roots)} roots "
                    f"({len(result.failures)} failed)",
                    extra={"repo_dir": str(repo_dir), "contracts": len(result.contracts)})
        return result
