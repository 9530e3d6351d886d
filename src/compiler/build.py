"""dependency installation and compilation per project root"""
from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Optional, Type

from filelock import FileLock

from src.compiler.errors import (
    ParseConfigError,
    ProcessError,
    ProjectCompileError,
    ResolveDependenciesError,
    UnsupportedProjectTypeError,
)
from src.config import config
from src.interfaces import CommandResult, IToolchain
from src.models.contracts import FOUNDRY_CONFIG_FILE, HARDHAT_CONFIG_FILES, ProjectType
from src.utils.logging import PipelineLogger

logger = logging.getLogger(__name__)

LOCK_TIMEOUT_SECONDS = 30


def find_hardhat_config(project_root: Path) -> Optional[Path]:
    """hardhat.config.ts wins over hardhat.config.js"""
    for name in reversed(HARDHAT_CONFIG_FILES):
        candidate = project_root / name
        if candidate.is_file():
            return candidate
    return None


def foundry_import_statement(hardhat_config: Path, package: str) -> str:
    if hardhat_config.suffix == ".ts":
        return f'import "{package}";'
    return f'require("{package}");'


def lock_path_for(file_path: Path) -> Path:
    """lock file under LOCKS_DIR; nothing is written next to the locked file"""
    digest = hashlib.sha256(str(Path(file_path).resolve()).encode("utf-8")).hexdigest()[:16]
    return config.LOCKS_DIR / f"{Path(file_path).name}.{digest}.lock"


def replace_first_line(file_path: Path, text_to_write: str) -> None:
    """
    Replace line 1 of file_path with text_to_write.

    The original first line is lost. The file is held under an exclusive
    lock for the duration of the read-modify-write.
    """
    file_path = Path(file_path)
    lock_path = lock_path_for(file_path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    with FileLock(str(lock_path), timeout=LOCK_TIMEOUT_SECONDS):
        try:
            content = file_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ParseConfigError(f"Failed to read {file_path}: {e}") from e
        lines = content.splitlines()
        if lines:
            lines[0] = text_to_write
        file_path.write_text("\n".join(lines), encoding="utf-8")


class BuildOrchestrator:
    """installs dependencies and compiles a project root through an IToolchain"""

    def __init__(self, toolchain: IToolchain, event_log: Optional[PipelineLogger] = None):
        self.toolchain = toolchain
        self.event_log = event_log

    def build(self, project_root: Path, project_type: ProjectType) -> None:
        """resolve dependencies then compile; raises a CrawlerError subclass on failure"""
        if project_type not in (ProjectType.FOUNDRY, ProjectType.HARDHAT):
            raise UnsupportedProjectTypeError(project_type)

        project_root = Path(project_root).resolve()
        self.resolve_dependencies(project_root, project_type)
        self.compile_project(project_root, project_type)

    def resolve_dependencies(self, project_root: Path, project_type: ProjectType) -> None:
        logger.info("Resolving project dependencies...", extra={"project_root": str(project_root)})

        if project_type == ProjectType.FOUNDRY:
            return
        if project_type != ProjectType.HARDHAT:
            raise UnsupportedProjectTypeError(project_type)

        self._check(
            self.toolchain.install_dependencies(project_root),
            ResolveDependenciesError, project_root, "install_dependencies",
        )

        # an existing foundry.toml means the project was already initialized
        if (project_root / FOUNDRY_CONFIG_FILE).exists():
            return

        package = config.FOUNDRY_COMPAT_PACKAGE
        self._check(
            self.toolchain.install_foundry_compat(project_root, package),
            ResolveDependenciesError, project_root, "install_foundry_compat",
        )

        hardhat_config = find_hardhat_config(project_root)
        if hardhat_config is None:
            raise ParseConfigError(f"Missing hardhat config in {project_root}")
        replace_first_line(hardhat_config, foundry_import_statement(hardhat_config, package))
        logger.info(f"Rewrote line 1 of {hardhat_config.name}", extra={"hardhat_config": str(hardhat_config)})

        self._check(
            self.toolchain.init_foundry(project_root),
            ResolveDependenciesError, project_root, "init_foundry",
        )
        logger.info("Finish resolve dependencies")

    def compile_project(self, project_root: Path, project_type: ProjectType) -> None:
        logger.info("Compiling project...", extra={"project_root": str(project_root)})

        if project_type not in (ProjectType.FOUNDRY, ProjectType.HARDHAT):
            raise UnsupportedProjectTypeError(project_type)

        self._check(self.toolchain.compile(project_root), ProjectCompileError, project_root, "compile")
        logger.info("Finish compile project")

    def _check(
        self,
        result: CommandResult,
        error_cls: Type[ProcessError],
        project_root: Path,
        step: str,
    ) -> None:
        if self.event_log:
            self.event_log.log_build_step(
                project_root=str(project_root),
                step=step,
                command=result.command,
                success=result.success,
                returncode=result.returncode,
                duration_seconds=result.duration,
                stderr=None if result.success else result.stderr,
            )

        if result.success:
            return

        logger.error(f"{step} failed in {project_root}: {result.stderr}",
                     extra={"project_root": str(project_root), "returncode": result.returncode})
        raise error_cls(result.stderr, command=result.command, cwd=project_root)
