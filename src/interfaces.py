"""Interfaces for dependency injection and testability."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import List


@dataclass
class CommandResult:
    """External process result."""
    command: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    duration: float = 0.0
    cwd: Path = field(default_factory=Path)

    @property
    def success(self) -> bool:
        return self.returncode == 0


class IToolchain(ABC):
    """Solidity build toolchain interface (package manager, compiler, vcs)."""

    @abstractmethod
    def install_dependencies(self, project_root: Path) -> CommandResult:
        """Install the project's package dependencies."""
        pass

    @abstractmethod
    def install_foundry_compat(self, project_root: Path, package: str) -> CommandResult:
        """Install the hardhat-foundry compatibility package as a dev dependency."""
        pass

    @abstractmethod
    def init_foundry(self, project_root: Path) -> CommandResult:
        """Materialize a foundry descriptor from a hardhat project."""
        pass

    @abstractmethod
    def compile(self, project_root: Path) -> CommandResult:
        """Compile the project, producing the build cache and artifacts."""
        pass

    @abstractmethod
    def clone(self, repo_uri: str, target_dir: Path) -> CommandResult:
        """Clone a repository into target_dir."""
        pass
