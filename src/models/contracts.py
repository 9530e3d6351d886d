from enum import Enum
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import List, Optional, Dict, Any, Iterable, TypeVar
from pathlib import Path

from eth_utils import is_hexstr


EMPTY_BYTECODE = "0x"

FOUNDRY_CONFIG_FILE = "foundry.toml"
HARDHAT_CONFIG_FILES = ("hardhat.config.js", "hardhat.config.ts")
TRUFFLE_CONFIG_FILE = "truffle-config.js"


class ProjectType(Enum):
    """build tool flavor of a project root"""
    FOUNDRY = "foundry"
    HARDHAT = "hardhat"
    TRUFFLE = "truffle"
    UNKNOWN = "unknown"

    @classmethod
    def from_repo_dir(cls, repo_dir) -> "ProjectType":
        """classify a directory by its marker files (first match wins)"""
        repo_dir = Path(repo_dir)

        if (repo_dir / FOUNDRY_CONFIG_FILE).is_file():
            return cls.FOUNDRY

        if any((repo_dir / name).is_file() for name in HARDHAT_CONFIG_FILES):
            return cls.HARDHAT

        if (repo_dir / TRUFFLE_CONFIG_FILE).is_file():
            return cls.TRUFFLE

        return cls.UNKNOWN


# marker files in priority order
PROJECT_MARKERS = (
    (FOUNDRY_CONFIG_FILE, ProjectType.FOUNDRY),
    (HARDHAT_CONFIG_FILES[0], ProjectType.HARDHAT),
    (HARDHAT_CONFIG_FILES[1], ProjectType.HARDHAT),
    (TRUFFLE_CONFIG_FILE, ProjectType.TRUFFLE),
)


@dataclass(frozen=True)
class ProjectRoot:
    """independent build root inside a repository"""
    path: Path
    project_type: ProjectType

    def __repr__(self) -> str:
        return f"ProjectRoot({self.path}, type={self.project_type.value})"


@dataclass
class PathLayout:
    """canonical path layout resolved from a build tool descriptor"""
    root: Path
    sources: Path
    artifacts: Path
    cache_file: Path
    libraries: List[Path] = field(default_factory=list)
    tests: Optional[Path] = None
    remappings: Dict[str, Path] = field(default_factory=dict)


class ContractBytecode(str):
    """bytecode object text, either linked hex or an unlinked placeholder"""

    @property
    def is_empty(self) -> bool:
        return self == EMPTY_BYTECODE

    @property
    def is_linked(self) -> bool:
        # unlinked placeholders carry __$...$__ library slots
        return is_hexstr(str(self))

    def __repr__(self) -> str:
        data = str(self)
        if len(data) <= 20:
            return data
        return f"{data[:10]}..{data[-10:]}"


class ContractKindType(Enum):
    INTERFACE = "interface"
    CONTRACT = "contract"


@dataclass(frozen=True)
class ContractKind:
    """interface (no executable bytecode) or contract carrying its bytecode"""
    type: ContractKindType
    bytecode: Optional[ContractBytecode] = None

    @classmethod
    def from_bytecode(cls, bytecode: str) -> "ContractKind":
        bytecode = ContractBytecode(bytecode)
        if bytecode.is_empty:
            return cls(ContractKindType.INTERFACE)
        return cls(ContractKindType.CONTRACT, bytecode)

    @property
    def is_interface(self) -> bool:
        return self.type == ContractKindType.INTERFACE

    @property
    def needs_linking(self) -> bool:
        return self.bytecode is not None and not self.bytecode.is_linked

    def __repr__(self) -> str:
        if self.is_interface:
            return "Interface"
        return f"Contract({self.bytecode!r})"


def classify(bytecode: str) -> ContractKind:
    return ContractKind.from_bytecode(bytecode)


@dataclass
class ContractFromArtifact:
    """imported contract, resolved to name/kind only"""
    name: str
    kind: ContractKind
    artifact_path: Path

    def __eq__(self, other) -> bool:
        if not isinstance(other, ContractFromArtifact):
            return NotImplemented
        return self.kind == other.kind and self.name == other.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.type.value,
            "bytecode": str(self.kind.bytecode) if self.kind.bytecode is not None else None,
            "linked": not self.kind.needs_linking,
            "artifact_path": str(self.artifact_path),
        }


@dataclass
class Contract:
    """one (source file, compiler version) pair with bytecode and ast"""
    name: str
    kind: ContractKind
    version: str
    imported_contracts: List[ContractFromArtifact] = field(default_factory=list)
    source_file: Optional[Path] = None
    artifact_path: Optional[Path] = None

    def __eq__(self, other) -> bool:
        if not isinstance(other, Contract):
            return NotImplemented
        return self.kind == other.kind and self.name == other.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.type.value,
            "bytecode": str(self.kind.bytecode) if self.kind.bytecode is not None else None,
            "linked": not self.kind.needs_linking,
            "version": self.version,
            "source_file": str(self.source_file) if self.source_file else None,
            "artifact_path": str(self.artifact_path) if self.artifact_path else None,
            "imported_contracts": [c.to_dict() for c in self.imported_contracts],
        }

    def __repr__(self) -> str:
        return f"Contract({self.name}, {self.kind!r}, version={self.version})"


def compare_contracts(left, right) -> int:
    """
    Interface-before-implementation comparator.

    Interface vs Interface is equal, Interface vs Contract sorts the
    interface first, and every other pair reports the left side as
    greater (so two contracts never compare equal).
    """
    if left.kind.is_interface and not right.kind.is_interface:
        return -1
    if left.kind.is_interface and right.kind.is_interface:
        return 0
    return 1


T = TypeVar("T")


def order_contracts(contracts: Iterable[T]) -> List[T]:
    """stable interfaces-first ordering using compare_contracts"""
    # list.sort only consults "<", under which compare_contracts is a strict weak order
    return sorted(contracts, key=cmp_to_key(compare_contracts))
