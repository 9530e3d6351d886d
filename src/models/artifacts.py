"""on-disk compiler cache/artifact schemas and their in-memory snapshots"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.models.contracts import ContractBytecode

SOLIDITY_FILES_CACHE_FILENAME = "solidity-files-cache.json"
IMPORT_DIRECTIVE = "ImportDirective"

_VERSION_KEY = re.compile(r"^\d+\.\d+\.\d+")
# contract -> version -> profile
_MAX_ARTIFACT_NESTING = 3


def _version_of(keys: Tuple[str, ...]) -> str:
    for key in keys:
        if _VERSION_KEY.match(key):
            return key
    return keys[-1] if keys else ""


def _artifact_pairs(node: Any, keys: Tuple[str, ...] = ()) -> Iterator[Tuple[str, str]]:
    """(version, artifact path) leaves of a cache entry's artifacts map"""
    if keys and isinstance(node, str):
        yield _version_of(keys), node
    elif keys and isinstance(node, dict) and isinstance(node.get("path"), str):
        yield _version_of(keys), node["path"]
    elif isinstance(node, dict) and len(keys) < _MAX_ARTIFACT_NESTING:
        for key, child in node.items():
            yield from _artifact_pairs(child, keys + (str(key),))
    else:
        raise ValueError(f"unrecognized artifact entry at {'/'.join(keys) or '<root>'}: {node!r}")


class CacheFileEntrySchema(BaseModel):
    """one source file entry of the persisted build cache"""

    model_config = ConfigDict(extra="allow")

    sourceName: Optional[str] = None
    # flat {version: path}, per contract {contract: {version: path}}, or with
    # {"path", "build_id"} objects as leaves, optionally keyed by profile
    artifacts: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("artifacts")
    @classmethod
    def _known_layout(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        list(_artifact_pairs(value))
        return value

    def artifact_files(self) -> List[Tuple[str, str]]:
        return list(_artifact_pairs(self.artifacts))


class BytecodeSchema(BaseModel):
    model_config = ConfigDict(extra="allow")

    object: Optional[str] = None


class AstNodeSchema(BaseModel):
    model_config = ConfigDict(extra="allow")

    nodeType: str = ""
    absolutePath: Optional[str] = None


class AstSchema(BaseModel):
    model_config = ConfigDict(extra="allow")

    absolutePath: Optional[str] = None
    nodes: List[AstNodeSchema] = Field(default_factory=list)


class ArtifactFileSchema(BaseModel):
    """compiler output for one (file, version) pair"""

    model_config = ConfigDict(extra="allow")

    bytecode: Optional[Union[str, BytecodeSchema]] = None
    ast: Optional[AstSchema] = None

    def bytecode_object(self) -> Optional[str]:
        if isinstance(self.bytecode, BytecodeSchema):
            return self.bytecode.object
        return self.bytecode


@dataclass(frozen=True)
class CacheEntry:
    """artifact files produced for one source file, keyed by compiler version"""
    source_file: Path
    versioned_artifacts: Tuple[Tuple[str, Path], ...] = ()

    def artifacts_versions(self) -> Iterator[Tuple[str, Path]]:
        return iter(self.versioned_artifacts)

    def artifacts(self) -> Iterator[Path]:
        for _, artifact_file in self.versioned_artifacts:
            yield artifact_file


@dataclass(frozen=True)
class BuildCache:
    """read-only snapshot of a project's build cache, shared across workers"""
    root: Path
    cache_file: Path
    files: Mapping[Path, CacheEntry] = field(default_factory=lambda: MappingProxyType({}))

    def get(self, source_file: Path) -> Optional[CacheEntry]:
        return self.files.get(source_file)

    def source_files(self) -> List[Path]:
        return sorted(self.files.keys())

    def __len__(self) -> int:
        return len(self.files)


@dataclass
class Artifact:
    """loaded artifact file: name, bytecode object and ast (each may be absent)"""
    path: Path
    name: str
    bytecode: Optional[ContractBytecode] = None
    ast: Optional[AstSchema] = None

    def imported_files(self) -> List[Path]:
        """absolute paths named by the ast's import directives"""
        if self.ast is None:
            return []
        return [
            Path(node.absolutePath)
            for node in self.ast.nodes
            if node.nodeType == IMPORT_DIRECTIVE and node.absolutePath
        ]
