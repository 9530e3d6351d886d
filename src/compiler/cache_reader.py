"""build cache reader"""

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Tuple

from pydantic import ValidationError

from src.compiler.errors import CacheReadError
from src.models.artifacts import BuildCache, CacheEntry, CacheFileEntrySchema
from src.models.contracts import PathLayout

logger = logging.getLogger(__name__)


def _resolve(base: Path, path: str) -> Path:
    candidate = Path(path)
    if candidate.is_absolute():
        return candidate
    return base / candidate


def _versioned_artifacts(entry: CacheFileEntrySchema, artifacts_dir: Path) -> Tuple[Tuple[str, Path], ...]:
    pairs: List[Tuple[str, Path]] = [
        (version, _resolve(artifacts_dir, artifact_file))
        for version, artifact_file in entry.artifact_files()
    ]
    pairs.sort(key=lambda pair: (str(pair[1]), pair[0]))
    return tuple(pairs)


def read_cache_file(layout: PathLayout) -> BuildCache:
    """
    Load the persisted build cache of a compiled project.

    Source file keys are made absolute against the project root and
    artifact paths against the artifacts directory.

    Raises:
        CacheReadError: cache file missing, unreadable or malformed
    """
    cache_file = layout.cache_file
    logger.info(f"Reading build cache {cache_file}", extra={"cache_file": str(cache_file)})

    try:
        data = json.loads(Path(cache_file).read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CacheReadError(f"Failed to read build cache {cache_file}: {e}") from e

    if not isinstance(data, dict):
        raise CacheReadError(f"Build cache {cache_file} is not a JSON object")

    raw_files = data["files"] if isinstance(data.get("files"), dict) else data

    files: Dict[Path, CacheEntry] = {}
    for source_name, raw_entry in raw_files.items():
        if source_name.startswith("_"):
            # format markers such as "_format"
            continue
        try:
            entry = CacheFileEntrySchema.model_validate(raw_entry)
        except ValidationError as e:
            raise CacheReadError(f"Malformed build cache entry {source_name} in {cache_file}: {e}") from e

        source_file = _resolve(layout.root, source_name)
        files[source_file] = CacheEntry(
            source_file=source_file,
            versioned_artifacts=_versioned_artifacts(entry, layout.artifacts),
        )

    logger.info(f"Number of Solidity files = {len(files)}", extra={"source_files": len(files)})
    return BuildCache(root=layout.root, cache_file=Path(cache_file), files=MappingProxyType(files))
