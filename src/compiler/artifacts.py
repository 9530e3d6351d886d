"""artifact file loading"""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from src.models.artifacts import Artifact, ArtifactFileSchema
from src.models.contracts import ContractBytecode, ContractFromArtifact, ContractKind

logger = logging.getLogger(__name__)


def contract_name(artifact_path: Path) -> str:
    """contract name is the artifact file's stem"""
    return Path(artifact_path).stem


def read_artifact(artifact_path: Path) -> Optional[Artifact]:
    """
    Load one artifact file.

    Returns None when the file is missing or not a valid artifact; a
    loaded artifact may still lack bytecode or ast.
    """
    artifact_path = Path(artifact_path)
    try:
        data = json.loads(artifact_path.read_text(encoding="utf-8"))
        parsed = ArtifactFileSchema.model_validate(data)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
        logger.debug(f"Failed to load artifact {artifact_path}: {e}", extra={"artifact_path": str(artifact_path)})
        return None

    bytecode = parsed.bytecode_object()
    return Artifact(
        path=artifact_path,
        name=contract_name(artifact_path),
        bytecode=ContractBytecode(bytecode) if bytecode is not None else None,
        ast=parsed.ast,
    )


def read_contract_from_artifact(artifact_path: Path) -> Optional[ContractFromArtifact]:
    """name/kind/path of an imported contract; its own imports are not followed"""
    artifact = read_artifact(artifact_path)
    if artifact is None or artifact.bytecode is None:
        return None

    return ContractFromArtifact(
        name=artifact.name,
        kind=ContractKind.from_bytecode(artifact.bytecode),
        artifact_path=artifact.path,
    )
