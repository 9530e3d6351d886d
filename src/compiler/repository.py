"""repository intake: local checkout directory and git clone"""

import logging
from pathlib import Path
from typing import Optional

from src.compiler.errors import CloneError
from src.config import config
from src.interfaces import IToolchain

logger = logging.getLogger(__name__)


def project_dir_from_uri(repo_uri: str, contests_dir: Optional[Path] = None) -> Path:
    """checkout directory for a repository: <contests dir>/<last uri segment>"""
    name = repo_uri.rstrip("/").rsplit("/", 1)[-1]
    if name.endswith(".git"):
        name = name[:-4]
    if not name:
        raise ValueError(f"Cannot derive a directory name from {repo_uri!r}")
    return Path(contests_dir or config.CONTESTS_DIR) / name


def is_directory_empty(dir_path: Path) -> bool:
    try:
        return not any(Path(dir_path).iterdir())
    except OSError:
        return False


def clone_repository(repo_uri: str, toolchain: IToolchain, contests_dir: Optional[Path] = None) -> Path:
    """
    Clone repo_uri unless its checkout directory already has content.

    Raises:
        CloneError: git exited non-zero (carries stderr)
    """
    dir_path = project_dir_from_uri(repo_uri, contests_dir)
    logger.info(f"Creating directory if not existed: {dir_path}")
    dir_path.mkdir(parents=True, exist_ok=True)

    # TODO: pull when the checkout already exists instead of reusing it as-is
    if not is_directory_empty(dir_path):
        logger.info(f"Reusing existing checkout {dir_path}", extra={"repo_uri": repo_uri})
        return dir_path

    result = toolchain.clone(repo_uri, dir_path)
    if not result.success:
        logger.error(f"Error cloning repository {repo_uri}, error: {result.stderr}", extra={"repo_uri": repo_uri})
        raise CloneError(result.stderr, command=result.command, cwd=result.cwd)

    logger.info(f"Repository {repo_uri} cloned successfully!")
    return dir_path
