"""project root discovery"""
import logging
import os
from collections import deque
from pathlib import Path
from typing import Iterable, List, Optional, Union

from src.config import config
from src.models.contracts import PROJECT_MARKERS, ProjectRoot, ProjectType

logger = logging.getLogger(__name__)

MARKER_FILES = frozenset(name for name, _ in PROJECT_MARKERS)


def find_all_project_roots(
    repo_dir: Union[str, Path],
    max_depth: Optional[int] = None,
    ignore_dirs: Optional[Iterable[str]] = None,
) -> List[ProjectRoot]:
    """
    Find directories holding a build tool descriptor.

    Entries are visited breadth-first down to max_depth below repo_dir
    (the root itself is depth 0). Vendored dependency directories are
    never entered. Unreadable directories are skipped.

    Returns:
        Project roots sorted by path, one per directory
    """
    repo_dir = Path(repo_dir).resolve()
    max_depth = config.DISCOVERY_MAX_DEPTH if max_depth is None else max_depth
    ignored = set(config.IGNORED_DIRS if ignore_dirs is None else ignore_dirs)

    roots = {}
    queue = deque([(repo_dir, 0)])

    while queue:
        directory, depth = queue.popleft()
        entry_depth = depth + 1
        if entry_depth > max_depth:
            continue
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.debug(f"Skipping unreadable directory {directory}: {e}")
            continue

        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    if entry.name not in ignored and entry_depth < max_depth:
                        queue.append((Path(entry.path), entry_depth))
                elif entry.name in MARKER_FILES and entry.is_file():
                    root_dir = Path(entry.path).parent.resolve()
                    if root_dir not in roots:
                        roots[root_dir] = ProjectRoot(root_dir, ProjectType.from_repo_dir(root_dir))
            except OSError as e:
                logger.debug(f"Skipping unreadable entry {entry.path}: {e}")

    result = [roots[path] for path in sorted(roots)]
    logger.info(f"Found {len(result)} project roots in {repo_dir}",
                extra={"repo_dir": str(repo_dir), "project_roots": len(result)})
    return result
