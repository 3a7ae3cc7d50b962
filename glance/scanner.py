"""
Directory discovery.

Breadth-first walk of the boundary, attaching an ``IgnoreChain`` to every
directory it keeps. Hidden entries, ``node_modules`` and anything excluded
by the chain are pruned; pruned directories are never descended into.
Directory symlinks are never followed: one pointing outside the boundary is
recorded as an error, one pointing inside is left to the real directory.
"""

import logging
import os
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, List, NamedTuple

from glance.errors import GlanceError, ScanError
from glance.ignore import EMPTY_CHAIN, IgnoreChain
from glance.security import relative_to_boundary, validate_path

logger = logging.getLogger(__name__)

ALWAYS_SKIPPED_DIRS = frozenset({"node_modules"})


class Entry(NamedTuple):
    path: Path
    is_dir: bool


@dataclass
class ScanResult:
    """Directories in breadth-first order, their chains, and per-subtree errors."""

    directories: List[Path] = field(default_factory=list)
    chains: Dict[Path, IgnoreChain] = field(default_factory=dict)
    errors: List[GlanceError] = field(default_factory=list)


def visible_entries(
    directory: Path,
    chain: IgnoreChain,
    skip_names: FrozenSet[str] = frozenset(),
) -> List[Entry]:
    """
    List the entries of ``directory`` that survive the visibility rules.

    The caller is responsible for having validated ``directory``. Entries
    are returned sorted by name.

    Raises:
        ScanError: If the directory cannot be listed
    """
    try:
        with os.scandir(directory) as it:
            raw = sorted(it, key=lambda e: e.name)
    except OSError as exc:
        raise ScanError(f"Cannot list directory: {exc.strerror or exc}") from exc

    entries = []
    for item in raw:
        name = item.name
        if name.startswith(".") or name in skip_names:
            continue
        try:
            is_dir = item.is_dir()
        except OSError:
            continue
        if is_dir and name in ALWAYS_SKIPPED_DIRS:
            continue

        path = directory / name
        if chain.is_excluded(path, is_dir=is_dir):
            continue
        entries.append(Entry(path, is_dir))
    return entries


class Scanner:
    """Enumerates the directory tree under a trust boundary."""

    def __init__(self, boundary: Path):
        self.boundary = boundary

    def discover(self, root: Path) -> ScanResult:
        """
        Walk ``root`` breadth-first.

        Args:
            root: Starting directory, normally the boundary itself

        Returns:
            ScanResult with shallow-to-deep directory order

        Raises:
            SecurityError: If ``root`` itself lies outside the boundary
        """
        root = validate_path(root, self.boundary, expect_dir=True)
        result = ScanResult()
        visited = set()
        queue = deque([(root, EMPTY_CHAIN)])

        while queue:
            directory, parent_chain = queue.popleft()

            real = os.path.realpath(directory)
            if real in visited:
                logger.debug("Not re-entering %s (already visited as %s)", self._rel(directory), self._rel(real))
                continue
            visited.add(real)

            chain = parent_chain.build_for_child(directory, self.boundary)
            result.directories.append(directory)
            result.chains[directory] = chain

            try:
                entries = visible_entries(directory, chain)
            except ScanError as exc:
                rel = self._rel(directory)
                logger.warning("Skipping subtree %s: %s", rel, exc)
                result.errors.append(ScanError(f"{rel}: {exc.message}"))
                continue

            for entry in entries:
                if not entry.is_dir:
                    continue
                try:
                    validate_path(entry.path, self.boundary, expect_dir=True)
                except GlanceError as exc:
                    rel = self._rel(entry.path)
                    logger.warning("Skipping %s: %s", rel, exc)
                    result.errors.append(type(exc)(f"{rel}: {exc.message}"))
                    continue
                if entry.path.is_symlink():
                    # The target is inside the boundary and is scanned under its real name
                    logger.debug("Not following directory symlink %s", self._rel(entry.path))
                    continue
                queue.append((entry.path, chain))

        logger.info("Discovered %d directories under %s", len(result.directories), self.boundary)
        return result

    def _rel(self, path: Path) -> str:
        return relative_to_boundary(path, self.boundary)
