"""
Staleness checks for per-directory artifacts.

Decides whether a directory's ``.glance.md`` is out of date without looking
deeper than one level: each child's artifact timestamp already reflects its
own subtree.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, Optional

from glance.errors import GlanceError, NotFoundError, ScanError
from glance.ignore import IgnoreChain
from glance.scanner import visible_entries
from glance.security import relative_to_boundary, validate_path

logger = logging.getLogger(__name__)

ARTIFACT_FILENAME = ".glance.md"


class ForcedSet:
    """Directories whose regeneration is unconditional (or all of them)."""

    def __init__(self, paths: Iterable[Path] = (), everything: bool = False):
        self._paths = frozenset(Path(os.path.abspath(p)) for p in paths)
        self._everything = everything

    @classmethod
    def everything(cls) -> "ForcedSet":
        return cls(everything=True)

    @classmethod
    def of(cls, paths: Iterable[Path]) -> "ForcedSet":
        return cls(paths)

    def __contains__(self, directory: Path) -> bool:
        return self._everything or Path(os.path.abspath(directory)) in self._paths

    def __bool__(self) -> bool:
        return self._everything or bool(self._paths)

    def __repr__(self) -> str:
        if self._everything:
            return "ForcedSet(everything)"
        return f"ForcedSet({sorted(str(p) for p in self._paths)})"


class StalenessOracle:
    """
    Decision engine for whether a directory's artifact must be regenerated.

    Rules:
    1. Forced → REGENERATE
    2. No artifact → REGENERATE
    3. A visible direct file, or a direct subdirectory's artifact, is newer
       than the artifact → REGENERATE
    4. Otherwise → SKIP
    """

    def __init__(self, boundary: Path, artifact_name: str = ARTIFACT_FILENAME):
        self.boundary = boundary
        self.artifact_name = artifact_name

    def should_regenerate(
        self,
        directory: Path,
        chain: IgnoreChain,
        artifact_path: Path,
        forced: bool,
    ) -> tuple[bool, str]:
        """
        Determine if the artifact of ``directory`` should be regenerated.

        Args:
            directory: Directory being evaluated (already validated)
            chain: Ignore chain for ``directory``
            artifact_path: Location of the directory's artifact
            forced: Whether regeneration is forced for this directory

        Returns:
            Tuple of (should_regenerate: bool, reason: str)
        """
        rel = relative_to_boundary(directory, self.boundary)

        if forced:
            return True, "forced"

        try:
            artifact = validate_path(artifact_path, self.boundary, expect_dir=False)
        except NotFoundError:
            logger.debug("No artifact in %s, will generate", rel)
            return True, "missing"

        try:
            artifact_mtime = artifact.stat().st_mtime_ns
        except OSError as exc:
            logger.warning("Couldn't stat the artifact of %s: %s", rel, exc.strerror or exc)
            return True, f"staleness check failed: {exc.strerror or exc}"

        try:
            latest = self.latest_mtime(directory, chain)
        except ScanError as exc:
            logger.warning("Couldn't check modification times for %s: %s", rel, exc)
            return True, f"staleness check failed: {exc}"

        if latest is not None and latest > artifact_mtime:
            logger.debug("Found newer content in %s, will regenerate", rel)
            return True, "content changed"

        return False, "fresh"

    def latest_mtime(self, directory: Path, chain: IgnoreChain) -> Optional[int]:
        """
        Newest mtime (ns) among visible direct files and direct child artifacts.

        Returns None when there is nothing to compare against.

        Raises:
            ScanError: If ``directory`` cannot be listed
        """
        latest = None
        for entry in visible_entries(directory, chain, skip_names=frozenset({self.artifact_name})):
            target = entry.path / self.artifact_name if entry.is_dir else entry.path
            try:
                validated = validate_path(target, self.boundary, expect_dir=False)
                mtime = validated.stat().st_mtime_ns
            except (GlanceError, OSError):
                # Child without an artifact yet, or an entry outside the boundary
                continue
            if latest is None or mtime > latest:
                latest = mtime
        return latest
