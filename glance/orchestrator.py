"""
Leaves-first regeneration pass.

Processes one directory at a time, deepest first, so that a parent always
sees the final artifacts of its children and the needs-regeneration flags
posted by them. Every read, listing and write goes through the path guard.
"""

import enum
import logging
import os
import tempfile
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from glance.errors import GlanceError, RunCancelled, SecurityError, WriteError
from glance.ignore import EMPTY_CHAIN, IgnoreChain
from glance.reader import DEFAULT_MAX_FILE_BYTES, is_text_file, read_text_file, sanitize_text
from glance.scanner import Entry, visible_entries
from glance.security import display_path, relative_to_boundary, validate_path
from glance.staleness import ARTIFACT_FILENAME, ForcedSet, StalenessOracle
from glance.summarizer import Summarizer
from glance.tracker import RegenerationTracker

logger = logging.getLogger(__name__)

EMPTY_DIRECTORY_NOTE = "This directory is empty."
NO_CONTENT_NOTE = (
    "This directory has no summarizable content: its entries are hidden, "
    "excluded by ignore rules, or binary files."
)


class Outcome(enum.Enum):
    REGENERATED = "regenerated"
    SKIPPED_FRESH = "skipped-fresh"
    FAILED = "failed"


@dataclass
class DirectoryResult:
    directory: str          # relative to the boundary, "." for the root
    outcome: Outcome
    reason: str
    stub: bool = False


@dataclass
class RunReport:
    """Outcome of every directory visited in a run."""

    results: List[DirectoryResult] = field(default_factory=list)
    cancelled: bool = False

    def _with(self, outcome: Outcome) -> List[DirectoryResult]:
        return [r for r in self.results if r.outcome is outcome]

    @property
    def regenerated(self) -> List[DirectoryResult]:
        return self._with(Outcome.REGENERATED)

    @property
    def skipped(self) -> List[DirectoryResult]:
        return self._with(Outcome.SKIPPED_FRESH)

    @property
    def failed(self) -> List[DirectoryResult]:
        return self._with(Outcome.FAILED)

    def outcome_of(self, directory: str) -> Optional[Outcome]:
        for result in self.results:
            if result.directory == directory:
                return result.outcome
        return None


class Orchestrator:
    """Drives one regeneration run over a scanned tree.

    Args:
        boundary: Resolved trust boundary.
        summarizer: Backend that writes summaries.
        artifact_name: File name of the per-directory artifact.
        max_file_bytes: Per-file cap on gathered content.
    """

    def __init__(
        self,
        boundary: Path,
        summarizer: Summarizer,
        artifact_name: str = ARTIFACT_FILENAME,
        max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
    ):
        self.boundary = boundary
        self.summarizer = summarizer
        self.artifact_name = artifact_name
        self.max_file_bytes = max_file_bytes
        self.oracle = StalenessOracle(boundary, artifact_name)

    @staticmethod
    def leaves_first(directories: Iterable[Path]) -> List[Path]:
        """Deepest paths first; the sort is stable so siblings keep scan order."""
        return sorted(directories, key=lambda d: len(d.parts), reverse=True)

    def run(
        self,
        directories: Iterable[Path],
        chains: Dict[Path, IgnoreChain],
        tracker: RegenerationTracker,
        forced: ForcedSet,
        cancel: Optional[threading.Event] = None,
    ) -> RunReport:
        """
        Regenerate stale artifacts, children before parents.

        Returns:
            RunReport classifying every visited directory

        Raises:
            SecurityError: If the boundary root itself fails validation
        """
        report = RunReport()
        ordered = self.leaves_first(directories)

        for index, directory in enumerate(ordered, start=1):
            if cancel is not None and cancel.is_set():
                logger.warning("Run cancelled, %d directories left unvisited", len(ordered) - index + 1)
                report.cancelled = True
                break

            rel = self._rel(directory)
            try:
                result = self._process(directory, chains.get(directory, EMPTY_CHAIN), tracker, forced, cancel)
            except RunCancelled:
                logger.warning("Run cancelled while processing %s", rel)
                report.cancelled = True
                break
            except SecurityError as exc:
                if directory == self.boundary:
                    raise
                logger.error("Security check failed for %s: %s", rel, exc)
                result = DirectoryResult(rel, Outcome.FAILED, str(exc))
            except GlanceError as exc:
                logger.error("Failed to regenerate %s: %s", rel, exc)
                result = DirectoryResult(rel, Outcome.FAILED, str(exc))

            logger.info("[%d/%d] %s: %s (%s)", index, len(ordered), rel, result.outcome.value, result.reason)
            report.results.append(result)

        return report

    # ----- per-directory ---------------------------------------------------

    def _process(
        self,
        directory: Path,
        chain: IgnoreChain,
        tracker: RegenerationTracker,
        forced: ForcedSet,
        cancel: Optional[threading.Event],
    ) -> DirectoryResult:
        rel = self._rel(directory)
        validate_path(directory, self.boundary, expect_dir=True)
        artifact_path = validate_path(
            directory / self.artifact_name, self.boundary, expect_dir=False, must_exist=False
        )

        if tracker.is_needed(directory):
            reason = "descendant regenerated"
        else:
            needs, reason = self.oracle.should_regenerate(directory, chain, artifact_path, directory in forced)
            if not needs:
                return DirectoryResult(rel, Outcome.SKIPPED_FRESH, reason)

        entries = visible_entries(directory, chain, skip_names=frozenset({self.artifact_name}))
        local_files = self.gather_local_files(entries)
        child_summaries = self.gather_child_summaries(entries)

        if not local_files and not child_summaries:
            # Nothing to summarize: never ask the model to invent content from a path name
            self.write_artifact(artifact_path, self._stub_text(directory, rel))
            tracker.bubble_up_to_root(directory, self.boundary)
            return DirectoryResult(rel, Outcome.REGENERATED, f"{reason}; no content, wrote stub", stub=True)

        logger.debug(
            "Summarizing %s: %d local files, %d bytes of child summaries",
            rel, len(local_files), len(child_summaries),
        )
        summary = self.summarizer.summarize(rel, local_files, child_summaries, cancel)

        self.write_artifact(artifact_path, summary)
        tracker.bubble_up_to_root(directory, self.boundary)
        return DirectoryResult(rel, Outcome.REGENERATED, reason)

    def gather_local_files(self, entries: List[Entry]) -> List[Tuple[str, str]]:
        """Read the visible text files among ``entries``, in name order."""
        files = []
        for entry in entries:
            if entry.is_dir:
                continue
            try:
                path = validate_path(entry.path, self.boundary, expect_dir=False)
            except GlanceError as exc:
                logger.debug("Skipping %s: %s", self._rel(entry.path), exc)
                continue

            try:
                if not is_text_file(path):
                    logger.debug("Skipping binary file %s", self._rel(entry.path))
                    continue
                content = read_text_file(path, self.max_file_bytes)
            except OSError as exc:
                logger.debug("Error reading %s: %s", self._rel(entry.path), exc)
                continue
            files.append((display_path(entry.path.name), content))
        return files

    def gather_child_summaries(self, entries: List[Entry]) -> str:
        """Concatenate the artifacts of visible subdirectories.

        Subdirectories outside the boundary, without an artifact, or with an
        unreadable one are left out. An artifact reached through several
        entries (a symlinked alias of a sibling) is read once.
        """
        summaries = []
        seen = set()
        for entry in entries:
            if not entry.is_dir:
                continue
            try:
                path = validate_path(entry.path / self.artifact_name, self.boundary, expect_dir=False)
                if path in seen:
                    logger.debug("Skipping %s, its summary is already included", self._rel(entry.path))
                    continue
                seen.add(path)
                text = sanitize_text(path.read_bytes())
            except (GlanceError, OSError) as exc:
                logger.debug("No child summary from %s: %s", self._rel(entry.path), exc)
                continue
            if text.strip():
                summaries.append(text)
        return "\n\n".join(summaries)

    def write_artifact(self, artifact_path: Path, text: str) -> None:
        """Write ``text`` to ``artifact_path`` via a temp file and an atomic rename."""
        fd, tmp_name = None, None
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=".glance-", suffix=".tmp", dir=artifact_path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                fd = None
                f.write(text)
            os.replace(tmp_name, artifact_path)
            tmp_name = None
        except OSError as exc:
            raise WriteError(f"Cannot write {self._rel(artifact_path)}: {exc.strerror or exc}") from exc
        except UnicodeError as exc:
            raise WriteError(f"Cannot encode {self._rel(artifact_path)} as UTF-8: {exc}") from exc
        finally:
            if fd is not None:
                os.close(fd)
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

    # ----- internal --------------------------------------------------------

    def _stub_text(self, directory: Path, rel: str) -> str:
        try:
            with os.scandir(directory) as it:
                others = [e.name for e in it if e.name != self.artifact_name]
        except OSError:
            others = []
        note = NO_CONTENT_NOTE if others else EMPTY_DIRECTORY_NOTE
        return f"# {rel}\n\n{note}\n"

    def _rel(self, path: Path) -> str:
        return relative_to_boundary(path, self.boundary)
