"""Shared test data and helpers for the glance test suite."""

import os
import time
from pathlib import Path

from glance.errors import SummarizerError
from glance.orchestrator import Orchestrator
from glance.scanner import Scanner
from glance.staleness import ForcedSet
from glance.summarizer import Summarizer
from glance.tracker import RegenerationTracker

ARTIFACT = ".glance.md"


class RecordingSummarizer(Summarizer):
    """Deterministic summarizer that records every call.

    Directories listed in ``fail_for`` raise SummarizerError instead.
    """

    def __init__(self, fail_for=()):
        self.calls = []
        self.fail_for = set(fail_for)

    @property
    def directories(self):
        return [call[0] for call in self.calls]

    def summarize(self, relative_dir, local_files, child_summaries, cancel=None):
        self.calls.append((relative_dir, list(local_files), child_summaries))
        if relative_dir in self.fail_for:
            raise SummarizerError(f"model unavailable for {relative_dir}")
        names = ", ".join(name for name, _ in local_files) or "no files"
        return f"# {relative_dir}\n\nSummary of {names}.\n"


def backdate(root: Path, seconds: int = 100) -> None:
    """Push the mtime of every file under ``root`` ``seconds`` into the past."""
    past = time.time() - seconds
    for dirpath, _dirnames, filenames in os.walk(root):
        for name in filenames:
            os.utime(os.path.join(dirpath, name), (past, past))


def run_once(boundary: Path, summarizer: Summarizer, forced: ForcedSet = None):
    """Scan and run one full pass. Returns (report, tracker)."""
    scan = Scanner(boundary).discover(boundary)
    tracker = RegenerationTracker()
    report = Orchestrator(boundary, summarizer).run(
        scan.directories, scan.chains, tracker, forced or ForcedSet.of([])
    )
    return report, tracker


def artifact_mtime(directory: Path) -> int:
    return (directory / ARTIFACT).stat().st_mtime_ns
