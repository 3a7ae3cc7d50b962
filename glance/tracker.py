"""Per-run record of which directories must regenerate."""

import logging
from pathlib import Path
from typing import Dict

from glance.security import is_within

logger = logging.getLogger(__name__)


class RegenerationTracker:
    """
    Needs-regeneration flags for a single run.

    Flags are write-once-true: nothing ever clears them mid-run. One tracker
    is created per run and handed to the orchestrator.
    """

    def __init__(self):
        self._needed: Dict[Path, bool] = {}

    def mark_needed(self, directory: Path) -> None:
        self._needed[directory] = True

    def is_needed(self, directory: Path) -> bool:
        return self._needed.get(directory, False)

    def needed(self) -> list:
        """Flagged directories, in the order they were first flagged."""
        return [d for d, flag in self._needed.items() if flag]

    def bubble_up_to_root(self, directory: Path, boundary: Path) -> None:
        """Flag every ancestor of ``directory`` up to and including ``boundary``."""
        current = directory
        while current != boundary:
            parent = current.parent
            if parent == current or not is_within(parent, boundary):
                break
            self.mark_needed(parent)
            current = parent
        logger.debug("Bubbled regeneration up from %s", directory)
