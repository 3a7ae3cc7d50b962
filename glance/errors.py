"""Error taxonomy for glance runs.

Configuration and boundary-root security errors abort a run. Everything else
fails a single directory (or subtree) and is reported in the debrief.
"""

from typing import Optional


class GlanceError(Exception):
    """Base class for all glance errors.

    Args:
        message: Human-readable description.
        suggestion: Optional hint shown to the user in the debrief.
    """

    def __init__(self, message: str, suggestion: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message} (hint: {self.suggestion})"
        return self.message


class ConfigurationError(GlanceError):
    """Bad or missing settings. Raised before any scanning starts."""


class SecurityError(GlanceError):
    """A path resolved outside the trust boundary."""


class NotFoundError(GlanceError):
    """A path that must exist does not."""


class PathTypeError(GlanceError):
    """A path exists but is a file where a directory was expected (or the reverse)."""


class ScanError(GlanceError):
    """A directory could not be listed. The subtree is skipped."""


class SummarizerError(GlanceError):
    """The summarization backend gave up on a directory."""


class WriteError(GlanceError):
    """An artifact could not be written."""


class RunCancelled(GlanceError):
    """The run was cancelled while a directory was being processed."""
