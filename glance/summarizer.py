"""Interface between the orchestrator and whatever writes the summaries."""

import threading
from typing import List, Optional, Tuple


class Summarizer:
    """Turns gathered directory content into artifact text.

    Implementations own retries and failover. They raise ``SummarizerError``
    when they give up and ``RunCancelled`` when ``cancel`` is set mid-call.
    """

    def summarize(
        self,
        relative_dir: str,
        local_files: List[Tuple[str, str]],
        child_summaries: str,
        cancel: Optional[threading.Event] = None,
    ) -> str:
        raise NotImplementedError
