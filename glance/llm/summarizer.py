"""
LLM-backed summarizer.

Deep module: the orchestrator hands over a directory's gathered content and
gets text back. Prompt rendering, retries with backoff, and failover across
clients are handled internally.
"""

import logging
import threading
import time
from typing import List, Optional, Sequence, Tuple

from glance.errors import ConfigurationError, RunCancelled, SummarizerError
from glance.llm.backoff import exponential_backoff
from glance.llm.clients import LLMClient, LLMClientError
from glance.llm.prompt import DEFAULT_TEMPLATE, render_prompt
from glance.summarizer import Summarizer

logger = logging.getLogger(__name__)


class LLMSummarizer(Summarizer):
    """Summarizer that tries each client in order, retrying each one.

    Args:
        clients: Primary client first, then fallbacks.
        template: Prompt template (``$directory``, ``$sub_glances``, ``$file_contents``).
        max_retries: Retries per client after the first attempt.
        backoff_base: First backoff delay in seconds; 0 disables sleeping.
        backoff_max: Cap on a single backoff delay in seconds.
    """

    def __init__(
        self,
        clients: Sequence[LLMClient],
        template: str = DEFAULT_TEMPLATE,
        max_retries: int = 3,
        backoff_base: float = 1.0,
        backoff_max: float = 30.0,
    ):
        if not clients:
            raise ConfigurationError("At least one LLM client is required")
        self.clients = list(clients)
        self.template = template
        self.max_retries = max(max_retries, 0)
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max

    def summarize(
        self,
        relative_dir: str,
        local_files: List[Tuple[str, str]],
        child_summaries: str,
        cancel: Optional[threading.Event] = None,
    ) -> str:
        prompt = render_prompt(self.template, relative_dir, local_files, child_summaries)
        logger.debug("Prompt for %s is %d characters", relative_dir, len(prompt))

        failures = []
        for client in self.clients:
            last_error = None
            attempts = self.max_retries + 1

            for attempt in range(1, attempts + 1):
                self._check_cancel(cancel)
                try:
                    text = client.generate(prompt)
                except LLMClientError as exc:
                    last_error = exc
                    logger.warning(
                        "%s attempt %d/%d for %s failed: %s",
                        client.name, attempt, attempts, relative_dir, exc,
                    )
                else:
                    if text.strip():
                        logger.debug("%s succeeded for %s on attempt %d", client.name, relative_dir, attempt)
                        return text
                    last_error = LLMClientError("empty response")
                    logger.warning("%s returned an empty summary for %s", client.name, relative_dir)

                if attempt < attempts:
                    self._wait(exponential_backoff(attempt, self.backoff_base, self.backoff_max), cancel)

            failures.append(f"{client.name}: {last_error}")
            logger.error("%s gave up on %s after %d attempts", client.name, relative_dir, attempts)

        raise SummarizerError(
            f"All LLM clients failed for {relative_dir}: " + "; ".join(failures),
            suggestion="check the API key, model name and network access",
        )

    # ----- internal --------------------------------------------------------

    @staticmethod
    def _check_cancel(cancel: Optional[threading.Event]) -> None:
        if cancel is not None and cancel.is_set():
            raise RunCancelled("Summarization cancelled")

    def _wait(self, seconds: float, cancel: Optional[threading.Event]) -> None:
        if seconds <= 0:
            return
        logger.debug("Retrying in %.1fs", seconds)
        if cancel is None:
            time.sleep(seconds)
        elif cancel.wait(seconds):
            raise RunCancelled("Summarization cancelled during backoff")
