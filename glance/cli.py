#!/usr/bin/env python3
"""
glance command-line entry point.

Usage:
    glance ./my-project
    glance --force-dir src/api ./my-project
"""

import logging
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional

from glance.config import GlanceConfig, load_config
from glance.errors import ConfigurationError, GlanceError, SecurityError
from glance.llm import DEFAULT_TEMPLATE, LLMSummarizer, OpenHandsClient, OpenRouterClient
from glance.orchestrator import Orchestrator, RunReport
from glance.scanner import Scanner
from glance.security import establish_boundary, validate_path
from glance.staleness import ForcedSet
from glance.tracker import RegenerationTracker

logger = logging.getLogger("glance")


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_summarizer(config: GlanceConfig) -> LLMSummarizer:
    """Primary OpenHands client, then an optional OpenRouter fallback."""
    clients = []
    if config.api_key or config.base_url:
        clients.append(
            OpenHandsClient(
                model=config.model,
                api_key=config.api_key,
                base_url=config.base_url or None,
                timeout=config.timeout,
            )
        )
    if config.fallback_model and config.openrouter_api_key:
        clients.append(
            OpenRouterClient(
                model=config.fallback_model,
                api_key=config.openrouter_api_key,
                timeout=config.timeout,
            )
        )
    return LLMSummarizer(
        clients,
        template=config.prompt_template or DEFAULT_TEMPLATE,
        max_retries=config.max_retries,
    )


def build_forced_set(config: GlanceConfig, boundary: Path) -> ForcedSet:
    """Map ``--force`` / ``--force-dir`` onto directories inside the boundary."""
    if config.force:
        return ForcedSet.everything()

    paths = []
    for raw in config.force_dirs:
        candidate = Path(raw)
        if not candidate.is_absolute():
            candidate = boundary / candidate
        try:
            paths.append(validate_path(candidate, boundary, expect_dir=True))
        except GlanceError as exc:
            raise ConfigurationError(f"Invalid --force-dir {raw}: {exc}") from exc
    return ForcedSet.of(paths)


def print_debrief(report: RunReport, scan_errors: List[GlanceError]) -> None:
    """Display a summary of successes and failures."""
    print()
    print("=" * 70)
    print("[Glance] FINAL SUMMARY")
    print("=" * 70)
    print(
        f"Processed {len(report.results)} directories → "
        f"{len(report.regenerated)} regenerated, "
        f"{len(report.skipped)} fresh, "
        f"{len(report.failed)} failed"
    )

    if report.cancelled:
        print("[Warning] Run was cancelled; rerun to finish the remaining directories")

    if scan_errors:
        print(f"\n[Scan] {len(scan_errors)} subtree(s) skipped:")
        for error in scan_errors:
            print(f"   - {error}")

    if report.failed:
        print("\n[Error] Some directories couldn't be processed:")
        for result in report.failed:
            print(f"   - {result.directory}: {result.reason}")
    elif not scan_errors:
        print("No failures.")
    print("=" * 70)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit status."""
    try:
        config = load_config(argv)
    except ConfigurationError as exc:
        print(f"[Config] {exc}", file=sys.stderr)
        return 1

    setup_logging(config.verbose)

    try:
        boundary = establish_boundary(config.target_dir)
        forced = build_forced_set(config, boundary)
        summarizer = build_summarizer(config)
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return 1

    cancel = threading.Event()
    signal.signal(signal.SIGTERM, lambda signum, frame: cancel.set())

    logger.info("Scanning %s", boundary)
    try:
        scan = Scanner(boundary).discover(boundary)
        orchestrator = Orchestrator(
            boundary,
            summarizer,
            max_file_bytes=config.max_file_bytes,
        )
        report = orchestrator.run(scan.directories, scan.chains, RegenerationTracker(), forced, cancel)
    except SecurityError as exc:
        logger.error("Security check failed on the target directory: %s", exc)
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted; artifacts written so far are kept, rerun to resume")
        return 130

    print_debrief(report, scan.errors)
    return 0


if __name__ == "__main__":
    sys.exit(main())
