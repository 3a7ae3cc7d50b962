"""
Layered .gitignore handling.

Each directory carries an ``IgnoreChain``: the ordered scopes (root first)
of every ``.gitignore`` between the boundary and that directory. Decisions
are taken from the deepest scope outward so a nested rule file can override
its ancestors, including re-including a file with a ``!pattern``.
"""

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Tuple

import pathspec

from glance.errors import GlanceError, NotFoundError
from glance.security import display_path, relative_to_boundary, validate_path

logger = logging.getLogger(__name__)

IGNORE_FILENAME = ".gitignore"


class Decision(enum.Enum):
    INCLUDE = "include"
    EXCLUDE = "exclude"
    NO_OPINION = "no-opinion"


class Matcher:
    """Answers include/exclude/no-opinion for a path relative to its origin."""

    def decide(self, relative_path: str, is_dir: bool = False) -> Decision:
        raise NotImplementedError


class NullMatcher(Matcher):
    """Matcher with no rules."""

    def decide(self, relative_path: str, is_dir: bool = False) -> Decision:
        return Decision.NO_OPINION


class PatternMatcher(Matcher):
    """Gitignore-style matcher. The last matching pattern in the file wins."""

    def __init__(self, lines: Iterable[str]):
        self._spec = pathspec.PathSpec.from_lines("gitwildmatch", lines)
        self._patterns = [p for p in self._spec.patterns if p.include is not None]

    def __len__(self) -> int:
        return len(self._patterns)

    def decide(self, relative_path: str, is_dir: bool = False) -> Decision:
        candidate = relative_path.rstrip("/")
        if is_dir:
            # Directory-only patterns ("build/") match the trailing-slash form
            candidate += "/"

        decision = Decision.NO_OPINION
        for pattern in self._patterns:
            if pattern.match_file(candidate) is not None:
                decision = Decision.EXCLUDE if pattern.include else Decision.INCLUDE
        return decision


@dataclass(frozen=True)
class IgnoreScope:
    origin: Path
    matcher: Matcher


class IgnoreChain:
    """Immutable, root-to-leaf sequence of ignore scopes."""

    __slots__ = ("_scopes",)

    def __init__(self, scopes: Tuple[IgnoreScope, ...] = ()):
        self._scopes = tuple(scopes)

    @property
    def scopes(self) -> Tuple[IgnoreScope, ...]:
        return self._scopes

    def __len__(self) -> int:
        return len(self._scopes)

    def __repr__(self) -> str:
        origins = ", ".join(str(s.origin) for s in self._scopes)
        return f"IgnoreChain([{origins}])"

    def with_scope(self, scope: IgnoreScope) -> "IgnoreChain":
        return IgnoreChain(self._scopes + (scope,))

    def build_for_child(self, child_dir: Path, boundary: Path) -> "IgnoreChain":
        """
        Chain for ``child_dir``: this chain plus the child's own rule file.

        Returns ``self`` when the child has no usable ``.gitignore``, so
        siblings without rule files share one chain object.
        """
        matcher = load_rule_file(child_dir, boundary)
        if isinstance(matcher, NullMatcher):
            return self
        return self.with_scope(IgnoreScope(origin=child_dir, matcher=matcher))

    def is_excluded(self, candidate: Path, is_dir: bool = False) -> bool:
        """
        Decide whether ``candidate`` is excluded.

        Scopes are consulted from the nearest (deepest) to the root and the
        first definitive answer wins. No answer at all means included.
        """
        for scope in reversed(self._scopes):
            try:
                relative = candidate.relative_to(scope.origin)
            except ValueError:
                continue
            if relative == Path("."):
                continue

            decision = scope.matcher.decide(relative.as_posix(), is_dir)
            if decision is Decision.EXCLUDE:
                logger.debug("Excluded %s (rule file in %s)", display_path(relative.as_posix()), display_path(scope.origin.name))
                return True
            if decision is Decision.INCLUDE:
                return False
        return False


EMPTY_CHAIN = IgnoreChain()


def load_rule_file(directory: Path, boundary: Path) -> Matcher:
    """Parse ``directory/.gitignore``; a NullMatcher when it is absent, empty or unusable."""
    rule_path = directory / IGNORE_FILENAME
    try:
        validated = validate_path(rule_path, boundary, expect_dir=False)
    except NotFoundError:
        return NullMatcher()
    except GlanceError as exc:
        logger.warning("Ignoring rule file %s: %s", relative_to_boundary(rule_path, boundary), exc)
        return NullMatcher()

    try:
        text = validated.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.warning("Ignoring unreadable rule file %s: %s", relative_to_boundary(rule_path, boundary), exc)
        return NullMatcher()

    matcher = PatternMatcher(text.splitlines())
    if not len(matcher):
        return NullMatcher()
    return matcher
