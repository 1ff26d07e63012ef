"""Glob-based path filtering for watch events.

Patterns are matched against the event path made relative to a base
directory (normally the working directory). Matching works one path
segment at a time: ``*``, ``?`` and character classes never cross ``/``.
A pattern without ``/`` may also match the final segment alone, so
``*.tmp`` catches ``build/out.tmp``.
"""

import logging
import os
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from cmdwatch.errors import PatternError

logger = logging.getLogger(__name__)


def _class_char(pattern: str, i: int) -> tuple[str, int]:
    """Read one (possibly escaped) character inside a character class."""
    if i >= len(pattern):
        raise PatternError(pattern, "unclosed character class")
    c = pattern[i]
    if c in "-]":
        raise PatternError(pattern, f"unexpected {c!r} in character class")
    if c == "\\":
        i += 1
        if i >= len(pattern):
            raise PatternError(pattern, "trailing backslash")
        c = pattern[i]
    return c, i + 1


def _translate_class(pattern: str, i: int) -> tuple[str, int]:
    """Translate a character class starting just after its ``[``.

    Returns:
        Tuple of (regex fragment, index after the closing ``]``)
    """
    negate = False
    if i < len(pattern) and pattern[i] in "^!":
        negate = True
        i += 1

    ranges: list[str] = []
    while True:
        if i >= len(pattern):
            raise PatternError(pattern, "unclosed character class")
        if pattern[i] == "]":
            if not ranges:
                raise PatternError(pattern, "empty character class")
            i += 1
            break
        lo, i = _class_char(pattern, i)
        hi = lo
        if i < len(pattern) and pattern[i] == "-":
            hi, i = _class_char(pattern, i + 1)
            if hi < lo:
                raise PatternError(pattern, f"reversed range {lo}-{hi}")
        if lo == hi:
            ranges.append(re.escape(lo))
        else:
            ranges.append(f"{re.escape(lo)}-{re.escape(hi)}")

    body = "".join(ranges)
    if negate:
        return f"[^/{body}]", i
    return f"(?!/)[{body}]", i


def translate(pattern: str) -> str:
    """Translate a glob pattern into an anchored regular expression.

    Args:
        pattern: Shell-style glob pattern

    Returns:
        Regular expression source matching the whole string

    Raises:
        PatternError: If the pattern is malformed
    """
    parts: list[str] = []
    i, n = 0, len(pattern)
    while i < n:
        c = pattern[i]
        i += 1
        if c == "*":
            while i < n and pattern[i] == "*":
                i += 1
            parts.append("[^/]*")
        elif c == "?":
            parts.append("[^/]")
        elif c == "[":
            fragment, i = _translate_class(pattern, i)
            parts.append(fragment)
        elif c == "\\":
            if i >= n:
                raise PatternError(pattern, "trailing backslash")
            parts.append(re.escape(pattern[i]))
            i += 1
        else:
            parts.append(re.escape(c))
    return "(?s:" + "".join(parts) + r")\Z"


@dataclass(frozen=True)
class Glob:
    """A compiled glob pattern."""

    pattern: str
    regex: re.Pattern

    @classmethod
    def compile(cls, pattern: str) -> "Glob":
        return cls(pattern=pattern, regex=re.compile(translate(pattern)))

    @property
    def anchored(self) -> bool:
        return "/" in self.pattern

    def match(self, rel_path: str) -> bool:
        if self.regex.match(rel_path):
            return True
        if self.anchored:
            return False
        return self.regex.match(rel_path.rsplit("/", 1)[-1]) is not None


def relative_path(path: str | Path, base: Path) -> str | None:
    """Express ``path`` relative to ``base`` with ``/`` separators.

    Returns None when no relative form exists (different drives on Windows).
    """
    try:
        rel = os.path.relpath(path, base)
    except ValueError:
        return None
    return rel.replace(os.sep, "/")


class GlobFilter:
    """One filter stage: a list of include or exclude patterns."""

    def __init__(self, patterns: Iterable[str], base: Path, exclude: bool):
        """Initialize the stage.

        Malformed patterns are kept in place so evaluation order is
        preserved; any path that reaches one is skipped.

        Args:
            patterns: Glob patterns, evaluated in order
            base: Directory the event paths are made relative to
            exclude: True for an exclude stage, False for include
        """
        self.base = base
        self.exclude = exclude
        self.patterns = list(patterns)
        self._globs: list[Glob | None] = []
        for pattern in self.patterns:
            try:
                self._globs.append(Glob.compile(pattern))
            except PatternError as e:
                logger.warning(f"{e}; events reaching this pattern will be skipped")
                self._globs.append(None)

    @classmethod
    def include(cls, patterns: Iterable[str], base: Path) -> "GlobFilter":
        return cls(patterns, base, exclude=False)

    @classmethod
    def excluding(cls, patterns: Iterable[str], base: Path) -> "GlobFilter":
        return cls(patterns, base, exclude=True)

    def interested(self, path: str | Path) -> bool:
        """Decide whether an event for ``path`` survives this stage."""
        rel = relative_path(path, self.base)
        if rel is None:
            return False
        for glob in self._globs:
            if glob is None:
                return False
            if glob.match(rel):
                return not self.exclude
        return self.exclude

    def __repr__(self) -> str:
        mode = "exclude" if self.exclude else "include"
        return f"GlobFilter({mode}, {self.patterns!r})"


class FilterChain:
    """All installed filter stages; an event must survive every one."""

    def __init__(self, stages: Iterable[GlobFilter] = ()):
        self.stages: list[GlobFilter] = list(stages)

    @classmethod
    def build(
        cls,
        base: Path,
        include: list[str] | None = None,
        excludes: Iterable[list[str]] = (),
    ) -> "FilterChain":
        """Build a chain from pattern lists.

        Include is an independent check and each exclude list is a veto.
        Empty pattern lists install no stage.

        Args:
            base: Directory event paths are made relative to
            include: Optional include patterns
            excludes: Independent exclude pattern lists

        Returns:
            FilterChain with the non-empty stages
        """
        chain = cls()
        if include:
            chain.add(GlobFilter.include(include, base))
        for patterns in excludes:
            if patterns:
                chain.add(GlobFilter.excluding(patterns, base))
        return chain

    def add(self, stage: GlobFilter) -> None:
        self.stages.append(stage)

    def interested(self, path: str | Path) -> bool:
        return all(stage.interested(path) for stage in self.stages)

    def __len__(self) -> int:
        return len(self.stages)
