"""Anchor + bounded lookahead scanning over a page's token sequence.

Statement rows have no markup; a row is recognized by an *anchor* token (a
date) followed, within a small window, by the tokens that make up the rest of
the row. Each issuer adapter describes its rows with a :class:`WindowSpec`:

- ``anchor``: pattern a token must fully match to open a window;
- ``size``: the window covers token indexes ``anchor + start_offset`` up to,
  but excluding, ``anchor + size`` (and never past the end of the page);
- ``classify``: maps each window token to a :class:`Verdict`;
- ``require_parts``: an accepted window with no collected tokens is a miss;
- ``skip_ahead``: after a hit the cursor moves past the terminal token instead
  of to the token after the anchor.

:func:`scan_tokens` owns the cursor. It yields one :class:`Visit` per cursor
position so callers can fold carry-over state over the exact tokens the
cursor lands on, in order, and react to the window outcome of anchor tokens.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum


class Verdict(Enum):
    COLLECT = "collect"
    IGNORE = "ignore"
    ACCEPT = "accept"
    ABORT = "abort"


@dataclass(frozen=True, slots=True)
class WindowSpec:
    anchor: re.Pattern[str]
    size: int
    classify: Callable[[str], Verdict]
    start_offset: int = 1
    require_parts: bool = False
    skip_ahead: bool = False

    def __post_init__(self) -> None:
        if self.start_offset < 1:
            raise ValueError("start_offset must be >= 1")
        if self.size <= self.start_offset:
            raise ValueError("size must be greater than start_offset")

    def is_anchor(self, token: str) -> bool:
        return self.anchor.fullmatch(token) is not None


@dataclass(frozen=True, slots=True)
class WindowHit:
    anchor_index: int
    terminal_index: int
    anchor: str
    terminal: str
    parts: tuple[str, ...]
    # Token right after the terminal one, anywhere on the page (not bounded
    # by the window); None at the end of the page.
    following: str | None


@dataclass(frozen=True, slots=True)
class WindowMiss:
    anchor_index: int
    anchor: str
    reason: str


@dataclass(frozen=True, slots=True)
class Visit:
    index: int
    token: str
    window: WindowHit | WindowMiss | None = None


def open_window(tokens: Sequence[str], anchor_index: int, spec: WindowSpec) -> WindowHit | WindowMiss:
    """Classify the window that follows ``tokens[anchor_index]``."""

    anchor = tokens[anchor_index]
    parts: list[str] = []
    end = min(anchor_index + spec.size, len(tokens))
    for k in range(anchor_index + spec.start_offset, end):
        candidate = tokens[k]
        verdict = spec.classify(candidate)
        if verdict is Verdict.ACCEPT:
            if spec.require_parts and not parts:
                return WindowMiss(anchor_index, anchor, "empty description")
            following = tokens[k + 1] if k + 1 < len(tokens) else None
            return WindowHit(anchor_index, k, anchor, candidate, tuple(parts), following)
        if verdict is Verdict.ABORT:
            return WindowMiss(anchor_index, anchor, "aborted")
        if verdict is Verdict.COLLECT:
            parts.append(candidate)
    return WindowMiss(anchor_index, anchor, "exhausted")


def scan_tokens(tokens: Sequence[str], spec: WindowSpec) -> Iterator[Visit]:
    """Walk ``tokens`` with a single monotonic cursor.

    Every position the cursor lands on is yielded once. Anchor positions carry
    their window outcome. A hit with ``spec.skip_ahead`` resumes after the
    terminal token; every other case resumes at the next token, so a window
    aborted by another anchor lets that anchor be scanned in turn.
    """

    i = 0
    n = len(tokens)
    while i < n:
        token = tokens[i]
        if not spec.is_anchor(token):
            yield Visit(i, token)
            i += 1
            continue
        window = open_window(tokens, i, spec)
        yield Visit(i, token, window)
        if isinstance(window, WindowHit) and spec.skip_ahead:
            i = window.terminal_index + 1
        else:
            i += 1


__all__ = [
    "Verdict",
    "Visit",
    "WindowHit",
    "WindowMiss",
    "WindowSpec",
    "open_window",
    "scan_tokens",
]
