"""Inline markers that carry intent from field values into the document text."""
from __future__ import annotations

import itertools
import re
from dataclasses import dataclass
from typing import Callable, Iterator

# Substituted for empty bullet slots; the cleanup stage deletes the whole line.
REMOVAL_MARKER = "##EMPTY_LINE_TO_REMOVE##"

BOLD_MARKER_RE = re.compile(r"@@BOLD-([a-z0-9]+)@@(.+?)@@BOLD-\1-END@@", re.DOTALL)
EMPHASIS_RE = re.compile(r"\*\*(.*?)\*\*", re.DOTALL)


@dataclass(frozen=True)
class MarkerSpan:
    id: str
    payload: str
    source: str


def wrap_bold(payload: str, marker_id: str) -> str:
    return f"@@BOLD-{marker_id}@@{payload}@@BOLD-{marker_id}-END@@"


def iter_marker_spans(text: str) -> Iterator[MarkerSpan]:
    for match in BOLD_MARKER_RE.finditer(text or ""):
        yield MarkerSpan(id=match.group(1), payload=match.group(2), source=match.group(0))


def strip_markers(value: str) -> str:
    """Plain text a marked value renders as once styling has been applied."""
    return BOLD_MARKER_RE.sub(lambda match: match.group(2), value or "")


def strip_emphasis(value: str) -> str:
    """Drop ``**`` delimiter pairs, keeping the enclosed text."""
    return EMPHASIS_RE.sub(lambda match: match.group(1), value or "")


def marker_id_factory(prefix: str = "b") -> Callable[[], str]:
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter)}"


def emphasis_to_markers(value: str, next_id: Callable[[], str]) -> str:
    """Rewrite ``**text**`` pairs as bold marker spans with unique ids."""

    def _replace(match: re.Match) -> str:
        payload = match.group(1)
        if not payload.strip():
            return payload
        return wrap_bold(payload, next_id())

    return EMPHASIS_RE.sub(_replace, value or "")
