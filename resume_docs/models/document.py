"""Offset-addressed snapshot of a Google Docs body.

Offsets are absolute UTF-16 indexes into the body, exactly as the Docs API
reports them. A snapshot is only valid against the revision it was read from.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Tuple

from .sections import normalize_heading

PARAGRAPH = "paragraph"
TABLE = "table"
SECTION_BREAK = "section_break"

_KIND_KEYS = (
    ("paragraph", PARAGRAPH),
    ("table", TABLE),
    ("sectionBreak", SECTION_BREAK),
)


@dataclass(frozen=True)
class TextRun:
    start_offset: Optional[int]
    end_offset: Optional[int]
    text: str
    bold: bool = False


@dataclass(frozen=True)
class Block:
    index: int
    kind: str
    start_offset: Optional[int]
    end_offset: Optional[int]
    runs: Tuple[TextRun, ...] = ()
    named_style: Optional[str] = None
    bulleted: bool = False

    @property
    def text(self) -> str:
        return "".join(run.text for run in self.runs)

    @property
    def normalized_text(self) -> str:
        return normalize_heading(self.text)

    @property
    def is_paragraph(self) -> bool:
        return self.kind == PARAGRAPH

    @property
    def has_range(self) -> bool:
        return self.start_offset is not None and self.end_offset is not None

    def styled_chars(self) -> List[Tuple[Optional[int], bool]]:
        """(absolute offset, bold) for every character of ``text``."""
        chars: List[Tuple[Optional[int], bool]] = []
        for run in self.runs:
            for position in range(len(run.text)):
                offset = None if run.start_offset is None else run.start_offset + position
                chars.append((offset, run.bold))
        return chars


@dataclass(frozen=True)
class OffsetDocument:
    document_id: str
    blocks: Tuple[Block, ...]
    revision_id: Optional[str] = None
    title: Optional[str] = None

    @classmethod
    def from_api(cls, payload: Mapping[str, Any], document_id: Optional[str] = None) -> "OffsetDocument":
        content = ((payload.get("body") or {}).get("content")) or []
        blocks: List[Block] = []
        for index, element in enumerate(content):
            kind = next((name for key, name in _KIND_KEYS if key in element), "unknown")
            runs: Tuple[TextRun, ...] = ()
            paragraph = element.get("paragraph") or {}
            if kind == PARAGRAPH:
                runs = tuple(_iter_text_runs(paragraph))
            blocks.append(
                Block(
                    index=index,
                    kind=kind,
                    start_offset=element.get("startIndex"),
                    end_offset=element.get("endIndex"),
                    runs=runs,
                    named_style=(paragraph.get("paragraphStyle") or {}).get("namedStyleType"),
                    bulleted="bullet" in paragraph,
                )
            )
        return cls(
            document_id=document_id or str(payload.get("documentId") or ""),
            blocks=tuple(blocks),
            revision_id=payload.get("revisionId"),
            title=payload.get("title"),
        )

    def __iter__(self) -> Iterator[Block]:
        return iter(self.blocks)

    def __len__(self) -> int:
        return len(self.blocks)

    @property
    def text(self) -> str:
        return "".join(block.text for block in self.blocks)

    @property
    def end_offset(self) -> Optional[int]:
        for block in reversed(self.blocks):
            if block.end_offset is not None:
                return block.end_offset
        return None

    def paragraphs(self) -> List[Block]:
        return [block for block in self.blocks if block.is_paragraph]

    def find_heading(self, label: str, start: int = 0) -> Optional[Block]:
        target = normalize_heading(label)
        for block in self.blocks[start:]:
            if block.normalized_text == target:
                return block
        return None

    def previous_block(self, block: Block) -> Optional[Block]:
        return self.blocks[block.index - 1] if block.index > 0 else None

    def next_block(self, block: Block) -> Optional[Block]:
        return self.blocks[block.index + 1] if block.index + 1 < len(self.blocks) else None

    def closest_paragraph(self, start_offset: int) -> Optional[Block]:
        """Paragraph whose start offset is nearest to ``start_offset`` (ties keep the earlier one)."""
        best: Optional[Block] = None
        best_delta: Optional[int] = None
        for block in self.blocks:
            if not block.is_paragraph or not block.has_range:
                continue
            delta = abs(block.start_offset - start_offset)
            if best_delta is None or delta < best_delta:
                best, best_delta = block, delta
        return best

    def find_text_occurrences(self, needle: str) -> List[Tuple[int, int]]:
        """Absolute ranges of every non-overlapping occurrence of ``needle`` inside a single text run."""
        if not needle:
            return []
        ranges: List[Tuple[int, int]] = []
        for block in self.blocks:
            if not block.is_paragraph or needle not in block.text:
                continue
            for run in block.runs:
                if run.start_offset is None:
                    continue
                position = run.text.find(needle)
                while position != -1:
                    start = run.start_offset + position
                    ranges.append((start, start + len(needle)))
                    position = run.text.find(needle, position + len(needle))
        return ranges

    def last_paragraph(self) -> Optional[Block]:
        paragraphs = self.paragraphs()
        return paragraphs[-1] if paragraphs else None

    def find_styled_text(self, needle: str) -> List[List[Tuple[int, bool]]]:
        """Per-character (offset, bold) of every occurrence of ``needle`` inside one paragraph.

        Unlike ``find_text_occurrences`` a match may cross run boundaries;
        matches over characters without contiguous offsets are skipped.
        """
        found: List[List[Tuple[int, bool]]] = []
        if not needle:
            return found
        for block in self.paragraphs():
            text = block.text
            position = text.find(needle)
            if position == -1:
                continue
            chars = block.styled_chars()
            while position != -1:
                span = chars[position:position + len(needle)]
                offsets = [offset for offset, _ in span]
                if None not in offsets and offsets == list(range(offsets[0], offsets[0] + len(offsets))):
                    found.append(list(span))
                position = text.find(needle, position + len(needle))
        return found

    def absorbed_paragraph(self, start: int, end: int) -> Optional[Block]:
        """Paragraph whose newline ``deletable_range`` takes for ``start..end``, if any."""
        body_end = self.end_offset
        if body_end is None or end < body_end:
            return None
        previous = next(
            (block for block in reversed(self.blocks) if block.end_offset is not None and block.end_offset <= start),
            None,
        )
        if previous is not None and previous.is_paragraph and previous.end_offset == start:
            return previous
        return None

    def deletable_range(self, start: int, end: int) -> Optional[Tuple[int, int]]:
        """Adjust a block range so it never removes the body's final newline.

        A range reaching the end of the body is pulled back one character; when
        the preceding element is a paragraph ending exactly at ``start`` its
        newline is absorbed instead, so the whole line still disappears.

        Absorbing that newline merges the preceding paragraph's text into the
        body's last paragraph, which keeps its own paragraph style (a bullet or
        heading style, say). Callers restore the absorbed paragraph's style
        with a follow-up request; see ``DocumentStage.plan_delete``.
        Returns None when nothing deletable remains.
        """
        body_end = self.end_offset
        if body_end is not None and end >= body_end:
            end = body_end - 1
            if self.absorbed_paragraph(start, body_end) is not None:
                start -= 1
        if end <= start:
            return None
        return start, end


def _iter_text_runs(paragraph: Mapping[str, Any]) -> Iterator[TextRun]:
    for element in paragraph.get("elements") or []:
        text_run = element.get("textRun")
        if not text_run or not text_run.get("content"):
            continue
        style = text_run.get("textStyle") or {}
        yield TextRun(
            start_offset=element.get("startIndex"),
            end_offset=element.get("endIndex"),
            text=text_run["content"],
            bold=bool(style.get("bold")),
        )


def merge_ranges(ranges: Iterable[Tuple[int, int]]) -> List[Tuple[int, int]]:
    """Coalesce overlapping or touching ranges, ordered by start."""
    merged: List[Tuple[int, int]] = []
    for start, end in sorted(ranges):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged
