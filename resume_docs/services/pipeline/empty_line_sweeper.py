from __future__ import annotations

from collections import deque
from typing import Deque, Iterable, List, Optional, Tuple

from ...models.document import Block, OffsetDocument
from ...models.edits import EditBatch
from ...models.sections import normalize_heading
from .base_stage import DocumentStage

BAR_LINES = frozenset({"|", "| ", " |", " | "})


def classify_line(block: Block) -> Optional[str]:
    """``"blank"`` or ``"bar"`` for removable lines, None otherwise."""
    text = block.text.strip()
    if not text:
        return "blank"
    if text in BAR_LINES:
        return "bar"
    return None


class EmptyLineSweeper(DocumentStage):
    """Remove blank and bare-separator lines, bottom to top.

    Candidates are collected once; each is relocated on the current snapshot
    by its original start offset since only later content has moved. Lines
    directly above or below a surviving heading are kept as spacing.
    """

    name = "empty_line_sweep"
    PAUSE_SECONDS = 0.2

    def __init__(self, headings: Iterable[str]) -> None:
        super().__init__()
        self.headings = frozenset(normalize_heading(heading) for heading in headings)
        self._candidates: Optional[Deque[Tuple[int, int]]] = None
        self.stats.update(candidates=0, blank_removed=0, bar_removed=0, kept_near_heading=0)

    def next_batches(self, snapshot: OffsetDocument) -> Optional[List[EditBatch]]:
        if self._candidates is None:
            ranges = [(block.start_offset, block.end_offset) for block in snapshot.paragraphs() if block.has_range]
            ranges.sort(key=lambda item: item[0], reverse=True)
            self._candidates = deque(ranges)
            self.stats["candidates"] = len(ranges)

        # re-read only after a delete: skipped candidates leave the snapshot current
        while self._candidates:
            start, _ = self._candidates.popleft()
            block = snapshot.closest_paragraph(start)
            if block is None:
                continue
            kind = classify_line(block)
            if kind is None:
                continue
            if self.is_adjacent_to_heading(snapshot, block):
                self._count("kept_near_heading")
                continue
            requests = self.plan_delete(snapshot, block.start_offset, block.end_offset)
            if not requests:
                self.logger.debug("line_not_deletable", start=block.start_offset, end=block.end_offset)
                continue
            return [
                EditBatch(
                    label=f"remove_{kind}_line",
                    requests=requests,
                    pause_seconds=self.PAUSE_SECONDS,
                    context={"kind": kind, "start": requests[0].start},
                )
            ]
        return None

    def is_adjacent_to_heading(self, snapshot: OffsetDocument, block: Block) -> bool:
        neighbours = (snapshot.previous_block(block), snapshot.next_block(block))
        return any(item is not None and item.normalized_text in self.headings for item in neighbours)

    def on_batch_applied(self, batch: EditBatch) -> None:
        self._count(f"{batch.context['kind']}_removed")
