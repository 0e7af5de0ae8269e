from __future__ import annotations

from typing import List, Optional

from ...models.document import OffsetDocument, merge_ranges
from ...models.edits import EditBatch
from .base_stage import DocumentStage
from .markers import REMOVAL_MARKER


class MarkerCleanup(DocumentStage):
    """Delete every paragraph carrying the removal marker in a single batch."""

    name = "marker_cleanup"
    PAUSE_SECONDS = 0.3

    def __init__(self) -> None:
        super().__init__()
        self._done = False
        self.stats.update(lines_marked=0, lines_removed=0)

    def next_batches(self, snapshot: OffsetDocument) -> Optional[List[EditBatch]]:
        if self._done:
            return None
        self._done = True

        marked = [
            (block.start_offset, block.end_offset)
            for block in snapshot.paragraphs()
            if REMOVAL_MARKER in block.text and block.has_range
        ]
        self.stats["lines_marked"] = len(marked)

        # adjacent lines merge first so the end-of-body adjustment sees the whole run
        requests = []
        for start, end in reversed(merge_ranges(marked)):
            requests.extend(self.plan_delete(snapshot, start, end))
        if not requests:
            return None
        return [EditBatch(label="remove_marked_lines", requests=requests, pause_seconds=self.PAUSE_SECONDS)]

    def on_batch_applied(self, batch: EditBatch) -> None:
        self.stats["lines_removed"] = self.stats["lines_marked"]
        self.logger.info("marked_lines_removed", lines=self.stats["lines_removed"])
