from __future__ import annotations

from typing import Any, Dict, List, Optional

from ...models.document import OffsetDocument
from ...models.edits import DeleteRange, EditBatch, EditRequest, RemoveBullets, SetParagraphStyle
from ...utils.exceptions import RemoteBatchFailure
from ...utils.logging import get_logger


class DocumentStage:
    """One step planner of the document pipeline.

    ``next_batches`` receives a fresh snapshot and returns the batches to apply
    next, all expressed against that snapshot, or None once the stage is done.
    The orchestrator applies them, re-reads the document and calls again.
    """

    name = "stage"

    def __init__(self) -> None:
        self.logger = get_logger(self.__class__.__name__)
        self.stats: Dict[str, Any] = {"batches_failed": 0}

    def next_batches(self, snapshot: OffsetDocument) -> Optional[List[EditBatch]]:
        raise NotImplementedError

    def on_batch_applied(self, batch: EditBatch) -> None:
        pass

    def on_batch_failed(self, batch: EditBatch, error: RemoteBatchFailure) -> None:
        self.stats["batches_failed"] += 1
        self.logger.warning(
            "batch_failed",
            stage=self.name,
            batch=batch.label,
            requests=len(batch),
            error=error.message,
        )

    def summary(self) -> Dict[str, Any]:
        return dict(self.stats)

    def _count(self, key: str, amount: int = 1) -> None:
        self.stats[key] = self.stats.get(key, 0) + amount

    def plan_delete(self, snapshot: OffsetDocument, start: int, end: int) -> List[EditRequest]:
        """Requests deleting ``start..end`` while keeping the body's final newline.

        When the delete swallows the preceding paragraph's newline, that
        paragraph's text lands in the last paragraph and wears its style; the
        absorbed paragraph's named style is put back and stray bullets removed.
        Empty when nothing is deletable.
        """
        bounds = snapshot.deletable_range(start, end)
        if bounds is None:
            return []
        requests: List[EditRequest] = [DeleteRange(*bounds)]
        absorbed = snapshot.absorbed_paragraph(start, end)
        last = snapshot.last_paragraph()
        if absorbed is None or last is None or not absorbed.has_range:
            return requests

        # after the delete the merged paragraph occupies the absorbed one's old range
        span = (absorbed.start_offset, absorbed.end_offset)
        if absorbed.named_style and absorbed.named_style != last.named_style:
            requests.append(SetParagraphStyle(*span, named_style=absorbed.named_style))
        if last.bulleted and not absorbed.bulleted:
            requests.append(RemoveBullets(*span))
        elif absorbed.bulleted and not last.bulleted:
            self.logger.debug("merged_paragraph_bullet_lost", start=span[0], end=span[1])
        return requests
