from __future__ import annotations

from collections import deque
from typing import Iterable, List, Optional

from ...models.document import Block, OffsetDocument
from ...models.edits import EditBatch
from ...models.sections import SectionDescriptor, normalize_heading
from ...utils.exceptions import InvalidRange, NotFound
from .base_stage import DocumentStage


class SectionPruner(DocumentStage):
    """Delete heading-to-next-heading ranges for sections without data.

    Plans one section per snapshot: every deletion moves the offsets of all
    later sections, so each removal is located on a fresh read.
    """

    name = "section_pruning"
    PAUSE_SECONDS = 0.3

    def __init__(self, sections: Iterable[SectionDescriptor]) -> None:
        super().__init__()
        descriptors = list(sections)
        self.headings = frozenset(normalize_heading(item.heading) for item in descriptors)
        self._pending = deque(item for item in descriptors if not item.present)
        self.stats.update(
            sections_absent=[normalize_heading(item.heading) for item in self._pending],
            sections_removed=[],
            sections_not_found=[],
            sections_skipped=[],
        )

    def next_batches(self, snapshot: OffsetDocument) -> Optional[List[EditBatch]]:
        while self._pending:
            descriptor = self._pending.popleft()
            heading = normalize_heading(descriptor.heading)
            try:
                batch = self.plan_removal(snapshot, heading)
            except NotFound:
                self.logger.debug("section_heading_not_found", heading=heading)
                self.stats["sections_not_found"].append(heading)
                continue
            except InvalidRange as exc:
                self.logger.warning("section_range_invalid", heading=heading, error=str(exc))
                self.stats["sections_skipped"].append(heading)
                continue
            return [batch]
        return None

    def plan_removal(self, snapshot: OffsetDocument, heading: str) -> EditBatch:
        start_block = snapshot.find_heading(heading)
        if start_block is None:
            raise NotFound(f"Heading '{heading}' not found")

        end_block = self._last_block_of_section(snapshot, start_block, heading)
        if start_block.start_offset is None or end_block.end_offset is None:
            raise InvalidRange(f"Section '{heading}' has no usable offsets")

        requests = self.plan_delete(snapshot, start_block.start_offset, end_block.end_offset)
        if not requests:
            raise InvalidRange(f"Section '{heading}' spans no deletable content")

        self.logger.debug(
            "section_removal_planned",
            heading=heading,
            start=requests[0].start,
            end=requests[0].end,
            blocks=end_block.index - start_block.index + 1,
        )
        return EditBatch(
            label=f"remove_section:{heading}",
            requests=requests,
            pause_seconds=self.PAUSE_SECONDS,
            context={"heading": heading},
        )

    def _last_block_of_section(self, snapshot: OffsetDocument, start_block: Block, heading: str) -> Block:
        for block in snapshot.blocks[start_block.index + 1:]:
            normalized = block.normalized_text
            if normalized in self.headings and normalized != heading:
                return snapshot.blocks[block.index - 1]
        return snapshot.blocks[-1]

    def on_batch_applied(self, batch: EditBatch) -> None:
        heading = batch.context.get("heading")
        self.stats["sections_removed"].append(heading)
        self.logger.info("section_removed", heading=heading)

    def on_batch_failed(self, batch, error) -> None:
        super().on_batch_failed(batch, error)
        self.stats["sections_skipped"].append(batch.context.get("heading"))
