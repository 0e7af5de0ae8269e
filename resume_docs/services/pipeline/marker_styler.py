from __future__ import annotations

from typing import List, Optional, Set

from ...models.document import OffsetDocument
from ...models.edits import ApplyStyle, EditBatch, ReplaceText, chunked
from .base_stage import DocumentStage
from .markers import MarkerSpan, iter_marker_spans


class MarkerStyler(DocumentStage):
    """Turn bold marker spans into bold text, one span per pass.

    A pass strips the delimiters of the first span found. The next snapshot
    is then searched for the bare payload and every occurrence is styled.
    Passes stop when no span is left or ``pass_limit`` is reached.
    """

    name = "marker_styling"
    STRIP_PAUSE_SECONDS = 0.2
    STYLE_PAUSE_SECONDS = 0.1

    def __init__(self, pass_limit: int = 50, chunk_size: int = 10) -> None:
        super().__init__()
        self.pass_limit = pass_limit
        self.chunk_size = chunk_size
        self.passes = 0
        self._pending: Optional[MarkerSpan] = None
        self._failed_ids: Set[str] = set()
        self.stats.update(passes=0, spans_stripped=0, ranges_styled=0, payloads_not_found=0, ceiling_reached=False)

    def next_batches(self, snapshot: OffsetDocument) -> Optional[List[EditBatch]]:
        if self._pending is not None:
            span, self._pending = self._pending, None
            batches = self._plan_styling(snapshot, span)
            if batches:
                return batches

        span = self.first_span(snapshot)
        if span is None:
            return None
        if self.passes >= self.pass_limit:
            self.stats["ceiling_reached"] = True
            self.logger.warning(
                "marker_pass_limit_reached",
                document_id=snapshot.document_id,
                pass_limit=self.pass_limit,
                next_marker=span.id,
            )
            return None

        self.passes += 1
        self.stats["passes"] = self.passes
        self._pending = span
        return [
            EditBatch(
                label=f"strip_marker:{span.id}",
                requests=[ReplaceText(span.source, span.payload)],
                pause_seconds=self.STRIP_PAUSE_SECONDS,
                context={"marker_id": span.id, "phase": "strip"},
            )
        ]

    def first_span(self, snapshot: OffsetDocument) -> Optional[MarkerSpan]:
        for block in snapshot.paragraphs():
            for span in iter_marker_spans(block.text):
                if span.id not in self._failed_ids:
                    return span
        return None

    def _plan_styling(self, snapshot: OffsetDocument, span: MarkerSpan) -> List[EditBatch]:
        if not span.payload.strip():
            return []
        ranges = snapshot.find_text_occurrences(span.payload)
        if not ranges:
            self._count("payloads_not_found")
            self.logger.warning("marker_payload_not_found", marker_id=span.id, payload=span.payload)
            return []

        requests = [ApplyStyle(start, end, ("bold",)) for start, end in ranges]
        return [
            EditBatch(
                label=f"bold:{span.id}:{number}",
                requests=chunk,
                pause_seconds=self.STYLE_PAUSE_SECONDS,
                context={"marker_id": span.id, "phase": "style"},
            )
            for number, chunk in enumerate(chunked(requests, self.chunk_size), start=1)
        ]

    def on_batch_applied(self, batch: EditBatch) -> None:
        if batch.context.get("phase") == "strip":
            self._count("spans_stripped")
        else:
            self._count("ranges_styled", len(batch))

    def on_batch_failed(self, batch, error) -> None:
        super().on_batch_failed(batch, error)
        if batch.context.get("phase") == "strip":
            self._failed_ids.add(batch.context["marker_id"])
            self._pending = None
