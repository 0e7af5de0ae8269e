from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ...config import config_value
from ...models.edits import EditBatch
from ...models.resume import ResumeData
from ...models.sections import active_headings, all_headings, describe_sections
from ...utils.exceptions import DocumentReadFailed, RemoteBatchFailure, StageExecutionFailed
from ...utils.logging import get_logger
from ...utils.time import isoformat
from ..google.docs_store import DocumentStore
from .base_stage import DocumentStage
from .empty_line_sweeper import EmptyLineSweeper
from .flattening import FlattenedFields, flatten_resume_data
from .marker_cleanup import MarkerCleanup
from .marker_styler import MarkerStyler
from .placeholder_resolver import PlaceholderResolver
from .section_pruner import SectionPruner
from .separator_fixer import SeparatorFixer


class PipelineStageEnum(str, Enum):
    SECTION_PRUNING = "section_pruning"
    PLACEHOLDER_RESOLUTION = "placeholder_resolution"
    MARKER_STYLING = "marker_styling"
    MARKER_CLEANUP = "marker_cleanup"
    EMPTY_LINE_SWEEP = "empty_line_sweep"
    SEPARATOR_FIX = "separator_fix"


@dataclass
class PipelineSettings:
    throttle_enabled: bool = True
    marker_pass_limit: int = 50
    style_chunk_size: int = 10

    @classmethod
    def from_config(cls, config) -> "PipelineSettings":
        return cls(
            throttle_enabled=bool(config_value(config, "THROTTLE_ENABLED", True)),
            marker_pass_limit=int(config_value(config, "MARKER_PASS_LIMIT", 50)),
            style_chunk_size=int(config_value(config, "STYLE_CHUNK_SIZE", 10)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "throttle_enabled": self.throttle_enabled,
            "marker_pass_limit": self.marker_pass_limit,
            "style_chunk_size": self.style_chunk_size,
        }


@dataclass
class PipelineReport:
    document_id: str
    started_at: str
    completed_at: Optional[str] = None
    stages: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @property
    def ceiling_reached(self) -> bool:
        styling = self.stages.get(PipelineStageEnum.MARKER_STYLING.value) or {}
        return bool(styling.get("ceiling_reached"))

    @property
    def batches_failed(self) -> int:
        return sum(int(stage.get("batches_failed", 0)) for stage in self.stages.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "document_id": self.document_id,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "ceiling_reached": self.ceiling_reached,
            "batches_failed": self.batches_failed,
            "stages": self.stages,
        }


class PipelineOrchestrator:
    """Run the fixed stage sequence against one document.

    Every stage starts from a fresh read and the document is re-read after each
    set of batches it applies, so no plan ever uses offsets from an older
    revision. A rejected batch is logged and skipped; a failed read aborts the
    run with ``StageExecutionFailed``.
    """

    pipeline_order = tuple(PipelineStageEnum)

    def __init__(
        self,
        store: DocumentStore,
        settings: Optional[PipelineSettings] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.logger = get_logger(__name__)
        self.store = store
        self.settings = settings or PipelineSettings()
        self.sleep = sleep

    def build_stages(self, record: ResumeData, fields: Mapping[str, str]) -> List[Tuple[PipelineStageEnum, DocumentStage]]:
        sections = describe_sections(record)
        return [
            (PipelineStageEnum.SECTION_PRUNING, SectionPruner(sections)),
            (PipelineStageEnum.PLACEHOLDER_RESOLUTION, PlaceholderResolver(fields)),
            (
                PipelineStageEnum.MARKER_STYLING,
                MarkerStyler(
                    pass_limit=self.settings.marker_pass_limit,
                    chunk_size=self.settings.style_chunk_size,
                ),
            ),
            (PipelineStageEnum.MARKER_CLEANUP, MarkerCleanup()),
            (PipelineStageEnum.EMPTY_LINE_SWEEP, EmptyLineSweeper(active_headings(record))),
            (PipelineStageEnum.SEPARATOR_FIX, SeparatorFixer(fields)),
        ]

    def run(self, document_id: str, record: ResumeData, fields: Optional[FlattenedFields] = None) -> PipelineReport:
        frozen_fields = MappingProxyType(dict(fields if fields is not None else flatten_resume_data(record)))
        report = PipelineReport(document_id=document_id, started_at=isoformat())
        self.logger.info(
            "pipeline_started",
            document_id=document_id,
            fields=len(frozen_fields),
            headings=sorted(all_headings()),
            settings=self.settings.to_dict(),
        )

        for stage_enum, stage in self.build_stages(record, frozen_fields):
            report.stages[stage_enum.value] = self.execute_stage(document_id, stage_enum, stage)

        report.completed_at = isoformat()
        if report.ceiling_reached:
            self.logger.warning("pipeline_completed_with_markers_left", document_id=document_id)
        self.logger.info(
            "pipeline_completed",
            document_id=document_id,
            batches_failed=report.batches_failed,
        )
        return report

    def execute_stage(self, document_id: str, stage_enum: PipelineStageEnum, stage: DocumentStage) -> Dict[str, Any]:
        self.logger.info("stage_started", document_id=document_id, stage=stage_enum.value)
        start_time = time.perf_counter()
        rounds = 0
        try:
            snapshot = self.store.get(document_id)
            while True:
                batches = stage.next_batches(snapshot)
                if not batches:
                    break
                for batch in batches:
                    self._apply(document_id, stage, batch)
                rounds += 1
                snapshot = self.store.get(document_id)
        except DocumentReadFailed as exc:
            self.logger.error("stage_failed", document_id=document_id, stage=stage_enum.value, error=exc.message)
            raise StageExecutionFailed(stage_enum.value, exc.message) from exc

        summary = stage.summary()
        summary["rounds"] = rounds
        summary["duration_ms"] = int((time.perf_counter() - start_time) * 1000)
        self.logger.info("stage_completed", document_id=document_id, stage=stage_enum.value, **summary)
        return summary

    def _apply(self, document_id: str, stage: DocumentStage, batch: EditBatch) -> None:
        try:
            self.store.batch_update(document_id, batch.requests)
        except RemoteBatchFailure as exc:
            stage.on_batch_failed(batch, exc)
            return
        stage.on_batch_applied(batch)
        if self.settings.throttle_enabled and batch.pause_seconds > 0:
            self.sleep(batch.pause_seconds)
