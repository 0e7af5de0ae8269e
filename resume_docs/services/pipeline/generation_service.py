from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from ...config import config_value
from ...models.resume import ResumeData
from ...utils.exceptions import PipelineError
from ...utils.logging import get_logger
from ...utils.time import isoformat
from ..google.auth import get_credentials
from ..google.docs_store import GoogleDocsStore
from ..google.drive_service import (
    build_docs_service,
    build_drive_service,
    copy_template,
    document_url,
    share_document,
)
from .pipeline_orchestrator import PipelineOrchestrator, PipelineSettings


def default_title(record: ResumeData) -> str:
    name = record.basic_info.name.strip() or "Untitled"
    return f"Resume - {name} - {isoformat()}"


@dataclass
class GenerationOutcome:
    success: bool
    document_id: Optional[str] = None
    document_url: Optional[str] = None
    stages: Dict[str, Any] = field(default_factory=dict)
    ceiling_reached: bool = False
    error: Optional[str] = None
    error_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "document_id": self.document_id,
            "document_url": self.document_url,
            "stages": self.stages,
            "ceiling_reached": self.ceiling_reached,
            "error": self.error,
            "error_type": self.error_type,
        }


class ResumeGenerationService:
    """Copy the template, run the document pipeline and optionally share the result.

    ``generate`` never raises: every failure is reported through the outcome.
    """

    def __init__(
        self,
        config,
        *,
        credentials_provider: Callable[[Any], Any] = get_credentials,
        docs_factory: Callable[[Any], Any] = build_docs_service,
        drive_factory: Callable[[Any], Any] = build_drive_service,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.logger = get_logger(self.__class__.__name__)
        self.config = config
        self.credentials_provider = credentials_provider
        self.docs_factory = docs_factory
        self.drive_factory = drive_factory
        self.sleep = sleep

    def generate(
        self,
        record: ResumeData,
        *,
        template_id: Optional[str] = None,
        title: Optional[str] = None,
        share_with: Optional[str] = None,
        role: Optional[str] = None,
    ) -> GenerationOutcome:
        document_id: Optional[str] = None
        try:
            template = template_id or config_value(self.config, "TEMPLATE_DOCUMENT_ID", "")
            if not template:
                raise PipelineError("No template document id configured")

            credentials = self.credentials_provider(self.config)
            drive = self.drive_factory(credentials)
            docs = self.docs_factory(credentials)

            document_id = copy_template(drive, template, title or default_title(record))
            store = GoogleDocsStore(
                docs,
                read_retries=int(config_value(self.config, "READ_RETRIES", 3)),
                sleep=self.sleep,
            )
            orchestrator = PipelineOrchestrator(store, PipelineSettings.from_config(self.config), sleep=self.sleep)
            report = orchestrator.run(document_id, record)

            if share_with:
                share_document(
                    drive,
                    document_id,
                    share_with,
                    role or config_value(self.config, "DEFAULT_SHARE_ROLE", "writer"),
                )
        except Exception as exc:  # noqa: BLE001
            self.logger.error(
                "resume_generation_failed",
                document_id=document_id,
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            return GenerationOutcome(
                success=False,
                document_id=document_id,
                document_url=document_url(document_id) if document_id else None,
                error=str(exc),
                error_type=type(exc).__name__,
            )

        self.logger.info("resume_generated", document_id=document_id, ceiling_reached=report.ceiling_reached)
        return GenerationOutcome(
            success=True,
            document_id=document_id,
            document_url=document_url(document_id),
            stages=report.stages,
            ceiling_reached=report.ceiling_reached,
        )
