from __future__ import annotations

import time
from typing import Any, Callable, Dict, Protocol, Sequence

from ...models.document import OffsetDocument
from ...models.edits import EditRequest
from ...utils.exceptions import DocumentReadFailed, RemoteBatchFailure
from ...utils.logging import get_logger
from ...utils.retry import with_exponential_backoff


class DocumentStore(Protocol):
    def get(self, document_id: str) -> OffsetDocument: ...

    def batch_update(self, document_id: str, requests: Sequence[EditRequest]) -> Dict[str, Any]: ...


class GoogleDocsStore:
    """Offset-document view over a Google Docs v1 ``documents`` resource."""

    def __init__(
        self,
        service: Any,
        *,
        read_retries: int = 3,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.logger = get_logger(__name__)
        self.service = service
        self._fetch_with_retry = with_exponential_backoff(max_retries=read_retries, sleep=sleep)(self._fetch)

    def _fetch(self, document_id: str) -> Dict[str, Any]:
        return self.service.documents().get(documentId=document_id).execute()

    def get(self, document_id: str) -> OffsetDocument:
        try:
            payload = self._fetch_with_retry(document_id)
        except Exception as exc:  # noqa: BLE001
            raise DocumentReadFailed(document_id, str(exc)) from exc
        snapshot = OffsetDocument.from_api(payload or {}, document_id=document_id)
        self.logger.debug(
            "document_read",
            document_id=document_id,
            revision_id=snapshot.revision_id,
            blocks=len(snapshot),
        )
        return snapshot

    def batch_update(self, document_id: str, requests: Sequence[EditRequest]) -> Dict[str, Any]:
        if not requests:
            return {}
        body = {"requests": [request.to_api() for request in requests]}
        try:
            response = self.service.documents().batchUpdate(documentId=document_id, body=body).execute()
        except Exception as exc:  # noqa: BLE001
            raise RemoteBatchFailure(document_id, str(exc), request_count=len(requests)) from exc
        self.logger.debug("batch_applied", document_id=document_id, requests=len(requests))
        return response or {}
