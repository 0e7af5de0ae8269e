from __future__ import annotations

from typing import Any

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ...utils.exceptions import ShareFailed, TemplateCopyFailed
from ...utils.logging import get_logger

logger = get_logger(__name__)

SHARE_ROLES = ("reader", "writer", "commenter")


def build_drive_service(credentials: Any) -> Any:
    return build("drive", "v3", credentials=credentials, cache_discovery=False)


def build_docs_service(credentials: Any) -> Any:
    return build("docs", "v1", credentials=credentials, cache_discovery=False)


def copy_template(drive: Any, template_id: str, title: str) -> str:
    """Duplicate the template document and return the new document id."""
    logger.debug("copying_template", template_id=template_id, title=title)
    try:
        response = drive.files().copy(fileId=template_id, body={"name": title}, supportsAllDrives=True).execute()
    except HttpError as exc:
        logger.error("template_copy_failed", template_id=template_id, error=str(exc))
        raise TemplateCopyFailed(f"Copying template {template_id} failed: {exc}") from exc

    document_id = (response or {}).get("id")
    if not document_id:
        raise TemplateCopyFailed("No ID returned from copy operation.")
    logger.info("template_copied", template_id=template_id, document_id=document_id)
    return document_id


def share_document(drive: Any, document_id: str, email: str, role: str = "reader") -> None:
    if role not in SHARE_ROLES:
        raise ValueError(f"Unsupported share role '{role}', expected one of {', '.join(SHARE_ROLES)}")
    logger.debug("sharing_document", document_id=document_id, email=email, role=role)
    try:
        drive.permissions().create(
            fileId=document_id,
            body={"type": "user", "role": role, "emailAddress": email},
            supportsAllDrives=True,
        ).execute()
    except HttpError as exc:
        logger.error("share_failed", document_id=document_id, email=email, error=str(exc))
        raise ShareFailed(f"Sharing {document_id} with {email} failed: {exc}") from exc
    logger.info("document_shared", document_id=document_id, email=email, role=role)


def document_url(document_id: str) -> str:
    return f"https://docs.google.com/document/d/{document_id}/edit"
