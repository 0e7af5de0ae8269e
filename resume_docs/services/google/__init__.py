from .auth import authorize_local_token, get_credentials
from .docs_store import DocumentStore, GoogleDocsStore
from .drive_service import (
    SHARE_ROLES,
    build_docs_service,
    build_drive_service,
    copy_template,
    document_url,
    share_document,
)

__all__ = [
    "DocumentStore",
    "GoogleDocsStore",
    "SHARE_ROLES",
    "authorize_local_token",
    "build_docs_service",
    "build_drive_service",
    "copy_template",
    "document_url",
    "get_credentials",
    "share_document",
]
