from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import google.auth
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from ...config import config_value, is_production
from ...utils.exceptions import AuthFailure
from ...utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SCOPES = [
    "https://www.googleapis.com/auth/documents",
    "https://www.googleapis.com/auth/drive",
]


def load_client_config(path: Path) -> Dict[str, Any]:
    """Read OAuth client secrets in the ``installed``, ``web`` or flat layout."""
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    source = payload.get("installed") or payload.get("web") or payload
    redirect_uris = source.get("redirect_uris") or ["http://localhost"]
    if isinstance(redirect_uris, str):
        redirect_uris = [redirect_uris]
    return {
        "client_id": source.get("client_id"),
        "client_secret": source.get("client_secret"),
        "redirect_uris": redirect_uris,
        "auth_uri": source.get("auth_uri", "https://accounts.google.com/o/oauth2/auth"),
        "token_uri": source.get("token_uri", "https://oauth2.googleapis.com/token"),
    }


def _credentials_from_token(token: Dict[str, Any], client: Dict[str, Any], scopes: List[str]) -> Credentials:
    # Accept both the google-auth layout ("token") and the raw OAuth response ("access_token")
    return Credentials(
        token=token.get("token") or token.get("access_token"),
        refresh_token=token.get("refresh_token"),
        client_id=token.get("client_id") or client["client_id"],
        client_secret=token.get("client_secret") or client["client_secret"],
        token_uri=token.get("token_uri") or client["token_uri"],
        scopes=scopes,
    )


def get_credentials(config) -> Any:
    """Return authorized credentials for the Docs and Drive APIs.

    Non-production deployments use the local client secrets plus a saved token;
    production uses Application Default Credentials (service account / WIF).
    Raises AuthFailure on any failure.
    """
    scopes = list(config_value(config, "GOOGLE_SCOPES", DEFAULT_SCOPES) or DEFAULT_SCOPES)

    if is_production(config):
        logger.debug("using_application_default_credentials")
        try:
            credentials, _project = google.auth.default(scopes=scopes)
        except GoogleAuthError as exc:
            logger.error("adc_lookup_failed", error=str(exc))
            raise AuthFailure(f"Application Default Credentials unavailable: {exc}") from exc
        return credentials

    credentials_path = Path(config_value(config, "CREDENTIALS_PATH", "credentials.json"))
    token_path = Path(config_value(config, "TOKEN_PATH", "token.json"))
    try:
        client = load_client_config(credentials_path)
    except (OSError, ValueError) as exc:
        logger.error("client_secrets_unreadable", path=str(credentials_path), error=str(exc))
        raise AuthFailure(f"Failed to load {credentials_path}: {exc}") from exc

    try:
        token = json.loads(token_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.error("local_token_missing", path=str(token_path), hint="run `resume-docs authorize` first")
        raise AuthFailure(f"Failed to load {token_path}: {exc}") from exc

    credentials = _credentials_from_token(token, client, scopes)
    if not credentials.valid and credentials.refresh_token:
        try:
            credentials.refresh(Request())
        except GoogleAuthError as exc:
            logger.error("token_refresh_failed", error=str(exc))
            raise AuthFailure(f"Failed to refresh local token: {exc}") from exc
    logger.debug("auth_client_initialized", source="local_token")
    return credentials


def authorize_local_token(config, *, open_browser: bool = True, port: int = 0) -> Path:
    """Run the installed-app consent flow and persist the resulting token."""
    scopes = list(config_value(config, "GOOGLE_SCOPES", DEFAULT_SCOPES) or DEFAULT_SCOPES)
    credentials_path = Path(config_value(config, "CREDENTIALS_PATH", "credentials.json"))
    token_path = Path(config_value(config, "TOKEN_PATH", "token.json"))

    try:
        client = load_client_config(credentials_path)
    except (OSError, ValueError) as exc:
        raise AuthFailure(f"Failed to load {credentials_path}: {exc}") from exc

    flow = InstalledAppFlow.from_client_config({"installed": client}, scopes=scopes)
    credentials: Optional[Credentials] = flow.run_local_server(port=port, open_browser=open_browser)
    if credentials is None:
        raise AuthFailure("Authorization flow returned no credentials")

    token_path.parent.mkdir(parents=True, exist_ok=True)
    token_path.write_text(credentials.to_json(), encoding="utf-8")
    logger.info("token_saved", path=str(token_path))
    return token_path
