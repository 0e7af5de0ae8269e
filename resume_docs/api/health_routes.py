from __future__ import annotations

from flask import Blueprint, current_app, jsonify

bp = Blueprint("health", __name__)


def init_app(api_bp: Blueprint) -> None:
    api_bp.register_blueprint(bp)


@bp.get("/health")
def health():
    return jsonify(
        {
            "status": "ok",
            "env": current_app.config.get("ENV"),
            "template_configured": bool(current_app.config.get("TEMPLATE_DOCUMENT_ID")),
        }
    )
