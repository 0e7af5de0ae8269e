from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request

from ..models.resume import ResumeData
from ..services.google.drive_service import SHARE_ROLES
from ..services.pipeline.flattening import flatten_resume_data
from ..services.pipeline.generation_service import ResumeGenerationService
from ..utils.exceptions import InvalidResumeData

bp = Blueprint("resumes", __name__, url_prefix="/resumes")


def init_app(api_bp: Blueprint) -> None:
    api_bp.register_blueprint(bp)


def _read_record(payload):
    data = payload.get("resume")
    if data is None:
        data = payload.get("data", payload)
    return ResumeData.from_dict(data)


@bp.post("/", strict_slashes=False)
def create_resume():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "JSON object body is required"}), HTTPStatus.BAD_REQUEST

    try:
        record = _read_record(payload)
    except InvalidResumeData as exc:
        return jsonify({"error": str(exc)}), HTTPStatus.BAD_REQUEST

    role = payload.get("role")
    if role is not None and role not in SHARE_ROLES:
        return (
            jsonify({"error": f"role must be one of {', '.join(SHARE_ROLES)}"}),
            HTTPStatus.BAD_REQUEST,
        )

    service = ResumeGenerationService(current_app.config)
    outcome = service.generate(
        record,
        template_id=payload.get("template_id"),
        title=payload.get("title"),
        share_with=payload.get("share_with"),
        role=role,
    )
    status = HTTPStatus.CREATED if outcome.success else HTTPStatus.BAD_GATEWAY
    return jsonify(outcome.to_dict()), status


@bp.post("/flatten")
def flatten_resume():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "JSON object body is required"}), HTTPStatus.BAD_REQUEST
    try:
        record = _read_record(payload)
    except InvalidResumeData as exc:
        return jsonify({"error": str(exc)}), HTTPStatus.BAD_REQUEST
    return jsonify({"fields": flatten_resume_data(record)})
