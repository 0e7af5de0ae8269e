from __future__ import annotations

from typing import Callable, Dict, Optional

from ...models.resume import ResumeData
from ...utils.logging import get_logger
from .markers import emphasis_to_markers, marker_id_factory

logger = get_logger(__name__)

FlattenedFields = Dict[str, str]

# Slot counts baked into the template
MAX_EXPERIENCE = 5
MAX_PROJECTS = 3
MAX_EDUCATION = 5
MAX_POINTS = 5

SKILL_KEYS = frozenset({"language_skills", "technical_skills"})


def is_skills_key(key: str) -> bool:
    return key in SKILL_KEYS


def is_bullet_key(key: str) -> bool:
    return "experience_point_" in key or "project_point_" in key


def flatten_resume_data(
    record: ResumeData,
    *,
    next_marker_id: Optional[Callable[[], str]] = None,
) -> FlattenedFields:
    """Flatten a resume record into template slot values.

    Bold emphasis (``**text**``) in non-skills values becomes a bold marker
    span for the styling stage. Slots up to the template limits are padded
    with empty strings.
    """
    next_id = next_marker_id or marker_id_factory()
    flat: FlattenedFields = {}

    def put(key: str, value: str) -> None:
        flat[key] = value if is_skills_key(key) else emphasis_to_markers(value, next_id)

    basic = record.basic_info
    put("name", basic.name)
    put("phone", basic.phone)
    put("location", basic.location)
    put("email", basic.email)
    put("link", basic.link)

    for idx, exp in enumerate(record.experience, start=1):
        put(f"company_{idx}", exp.company)
        put(f"company_location_{idx}", exp.company_location)
        put(f"experience_date_{idx}", exp.date)
        put(f"position_{idx}", exp.position)
        for p_idx, point in enumerate(exp.points, start=1):
            put(f"experience_point_{idx}_{p_idx}", point)
        for p_idx in range(len(exp.points) + 1, MAX_POINTS + 1):
            flat[f"experience_point_{idx}_{p_idx}"] = ""
    for idx in range(len(record.experience) + 1, MAX_EXPERIENCE + 1):
        for key in ("company", "company_location", "experience_date", "position"):
            flat[f"{key}_{idx}"] = ""
        for p_idx in range(1, MAX_POINTS + 1):
            flat[f"experience_point_{idx}_{p_idx}"] = ""

    for idx, project in enumerate(record.projects, start=1):
        put(f"project_{idx}", project.name)
        for p_idx, point in enumerate(project.points, start=1):
            put(f"project_point_{idx}_{p_idx}", point)
        for p_idx in range(len(project.points) + 1, MAX_POINTS + 1):
            flat[f"project_point_{idx}_{p_idx}"] = ""
    for idx in range(len(record.projects) + 1, MAX_PROJECTS + 1):
        flat[f"project_{idx}"] = ""
        for p_idx in range(1, MAX_POINTS + 1):
            flat[f"project_point_{idx}_{p_idx}"] = ""

    for idx, edu in enumerate(record.education, start=1):
        put(f"institution_{idx}", edu.institution)
        put(f"degree_{idx}", edu.degree)
        put(f"education_date_{idx}", edu.date)
    for idx in range(len(record.education) + 1, MAX_EDUCATION + 1):
        flat[f"institution_{idx}"] = ""
        flat[f"degree_{idx}"] = ""
        flat[f"education_date_{idx}"] = ""

    put("language_skills", record.language_skills.content)
    put("technical_skills", record.technical_skills.content)

    logger.debug("flattened_fields", slots=len(flat))
    return flat
