from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping

from ..utils.exceptions import InvalidResumeData


def _text(payload: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return str(value)
    return ""


def _entries(payload: Mapping[str, Any], key: str) -> List[Mapping[str, Any]]:
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise InvalidResumeData(f"'{key}' must be a list")
    for index, item in enumerate(value):
        if not isinstance(item, Mapping):
            raise InvalidResumeData(f"'{key}[{index}]' must be an object")
    return value


def _points(payload: Mapping[str, Any], owner: str) -> List[str]:
    value = payload.get("points")
    if value is None:
        return []
    if not isinstance(value, list):
        raise InvalidResumeData(f"'{owner}.points' must be a list")
    return [str(point) if point is not None else "" for point in value]


@dataclass
class BasicInfo:
    name: str = ""
    phone: str = ""
    location: str = ""
    email: str = ""
    link: str = ""

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "BasicInfo":
        return cls(
            name=_text(payload, "name"),
            phone=_text(payload, "phone"),
            location=_text(payload, "location"),
            email=_text(payload, "email"),
            link=_text(payload, "link"),
        )


@dataclass
class ExperienceEntry:
    company: str
    company_location: str
    date: str
    position: str
    points: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ExperienceEntry":
        return cls(
            company=_text(payload, "company"),
            company_location=_text(payload, "companyLocation", "company_location"),
            date=_text(payload, "date"),
            position=_text(payload, "position"),
            points=_points(payload, "experience"),
        )


@dataclass
class ProjectEntry:
    name: str
    points: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ProjectEntry":
        return cls(name=_text(payload, "name"), points=_points(payload, "projects"))


@dataclass
class EducationEntry:
    institution: str
    degree: str
    date: str

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "EducationEntry":
        return cls(
            institution=_text(payload, "institution"),
            degree=_text(payload, "degree"),
            date=_text(payload, "date"),
        )


@dataclass
class SkillsBlock:
    content: str = ""


@dataclass
class ResumeData:
    """Structured record that backs one generated resume document."""

    basic_info: BasicInfo = field(default_factory=BasicInfo)
    experience: List[ExperienceEntry] = field(default_factory=list)
    projects: List[ProjectEntry] = field(default_factory=list)
    education: List[EducationEntry] = field(default_factory=list)
    language_skills: SkillsBlock = field(default_factory=SkillsBlock)
    technical_skills: SkillsBlock = field(default_factory=SkillsBlock)

    @classmethod
    def from_dict(cls, payload: Any) -> "ResumeData":
        """Build a record from camelCase JSON.

        Skills are read from ``languageSkills.content`` / ``technicalSkills.content``,
        falling back to the older ``skills: {languages, technical}`` block.
        """
        if not isinstance(payload, Mapping):
            raise InvalidResumeData("Resume payload must be an object")

        basic = payload.get("basicInfo") or payload.get("basic_info") or {}
        if not isinstance(basic, Mapping):
            raise InvalidResumeData("'basicInfo' must be an object")

        legacy_skills = payload.get("skills") or {}
        if not isinstance(legacy_skills, Mapping):
            raise InvalidResumeData("'skills' must be an object")

        return cls(
            basic_info=BasicInfo.from_dict(basic),
            experience=[ExperienceEntry.from_dict(item) for item in _entries(payload, "experience")],
            projects=[ProjectEntry.from_dict(item) for item in _entries(payload, "projects")],
            education=[EducationEntry.from_dict(item) for item in _entries(payload, "education")],
            language_skills=_skills(payload, "languageSkills", "language_skills", legacy_skills.get("languages")),
            technical_skills=_skills(payload, "technicalSkills", "technical_skills", legacy_skills.get("technical")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _skills(payload: Mapping[str, Any], key: str, alias: str, fallback: Any) -> SkillsBlock:
    block = payload.get(key) or payload.get(alias)
    if block is None:
        return SkillsBlock(content=str(fallback) if fallback is not None else "")
    if isinstance(block, str):
        return SkillsBlock(content=block)
    if not isinstance(block, Mapping):
        raise InvalidResumeData(f"'{key}' must be an object")
    return SkillsBlock(content=_text(block, "content"))
