from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, FrozenSet, List

from .resume import ResumeData


def normalize_heading(text: str) -> str:
    return (text or "").strip().upper()


class ResumeSection(str, Enum):
    """Section headings the template declares, in document order."""

    EXPERIENCE = "EXPERIENCE"
    PROJECTS = "PROJECTS"
    EDUCATION = "EDUCATION"
    LANGUAGE_SKILLS = "LANGUAGE SKILLS"
    TECHNICAL_SKILLS = "TECHNICAL SKILLS"

    @property
    def label(self) -> str:
        return self.value

    def is_present(self, record: ResumeData) -> bool:
        return _PRESENCE_CHECKS[self](record)


_PRESENCE_CHECKS: Dict[ResumeSection, Callable[[ResumeData], bool]] = {
    ResumeSection.EXPERIENCE: lambda record: len(record.experience) > 0,
    ResumeSection.PROJECTS: lambda record: len(record.projects) > 0,
    ResumeSection.EDUCATION: lambda record: len(record.education) > 0,
    ResumeSection.LANGUAGE_SKILLS: lambda record: record.language_skills.content.strip() != "",
    ResumeSection.TECHNICAL_SKILLS: lambda record: record.technical_skills.content.strip() != "",
}


@dataclass(frozen=True)
class SectionDescriptor:
    heading: str
    present: bool


def describe_sections(record: ResumeData) -> List[SectionDescriptor]:
    return [SectionDescriptor(heading=section.label, present=section.is_present(record)) for section in ResumeSection]


def all_headings() -> FrozenSet[str]:
    return frozenset(section.label for section in ResumeSection)


def active_headings(record: ResumeData) -> FrozenSet[str]:
    """Headings that remain in the document once empty sections are pruned."""
    return frozenset(descriptor.heading for descriptor in describe_sections(record) if descriptor.present)
