from .document import Block, OffsetDocument, TextRun
from .edits import ApplyStyle, DeleteRange, EditBatch, EditRequest, RemoveBullets, ReplaceText, SetParagraphStyle
from .resume import BasicInfo, EducationEntry, ExperienceEntry, ProjectEntry, ResumeData, SkillsBlock
from .sections import ResumeSection, SectionDescriptor, active_headings, all_headings, describe_sections

__all__ = [
    "ApplyStyle",
    "BasicInfo",
    "Block",
    "DeleteRange",
    "EditBatch",
    "EditRequest",
    "RemoveBullets",
    "EducationEntry",
    "ExperienceEntry",
    "OffsetDocument",
    "ProjectEntry",
    "ReplaceText",
    "ResumeData",
    "ResumeSection",
    "SectionDescriptor",
    "SetParagraphStyle",
    "SkillsBlock",
    "TextRun",
    "active_headings",
    "all_headings",
    "describe_sections",
]
