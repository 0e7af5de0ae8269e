from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple, Union


@dataclass(frozen=True)
class ReplaceText:
    """Replace every occurrence of ``match_text`` (offset independent)."""

    match_text: str
    replacement: str
    case_sensitive: bool = True

    def to_api(self) -> Dict[str, Any]:
        return {
            "replaceAllText": {
                "containsText": {"text": self.match_text, "matchCase": self.case_sensitive},
                "replaceText": self.replacement,
            }
        }


@dataclass(frozen=True)
class DeleteRange:
    start: int
    end: int

    def to_api(self) -> Dict[str, Any]:
        return {"deleteContentRange": {"range": {"startIndex": self.start, "endIndex": self.end}}}


@dataclass(frozen=True)
class ApplyStyle:
    start: int
    end: int
    style_flags: Tuple[str, ...] = ("bold",)
    value: bool = True

    def to_api(self) -> Dict[str, Any]:
        return {
            "updateTextStyle": {
                "range": {"startIndex": self.start, "endIndex": self.end},
                "textStyle": {flag: self.value for flag in self.style_flags},
                "fields": ",".join(self.style_flags),
            }
        }


@dataclass(frozen=True)
class SetParagraphStyle:
    start: int
    end: int
    named_style: str

    def to_api(self) -> Dict[str, Any]:
        return {
            "updateParagraphStyle": {
                "range": {"startIndex": self.start, "endIndex": self.end},
                "paragraphStyle": {"namedStyleType": self.named_style},
                "fields": "namedStyleType",
            }
        }


@dataclass(frozen=True)
class RemoveBullets:
    start: int
    end: int

    def to_api(self) -> Dict[str, Any]:
        return {"deleteParagraphBullets": {"range": {"startIndex": self.start, "endIndex": self.end}}}


EditRequest = Union[ReplaceText, DeleteRange, ApplyStyle, SetParagraphStyle, RemoveBullets]


@dataclass
class EditBatch:
    """One atomic batchUpdate call; offsets refer to the snapshot it was planned on."""

    label: str
    requests: List[EditRequest] = field(default_factory=list)
    pause_seconds: float = 0.0
    context: Dict[str, Any] = field(default_factory=dict)

    def to_api(self) -> List[Dict[str, Any]]:
        return [request.to_api() for request in self.requests]

    def __len__(self) -> int:
        return len(self.requests)


def chunked(requests: List[EditRequest], size: int) -> List[List[EditRequest]]:
    size = max(1, int(size))
    return [requests[index:index + size] for index in range(0, len(requests), size)]
