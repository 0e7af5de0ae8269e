from __future__ import annotations

import copy
import json
import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import httplib2
import pytest
from googleapiclient.errors import HttpError

from resume_docs.models.resume import ResumeData
from resume_docs.services.google.docs_store import GoogleDocsStore
from resume_docs.services.pipeline.pipeline_orchestrator import PipelineOrchestrator, PipelineSettings

FIXTURES = Path(__file__).parent / "fixtures"

TEMPLATE = """{{name}}
{{email}} | {{phone}} | {{location}} | {{link}}

EXPERIENCE
{{company_1}} {{company_location_1}}
{{position_1}} | {{experience_date_1}}
{{experience_point_1_1}}
{{experience_point_1_2}}
{{experience_point_1_3}}

{{company_2}} {{company_location_2}}
{{position_2}} | {{experience_date_2}}
{{experience_point_2_1}}
{{experience_point_2_2}}

{{company_3}} {{company_location_3}}
{{position_3}} | {{experience_date_3}}
{{experience_point_3_1}}

PROJECTS
{{project_1}}
{{project_point_1_1}}
{{project_point_1_2}}

EDUCATION
{{institution_1}} {{degree_1}}
{{education_date_1}}

{{institution_2}} {{degree_2}}
{{education_date_2}}

LANGUAGE SKILLS
{{language_skills}}

TECHNICAL SKILLS
{{technical_skills}}
"""


def _styled_paragraph(start, text, **extra):
    element = {"startIndex": start, "endIndex": start + len(text), "textRun": {"content": text}}
    return {"startIndex": start, "endIndex": start + len(text), "paragraph": {"elements": [element], **extra}}


STYLED_PAYLOAD = {
    "documentId": "doc-1",
    "body": {
        "content": [
            {"endIndex": 1, "sectionBreak": {"sectionStyle": {}}},
            _styled_paragraph(1, "Name\n", paragraphStyle={"namedStyleType": "HEADING_1"}),
            _styled_paragraph(6, "Plain\n", paragraphStyle={"namedStyleType": "NORMAL_TEXT"}),
            _styled_paragraph(12, "Point\n", paragraphStyle={"namedStyleType": "NORMAL_TEXT"}, bullet={"listId": "l1"}),
        ]
    },
}


def http_error(status: int, reason: str = "error") -> HttpError:
    return HttpError(httplib2.Response({"status": status, "reason": reason}), reason.encode())


class _Call:
    def __init__(self, func: Callable[[], Any]):
        self._func = func

    def execute(self) -> Any:
        return self._func()


class _DocumentsResource:
    def __init__(self, service: "FakeDocsService"):
        self._service = service

    def get(self, documentId: str) -> _Call:
        return _Call(lambda: self._service.handle_get(documentId))

    def batchUpdate(self, documentId: str, body: Dict[str, Any]) -> _Call:
        return _Call(lambda: self._service.handle_batch_update(documentId, body))


class FakeDocsService:
    """In-memory Docs v1 resource over one body segment.

    The body starts with a section break at 0..1; every character after it
    has an offset of its buffer index + 1 and carries a bold flag.
    """

    def __init__(self, text: str, document_id: str = "doc-1", title: str = "Resume"):
        if not text.endswith("\n"):
            text += "\n"
        self.document_id = document_id
        self.title = title
        self.chars: List[str] = list(text)
        self.bold: List[bool] = [False] * len(self.chars)
        self.revision = 0
        self.reads = 0
        self.batches: List[List[Dict[str, Any]]] = []
        self.rejected: List[List[Dict[str, Any]]] = []
        self.read_errors: List[Exception] = []
        self.batch_errors: List[Optional[Exception]] = []

    def documents(self) -> _DocumentsResource:
        return _DocumentsResource(self)

    @property
    def text(self) -> str:
        return "".join(self.chars)

    @property
    def lines(self) -> List[str]:
        return self.text.split("\n")[:-1]

    def bold_runs(self) -> List[str]:
        runs: List[str] = []
        current = ""
        for char, is_bold in zip(self.chars, self.bold):
            if is_bold:
                current += char
            elif current:
                runs.append(current)
                current = ""
        if current:
            runs.append(current)
        return runs

    # Docs API emulation

    def handle_get(self, document_id: str) -> Dict[str, Any]:
        self.reads += 1
        if self.read_errors:
            raise self.read_errors.pop(0)
        content: List[Dict[str, Any]] = [{"endIndex": 1, "sectionBreak": {"sectionStyle": {}}}]
        text = self.text
        start = 0
        while start < len(text):
            end = text.index("\n", start) + 1
            content.append(self._paragraph(start, end))
            start = end
        return {
            "documentId": document_id,
            "title": self.title,
            "revisionId": f"rev-{self.revision}",
            "body": {"content": content},
        }

    def _paragraph(self, start: int, end: int) -> Dict[str, Any]:
        elements = []
        run_start = start
        for index in range(start + 1, end + 1):
            if index == end or self.bold[index] != self.bold[run_start]:
                elements.append(
                    {
                        "startIndex": run_start + 1,
                        "endIndex": index + 1,
                        "textRun": {
                            "content": "".join(self.chars[run_start:index]),
                            "textStyle": {"bold": True} if self.bold[run_start] else {},
                        },
                    }
                )
                run_start = index
        return {
            "startIndex": start + 1,
            "endIndex": end + 1,
            "paragraph": {"elements": elements, "paragraphStyle": {}},
        }

    def handle_batch_update(self, document_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        requests = copy.deepcopy(body["requests"])
        if self.batch_errors:
            error = self.batch_errors.pop(0)
            if error is not None:
                self.rejected.append(requests)
                raise error
        chars, bold = list(self.chars), list(self.bold)
        try:
            for request in requests:
                self._apply(request, chars, bold)
        except HttpError:
            self.rejected.append(requests)
            raise
        self.chars, self.bold = chars, bold
        self.batches.append(requests)
        self.revision += 1
        return {"documentId": document_id, "replies": [{} for _ in requests]}

    def _apply(self, request: Dict[str, Any], chars: List[str], bold: List[bool]) -> None:
        if "replaceAllText" in request:
            spec = request["replaceAllText"]
            needle = spec["containsText"]["text"]
            if not needle:
                raise http_error(400, "containsText must not be empty")
            flags = 0 if spec["containsText"].get("matchCase") else re.IGNORECASE
            replacement = spec.get("replaceText", "")
            text = "".join(chars)
            new_chars: List[str] = []
            new_bold: List[bool] = []
            position = 0
            for match in re.finditer(re.escape(needle), text, flags):
                new_chars.extend(chars[position:match.start()])
                new_bold.extend(bold[position:match.start()])
                new_chars.extend(replacement)
                new_bold.extend([bold[match.start()]] * len(replacement))
                position = match.end()
            new_chars.extend(chars[position:])
            new_bold.extend(bold[position:])
            chars[:], bold[:] = new_chars, new_bold
        elif "deleteContentRange" in request:
            start, end = self._range(request["deleteContentRange"]["range"], len(chars))
            if end > len(chars):
                raise http_error(
                    400,
                    "The range should not include the newline character at the end of the segment.",
                )
            del chars[start - 1:end - 1]
            del bold[start - 1:end - 1]
        elif "updateTextStyle" in request:
            spec = request["updateTextStyle"]
            start, end = self._range(spec["range"], len(chars) + 1)
            if "bold" in spec.get("fields", ""):
                value = bool(spec.get("textStyle", {}).get("bold"))
                for index in range(start - 1, end - 1):
                    bold[index] = value
        else:
            raise http_error(400, f"Unsupported request {sorted(request)}")

    @staticmethod
    def _range(payload: Dict[str, Any], limit: int):
        start, end = payload.get("startIndex"), payload.get("endIndex")
        if start is None or end is None or start < 1 or end <= start or end > limit + 1:
            raise http_error(400, f"Invalid range {start}..{end}")
        return start, end


class FakeDrive:
    def __init__(self, document_id: str = "doc-1", copy_error: Optional[Exception] = None):
        self.document_id = document_id
        self.copy_error = copy_error
        self.copies: List[Dict[str, Any]] = []
        self.permissions_created: List[Dict[str, Any]] = []

    def files(self):
        drive = self

        class _Files:
            def copy(self, fileId, body, supportsAllDrives=False):
                def _run():
                    if drive.copy_error is not None:
                        raise drive.copy_error
                    drive.copies.append({"fileId": fileId, "body": body})
                    return {"id": drive.document_id} if drive.document_id else {}

                return _Call(_run)

        return _Files()

    def permissions(self):
        drive = self

        class _Permissions:
            def create(self, fileId, body, supportsAllDrives=False):
                return _Call(lambda: drive.permissions_created.append({"fileId": fileId, **body}) or {"id": "perm-1"})

        return _Permissions()


class SleepRecorder:
    def __init__(self):
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sample_payload() -> Dict[str, Any]:
    return json.loads((FIXTURES / "sample_resume.json").read_text(encoding="utf-8"))


@pytest.fixture
def sample_record(sample_payload) -> ResumeData:
    return ResumeData.from_dict(sample_payload)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_store(sleep_recorder):
    def _make(text: str):
        service = FakeDocsService(text)
        return service, GoogleDocsStore(service, read_retries=0, sleep=sleep_recorder)

    return _make


@pytest.fixture
def make_orchestrator(sleep_recorder):
    def _make(store, **settings):
        return PipelineOrchestrator(store, PipelineSettings(**settings), sleep=sleep_recorder)

    return _make
