from __future__ import annotations

import re
from typing import List, Mapping, Optional

from ...models.document import OffsetDocument
from ...models.edits import EditBatch, ReplaceText
from .base_stage import DocumentStage
from .flattening import is_bullet_key, is_skills_key
from .markers import REMOVAL_MARKER, strip_emphasis

PLACEHOLDER_RE = re.compile(r"{{([^{}]+)}}")


def find_placeholders(snapshot: OffsetDocument) -> List[str]:
    """Distinct ``{{key}}`` tokens in paragraph text, in document order."""
    seen: List[str] = []
    for block in snapshot.paragraphs():
        for match in PLACEHOLDER_RE.finditer(block.text):
            token = match.group(0)
            if token not in seen:
                seen.append(token)
    return seen


class PlaceholderResolver(DocumentStage):
    """Replace every template token with its field value in one batch.

    Empty bullet slots resolve to the removal marker so their lines can be
    deleted later. Skills values go in verbatim; other values lose any
    leftover ``**`` delimiters.
    """

    name = "placeholder_resolution"
    PAUSE_SECONDS = 0.3

    def __init__(self, fields: Mapping[str, str]) -> None:
        super().__init__()
        self.fields = fields
        self._done = False
        self.stats.update(placeholders_found=0, unresolved=[], marked_for_removal=0)

    def resolve(self, token: str) -> str:
        key = token[2:-2].strip()
        if key not in self.fields:
            self.stats["unresolved"].append(key)
        value = self.fields.get(key) or ""
        if is_bullet_key(key) and not value:
            self._count("marked_for_removal")
            return REMOVAL_MARKER
        if is_skills_key(key):
            return value
        return strip_emphasis(value)

    def next_batches(self, snapshot: OffsetDocument) -> Optional[List[EditBatch]]:
        if self._done:
            return None
        self._done = True

        tokens = find_placeholders(snapshot)
        self.stats["placeholders_found"] = len(tokens)
        if not tokens:
            self.logger.info("no_placeholders_found", document_id=snapshot.document_id)
            return None

        requests = [ReplaceText(token, self.resolve(token)) for token in tokens]
        if self.stats["unresolved"]:
            self.logger.warning("placeholders_without_value", keys=self.stats["unresolved"])
        return [EditBatch(label="replace_placeholders", requests=requests, pause_seconds=self.PAUSE_SECONDS)]
