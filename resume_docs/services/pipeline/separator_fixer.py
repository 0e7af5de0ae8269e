from __future__ import annotations

from typing import List, Mapping, Optional, Sequence, Tuple

from ...models.document import OffsetDocument
from ...models.edits import ApplyStyle, EditBatch, ReplaceText
from .base_stage import DocumentStage
from .flattening import MAX_EDUCATION, MAX_EXPERIENCE
from .markers import strip_emphasis, strip_markers

SEPARATOR = " | "

DEFAULT_PAIRS: Tuple[Tuple[str, str], ...] = tuple(
    [(f"company_{idx}", f"company_location_{idx}") for idx in range(1, MAX_EXPERIENCE + 1)]
    + [(f"institution_{idx}", f"degree_{idx}") for idx in range(1, MAX_EDUCATION + 1)]
)


def restyle_requests(chars: Sequence[Tuple[int, bool]], wanted: Sequence[bool]) -> List[ApplyStyle]:
    """Bold updates turning the current per-character state into ``wanted``."""
    requests: List[ApplyStyle] = []
    start = end = None
    current: Optional[bool] = None
    for (offset, bold), value in zip(chars, wanted):
        if bold != value and current == value and offset == end:
            end += 1
            continue
        if current is not None:
            requests.append(ApplyStyle(start, end, value=current))
        start, end, current = (offset, offset + 1, value) if bold != value else (None, None, None)
    if current is not None:
        requests.append(ApplyStyle(start, end, value=current))
    return requests


class SeparatorFixer(DocumentStage):
    """Restore the ``" | "`` between paired values once both sides are known to be filled.

    replaceAllText hands the whole replacement the style of the first matched
    character, so a bold left value would bleed into the separator and the
    right value. The bold state each character had before the join is
    recorded and written back on the following snapshot.
    """

    name = "separator_fix"

    def __init__(self, fields: Mapping[str, str], pairs: Sequence[Tuple[str, str]] = DEFAULT_PAIRS) -> None:
        super().__init__()
        self.fields = fields
        self.pairs = tuple(pairs)
        self._phase = "join"
        # (joined text, left length, wanted bold flags of the tail per occurrence)
        self._restore: List[Tuple[str, int, List[List[bool]]]] = []
        self.stats.update(pairs_fixed=0, styles_restored=0)

    def rendered(self, key: str) -> str:
        return strip_emphasis(strip_markers(self.fields.get(key) or ""))

    def next_batches(self, snapshot: OffsetDocument) -> Optional[List[EditBatch]]:
        if self._phase == "join":
            self._phase = "done"
            return self.plan_join(snapshot)
        if self._phase == "restyle":
            self._phase = "done"
            return self.plan_restyle(snapshot)
        return None

    def plan_join(self, snapshot: OffsetDocument) -> Optional[List[EditBatch]]:
        requests = []
        planned = set()
        for left_key, right_key in self.pairs:
            left, right = self.rendered(left_key), self.rendered(right_key)
            if not left or not right:
                continue
            source = f"{left} {right}"
            if source in planned:
                continue
            planned.add(source)
            joined = f"{left}{SEPARATOR}{right}"
            requests.append(ReplaceText(source, joined))

            tails = []
            for chars in snapshot.find_styled_text(source):
                # separator takes the old space's style, the right value keeps its own
                flags = [bold for _, bold in chars[len(left):]]
                tails.append([flags[0]] * len(SEPARATOR) + flags[1:])
            self._restore.append((joined, len(left), tails))
        if not requests:
            return None
        return [EditBatch(label="fix_separators", requests=requests)]

    def plan_restyle(self, snapshot: OffsetDocument) -> Optional[List[EditBatch]]:
        requests: List[ApplyStyle] = []
        for joined, left_length, tails in self._restore:
            found = snapshot.find_styled_text(joined)
            if len(found) != len(tails):
                self.logger.warning("separator_occurrences_changed", text=joined, expected=len(tails), found=len(found))
            for chars, wanted in zip(found, tails):
                requests.extend(restyle_requests(chars[left_length:], wanted))
        if not requests:
            return None
        return [EditBatch(label="restore_separator_style", requests=requests)]

    def on_batch_applied(self, batch: EditBatch) -> None:
        if batch.label == "fix_separators":
            self.stats["pairs_fixed"] = len(batch)
            self._phase = "restyle"
        else:
            self.stats["styles_restored"] = len(batch)
            self.logger.debug("separator_style_restored", ranges=len(batch))
