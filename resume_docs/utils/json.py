from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson
from flask.json.provider import DefaultJSONProvider

_OPTIONS = orjson.OPT_INDENT_2 | orjson.OPT_NON_STR_KEYS


def _default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


class ORJSONProvider(DefaultJSONProvider):
    """Flask JSON provider backed by orjson (dataclasses serialize natively)."""

    def dumps(self, obj: Any, *, option: int | None = None, **kwargs: Any) -> str:
        return orjson.dumps(obj, default=_default, option=option or _OPTIONS).decode()

    def loads(self, s: str | bytes | bytearray, **kwargs: Any) -> Any:
        return orjson.loads(s)


def dumps_pretty(obj: Any) -> str:
    """Indented JSON for terminal output."""
    return orjson.dumps(obj, default=_default, option=_OPTIONS).decode()
