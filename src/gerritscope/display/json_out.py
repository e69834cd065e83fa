"""JSON serialization for --json flag."""

from __future__ import annotations

import dataclasses
import enum
import json
from datetime import date
from typing import Any

from rich.console import Console

from gerritscope.core.errors import HostError

console = Console()


class _Encoder(json.JSONEncoder):
    def default(self, obj: Any) -> Any:
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)
                    if f.name != "credentials"}
        if isinstance(obj, date):  # also covers datetime
            return obj.isoformat()
        if isinstance(obj, enum.Enum):
            return obj.value
        if isinstance(obj, set):
            return sorted(obj)
        if isinstance(obj, HostError):
            return {"kind": obj.kind, "message": obj.message}
        return super().default(obj)


def to_json(data: Any) -> str:
    return json.dumps(data, cls=_Encoder, indent=2)


def print_json(data: Any) -> None:
    """Print data as formatted JSON to stdout."""
    console.print_json(to_json(data))
