"""Helpers shared by the transport: timestamps, document keys, cycle removal."""

from __future__ import annotations

import json
from datetime import date, datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import BaseModel

# Fixed width so that lexical order matches chronological order
ISO_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(dt: datetime) -> str:
    """Serialize an instant as a sortable UTC string. Naive datetimes are read as local time."""
    return dt.astimezone(timezone.utc).strftime(ISO_FORMAT)


def key_fun() -> str:
    """Default document key: queryable write timestamp plus a uuid4."""
    return f"{isoformat(utcnow())}-{uuid4()}"


def _path_segment(key: Any) -> str:
    return f"[{json.dumps(key)}]"


def decycle(value: Any) -> Any:
    """
    Return a JSON-safe copy of value with repeated references removed.

    Every dict or list that was already visited is replaced by
    {"$ref": path}, where path points at its first occurrence, e.g.
    $["user"]["friends"][0]. Non-JSON leaves are converted: datetimes to
    ISO strings, tuples and sets to lists, pydantic models to dicts, anything
    else to str(). Dict keys become strings; when two keys collide (1 and
    "1") the first one wins.
    """
    seen: dict[int, str] = {}
    # Holds converted temporaries so their ids are not reused mid-walk
    keepalive: list[Any] = []

    def walk(node: Any, path: str) -> Any:
        if node is None or isinstance(node, (bool, int, float, str)):
            return node
        if isinstance(node, datetime):
            return isoformat(node)
        if isinstance(node, date):
            return node.isoformat()
        if isinstance(node, BaseModel):
            node = node.model_dump()
            keepalive.append(node)
        elif isinstance(node, (tuple, set, frozenset)):
            node = list(node)
            keepalive.append(node)
        if not isinstance(node, (dict, list)):
            return str(node)

        ref = seen.get(id(node))
        if ref is not None:
            return {"$ref": ref}
        seen[id(node)] = path

        if isinstance(node, dict):
            out: dict[str, Any] = {}
            for k, v in node.items():
                name = str(k)
                if name not in out:
                    out[name] = walk(v, path + _path_segment(name))
            return out
        return [walk(item, path + _path_segment(i)) for i, item in enumerate(node)]

    return walk(value, "$")
