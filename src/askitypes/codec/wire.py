"""Canonical byte form of a wire tree.

The wire model is the JSON data model with insertion-ordered field-maps:
``None``, ``bool``, ``int``, ``float``, ``str``, ``list`` and ``dict``.
The canonical bytes are compact UTF-8 JSON with field-maps emitted in wire
order, so two equal values always serialise to identical bytes.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Tuple, Union

from askitypes.core.exceptions import Malformed, ShapeMismatch


def _reject_constant(name: str) -> Any:
    raise Malformed(f"non-finite number {name} is not part of the wire model")


def _unique_pairs(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in pairs:
        if key in out:
            raise Malformed(f"field {key!r} appears more than once")
        out[key] = value
    return out


def to_bytes(wire: Any) -> bytes:
    try:
        text = json.dumps(wire, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
        return text.encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise ShapeMismatch(f"not a wire value: {exc}") from exc


def from_bytes(data: Union[bytes, str]) -> Any:
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise Malformed(f"wire bytes are not valid UTF-8: {exc}") from exc
    try:
        return json.loads(data, parse_constant=_reject_constant, object_pairs_hook=_unique_pairs)
    except json.JSONDecodeError as exc:
        raise Malformed(f"wire bytes are not valid JSON: {exc.msg} at position {exc.pos}") from exc
