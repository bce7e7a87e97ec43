"""Runtime values of named catalog types.

Primitives, options, tuples and containers use plain Python values
(``int``, ``str``, ``None``, ``tuple``, ``list``, ``frozenset``, ``dict``).
Named types get a thin wrapper carrying the type name, so ``UserId`` stays
distinguishable from the ``uuid`` it wraps even though both encode to the
same wire value.

All wrappers are immutable and hashable whenever their contents are.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union


def _compact(fields: Mapping[str, Any]) -> Dict[str, Any]:
    # None always means "absent optional field"; drop it so that omitted and
    # explicitly-None fields compare equal.
    return {k: v for k, v in fields.items() if v is not None}


@dataclass(frozen=True)
class Newtype:
    type_name: str
    value: Any


@dataclass(frozen=True)
class TupleStruct:
    type_name: str
    items: Tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))

    def __getitem__(self, index: int) -> Any:
        return self.items[index]

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class UnitStruct:
    type_name: str


@dataclass(frozen=True)
class Struct:
    type_name: str
    fields: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", _compact(self.fields))

    def __hash__(self) -> int:
        return hash((self.type_name, frozenset(self.fields.items())))

    def __getitem__(self, name: str) -> Any:
        return self.fields[name]

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)


Payload = Union[None, Tuple[Any, ...], Mapping[str, Any]]


@dataclass(frozen=True)
class Variant:
    """An enum value: ``payload`` is None (unit), a tuple (tuple variant) or a mapping (struct variant)."""

    type_name: str
    name: str
    payload: Payload = None

    def __post_init__(self) -> None:
        if isinstance(self.payload, list):
            object.__setattr__(self, "payload", tuple(self.payload))
        elif isinstance(self.payload, Mapping):
            object.__setattr__(self, "payload", _compact(self.payload))

    def __hash__(self) -> int:
        payload = self.payload
        if isinstance(payload, Mapping):
            payload = frozenset(payload.items())
        return hash((self.type_name, self.name, payload))


@dataclass(frozen=True)
class Ok:
    value: Any


@dataclass(frozen=True)
class Err:
    value: Any


def unit_variant(type_name: str, name: str) -> Variant:
    return Variant(type_name, name)


def tuple_variant(type_name: str, name: str, *items: Any) -> Variant:
    return Variant(type_name, name, tuple(items))


def struct_variant(type_name: str, name: str, fields: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Variant:
    return Variant(type_name, name, {**(fields or {}), **kwargs})
