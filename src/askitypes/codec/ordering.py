"""Total order over values of a type, used only to serialise sets and maps deterministically.

``order_key`` projects a value onto a plain Python key (ints, strings,
bytes and tuples of those) that sorts the way a derived ordering would:
integers numerically, floats by IEEE-754 total order, strings by code
point, ``False < True``, uuids by their bytes, tuples and structs
lexicographically in declared position, enums by variant index and then
payload, ``None`` before any present value, and ``Ok`` before ``Err``.

The projection assumes the value already passed encoding checks.
"""

from __future__ import annotations

import struct
import uuid
from typing import Any, Mapping, Optional

from askitypes.core.values import Ok
from askitypes.models.declarations import EnumDecl, NewtypeDecl, StructDecl, TupleStructDecl
from askitypes.models.types import (
    ArrayType,
    MapType,
    NamedType,
    OptionType,
    PrimitiveType,
    ResultType,
    SeqType,
    SetType,
    TupleType,
    UnitType,
    substitute,
)


def float_order_key(value: float) -> int:
    """Map a float onto an int with the same IEEE-754 totalOrder."""
    bits = struct.unpack(">q", struct.pack(">d", value))[0]
    if bits < 0:
        bits ^= 0x7FFF_FFFF_FFFF_FFFF
    return bits


def order_key(catalog, expr, value: Any, bindings: Optional[Mapping[str, Any]] = None) -> Any:
    expr = substitute(expr, bindings)

    if isinstance(expr, PrimitiveType):
        kind = expr.name
        if kind.is_float:
            return float_order_key(float(value))
        if isinstance(value, uuid.UUID):
            return value.bytes
        if isinstance(value, bool):
            return int(value)
        return value

    if isinstance(expr, UnitType):
        return ()

    if isinstance(expr, OptionType):
        if value is None:
            return (0,)
        return (1, order_key(catalog, expr.item, value))

    if isinstance(expr, ResultType):
        if isinstance(value, Ok):
            return (0, order_key(catalog, expr.ok, value.value))
        return (1, order_key(catalog, expr.err, value.value))

    if isinstance(expr, TupleType):
        return tuple(order_key(catalog, t, v) for t, v in zip(expr.items, value))

    if isinstance(expr, (SeqType, ArrayType)):
        return tuple(order_key(catalog, expr.item, v) for v in value)

    if isinstance(expr, SetType):
        return tuple(sorted(order_key(catalog, expr.item, v) for v in value))

    if isinstance(expr, MapType):
        return tuple(
            sorted((order_key(catalog, expr.key, k), order_key(catalog, expr.value, v)) for k, v in value.items())
        )

    if isinstance(expr, NamedType):
        decl, inner = catalog.instantiate(expr)
        return _named_order_key(catalog, decl, inner, value)

    raise TypeError(f"No ordering for {expr}")


def _named_order_key(catalog, decl, bindings, value: Any) -> Any:
    if isinstance(decl, NewtypeDecl):
        return order_key(catalog, decl.inner, value.value, bindings)

    if isinstance(decl, TupleStructDecl):
        return tuple(order_key(catalog, t, v, bindings) for t, v in zip(decl.items, value.items))

    if isinstance(decl, StructDecl):
        return tuple(order_key(catalog, f.type, value.get(f.name), bindings) for f in decl.fields)

    if isinstance(decl, EnumDecl):
        index = decl.variant_index(value.name)
        variant = decl.variants[index]
        if variant.shape == "tuple":
            payload = tuple(order_key(catalog, t, v, bindings) for t, v in zip(variant.items, value.payload))
        elif variant.shape == "struct":
            payload = tuple(order_key(catalog, f.type, value.payload.get(f.name), bindings) for f in variant.fields)
        else:
            payload = ()
        return (index, payload)

    # unit struct
    return ()
