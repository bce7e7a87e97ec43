"""Type expressions: the shapes a field, payload or element may take.

A type expression is either a primitive, the unit type, a reference to a
named catalog type (optionally instantiated with generic arguments), a
generic parameter, or one of the container constructors. All models are
frozen and hashable so they can be compared structurally.

A bare string is accepted wherever a type expression is expected:
``"u32"`` is the primitive, ``"unit"`` the unit type, anything else a
named reference (``"UserId"``).
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Annotated, Any, Dict, Iterator, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, NonNegativeInt, StringConstraints, model_validator

IDENTIFIER_PATTERN = r"^[A-Za-z_][A-Za-z0-9_]*$"
_IDENTIFIER_RE = re.compile(IDENTIFIER_PATTERN)

Identifier = Annotated[str, StringConstraints(pattern=IDENTIFIER_PATTERN)]


class PrimitiveKind(Enum):
    BOOL = "bool"
    CHAR = "char"
    STRING = "string"
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    I128 = "i128"
    ISIZE = "isize"
    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    U128 = "u128"
    USIZE = "usize"
    F32 = "f32"
    F64 = "f64"
    UUID = "uuid"

    @property
    def is_integer(self) -> bool:
        return self in _INTEGER_BITS

    @property
    def is_float(self) -> bool:
        return self in (PrimitiveKind.F32, PrimitiveKind.F64)

    @property
    def signed(self) -> bool:
        return self.value.startswith("i")

    @property
    def bits(self) -> int:
        if self.is_integer:
            return _INTEGER_BITS[self]
        if self is PrimitiveKind.F32:
            return 32
        if self is PrimitiveKind.F64:
            return 64
        raise ValueError(f"{self.value} has no fixed width")

    @property
    def int_range(self) -> Tuple[int, int]:
        """Inclusive bounds of an integer kind."""
        bits = _INTEGER_BITS[self]
        if self.signed:
            return -(2 ** (bits - 1)), 2 ** (bits - 1) - 1
        return 0, 2**bits - 1


# Pointer-sized integers are fixed at 64 bits so every target agrees on range.
_INTEGER_BITS: Dict[PrimitiveKind, int] = {
    PrimitiveKind.I8: 8,
    PrimitiveKind.I16: 16,
    PrimitiveKind.I32: 32,
    PrimitiveKind.I64: 64,
    PrimitiveKind.I128: 128,
    PrimitiveKind.ISIZE: 64,
    PrimitiveKind.U8: 8,
    PrimitiveKind.U16: 16,
    PrimitiveKind.U32: 32,
    PrimitiveKind.U64: 64,
    PrimitiveKind.U128: 128,
    PrimitiveKind.USIZE: 64,
}

PRIMITIVE_NAMES = frozenset(k.value for k in PrimitiveKind)
RESERVED_NAMES = PRIMITIVE_NAMES | {"unit"}


class _TypeModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class PrimitiveType(_TypeModel):
    kind: Literal["primitive"] = "primitive"
    name: PrimitiveKind

    def __str__(self) -> str:
        return self.name.value


class UnitType(_TypeModel):
    kind: Literal["unit"] = "unit"

    def __str__(self) -> str:
        return "()"


class NamedType(_TypeModel):
    kind: Literal["named"] = "named"
    name: Identifier
    args: Tuple["TypeExpr", ...] = ()

    def __str__(self) -> str:
        if not self.args:
            return self.name
        return f"{self.name}<{', '.join(str(a) for a in self.args)}>"


class ParamType(_TypeModel):
    kind: Literal["param"] = "param"
    name: Identifier

    def __str__(self) -> str:
        return self.name


class SeqType(_TypeModel):
    kind: Literal["seq"] = "seq"
    item: "TypeExpr"

    def __str__(self) -> str:
        return f"seq<{self.item}>"


class ArrayType(_TypeModel):
    kind: Literal["array"] = "array"
    item: "TypeExpr"
    length: NonNegativeInt

    def __str__(self) -> str:
        return f"array<{self.item}, {self.length}>"


class SetType(_TypeModel):
    kind: Literal["set"] = "set"
    item: "TypeExpr"

    def __str__(self) -> str:
        return f"set<{self.item}>"


class MapType(_TypeModel):
    kind: Literal["map"] = "map"
    key: "TypeExpr"
    value: "TypeExpr"

    def __str__(self) -> str:
        return f"map<{self.key}, {self.value}>"


class OptionType(_TypeModel):
    kind: Literal["option"] = "option"
    item: "TypeExpr"

    @model_validator(mode="after")
    def _reject_null_payload(self) -> "OptionType":
        # The wire form of None is null, so Some(x) must never encode to null.
        if isinstance(self.item, (OptionType, UnitType)):
            raise ValueError(f"option<{self.item}> is ambiguous on the wire")
        return self

    def __str__(self) -> str:
        return f"option<{self.item}>"


class ResultType(_TypeModel):
    kind: Literal["result"] = "result"
    ok: "TypeExpr"
    err: "TypeExpr"

    def __str__(self) -> str:
        return f"result<{self.ok}, {self.err}>"


class TupleType(_TypeModel):
    kind: Literal["tuple"] = "tuple"
    items: Tuple["TypeExpr", ...] = Field(min_length=1)

    def __str__(self) -> str:
        return "(" + ", ".join(str(i) for i in self.items) + ")"


def _coerce_shorthand(value: Any) -> Any:
    if isinstance(value, str):
        if value in PRIMITIVE_NAMES:
            return {"kind": "primitive", "name": value}
        if value == "unit":
            return {"kind": "unit"}
        return {"kind": "named", "name": value}
    return value


TypeExpr = Annotated[
    Union[
        PrimitiveType,
        UnitType,
        NamedType,
        ParamType,
        SeqType,
        ArrayType,
        SetType,
        MapType,
        OptionType,
        ResultType,
        TupleType,
    ],
    Field(discriminator="kind"),
    BeforeValidator(_coerce_shorthand),
]

for _model in (NamedType, SeqType, ArrayType, SetType, MapType, OptionType, ResultType, TupleType):
    _model.model_rebuild()


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def primitive(name: Union[str, PrimitiveKind]) -> PrimitiveType:
    return PrimitiveType(name=PrimitiveKind(name))


def named(name: str, *args: Any) -> NamedType:
    return NamedType.model_validate({"name": name, "args": args})


def children(expr: Any) -> Iterator[Any]:
    """Direct sub-expressions of a type expression."""
    if isinstance(expr, NamedType):
        yield from expr.args
    elif isinstance(expr, (SeqType, ArrayType, SetType, OptionType)):
        yield expr.item
    elif isinstance(expr, MapType):
        yield expr.key
        yield expr.value
    elif isinstance(expr, ResultType):
        yield expr.ok
        yield expr.err
    elif isinstance(expr, TupleType):
        yield from expr.items


def walk(expr: Any) -> Iterator[Any]:
    """Depth-first iteration over an expression and all its sub-expressions."""
    yield expr
    for child in children(expr):
        yield from walk(child)


def substitute(expr: Any, bindings: Optional[Mapping[str, Any]]) -> Any:
    """Replace generic parameters with the expressions bound to them."""
    if not bindings:
        return expr
    if isinstance(expr, ParamType):
        return bindings.get(expr.name, expr)
    if isinstance(expr, NamedType):
        if not expr.args:
            return expr
        return NamedType(name=expr.name, args=tuple(substitute(a, bindings) for a in expr.args))
    if isinstance(expr, SeqType):
        return SeqType(item=substitute(expr.item, bindings))
    if isinstance(expr, ArrayType):
        return ArrayType(item=substitute(expr.item, bindings), length=expr.length)
    if isinstance(expr, SetType):
        return SetType(item=substitute(expr.item, bindings))
    if isinstance(expr, MapType):
        return MapType(key=substitute(expr.key, bindings), value=substitute(expr.value, bindings))
    if isinstance(expr, OptionType):
        return OptionType(item=substitute(expr.item, bindings))
    if isinstance(expr, ResultType):
        return ResultType(ok=substitute(expr.ok, bindings), err=substitute(expr.err, bindings))
    if isinstance(expr, TupleType):
        return TupleType(items=tuple(substitute(i, bindings) for i in expr.items))
    return expr


def is_identifier(name: str) -> bool:
    return bool(_IDENTIFIER_RE.match(name))
