from __future__ import annotations

import math
import struct
import uuid
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import TypeAdapter

from askitypes.catalog.registry import TypeCatalog
from askitypes.codec.ordering import order_key
from askitypes.codec.wire import from_bytes, to_bytes
from askitypes.core.exceptions import (
    ArityMismatch,
    DuplicateElement,
    DuplicateKey,
    InvalidDeclaration,
    LengthMismatch,
    Malformed,
    NonCanonical,
    PathSegment,
    RangeOverflow,
    ShapeMismatch,
    UnknownVariant,
)
from askitypes.core.logger import get_logger
from askitypes.core.values import Err, Newtype, Ok, Struct, TupleStruct, UnitStruct, Variant
from askitypes.models.declarations import DECLARATION_CLASSES, ExternalTagging
from askitypes.models.settings import CodecOptions
from askitypes.models.types import NamedType, OptionType, PrimitiveKind, TypeExpr, substitute

logger = get_logger(__name__)

_TYPE_EXPR_ADAPTER: TypeAdapter = TypeAdapter(TypeExpr)

WirePath = Tuple[PathSegment, ...]

# Marks "no payload" for unit variants; None is a legitimate encoded payload.
_ABSENT = object()


def _describe(wire: Any) -> str:
    if wire is None:
        return "null"
    if isinstance(wire, bool):
        return "bool"
    if isinstance(wire, (int, float)):
        return "number"
    if isinstance(wire, str):
        return "string"
    if isinstance(wire, list):
        return "list"
    if isinstance(wire, dict):
        return "field-map"
    return type(wire).__name__


def _to_f32(value: float) -> float:
    return struct.unpack("<f", struct.pack("<f", value))[0]


class Codec:
    """
    Canonical encoder/decoder for values of catalog types.

    A codec holds no mutable state; with a sealed catalog it can be shared
    freely between threads.

    Example:
        >>> codec = Codec(catalog)
        >>> wire = codec.encode("Shape", Variant("Shape", "Circle", {"r": 2.5}))
        >>> wire
        {'variant': 'Circle', 'data': {'r': 2.5}}
        >>> codec.decode("Shape", wire)
        Variant(type_name='Shape', name='Circle', payload={'r': 2.5})
    """

    def __init__(self, catalog: TypeCatalog, options: Optional[CodecOptions] = None):
        self.catalog = catalog
        self.options = options or CodecOptions()

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------

    def resolve_type(self, type_: Any) -> Tuple[Any, WirePath]:
        """Normalise a catalog name, type expression or declaration to an expression and root path."""
        if isinstance(type_, DECLARATION_CLASSES):
            if type_.params:
                raise InvalidDeclaration(type_.name, "generic declarations need arguments; pass a named reference")
            type_ = NamedType(name=type_.name)
        elif isinstance(type_, (str, Mapping)):
            type_ = _TYPE_EXPR_ADAPTER.validate_python(type_)
        self.catalog.check_expression(type_)
        if isinstance(type_, NamedType):
            return type_, (type_.name,)
        return type_, ()

    def encode(self, type_: Any, value: Any) -> Any:
        """
        Encode a value to its canonical wire tree.

        Raises:
            ShapeMismatch: If the value does not match the declared type
        """
        expr, path = self.resolve_type(type_)
        logger.debug(f"Encoding value of {expr}")
        return self._encode(expr, value, path, 0)

    def decode(self, type_: Any, wire: Any) -> Any:
        """
        Decode a wire tree into a value.

        Raises:
            DecodeError: The subclass names the first violation and carries its path
        """
        expr, path = self.resolve_type(type_)
        logger.debug(f"Decoding wire value as {expr}")
        return self._decode(expr, wire, path, 0)

    def encode_bytes(self, type_: Any, value: Any) -> bytes:
        return to_bytes(self.encode(type_, value))

    def decode_bytes(self, type_: Any, data: Union[bytes, str]) -> Any:
        return self.decode(type_, from_bytes(data))

    def check_canonical(self, type_: Any, data: bytes) -> Any:
        """
        Decode ``data`` strictly and verify it is byte-identical to the canonical encoding.

        Returns the decoded value.

        Raises:
            NonCanonical: If the bytes decode but are not in canonical form
        """
        strict = Codec(self.catalog, self.options.model_copy(update={"strict_canonical": True}))
        value = strict.decode_bytes(type_, data)
        if strict.encode_bytes(type_, value) != data:
            raise NonCanonical("bytes decode but differ from the canonical encoding", self.resolve_type(type_)[1])
        return value

    # ------------------------------------------------------------------
    # dispatch
    # ------------------------------------------------------------------

    def _encode(self, expr, value: Any, path: WirePath, depth: int) -> Any:
        if depth > self.options.max_depth:
            raise ShapeMismatch(f"value nests deeper than max_depth={self.options.max_depth}", path)
        return getattr(self, f"_encode_{expr.kind}")(expr, value, path, depth + 1)

    def _decode(self, expr, wire: Any, path: WirePath, depth: int) -> Any:
        if depth > self.options.max_depth:
            raise Malformed(f"wire value nests deeper than max_depth={self.options.max_depth}", path)
        return getattr(self, f"_decode_{expr.kind}")(expr, wire, path, depth + 1)

    # ------------------------------------------------------------------
    # primitives
    # ------------------------------------------------------------------

    def _encode_primitive(self, expr, value: Any, path: WirePath, depth: int) -> Any:
        kind: PrimitiveKind = expr.name

        if kind is PrimitiveKind.BOOL:
            if not isinstance(value, bool):
                raise ShapeMismatch(f"expected bool, got {value!r}", path)
            return value

        if kind.is_integer:
            if isinstance(value, bool) or not isinstance(value, int):
                raise ShapeMismatch(f"expected {kind.value} integer, got {value!r}", path)
            lo, hi = kind.int_range
            if not lo <= value <= hi:
                raise ShapeMismatch(f"{value} is out of range for {kind.value} [{lo}, {hi}]", path)
            return int(value)

        if kind.is_float:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ShapeMismatch(f"expected {kind.value} number, got {value!r}", path)
            try:
                value = float(value)
                if kind is PrimitiveKind.F32:
                    value = _to_f32(value)
            except OverflowError as exc:
                raise ShapeMismatch(f"{value!r} is out of range for {kind.value}", path) from exc
            if not math.isfinite(value):
                raise ShapeMismatch(f"{value!r} is not a finite {kind.value}", path)
            return value

        if kind is PrimitiveKind.CHAR:
            if not isinstance(value, str) or len(value) != 1 or 0xD800 <= ord(value) <= 0xDFFF:
                raise ShapeMismatch(f"expected a single Unicode scalar, got {value!r}", path)
            return value

        if kind is PrimitiveKind.STRING:
            if not isinstance(value, str):
                raise ShapeMismatch(f"expected string, got {value!r}", path)
            try:
                value.encode("utf-8")
            except UnicodeEncodeError as exc:
                raise ShapeMismatch("string is not valid Unicode (lone surrogate)", path) from exc
            return value

        # uuid
        if not isinstance(value, uuid.UUID):
            raise ShapeMismatch(f"expected uuid.UUID, got {value!r}", path)
        return str(value)

    def _decode_primitive(self, expr, wire: Any, path: WirePath, depth: int) -> Any:
        kind: PrimitiveKind = expr.name

        if kind is PrimitiveKind.BOOL:
            if not isinstance(wire, bool):
                raise Malformed(f"expected bool, got {_describe(wire)}", path)
            return wire

        if kind.is_integer:
            if isinstance(wire, bool) or not isinstance(wire, int):
                raise Malformed(f"expected integer, got {_describe(wire)}", path)
            lo, hi = kind.int_range
            if not lo <= wire <= hi:
                raise RangeOverflow(f"{wire} does not fit in {kind.value}", path, {"min": lo, "max": hi})
            return wire

        if kind.is_float:
            if isinstance(wire, bool) or not isinstance(wire, (int, float)):
                raise Malformed(f"expected number, got {_describe(wire)}", path)
            try:
                value = float(wire)
                if kind is PrimitiveKind.F32:
                    value = _to_f32(value)
            except OverflowError as exc:
                raise RangeOverflow(f"{wire!r} does not fit in {kind.value}", path) from exc
            if not math.isfinite(value):
                raise Malformed(f"{wire!r} is not a finite number", path)
            return value

        if kind is PrimitiveKind.CHAR:
            if not isinstance(wire, str) or len(wire) != 1 or 0xD800 <= ord(wire) <= 0xDFFF:
                raise Malformed(f"expected a single-character string, got {wire!r}", path)
            return wire

        if kind is PrimitiveKind.STRING:
            if not isinstance(wire, str):
                raise Malformed(f"expected string, got {_describe(wire)}", path)
            return wire

        # uuid
        if not isinstance(wire, str):
            raise Malformed(f"expected uuid string, got {_describe(wire)}", path)
        try:
            value = uuid.UUID(wire)
        except ValueError as exc:
            raise Malformed(f"{wire!r} is not a uuid", path) from exc
        if self.options.strict_canonical and str(value) != wire:
            raise NonCanonical(f"uuid {wire!r} is not lowercase hyphenated", path)
        return value

    def _encode_unit(self, expr, value: Any, path: WirePath, depth: int) -> Any:
        if not (isinstance(value, tuple) and not value):
            raise ShapeMismatch(f"expected unit value (), got {value!r}", path)
        return None

    def _decode_unit(self, expr, wire: Any, path: WirePath, depth: int) -> Any:
        if wire is not None:
            raise Malformed(f"expected null for unit, got {_describe(wire)}", path)
        return ()

    def _encode_param(self, expr, value: Any, path: WirePath, depth: int) -> Any:
        raise ShapeMismatch(f"type parameter {expr.name} is not bound", path)

    def _decode_param(self, expr, wire: Any, path: WirePath, depth: int) -> Any:
        raise Malformed(f"type parameter {expr.name} is not bound", path)

    # ------------------------------------------------------------------
    # option / result / tuple
    # ------------------------------------------------------------------

    def _encode_option(self, expr, value: Any, path: WirePath, depth: int) -> Any:
        if value is None:
            return None
        return self._encode(expr.item, value, path, depth)

    def _decode_option(self, expr, wire: Any, path: WirePath, depth: int) -> Any:
        if wire is None:
            return None
        return self._decode(expr.item, wire, path, depth)

    def _encode_result(self, expr, value: Any, path: WirePath, depth: int) -> Any:
        if isinstance(value, Ok):
            return {"Ok": self._encode(expr.ok, value.value, path + ("Ok",), depth)}
        if isinstance(value, Err):
            return {"Err": self._encode(expr.err, value.value, path + ("Err",), depth)}
        raise ShapeMismatch(f"expected Ok(...) or Err(...), got {value!r}", path)

    def _decode_result(self, expr, wire: Any, path: WirePath, depth: int) -> Any:
        if not isinstance(wire, dict) or len(wire) != 1:
            raise Malformed(f"expected single-entry field-map for result, got {_describe(wire)}", path)
        ((name, raw),) = wire.items()
        if name == "Ok":
            return Ok(self._decode(expr.ok, raw, path + ("Ok",), depth))
        if name == "Err":
            return Err(self._decode(expr.err, raw, path + ("Err",), depth))
        raise UnknownVariant(f"result has no variant {name!r}", path)

    def _encode_tuple(self, expr, value: Any, path: WirePath, depth: int) -> Any:
        if not isinstance(value, (tuple, list)) or len(value) != len(expr.items):
            raise ShapeMismatch(f"expected {len(expr.items)}-tuple, got {value!r}", path)
        return [self._encode(t, v, path + (i,), depth) for i, (t, v) in enumerate(zip(expr.items, value))]

    def _decode_tuple(self, expr, wire: Any, path: WirePath, depth: int) -> Any:
        if not isinstance(wire, list):
            raise Malformed(f"expected list for tuple, got {_describe(wire)}", path)
        if len(wire) != len(expr.items):
            raise ArityMismatch(f"expected {len(expr.items)} element(s), got {len(wire)}", path)
        return tuple(self._decode(t, w, path + (i,), depth) for i, (t, w) in enumerate(zip(expr.items, wire)))

    # ------------------------------------------------------------------
    # containers
    # ------------------------------------------------------------------

    @staticmethod
    def _sequence(value: Any, what: str, path: WirePath) -> List[Any]:
        if not isinstance(value, (list, tuple)):
            raise ShapeMismatch(f"expected list for {what}, got {value!r}", path)
        return list(value)

    def _encode_seq(self, expr, value: Any, path: WirePath, depth: int) -> Any:
        items = self._sequence(value, str(expr), path)
        return [self._encode(expr.item, v, path + (i,), depth) for i, v in enumerate(items)]

    def _decode_seq(self, expr, wire: Any, path: WirePath, depth: int) -> Any:
        if not isinstance(wire, list):
            raise Malformed(f"expected list, got {_describe(wire)}", path)
        return [self._decode(expr.item, w, path + (i,), depth) for i, w in enumerate(wire)]

    def _encode_array(self, expr, value: Any, path: WirePath, depth: int) -> Any:
        items = self._sequence(value, str(expr), path)
        if len(items) != expr.length:
            raise ShapeMismatch(f"expected exactly {expr.length} element(s), got {len(items)}", path)
        return [self._encode(expr.item, v, path + (i,), depth) for i, v in enumerate(items)]

    def _decode_array(self, expr, wire: Any, path: WirePath, depth: int) -> Any:
        if not isinstance(wire, list):
            raise Malformed(f"expected list, got {_describe(wire)}", path)
        if len(wire) != expr.length:
            raise LengthMismatch(f"expected exactly {expr.length} element(s), got {len(wire)}", path)
        return [self._decode(expr.item, w, path + (i,), depth) for i, w in enumerate(wire)]

    def _encode_set(self, expr, value: Any, path: WirePath, depth: int) -> Any:
        if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, (set, frozenset, list, tuple)):
            raise ShapeMismatch(f"expected a set, got {value!r}", path)
        # Duplicates are judged on the value the wire carries, e.g. after f32 rounding.
        entries = []
        seen = set()
        for i, v in enumerate(value):
            encoded = self._encode(expr.item, v, path + (i,), depth)
            normalized = self._decode(expr.item, encoded, path + (i,), depth)
            if normalized in seen:
                raise ShapeMismatch(f"set contains duplicate element {encoded!r}", path)
            seen.add(normalized)
            entries.append((order_key(self.catalog, expr.item, normalized), encoded))
        entries.sort(key=lambda e: e[0])
        for prev, cur in zip(entries, entries[1:]):
            if prev[0] == cur[0]:
                raise ShapeMismatch(f"set contains duplicate element {cur[1]!r}", path)
        return [encoded for _, encoded in entries]

    def _decode_set(self, expr, wire: Any, path: WirePath, depth: int) -> Any:
        if not isinstance(wire, list):
            raise Malformed(f"expected list for set, got {_describe(wire)}", path)
        seen = set()
        members = set()
        prev = None
        values = []
        for i, w in enumerate(wire):
            value = self._decode(expr.item, w, path + (i,), depth)
            key = order_key(self.catalog, expr.item, value)
            if key in seen or value in members:
                raise DuplicateElement(f"element {w!r} appears more than once", path + (i,))
            if self.options.strict_canonical and prev is not None and key < prev:
                raise NonCanonical("set elements are not in ascending order", path + (i,))
            seen.add(key)
            members.add(value)
            prev = key
            values.append(value)
        return frozenset(values)

    def _encode_map(self, expr, value: Any, path: WirePath, depth: int) -> Any:
        if not isinstance(value, Mapping):
            raise ShapeMismatch(f"expected a mapping, got {value!r}", path)
        entries = []
        seen = set()
        for i, (k, v) in enumerate(value.items()):
            encoded_key = self._encode(expr.key, k, path + (i, "key"), depth)
            normalized = self._decode(expr.key, encoded_key, path + (i, "key"), depth)
            if normalized in seen:
                raise ShapeMismatch(f"map contains duplicate key {encoded_key!r}", path)
            seen.add(normalized)
            encoded_value = self._encode(expr.value, v, path + (i, "value"), depth)
            entries.append((order_key(self.catalog, expr.key, normalized), [encoded_key, encoded_value]))
        entries.sort(key=lambda e: e[0])
        for prev, cur in zip(entries, entries[1:]):
            if prev[0] == cur[0]:
                raise ShapeMismatch(f"map contains duplicate key {cur[1][0]!r}", path)
        return [pair for _, pair in entries]

    def _decode_map(self, expr, wire: Any, path: WirePath, depth: int) -> Any:
        if not isinstance(wire, list):
            raise Malformed(f"expected list of [key, value] pairs for map, got {_describe(wire)}", path)
        seen = set()
        keys = set()
        prev = None
        entries = []
        for i, pair in enumerate(wire):
            if not isinstance(pair, list) or len(pair) != 2:
                raise Malformed("map entry must be a [key, value] pair", path + (i,))
            key = self._decode(expr.key, pair[0], path + (i, "key"), depth)
            value = self._decode(expr.value, pair[1], path + (i, "value"), depth)
            k = order_key(self.catalog, expr.key, key)
            if k in seen or key in keys:
                raise DuplicateKey(f"key {pair[0]!r} appears more than once", path + (i, "key"))
            if self.options.strict_canonical and prev is not None and k < prev:
                raise NonCanonical("map keys are not in ascending order", path + (i, "key"))
            seen.add(k)
            keys.add(key)
            prev = k
            entries.append((k, key, value))
        entries.sort(key=lambda e: e[0])
        return {key: value for _, key, value in entries}

    # ------------------------------------------------------------------
    # named types
    # ------------------------------------------------------------------

    def _encode_named(self, expr, value: Any, path: WirePath, depth: int) -> Any:
        decl, bindings = self.catalog.instantiate(expr)
        return getattr(self, f"_encode_as_{decl.kind}")(decl, bindings, value, path, depth)

    def _decode_named(self, expr, wire: Any, path: WirePath, depth: int) -> Any:
        decl, bindings = self.catalog.instantiate(expr)
        return getattr(self, f"_decode_as_{decl.kind}")(decl, bindings, wire, path, depth)

    @staticmethod
    def _expect(value: Any, cls: type, decl, path: WirePath) -> None:
        if not isinstance(value, cls) or value.type_name != decl.name:
            raise ShapeMismatch(f"expected {cls.__name__} value of {decl.name}, got {value!r}", path)

    def _encode_as_newtype(self, decl, bindings, value: Any, path: WirePath, depth: int) -> Any:
        self._expect(value, Newtype, decl, path)
        return self._encode(substitute(decl.inner, bindings), value.value, path, depth)

    def _decode_as_newtype(self, decl, bindings, wire: Any, path: WirePath, depth: int) -> Any:
        return Newtype(decl.name, self._decode(substitute(decl.inner, bindings), wire, path, depth))

    def _encode_as_tuple_struct(self, decl, bindings, value: Any, path: WirePath, depth: int) -> Any:
        self._expect(value, TupleStruct, decl, path)
        if len(value.items) != decl.arity:
            raise ShapeMismatch(f"{decl.name} has {decl.arity} field(s), got {len(value.items)}", path)
        return [
            self._encode(substitute(t, bindings), v, path + (i,), depth)
            for i, (t, v) in enumerate(zip(decl.items, value.items))
        ]

    def _decode_as_tuple_struct(self, decl, bindings, wire: Any, path: WirePath, depth: int) -> Any:
        if not isinstance(wire, list):
            raise Malformed(f"expected list for {decl.name}, got {_describe(wire)}", path)
        if len(wire) != decl.arity:
            raise ArityMismatch(f"{decl.name} has {decl.arity} field(s), got {len(wire)}", path)
        items = tuple(
            self._decode(substitute(t, bindings), w, path + (i,), depth)
            for i, (t, w) in enumerate(zip(decl.items, wire))
        )
        return TupleStruct(decl.name, items)

    def _encode_as_unit_struct(self, decl, bindings, value: Any, path: WirePath, depth: int) -> Any:
        self._expect(value, UnitStruct, decl, path)
        return None

    def _decode_as_unit_struct(self, decl, bindings, wire: Any, path: WirePath, depth: int) -> Any:
        if wire is not None:
            raise Malformed(f"expected null for {decl.name}, got {_describe(wire)}", path)
        return UnitStruct(decl.name)

    def _encode_as_struct(self, decl, bindings, value: Any, path: WirePath, depth: int) -> Any:
        self._expect(value, Struct, decl, path)
        return self._encode_fields(decl.fields, bindings, value.fields, decl.name, path, depth)

    def _decode_as_struct(self, decl, bindings, wire: Any, path: WirePath, depth: int) -> Any:
        return Struct(decl.name, self._decode_fields(decl.fields, bindings, wire, decl.name, path, depth))

    def _encode_as_enum(self, decl, bindings, value: Any, path: WirePath, depth: int) -> Any:
        self._expect(value, Variant, decl, path)
        try:
            variant = decl.variant(value.name)
        except KeyError:
            raise ShapeMismatch(f"{decl.name} has no variant {value.name!r}", path) from None
        vpath = path + (variant.name,)

        if variant.shape == "unit":
            if value.payload is not None:
                raise ShapeMismatch(f"unit variant {variant.name} carries no payload", vpath)
            payload = _ABSENT
        elif variant.shape == "tuple":
            if not isinstance(value.payload, tuple) or len(value.payload) != len(variant.items):
                raise ShapeMismatch(
                    f"{variant.name} expects a {len(variant.items)}-tuple payload, got {value.payload!r}", vpath
                )
            items = [
                self._encode(substitute(t, bindings), v, vpath + (i,), depth)
                for i, (t, v) in enumerate(zip(variant.items, value.payload))
            ]
            # Single-item payloads are transparent, like newtypes.
            payload = items[0] if len(items) == 1 else items
        else:
            if not isinstance(value.payload, Mapping):
                raise ShapeMismatch(f"{variant.name} expects named fields, got {value.payload!r}", vpath)
            payload = self._encode_fields(variant.fields, bindings, value.payload, variant.name, vpath, depth)

        tagging = decl.tagging
        if isinstance(tagging, ExternalTagging):
            return variant.name if payload is _ABSENT else {variant.name: payload}
        envelope: Dict[str, Any] = {tagging.tag: variant.name}
        if payload is not _ABSENT:
            envelope[tagging.content] = payload
        return envelope

    def _decode_as_enum(self, decl, bindings, wire: Any, path: WirePath, depth: int) -> Any:
        tagging = decl.tagging
        if isinstance(tagging, ExternalTagging):
            if isinstance(wire, str):
                name, raw, has_payload = wire, None, False
            elif isinstance(wire, dict) and len(wire) == 1:
                ((name, raw),) = wire.items()
                has_payload = True
            else:
                raise Malformed(
                    f"expected variant name or single-entry field-map for {decl.name}, got {_describe(wire)}", path
                )
        else:
            if not isinstance(wire, dict):
                raise Malformed(f"expected envelope field-map for {decl.name}, got {_describe(wire)}", path)
            extra = [k for k in wire if k not in (tagging.tag, tagging.content)]
            if extra:
                raise Malformed(f"unexpected envelope field {extra[0]!r}", path)
            if tagging.tag not in wire:
                raise Malformed(f"envelope is missing tag field {tagging.tag!r}", path)
            name = wire[tagging.tag]
            if not isinstance(name, str):
                raise Malformed(f"tag field {tagging.tag!r} must be a string, got {_describe(name)}", path)
            has_payload = tagging.content in wire
            raw = wire.get(tagging.content)

        try:
            variant = decl.variant(name)
        except KeyError:
            raise UnknownVariant(f"{decl.name} has no variant {name!r}", path) from None
        vpath = path + (variant.name,)

        if variant.shape == "unit":
            # Explicit null content is accepted as equivalent to an omitted one.
            if has_payload and raw is not None:
                raise Malformed(f"unit variant {variant.name} carries no payload", vpath)
            return Variant(decl.name, variant.name)

        if not has_payload:
            raise Malformed(f"variant {variant.name} requires a payload", vpath)

        if variant.shape == "tuple":
            types = [substitute(t, bindings) for t in variant.items]
            if len(types) == 1:
                return Variant(decl.name, variant.name, (self._decode(types[0], raw, vpath + (0,), depth),))
            if not isinstance(raw, list):
                raise Malformed(f"expected list payload for {variant.name}, got {_describe(raw)}", vpath)
            if len(raw) != len(types):
                raise ArityMismatch(f"{variant.name} has {len(types)} field(s), got {len(raw)}", vpath)
            items = tuple(self._decode(t, w, vpath + (i,), depth) for i, (t, w) in enumerate(zip(types, raw)))
            return Variant(decl.name, variant.name, items)

        fields = self._decode_fields(variant.fields, bindings, raw, variant.name, vpath, depth)
        return Variant(decl.name, variant.name, fields)

    # ------------------------------------------------------------------
    # field-maps (structs and struct variants)
    # ------------------------------------------------------------------

    def _encode_fields(self, fields, bindings, values: Mapping[str, Any], owner: str, path: WirePath, depth: int) -> Dict[str, Any]:
        declared = {f.name for f in fields}
        unknown = [k for k in values if k not in declared]
        if unknown:
            raise ShapeMismatch(f"{owner} has no field {unknown[0]!r}", path)
        out: Dict[str, Any] = {}
        for f in fields:
            field_type = substitute(f.type, bindings)
            value = values.get(f.name)
            if value is None:
                if isinstance(field_type, OptionType):
                    continue
                raise ShapeMismatch(f"missing required field {f.name!r}", path + (f.name,))
            out[f.name] = self._encode(field_type, value, path + (f.name,), depth)
        return out

    def _decode_fields(self, fields, bindings, wire: Any, owner: str, path: WirePath, depth: int) -> Dict[str, Any]:
        if not isinstance(wire, dict):
            raise Malformed(f"expected field-map for {owner}, got {_describe(wire)}", path)
        declared = {f.name for f in fields}
        unknown = [k for k in wire if k not in declared]
        if unknown:
            raise Malformed(f"{owner} has no field {unknown[0]!r}", path)
        out: Dict[str, Any] = {}
        for f in fields:
            field_type = substitute(f.type, bindings)
            if isinstance(field_type, OptionType):
                raw = wire.get(f.name)
                if raw is not None:
                    out[f.name] = self._decode(field_type, raw, path + (f.name,), depth)
                continue
            if f.name not in wire:
                raise Malformed(f"missing required field {f.name!r}", path + (f.name,))
            out[f.name] = self._decode(field_type, wire[f.name], path + (f.name,), depth)
        return out


def encode(catalog: TypeCatalog, type_: Any, value: Any, options: Optional[CodecOptions] = None) -> Any:
    return Codec(catalog, options).encode(type_, value)


def decode(catalog: TypeCatalog, type_: Any, wire: Any, options: Optional[CodecOptions] = None) -> Any:
    return Codec(catalog, options).decode(type_, wire)


def canonical_bytes(catalog: TypeCatalog, type_: Any, value: Any) -> bytes:
    """Encode straight to canonical bytes; equal values always give identical output."""
    return Codec(catalog).encode_bytes(type_, value)
