"""
Conformance specimen.

One ``AllTypes`` value that instantiates every primitive kind, every
container kind (including a map keyed by a newtype over uuid), both enum
tagging styles, a recursive enum, a generic newtype and the unit forms.
Its canonical bytes are the fixture other implementations must reproduce
exactly.
"""

from __future__ import annotations

import uuid
from functools import lru_cache
from pathlib import Path
from typing import Any

from askitypes.catalog.registry import TypeCatalog
from askitypes.codec.rules import Codec
from askitypes.core.values import (
    Err,
    Newtype,
    Struct,
    TupleStruct,
    UnitStruct,
    Variant,
    struct_variant,
    tuple_variant,
    unit_variant,
)
from askitypes.loader import build_catalog, load_schema_document
from askitypes.models.document import SchemaDocument

SPECIMEN_PATH = Path(__file__).parent / "fixtures" / "all_types.yaml"
SPECIMEN_TYPE = "AllTypes"

FIRST_USER = uuid.UUID("6f1c2b8e-0a4d-4c5e-9b7a-1d2e3f405162")
SECOND_USER = uuid.UUID("0b8f7c6d-5e4f-4a3b-8c2d-1e0f9a8b7c6d")


def specimen_document() -> SchemaDocument:
    return load_schema_document(path=SPECIMEN_PATH)


@lru_cache(maxsize=None)
def specimen_catalog() -> TypeCatalog:
    """The reference catalog, sealed. Shared safely since it is read-only."""
    return build_catalog(specimen_document())


def user_id(value: uuid.UUID) -> Newtype:
    return Newtype("UserId", value)


def specimen_message() -> Variant:
    # Batch nests another Batch to exercise the recursive enum.
    return tuple_variant(
        "Message",
        "Batch",
        [
            unit_variant("Message", "Ping"),
            tuple_variant("Message", "Text", "hi"),
            tuple_variant("Message", "Batch", [tuple_variant("Message", "Kv", {"k": "v"})]),
        ],
    )


def specimen_value() -> Struct:
    return Struct(
        SPECIMEN_TYPE,
        {
            "bool_value": True,
            "char_value": "λ",
            "string_value": "hello",
            "i8_value": -(2**7),
            "i16_value": -(2**15),
            "i32_value": -(2**31),
            "i64_value": -(2**63),
            "i128_value": -(2**127),
            "isize_value": -1,
            "u8_value": 2**8 - 1,
            "u16_value": 2**16 - 1,
            "u32_value": 2**32 - 1,
            "u64_value": 2**64 - 1,
            "u128_value": 2**128 - 1,
            "usize_value": 42,
            "f32_value": 1.5,
            "f64_value": -0.25,
            "maybe_i64_value": -7,
            "outcome_string_or_error_code": Err(tuple_variant("ErrorCode", "Invalid", "bad input")),
            "string_vector": ["a", "b", "a"],
            "mixed_tuple": (-1, "x", False),
            "u16_array_len_3": [1, 2, 3],
            "string_set": frozenset({"beta", "alpha", "gamma"}),
            "string_to_u32_map": {"zeta": 1, "alpha": 2},
            "user_id_to_i64_map": {user_id(FIRST_USER): 10, user_id(SECOND_USER): -20},
            "user_id": user_id(FIRST_USER),
            "blob_bytes": Newtype("Blob", [0, 1, 254, 255]),
            "wrapped_pair": Newtype("Wrapped", TupleStruct("Pair", (3, -4))),
            "shape": struct_variant("Shape", "Circle", r=2.5),
            "message": specimen_message(),
            "status": Struct("Status", {"ok": True, "code": 404}),
            "unit_value": (),
            "unit_struct_value": UnitStruct("UnitStruct"),
        },
    )


def specimen_codec() -> Codec:
    return Codec(specimen_catalog())


def specimen_wire() -> Any:
    return specimen_codec().encode(SPECIMEN_TYPE, specimen_value())


def specimen_bytes() -> bytes:
    return specimen_codec().encode_bytes(SPECIMEN_TYPE, specimen_value())
