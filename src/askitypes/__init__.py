"""askitypes.

Canonical type universe and encoding contract for schema declarations.

A catalog of type constructors (primitives, newtypes, tuple/unit/named
structs, enums with either tagging style, containers, options and results)
plus deterministic rules that turn values of those types into byte-stable
wire trees and back, so encoders generated for any target agree bit-for-bit.
"""

from askitypes.catalog.registry import TypeCatalog
from askitypes.codec.rules import Codec, canonical_bytes, decode, encode
from askitypes.codec.wire import from_bytes, to_bytes
from askitypes.core.exceptions import AskiTypesError, DecodeError, EncodeError, SchemaMismatch
from askitypes.core.values import Err, Newtype, Ok, Struct, TupleStruct, UnitStruct, Variant
from askitypes.loader import build_catalog, load_catalog, load_codec, load_schema_document
from askitypes.models.settings import CodecOptions
from askitypes.validator import check, is_consistent

__version__ = "0.1.0"

__all__ = [
    "TypeCatalog",
    "Codec",
    "CodecOptions",
    "encode",
    "decode",
    "canonical_bytes",
    "to_bytes",
    "from_bytes",
    "check",
    "is_consistent",
    "load_schema_document",
    "build_catalog",
    "load_catalog",
    "load_codec",
    "Newtype",
    "TupleStruct",
    "UnitStruct",
    "Struct",
    "Variant",
    "Ok",
    "Err",
    "AskiTypesError",
    "EncodeError",
    "DecodeError",
    "SchemaMismatch",
]
