import struct
import uuid

import pytest

from askitypes.catalog.registry import TypeCatalog
from askitypes.codec.rules import Codec
from askitypes.core.exceptions import DecodeErrorKind, Malformed, NonCanonical, RangeOverflow, ShapeMismatch
from askitypes.models.settings import CodecOptions

ID = uuid.UUID("6f1c2b8e-0a4d-4c5e-9b7a-1d2e3f405162")

codec = Codec(TypeCatalog())


@pytest.mark.parametrize(
    "kind, low, high",
    [
        ("i8", -128, 127),
        ("i16", -32768, 32767),
        ("i32", -(2**31), 2**31 - 1),
        ("i64", -(2**63), 2**63 - 1),
        ("i128", -(2**127), 2**127 - 1),
        ("u8", 0, 255),
        ("u64", 0, 2**64 - 1),
        ("u128", 0, 2**128 - 1),
        ("usize", 0, 2**64 - 1),
    ],
)
def test_integer_bounds_are_inclusive(kind, low, high):
    assert codec.encode(kind, low) == low
    assert codec.encode(kind, high) == high
    assert codec.decode(kind, low) == low
    assert codec.decode(kind, high) == high

    with pytest.raises(ShapeMismatch, match="out of range"):
        codec.encode(kind, high + 1)
    with pytest.raises(RangeOverflow):
        codec.decode(kind, low - 1)


def test_decode_300_into_u8_overflows():
    with pytest.raises(RangeOverflow, match="300 does not fit in u8") as exc:
        codec.decode("u8", 300)

    assert exc.value.variant is DecodeErrorKind.RANGE_OVERFLOW
    assert exc.value.details == {"min": 0, "max": 255}


def test_bool_is_not_an_integer():
    with pytest.raises(ShapeMismatch, match="expected i32 integer"):
        codec.encode("i32", True)
    with pytest.raises(Malformed, match="expected integer, got bool"):
        codec.decode("u64", False)


def test_integer_rejects_floats():
    with pytest.raises(ShapeMismatch):
        codec.encode("i64", 1.0)
    with pytest.raises(Malformed, match="got number"):
        codec.decode("i64", 1.5)


def test_bool_round_trip():
    assert codec.encode("bool", True) is True
    assert codec.decode("bool", False) is False

    with pytest.raises(ShapeMismatch):
        codec.encode("bool", 1)
    with pytest.raises(Malformed, match="expected bool, got null"):
        codec.decode("bool", None)


def test_f32_rounds_to_single_precision():
    expected = struct.unpack("<f", struct.pack("<f", 0.1))[0]

    assert codec.encode("f32", 0.1) == expected
    assert codec.encode("f32", 0.1) != 0.1
    assert codec.decode("f32", 0.1) == expected
    assert codec.encode("f64", 0.1) == 0.1


def test_float_accepts_integers_on_encode():
    value = codec.encode("f64", 3)

    assert value == 3.0
    assert isinstance(value, float)


def test_f32_out_of_range():
    with pytest.raises(ShapeMismatch, match="out of range for f32"):
        codec.encode("f32", 1e39)
    with pytest.raises(RangeOverflow, match="does not fit in f32"):
        codec.decode("f32", 1e39)


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_floats_are_rejected(value):
    with pytest.raises(ShapeMismatch, match="not a finite f64"):
        codec.encode("f64", value)
    with pytest.raises(Malformed, match="not a finite number"):
        codec.decode("f64", value)


def test_char_is_a_single_scalar():
    assert codec.encode("char", "λ") == "λ"
    assert codec.decode("char", "😀") == "😀"

    with pytest.raises(ShapeMismatch, match="single Unicode scalar"):
        codec.encode("char", "ab")
    with pytest.raises(ShapeMismatch):
        codec.encode("char", "\ud800")
    with pytest.raises(Malformed, match="single-character string"):
        codec.decode("char", "")


def test_string_rejects_lone_surrogates():
    assert codec.encode("string", "héllo") == "héllo"

    with pytest.raises(ShapeMismatch, match="lone surrogate"):
        codec.encode("string", "bad\udc00")
    with pytest.raises(Malformed, match="expected string, got number"):
        codec.decode("string", 5)


def test_uuid_encodes_lowercase_hyphenated():
    assert codec.encode("uuid", ID) == "6f1c2b8e-0a4d-4c5e-9b7a-1d2e3f405162"
    assert codec.decode("uuid", "6f1c2b8e-0a4d-4c5e-9b7a-1d2e3f405162") == ID

    with pytest.raises(ShapeMismatch, match="expected uuid.UUID"):
        codec.encode("uuid", str(ID))
    with pytest.raises(Malformed, match="is not a uuid"):
        codec.decode("uuid", "not-a-uuid")


def test_uppercase_uuid_is_non_canonical_in_strict_mode():
    upper = "6F1C2B8E-0A4D-4C5E-9B7A-1D2E3F405162"

    assert codec.decode("uuid", upper) == ID

    strict = Codec(TypeCatalog(), CodecOptions(strict_canonical=True))
    with pytest.raises(NonCanonical, match="not lowercase hyphenated"):
        strict.decode("uuid", upper)


def test_unit_is_null():
    assert codec.encode("unit", ()) is None
    assert codec.decode("unit", None) == ()

    with pytest.raises(ShapeMismatch, match="expected unit value"):
        codec.encode("unit", None)
    with pytest.raises(Malformed, match="expected null for unit"):
        codec.decode("unit", 0)


def test_error_path_defaults_to_root_marker():
    with pytest.raises(ShapeMismatch) as exc:
        codec.encode("u8", -1)

    assert exc.value.path == ()
    assert exc.value.dotted_path == "$"
