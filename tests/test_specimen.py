import pytest

from askitypes.codec.rules import Codec
from askitypes.core.exceptions import LengthMismatch
from askitypes.core.values import Struct, struct_variant, tuple_variant, unit_variant
from askitypes.models.settings import CodecOptions
from askitypes.models.types import PrimitiveKind, PrimitiveType, walk
from askitypes.specimen import (
    FIRST_USER,
    SECOND_USER,
    SPECIMEN_TYPE,
    specimen_bytes,
    specimen_catalog,
    specimen_codec,
    specimen_document,
    specimen_message,
    specimen_value,
    specimen_wire,
    user_id,
)
from askitypes.validator import check

GOLDEN = (
    "{"
    '"bool_value":true,'
    '"char_value":"λ",'
    '"string_value":"hello",'
    '"i8_value":-128,'
    '"i16_value":-32768,'
    '"i32_value":-2147483648,'
    '"i64_value":-9223372036854775808,'
    '"i128_value":-170141183460469231731687303715884105728,'
    '"isize_value":-1,'
    '"u8_value":255,'
    '"u16_value":65535,'
    '"u32_value":4294967295,'
    '"u64_value":18446744073709551615,'
    '"u128_value":340282366920938463463374607431768211455,'
    '"usize_value":42,'
    '"f32_value":1.5,'
    '"f64_value":-0.25,'
    '"maybe_i64_value":-7,'
    '"outcome_string_or_error_code":{"Err":{"Invalid":"bad input"}},'
    '"string_vector":["a","b","a"],'
    '"mixed_tuple":[-1,"x",false],'
    '"u16_array_len_3":[1,2,3],'
    '"string_set":["alpha","beta","gamma"],'
    '"string_to_u32_map":[["alpha",2],["zeta",1]],'
    '"user_id_to_i64_map":[["0b8f7c6d-5e4f-4a3b-8c2d-1e0f9a8b7c6d",-20],["6f1c2b8e-0a4d-4c5e-9b7a-1d2e3f405162",10]],'
    '"user_id":"6f1c2b8e-0a4d-4c5e-9b7a-1d2e3f405162",'
    '"blob_bytes":[0,1,254,255],'
    '"wrapped_pair":[3,-4],'
    '"shape":{"variant":"Circle","data":{"r":2.5}},'
    '"message":{"variant":"Batch","data":['
    '{"variant":"Ping"},'
    '{"variant":"Text","data":"hi"},'
    '{"variant":"Batch","data":[{"variant":"Kv","data":[["k","v"]]}]}'
    "]},"
    '"status":{"ok":true,"code":404},'
    '"unit_value":null,'
    '"unit_struct_value":null'
    "}"
).encode("utf-8")

codec = specimen_codec()


def test_catalog_declares_reference_universe():
    assert specimen_catalog().sealed
    assert specimen_catalog().names() == [
        "UserId",
        "Blob",
        "Wrapped",
        "UnitStruct",
        "Pair",
        "ErrorCode",
        "Shape",
        "Message",
        "Status",
        "AllTypes",
    ]
    assert len(specimen_catalog().resolve(SPECIMEN_TYPE).fields) == 33


def test_every_primitive_kind_is_exercised():
    used = set()
    kinds = set()
    for decl in specimen_catalog().declarations():
        for _, expr in decl.members():
            for sub in walk(expr):
                kinds.add(sub.kind)
                if isinstance(sub, PrimitiveType):
                    used.add(sub.name)

    assert used == set(PrimitiveKind)
    assert kinds >= {"unit", "named", "param", "seq", "array", "set", "map", "option", "result", "tuple"}


def test_specimen_encodes_to_golden_bytes():
    assert specimen_bytes() == GOLDEN


def test_specimen_round_trips():
    assert codec.decode(SPECIMEN_TYPE, specimen_wire()) == specimen_value()
    assert codec.decode_bytes(SPECIMEN_TYPE, GOLDEN) == specimen_value()


def test_golden_bytes_are_canonical():
    assert codec.check_canonical(SPECIMEN_TYPE, GOLDEN) == specimen_value()


def test_encoding_is_independent_of_insertion_order():
    fields = dict(specimen_value().fields)
    fields["string_set"] = frozenset(["gamma", "alpha", "beta"])
    fields["string_to_u32_map"] = {"alpha": 2, "zeta": 1}
    fields["user_id_to_i64_map"] = {user_id(SECOND_USER): -20, user_id(FIRST_USER): 10}
    reordered = Struct(SPECIMEN_TYPE, dict(reversed(list(fields.items()))))

    assert codec.encode_bytes(SPECIMEN_TYPE, reordered) == GOLDEN


def test_specimen_decodes_in_strict_mode():
    strict = Codec(specimen_catalog(), CodecOptions(strict_canonical=True))

    assert strict.decode(SPECIMEN_TYPE, specimen_wire()) == specimen_value()


def test_specimen_schema_is_consistent():
    check(specimen_document(), specimen_catalog(), require_complete=True)


# ---------------------------------------------------------------------------
# concrete scenarios
# ---------------------------------------------------------------------------


def test_circle_envelope_round_trips():
    circle = struct_variant("Shape", "Circle", r=2.5)

    wire = codec.encode("Shape", circle)

    assert wire == {"variant": "Circle", "data": {"r": 2.5}}
    assert list(wire) == ["variant", "data"]
    assert codec.decode("Shape", wire) == circle


def test_unit_variant_envelope_has_no_content_field():
    wire = codec.encode("Shape", unit_variant("Shape", "Unit"))

    assert wire == {"variant": "Unit"}
    assert "data" not in wire
    assert codec.decode("Shape", wire) == unit_variant("Shape", "Unit")


def test_rect_payload_is_positional_list():
    wire = codec.encode("Shape", tuple_variant("Shape", "Rect", 3.0, 4.0))

    assert wire["data"] == [3.0, 4.0]
    assert isinstance(wire["data"], list)


def test_uuid_keyed_map_is_sorted_by_key():
    map_type = {"kind": "map", "key": "UserId", "value": "i64"}
    forward = {user_id(FIRST_USER): 10, user_id(SECOND_USER): -20}
    backward = {user_id(SECOND_USER): -20, user_id(FIRST_USER): 10}

    expected = [[str(SECOND_USER), -20], [str(FIRST_USER), 10]]
    assert codec.encode(map_type, forward) == expected
    assert codec.encode(map_type, backward) == expected


def test_length_four_list_into_fixed_array_of_three_fails():
    wire = specimen_wire()
    wire["u16_array_len_3"] = [1, 2, 3, 4]

    with pytest.raises(LengthMismatch) as exc:
        codec.decode(SPECIMEN_TYPE, wire)

    assert exc.value.dotted_path == "AllTypes.u16_array_len_3"


def test_nested_batch_round_trips():
    message = specimen_message()

    wire = codec.encode("Message", message)

    assert wire["data"][2] == {"variant": "Batch", "data": [{"variant": "Kv", "data": [["k", "v"]]}]}
    assert codec.decode("Message", wire) == message
