import pytest
from pydantic import TypeAdapter, ValidationError

from askitypes.catalog.registry import parse_declaration
from askitypes.models.declarations import AdjacentTagging, EnumDecl, ExternalTagging, TupleStructDecl
from askitypes.models.types import (
    MapType,
    NamedType,
    OptionType,
    ParamType,
    PrimitiveKind,
    SeqType,
    TypeExpr,
    UnitType,
    is_identifier,
    named,
    primitive,
    substitute,
    walk,
)

adapter = TypeAdapter(TypeExpr)


def test_string_shorthand_resolves_primitives_unit_and_names():
    assert adapter.validate_python("u32") == primitive("u32")
    assert adapter.validate_python("unit") == UnitType()
    assert adapter.validate_python("UserId") == NamedType(name="UserId")


def test_nested_expression_from_mapping():
    expr = adapter.validate_python({"kind": "map", "key": "string", "value": {"kind": "seq", "item": "u8"}})

    assert isinstance(expr, MapType)
    assert expr.value == SeqType(item=primitive("u8"))
    assert str(expr) == "map<string, seq<u8>>"


def test_type_expressions_are_hashable_and_structural():
    a = adapter.validate_python({"kind": "option", "item": "Pair"})
    b = OptionType(item=NamedType(name="Pair"))

    assert a == b
    assert hash(a) == hash(b)
    assert len({a, b}) == 1


def test_unknown_primitive_name_is_a_named_reference():
    assert adapter.validate_python("u256") == NamedType(name="u256")


@pytest.mark.parametrize("item", [{"kind": "option", "item": "u8"}, "unit"])
def test_option_of_null_encoding_item_is_rejected(item):
    with pytest.raises(ValidationError, match="ambiguous on the wire"):
        adapter.validate_python({"kind": "option", "item": item})


def test_tuple_needs_at_least_one_item():
    with pytest.raises(ValidationError):
        adapter.validate_python({"kind": "tuple", "items": []})


def test_array_length_must_not_be_negative():
    with pytest.raises(ValidationError):
        adapter.validate_python({"kind": "array", "item": "u8", "length": -1})


def test_named_helper_coerces_arguments():
    expr = named("Wrapped", "Pair")

    assert expr.args == (NamedType(name="Pair"),)
    assert str(expr) == "Wrapped<Pair>"


def test_substitute_replaces_params_deeply():
    expr = adapter.validate_python(
        {"kind": "map", "key": "string", "value": {"kind": "seq", "item": {"kind": "param", "name": "T"}}}
    )

    bound = substitute(expr, {"T": primitive("i64")})

    assert str(bound) == "map<string, seq<i64>>"
    assert substitute(ParamType(name="U"), {"T": primitive("i64")}) == ParamType(name="U")


def test_walk_visits_every_sub_expression():
    expr = adapter.validate_python({"kind": "result", "ok": {"kind": "tuple", "items": ["u8", "Id"]}, "err": "string"})

    kinds = [sub.kind for sub in walk(expr)]

    assert kinds == ["result", "tuple", "primitive", "named", "primitive"]


def test_primitive_kind_ranges():
    assert PrimitiveKind.I8.int_range == (-128, 127)
    assert PrimitiveKind.U8.int_range == (0, 255)
    assert PrimitiveKind.U128.int_range == (0, 2**128 - 1)
    assert PrimitiveKind.ISIZE.bits == 64
    assert PrimitiveKind.USIZE.int_range == (0, 2**64 - 1)
    assert PrimitiveKind.F32.bits == 32
    assert PrimitiveKind.F64.is_float
    assert not PrimitiveKind.UUID.is_integer

    with pytest.raises(ValueError, match="no fixed width"):
        PrimitiveKind.STRING.bits


def test_identifier_check():
    assert is_identifier("AllTypes")
    assert is_identifier("_private1")
    assert not is_identifier("1st")
    assert not is_identifier("with-dash")


def test_variant_shape_is_inferred():
    decl = parse_declaration(
        {
            "kind": "enum",
            "name": "Shape",
            "variants": [
                "Unit",
                {"name": "Circle", "fields": [{"name": "r", "type": "f64"}]},
                {"name": "Rect", "items": ["f64", "f64"]},
            ],
        }
    )

    assert isinstance(decl, EnumDecl)
    assert [v.shape for v in decl.variants] == ["unit", "struct", "tuple"]
    assert decl.variant_index("Rect") == 2
    assert isinstance(decl.tagging, ExternalTagging)


def test_adjacent_tagging_is_parsed():
    decl = parse_declaration(
        {"kind": "enum", "name": "Msg", "tagging": {"style": "adjacent", "tag": "t", "content": "c"}, "variants": ["Ping"]}
    )

    assert decl.tagging == AdjacentTagging(tag="t", content="c")


def test_adjacent_tag_and_content_must_differ():
    with pytest.raises(ValidationError, match="must differ"):
        AdjacentTagging(tag="x", content="x")


def test_unit_variant_cannot_carry_items():
    with pytest.raises(ValidationError, match="cannot carry a payload"):
        parse_declaration({"kind": "enum", "name": "E", "variants": [{"name": "A", "shape": "unit", "items": ["u8"]}]})


def test_enum_variant_names_must_be_unique():
    with pytest.raises(ValidationError, match="duplicate variant 'A'"):
        parse_declaration({"kind": "enum", "name": "E", "variants": ["A", "A"]})


def test_struct_field_names_must_be_unique():
    with pytest.raises(ValidationError, match="duplicate field 'x'"):
        parse_declaration(
            {"kind": "struct", "name": "P", "fields": [{"name": "x", "type": "u8"}, {"name": "x", "type": "u16"}]}
        )


def test_builtin_names_are_reserved():
    with pytest.raises(ValidationError, match="built-in type name"):
        parse_declaration({"kind": "newtype", "name": "u8", "inner": "u16"})


def test_undeclared_type_parameter_is_rejected():
    with pytest.raises(ValidationError, match="undeclared type parameter 'T'"):
        parse_declaration({"kind": "newtype", "name": "Box", "inner": {"kind": "param", "name": "T"}})


def test_tuple_struct_arity():
    decl = parse_declaration({"kind": "tuple_struct", "name": "Triple", "items": ["u8", "u8", "string"]})

    assert isinstance(decl, TupleStructDecl)
    assert decl.arity == 3
    assert [path for path, _ in decl.members()] == [(0,), (1,), (2,)]


def test_declarations_are_frozen():
    decl = parse_declaration({"kind": "unit_struct", "name": "Marker"})

    with pytest.raises(ValidationError):
        decl.name = "Other"
