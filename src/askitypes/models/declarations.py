from __future__ import annotations

from typing import Annotated, Any, Iterator, List, Literal, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from askitypes.core.exceptions import PathSegment
from askitypes.models.types import RESERVED_NAMES, Identifier, ParamType, TypeExpr, walk

Member = Tuple[Tuple[PathSegment, ...], Any]


class _DeclModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class FieldDecl(_DeclModel):
    name: Identifier
    type: TypeExpr


def _check_unique(names: List[str], what: str, owner: str) -> None:
    seen = set()
    for name in names:
        if name in seen:
            raise ValueError(f"duplicate {what} {name!r} in {owner}")
        seen.add(name)


class _TypeDeclaration(_DeclModel):
    name: Identifier
    params: Tuple[Identifier, ...] = ()

    @model_validator(mode="after")
    def _validate_names_and_params(self) -> "_TypeDeclaration":
        if self.name in RESERVED_NAMES:
            raise ValueError(f"{self.name!r} is a built-in type name")
        _check_unique(list(self.params), "type parameter", self.name)
        for _, expr in self.members():
            for sub in walk(expr):
                if isinstance(sub, ParamType) and sub.name not in self.params:
                    raise ValueError(f"{self.name} uses undeclared type parameter {sub.name!r}")
        return self

    def members(self) -> Iterator[Member]:
        """Every type expression used by the declaration, with its relative path."""
        return iter(())


class NewtypeDecl(_TypeDeclaration):
    kind: Literal["newtype"] = "newtype"
    inner: TypeExpr

    def members(self) -> Iterator[Member]:
        yield (0,), self.inner


class TupleStructDecl(_TypeDeclaration):
    kind: Literal["tuple_struct"] = "tuple_struct"
    items: Tuple[TypeExpr, ...] = Field(min_length=1)

    @property
    def arity(self) -> int:
        return len(self.items)

    def members(self) -> Iterator[Member]:
        for i, item in enumerate(self.items):
            yield (i,), item


class UnitStructDecl(_TypeDeclaration):
    kind: Literal["unit_struct"] = "unit_struct"


class StructDecl(_TypeDeclaration):
    kind: Literal["struct"] = "struct"
    fields: Tuple[FieldDecl, ...] = ()

    @model_validator(mode="after")
    def _unique_fields(self) -> "StructDecl":
        _check_unique([f.name for f in self.fields], "field", self.name)
        return self

    def field(self, name: str) -> FieldDecl:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(name)

    def members(self) -> Iterator[Member]:
        for f in self.fields:
            yield (f.name,), f.type


class VariantDecl(_DeclModel):
    """One enum variant. ``shape`` is inferred from ``items``/``fields`` when omitted."""

    name: Identifier
    shape: Literal["unit", "tuple", "struct"] = "unit"
    items: Tuple[TypeExpr, ...] = ()
    fields: Tuple[FieldDecl, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _infer_shape(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"name": data}
        if isinstance(data, dict) and "shape" not in data:
            if "items" in data:
                return {**data, "shape": "tuple"}
            if "fields" in data:
                return {**data, "shape": "struct"}
        return data

    @model_validator(mode="after")
    def _validate_shape(self) -> "VariantDecl":
        if self.shape == "unit" and (self.items or self.fields):
            raise ValueError(f"unit variant {self.name!r} cannot carry a payload")
        if self.shape == "tuple":
            if not self.items:
                raise ValueError(f"tuple variant {self.name!r} needs at least one item")
            if self.fields:
                raise ValueError(f"tuple variant {self.name!r} cannot declare named fields")
        if self.shape == "struct":
            if self.items:
                raise ValueError(f"struct variant {self.name!r} cannot declare positional items")
            _check_unique([f.name for f in self.fields], "field", self.name)
        return self

    def members(self) -> Iterator[Member]:
        for i, item in enumerate(self.items):
            yield (self.name, i), item
        for f in self.fields:
            yield (self.name, f.name), f.type


class ExternalTagging(_DeclModel):
    """``"Name"`` for unit variants, ``{"Name": payload}`` otherwise."""

    style: Literal["external"] = "external"


class AdjacentTagging(_DeclModel):
    """Envelope ``{tag: "Name", content: payload}`` shared by every variant."""

    style: Literal["adjacent"] = "adjacent"
    tag: str = Field(min_length=1)
    content: str = Field(min_length=1)

    @model_validator(mode="after")
    def _distinct_fields(self) -> "AdjacentTagging":
        if self.tag == self.content:
            raise ValueError("tag and content field names must differ")
        return self


Tagging = Annotated[Union[ExternalTagging, AdjacentTagging], Field(discriminator="style")]


class EnumDecl(_TypeDeclaration):
    kind: Literal["enum"] = "enum"
    variants: Tuple[VariantDecl, ...] = Field(min_length=1)
    tagging: Tagging = Field(default_factory=ExternalTagging)

    @model_validator(mode="after")
    def _unique_variants(self) -> "EnumDecl":
        _check_unique([v.name for v in self.variants], "variant", self.name)
        return self

    def variant(self, name: str) -> VariantDecl:
        for v in self.variants:
            if v.name == name:
                return v
        raise KeyError(name)

    def variant_index(self, name: str) -> int:
        for i, v in enumerate(self.variants):
            if v.name == name:
                return i
        raise KeyError(name)

    def members(self) -> Iterator[Member]:
        for v in self.variants:
            yield from v.members()


Declaration = Annotated[
    Union[NewtypeDecl, TupleStructDecl, UnitStructDecl, StructDecl, EnumDecl],
    Field(discriminator="kind"),
]

DECLARATION_CLASSES = (NewtypeDecl, TupleStructDecl, UnitStructDecl, StructDecl, EnumDecl)
