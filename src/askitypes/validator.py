"""
Check a declared schema against a catalog.

Every declared type must correspond to exactly one catalog entry with the
same kind, generic parameters, arity, field names, field types, variant set
and tagging. All disagreements are collected and reported together, each
with the path of the offending declaration member.

Named types reached through a field are checked under that field's path, so
a mismatch inside ``Status`` reached from ``AllTypes.status`` is reported as
``AllTypes.status.code``. Types no other declared type refers to are visited
first; each type is checked once.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Set, Union

from askitypes.catalog.registry import TypeCatalog, parse_declaration
from askitypes.core.exceptions import MismatchDetail, SchemaMismatch, format_path
from askitypes.core.logger import get_logger
from askitypes.models.declarations import EnumDecl, FieldDecl, NewtypeDecl, StructDecl, TupleStructDecl, VariantDecl
from askitypes.models.document import SchemaDocument
from askitypes.models.types import NamedType, walk

logger = get_logger(__name__)


class _Checker:
    def __init__(self, declared: Dict[str, Any], catalog: TypeCatalog):
        self.declared = declared
        self.catalog = catalog
        self.details: List[MismatchDetail] = []
        self.visited: Set[str] = set()

    def report(self, path, message: str) -> None:
        self.details.append(MismatchDetail(format_path(path), message))

    def run(self, order: List[str]) -> None:
        referenced: Set[str] = set()
        for decl in self.declared.values():
            for _, expr in decl.members():
                referenced.update(sub.name for sub in walk(expr) if isinstance(sub, NamedType) and sub.name != decl.name)
        roots = [n for n in order if n not in referenced]
        for name in roots + order:
            self.visit(name, (name,))

    def visit(self, name: str, path) -> None:
        if name in self.visited or name not in self.declared:
            return
        self.visited.add(name)
        declared = self.declared[name]
        actual = self.catalog.try_resolve(name)
        if actual is None:
            self.report(path, f"type {name!r} is not in the catalog")
            return
        if declared.kind != actual.kind:
            self.report(path, f"declared as {declared.kind}, catalog has {actual.kind}")
            return
        if declared.params != actual.params:
            self.report(path, f"type parameters {list(declared.params)} differ from catalog {list(actual.params)}")

        if isinstance(declared, NewtypeDecl):
            self.compare_types(path, declared.inner, actual.inner)
        elif isinstance(declared, TupleStructDecl):
            self.compare_items(path, declared.items, actual.items)
        elif isinstance(declared, StructDecl):
            self.compare_fields(path, declared.fields, actual.fields)
        elif isinstance(declared, EnumDecl):
            self.compare_enum(path, declared, actual)

    def compare_types(self, path, declared, actual) -> None:
        if declared != actual:
            self.report(path, f"declared {declared}, catalog has {actual}")
            return
        for sub in walk(declared):
            if isinstance(sub, NamedType):
                self.visit(sub.name, path)

    def compare_items(self, path, declared: Iterable[Any], actual: Iterable[Any]) -> None:
        declared, actual = list(declared), list(actual)
        if len(declared) != len(actual):
            self.report(path, f"arity {len(declared)}, catalog has {len(actual)}")
            return
        for i, (d, a) in enumerate(zip(declared, actual)):
            self.compare_types(path + (i,), d, a)

    def compare_fields(self, path, declared: Iterable[FieldDecl], actual: Iterable[FieldDecl]) -> None:
        declared_by_name = {f.name: f for f in declared}
        actual_by_name = {f.name: f for f in actual}
        for name in actual_by_name:
            if name not in declared_by_name:
                self.report(path + (name,), "missing field (present in catalog)")
        for name in declared_by_name:
            if name not in actual_by_name:
                self.report(path + (name,), "unexpected field (not in catalog)")
        common_declared = [n for n in declared_by_name if n in actual_by_name]
        common_actual = [n for n in actual_by_name if n in declared_by_name]
        if common_declared != common_actual:
            self.report(path, f"field order {common_declared} differs from catalog {common_actual}")
        for name in common_declared:
            self.compare_types(path + (name,), declared_by_name[name].type, actual_by_name[name].type)

    def compare_enum(self, path, declared: EnumDecl, actual: EnumDecl) -> None:
        if declared.tagging != actual.tagging:
            self.report(path, f"tagging {_tagging(declared)} differs from catalog {_tagging(actual)}")
        declared_by_name = {v.name: v for v in declared.variants}
        actual_by_name = {v.name: v for v in actual.variants}
        for name in actual_by_name:
            if name not in declared_by_name:
                self.report(path + (name,), "missing variant (present in catalog)")
        for name in declared_by_name:
            if name not in actual_by_name:
                self.report(path + (name,), "unexpected variant (not in catalog)")
        common_declared = [n for n in declared_by_name if n in actual_by_name]
        common_actual = [n for n in actual_by_name if n in declared_by_name]
        if common_declared != common_actual:
            # Variant order decides ordering of enum values, so it is part of the shape.
            self.report(path, f"variant order {common_declared} differs from catalog {common_actual}")
        for name in common_declared:
            self.compare_variant(path + (name,), declared_by_name[name], actual_by_name[name])

    def compare_variant(self, path, declared: VariantDecl, actual: VariantDecl) -> None:
        if declared.shape != actual.shape:
            self.report(path, f"{declared.shape} variant, catalog has {actual.shape} variant")
            return
        if declared.shape == "tuple":
            self.compare_items(path, declared.items, actual.items)
        elif declared.shape == "struct":
            self.compare_fields(path, declared.fields, actual.fields)


def _tagging(decl: EnumDecl) -> str:
    t = decl.tagging
    if t.style == "external":
        return "external"
    return f"adjacent(tag={t.tag!r}, content={t.content!r})"


def check(
    declared: Union[SchemaDocument, Iterable[Any]],
    catalog: TypeCatalog,
    *,
    require_complete: bool = False,
) -> None:
    """
    Verify that every declared type maps 1:1 onto a catalog entry.

    Args:
        declared: A SchemaDocument or an iterable of declarations / mappings
        catalog: The catalog to check against
        require_complete: Also report catalog types missing from the declared schema

    Raises:
        SchemaMismatch: With one detail per disagreement
        pydantic.ValidationError: If a declaration mapping is not valid
    """
    if isinstance(declared, SchemaDocument):
        declarations = list(declared.types)
    else:
        declarations = [parse_declaration(d) for d in declared]

    by_name: Dict[str, Any] = {}
    details: List[MismatchDetail] = []
    for decl in declarations:
        if decl.name in by_name:
            details.append(MismatchDetail(decl.name, "declared more than once"))
            continue
        by_name[decl.name] = decl

    checker = _Checker(by_name, catalog)
    checker.run(list(by_name))
    details.extend(checker.details)

    if require_complete:
        for name in catalog.names():
            if name not in by_name:
                details.append(MismatchDetail(name, "catalog type is not declared"))

    if details:
        logger.warning(f"Schema check found {len(details)} mismatch(es)")
        raise SchemaMismatch(details)
    logger.info(f"Schema check passed for {len(by_name)} type(s)")


def is_consistent(
    declared: Union[SchemaDocument, Iterable[Any]],
    catalog: TypeCatalog,
    *,
    require_complete: bool = False,
) -> bool:
    try:
        check(declared, catalog, require_complete=require_complete)
    except SchemaMismatch:
        return False
    return True


def mismatches(declared: Union[SchemaDocument, Iterable[Any]], catalog: TypeCatalog) -> Optional[List[MismatchDetail]]:
    """The mismatch details, or None when the schema matches."""
    try:
        check(declared, catalog)
    except SchemaMismatch as exc:
        return exc.details
    return None
