from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from pydantic import TypeAdapter

from askitypes.catalog.recursion import find_unguarded_cycle
from askitypes.core.exceptions import (
    CatalogSealed,
    DuplicateName,
    InvalidDeclaration,
    UnguardedRecursion,
    UnknownName,
    UnknownReferencedType,
)
from askitypes.core.logger import get_logger
from askitypes.models.declarations import DECLARATION_CLASSES, Declaration, NewtypeDecl
from askitypes.models.types import (
    ArrayType,
    MapType,
    NamedType,
    OptionType,
    ParamType,
    ResultType,
    SeqType,
    SetType,
    TupleType,
    UnitType,
    substitute,
    walk,
)

logger = get_logger(__name__)

_DECLARATION_ADAPTER: TypeAdapter = TypeAdapter(Declaration)

DeclarationInput = Union[Declaration, Mapping[str, Any]]
Bindings = Dict[str, Any]


def parse_declaration(data: DeclarationInput):
    """Validate a mapping into a declaration model; models pass through."""
    if isinstance(data, DECLARATION_CLASSES):
        return data
    return _DECLARATION_ADAPTER.validate_python(data)


class TypeCatalog:
    """
    The closed set of named types a schema may use.

    Construction is purely additive: declarations are registered (singly or
    in batches), never altered or removed. ``seal()`` ends the construction
    phase, after which the catalog is read-only and safe to share between
    threads.

    Example:
        >>> catalog = TypeCatalog()
        >>> _ = catalog.register({"kind": "newtype", "name": "UserId", "inner": "uuid"})
        >>> catalog.resolve("UserId").inner
        PrimitiveType(kind='primitive', name=<PrimitiveKind.UUID: 'uuid'>)
    """

    def __init__(self, declarations: Optional[Iterable[DeclarationInput]] = None):
        self._types: Dict[str, Any] = {}
        self._sealed = False
        if declarations is not None:
            self.register_all(declarations)

    # ------------------------------------------------------------------
    # construction
    # ------------------------------------------------------------------

    def register(self, declaration: DeclarationInput):
        """Register one declaration. It may reference itself and anything already registered."""
        return self.register_all([declaration])[0]

    def register_all(self, declarations: Iterable[DeclarationInput]) -> List[Any]:
        """
        Register a batch of declarations atomically.

        Declarations in the batch may reference each other, so mutually
        recursive types are registered together. If any check fails nothing
        from the batch is added.

        Raises:
            CatalogSealed: If ``seal()`` was already called
            DuplicateName: If a name is declared twice or already registered
            UnknownReferencedType: If a referenced type is not declared
            InvalidDeclaration: If generic arity or key types are invalid
            UnguardedRecursion: If a cycle has no container/option indirection
            pydantic.ValidationError: If a mapping is not a valid declaration
        """
        if self._sealed:
            raise CatalogSealed("Catalog is sealed; no further types can be registered")

        batch: Dict[str, Any] = {}
        for data in declarations:
            decl = parse_declaration(data)
            if decl.name in self._types or decl.name in batch:
                raise DuplicateName(decl.name)
            batch[decl.name] = decl

        merged = {**self._types, **batch}
        for decl in batch.values():
            self._check_references(decl, merged)
        for decl in batch.values():
            self._check_option_payloads(decl, merged)
            self._check_key_types(decl, merged)

        cycle = find_unguarded_cycle(merged)
        if cycle is not None:
            raise UnguardedRecursion(cycle)

        self._types.update(batch)
        for name, decl in batch.items():
            logger.debug(f"Registered {decl.kind} {name}")
        if batch:
            logger.info(f"Registered {len(batch)} type(s); catalog now holds {len(self._types)}")
        return list(batch.values())

    def seal(self) -> "TypeCatalog":
        self._sealed = True
        return self

    @property
    def sealed(self) -> bool:
        return self._sealed

    # ------------------------------------------------------------------
    # lookup
    # ------------------------------------------------------------------

    def resolve(self, name: str):
        try:
            return self._types[name]
        except KeyError as exc:
            raise UnknownName(name) from exc

    def try_resolve(self, name: str):
        return self._types.get(name)

    def instantiate(self, ref: NamedType) -> Tuple[Any, Bindings]:
        """Resolve a named reference and bind the target's generic parameters to its args."""
        decl = self.resolve(ref.name)
        if len(ref.args) != len(decl.params):
            raise InvalidDeclaration(
                ref.name, f"expects {len(decl.params)} type argument(s), got {len(ref.args)}"
            )
        return decl, dict(zip(decl.params, ref.args))

    def check_expression(self, expr) -> None:
        """
        Apply the registration checks to a free-standing type expression.

        Raises:
            UnknownName: If the expression references an unknown type
            InvalidDeclaration: On wrong generic arity or an ambiguous option
        """
        for sub in walk(expr):
            if isinstance(sub, NamedType):
                self.instantiate(sub)
        found = _null_option(expr, self._types, {}, frozenset())
        if found is not None:
            raise InvalidDeclaration(str(expr), f"{found} is ambiguous on the wire (payload may encode as null)")

    def names(self) -> List[str]:
        return list(self._types)

    def declarations(self) -> List[Any]:
        return list(self._types.values())

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __len__(self) -> int:
        return len(self._types)

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    # ------------------------------------------------------------------
    # registration checks
    # ------------------------------------------------------------------

    @staticmethod
    def _check_references(decl, known: Mapping[str, Any]) -> None:
        for _, expr in decl.members():
            for sub in walk(expr):
                if not isinstance(sub, NamedType):
                    continue
                target = known.get(sub.name)
                if target is None:
                    raise UnknownReferencedType(sub.name, decl.name)
                if len(sub.args) != len(target.params):
                    raise InvalidDeclaration(
                        decl.name,
                        f"{sub} must supply {len(target.params)} type argument(s) to {target.name}",
                    )

    @staticmethod
    def _check_key_types(decl, known: Mapping[str, Any]) -> None:
        for _, expr in decl.members():
            for sub in walk(expr):
                if isinstance(sub, SetType):
                    key = sub.item
                elif isinstance(sub, MapType):
                    key = sub.key
                else:
                    continue
                if not _key_capable(key, known, {}, set()):
                    raise InvalidDeclaration(
                        decl.name,
                        f"{key} cannot be a set element or map key (it has no hashable total order)",
                    )

    @staticmethod
    def _check_option_payloads(decl, known: Mapping[str, Any]) -> None:
        for _, expr in decl.members():
            found = _null_option(expr, known, {}, frozenset())
            if found is not None:
                raise InvalidDeclaration(decl.name, f"{found} is ambiguous on the wire (payload may encode as null)")


def _key_capable(expr, known: Mapping[str, Any], bindings: Bindings, visiting: set) -> bool:
    """Whether Python values of ``expr`` are hashable and totally ordered."""
    if isinstance(expr, (SeqType, ArrayType, MapType)):
        return False
    if isinstance(expr, ParamType):
        bound = bindings.get(expr.name)
        return True if bound is None else _key_capable(bound, known, {}, visiting)
    if isinstance(expr, (SetType, OptionType)):
        return _key_capable(expr.item, known, bindings, visiting)
    if isinstance(expr, ResultType):
        return _key_capable(expr.ok, known, bindings, visiting) and _key_capable(expr.err, known, bindings, visiting)
    if isinstance(expr, TupleType):
        return all(_key_capable(i, known, bindings, visiting) for i in expr.items)
    if isinstance(expr, NamedType):
        expr = substitute(expr, bindings)
        if expr in visiting:
            return True
        decl = known[expr.name]
        inner = dict(zip(decl.params, expr.args))
        visiting = visiting | {expr}
        return all(_key_capable(member, known, inner, visiting) for _, member in decl.members())
    return True


def _wire_may_be_null(expr, known: Mapping[str, Any], bindings: Bindings, visiting: set) -> bool:
    if isinstance(expr, (UnitType, OptionType)):
        return True
    if isinstance(expr, ParamType):
        bound = bindings.get(expr.name)
        return False if bound is None else _wire_may_be_null(bound, known, {}, visiting)
    if isinstance(expr, NamedType):
        expr = substitute(expr, bindings)
        if expr in visiting:
            return False
        decl = known[expr.name]
        if decl.kind == "unit_struct":
            return True
        if isinstance(decl, NewtypeDecl):
            inner = dict(zip(decl.params, expr.args))
            return _wire_may_be_null(decl.inner, known, inner, visiting | {expr})
    return False


def _null_option(expr, known: Mapping[str, Any], bindings: Bindings, visiting: frozenset) -> Optional[str]:
    """
    Describe the first option in ``expr`` whose payload may encode as null, or None.

    Generic references are followed into their target with the arguments
    bound, so ``Maybe<unit>`` is caught even though ``Maybe<T>`` alone is fine.
    Options are checked before any argument is substituted, since building
    ``option<unit>`` would itself fail model validation.
    """
    subs = list(walk(expr))
    for sub in subs:
        if isinstance(sub, OptionType) and _wire_may_be_null(sub.item, known, bindings, set()):
            if not bindings:
                return str(sub)
            bound = ", ".join(f"{k}={v}" for k, v in bindings.items())
            return f"{sub} (with {bound})"
    for sub in subs:
        if not isinstance(sub, NamedType) or not sub.args or sub.name in visiting:
            continue
        decl = known.get(sub.name)
        if decl is None:
            continue
        inner = dict(zip(decl.params, (substitute(a, bindings) for a in sub.args)))
        for _, member in decl.members():
            found = _null_option(member, known, inner, visiting | {sub.name})
            if found is not None:
                return f"{sub}: {found}"
    return None
