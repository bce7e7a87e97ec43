"""
Custom exception classes for askitypes.

Provides structured error handling with domain-specific exceptions
for the catalog, validation, encoding and decoding layers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

PathSegment = Union[str, int]


def format_path(path: Sequence[PathSegment]) -> str:
    """Render a path as ``Root.field[2].other``.

    Integer segments are list positions, string segments are field,
    variant or type names.
    """
    out = ""
    for segment in path:
        if isinstance(segment, int):
            out += f"[{segment}]"
        elif out:
            out += f".{segment}"
        else:
            out = segment
    return out or "$"


class AskiTypesError(Exception):
    """Base exception class for all askitypes exceptions."""

    pass


# ---------------------------------------------------------------------------
# Catalog construction
# ---------------------------------------------------------------------------


class CatalogError(AskiTypesError):
    """Raised when a declaration cannot be added to a catalog."""

    pass


class DuplicateName(CatalogError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Type {name!r} is already declared")


class UnknownName(CatalogError):
    def __init__(self, name: str, message: Optional[str] = None):
        self.name = name
        super().__init__(message or f"No type named {name!r} in catalog")


class UnknownReferencedType(UnknownName):
    """Raised when a declaration references a type that is not declared."""

    def __init__(self, name: str, referenced_by: str):
        self.referenced_by = referenced_by
        super().__init__(name, f"Type {referenced_by!r} references undeclared type {name!r}")


class UnguardedRecursion(CatalogError):
    """
    Raised when a type cycle has no container/option indirection.

    Such a type has no finite values, so decoding it could never terminate.
    """

    def __init__(self, cycle: Sequence[str]):
        self.cycle = tuple(cycle)
        super().__init__(
            "Recursive type without container or option indirection: " + " -> ".join(self.cycle)
        )


class InvalidDeclaration(CatalogError):
    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid declaration {name!r}: {reason}")


class CatalogSealed(CatalogError):
    """Raised on registration after the catalog's construction phase ended."""

    pass


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MismatchDetail:
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


class SchemaMismatch(AskiTypesError):
    """
    Raised when a declared schema and a catalog disagree on shape.

    Example:
        >>> raise SchemaMismatch([MismatchDetail("AllTypes.status.code", "missing field")])
    """

    def __init__(self, details: List[MismatchDetail]):
        self.details = list(details)
        lines = "; ".join(str(d) for d in self.details)
        super().__init__(f"Schema mismatch ({len(self.details)} issue(s)): {lines}")


# ---------------------------------------------------------------------------
# Encoding / decoding
# ---------------------------------------------------------------------------


class EncodeError(AskiTypesError):
    """Base class for errors raised while encoding a value."""

    def __init__(self, reason: str, path: Sequence[PathSegment] = ()):
        self.reason = reason
        self.path: Tuple[PathSegment, ...] = tuple(path)
        super().__init__(f"{format_path(self.path)}: {reason}")

    @property
    def dotted_path(self) -> str:
        return format_path(self.path)


class ShapeMismatch(EncodeError):
    """Raised when a value does not match its declared type."""

    pass


class DecodeErrorKind(Enum):
    ARITY_MISMATCH = "arity_mismatch"
    LENGTH_MISMATCH = "length_mismatch"
    RANGE_OVERFLOW = "range_overflow"
    UNKNOWN_VARIANT = "unknown_variant"
    DUPLICATE_ELEMENT = "duplicate_element"
    DUPLICATE_KEY = "duplicate_key"
    MALFORMED = "malformed"
    NON_CANONICAL = "non_canonical"


class DecodeError(AskiTypesError):
    """
    Base class for errors raised while decoding a wire value.

    ``variant`` names the failure kind, ``path`` the position of the
    first offending field or element.
    """

    variant: DecodeErrorKind = DecodeErrorKind.MALFORMED

    def __init__(self, reason: str, path: Sequence[PathSegment] = (), details: Optional[Dict[str, Any]] = None):
        self.reason = reason
        self.path: Tuple[PathSegment, ...] = tuple(path)
        self.details = details or {}
        message = f"{format_path(self.path)}: {reason}"
        if self.details:
            message += f" - {self.details}"
        super().__init__(message)

    @property
    def dotted_path(self) -> str:
        return format_path(self.path)


class ArityMismatch(DecodeError):
    variant = DecodeErrorKind.ARITY_MISMATCH


class LengthMismatch(DecodeError):
    variant = DecodeErrorKind.LENGTH_MISMATCH


class RangeOverflow(DecodeError):
    variant = DecodeErrorKind.RANGE_OVERFLOW


class UnknownVariant(DecodeError):
    variant = DecodeErrorKind.UNKNOWN_VARIANT


class DuplicateElement(DecodeError):
    variant = DecodeErrorKind.DUPLICATE_ELEMENT


class DuplicateKey(DecodeError):
    variant = DecodeErrorKind.DUPLICATE_KEY


class Malformed(DecodeError):
    """Raised when the wire value's basic shape does not match the type."""

    variant = DecodeErrorKind.MALFORMED


class NonCanonical(DecodeError):
    """Raised in strict mode when set/map entries are not in ascending order."""

    variant = DecodeErrorKind.NON_CANONICAL


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class DocumentError(AskiTypesError):
    """Raised when a schema document cannot be read or parsed."""

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        self.reason = reason
        self.details = details or {}
        message = f"{reason}"
        if self.details:
            message += f" - {self.details}"
        super().__init__(message)
