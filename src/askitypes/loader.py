"""
Loading schema documents and building catalogs from them.

A schema document is the structured (already parsed) form of a set of type
declarations, stored as JSON or YAML or passed in as a dict:

    schema_name: shapes
    codec:
      strict_canonical: true
    types:
      - kind: newtype
        name: UserId
        inner: uuid
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from askitypes.catalog.registry import TypeCatalog
from askitypes.codec.rules import Codec
from askitypes.core.exceptions import DocumentError
from askitypes.core.logger import configure_root_logger, get_logger, push_schema_name, reset_schema_name
from askitypes.models.document import SchemaDocument

logger = get_logger(__name__)

PathLike = Union[str, Path]


def _read_file(config_file: Path) -> Any:
    if not config_file.exists():
        raise FileNotFoundError(f"Schema document not found: {config_file}")

    with open(config_file, "r", encoding="utf-8") as f:
        if config_file.suffix == ".json":
            try:
                return json.load(f)
            except json.JSONDecodeError as exc:
                raise DocumentError(f"Invalid JSON in {config_file}", {"error": str(exc)}) from exc
        if config_file.suffix in (".yaml", ".yml"):
            try:
                return yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise DocumentError(f"Invalid YAML in {config_file}", {"error": str(exc)}) from exc
    raise DocumentError(f"Unsupported schema document format: {config_file.suffix}. Use .json or .yaml")


def load_schema_document(
    path: Optional[PathLike] = None,
    data: Optional[Dict[str, Any]] = None,
) -> SchemaDocument:
    """
    Load and validate a schema document.

    Can be called with either:
    - A file path (JSON/YAML)
    - A dictionary (programmatic)

    Raises:
        FileNotFoundError: If the file doesn't exist
        DocumentError: If the content cannot be parsed or is not a valid document
        ValueError: If neither path nor data is provided
    """
    if data is not None:
        raw = data
        source = "<dict>"
    elif path is not None:
        raw = _read_file(Path(path))
        source = str(path)
    else:
        raise ValueError("Either path or data must be provided")

    if not isinstance(raw, dict):
        raise DocumentError(f"Schema document must be a mapping, got {type(raw).__name__}", {"source": source})

    try:
        document = SchemaDocument.model_validate(raw)
    except ValidationError as exc:
        raise DocumentError(f"Invalid schema document {source}", {"error": str(exc)}) from exc

    logger.info(f"Loaded schema document {document.schema_name!r} with {len(document.types)} type(s) from {source}")
    return document


def build_catalog(document: SchemaDocument, *, seal: bool = True) -> TypeCatalog:
    """Register every declaration of the document in a new catalog."""
    token = push_schema_name(document.schema_name)
    try:
        catalog = TypeCatalog()
        catalog.register_all(document.types)
        if seal:
            catalog.seal()
        return catalog
    finally:
        reset_schema_name(token)


def load_catalog(path: Optional[PathLike] = None, data: Optional[Dict[str, Any]] = None) -> TypeCatalog:
    return build_catalog(load_schema_document(path=path, data=data))


def load_codec(path: Optional[PathLike] = None, data: Optional[Dict[str, Any]] = None) -> Codec:
    """
    Load a document and return a codec over its sealed catalog, configured by the document's ``codec`` section.
    """
    document = load_schema_document(path=path, data=data)
    configure_root_logger(document.codec.log_level)
    return Codec(build_catalog(document), document.codec)
