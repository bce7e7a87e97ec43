from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from askitypes.models.declarations import Declaration
from askitypes.models.settings import CodecOptions


class SchemaDocument(BaseModel):
    """A resolved list of type declarations plus the codec settings to use with them.

    Name uniqueness and reference resolution are left to the catalog so that
    they surface as catalog errors.
    """

    schema_name: str = "unnamed"
    types: List[Declaration] = Field(default_factory=list)
    codec: CodecOptions = Field(default_factory=CodecOptions)
