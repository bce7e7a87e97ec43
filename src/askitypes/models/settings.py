from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, PositiveInt


class CodecOptions(BaseModel):
    """Runtime knobs for encoding and decoding.

    These never change the canonical form a value encodes to; they only
    decide how tolerant decoding is and how deep a value may nest.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    strict_canonical: bool = False              # Reject sets/maps whose wire order is not ascending
    max_depth: PositiveInt = 128                # Nesting limit for encode and decode
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
