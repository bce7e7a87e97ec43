from askitypes.codec.ordering import order_key
from askitypes.codec.rules import Codec, canonical_bytes, decode, encode
from askitypes.codec.wire import from_bytes, to_bytes

__all__ = [
    "Codec",
    "encode",
    "decode",
    "canonical_bytes",
    "order_key",
    "to_bytes",
    "from_bytes",
]
