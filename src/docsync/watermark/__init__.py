"""Codecs for the sync watermark embedded in generated documents."""

from __future__ import annotations

from docsync.exceptions import ConfigurationError
from docsync.watermark.legacy_codec import LegacyWatermarkCodec
from docsync.watermark.protocol import WatermarkCodec
from docsync.watermark.yaml_codec import YamlWatermarkCodec


# Registry of built-in codecs
BUILTIN_CODECS: list[WatermarkCodec] = [YamlWatermarkCodec(), LegacyWatermarkCodec()]


def get_codec(name: str) -> WatermarkCodec:
    """Get the codec registered for a format name."""
    for codec in BUILTIN_CODECS:
        if codec.name == name:
            return codec
    available = ", ".join(codec.name for codec in BUILTIN_CODECS)
    msg = f"Unknown watermark format: {name!r}. Available: {available}"
    raise ConfigurationError(msg)


def stamp(codec: WatermarkCodec, body: str, block: str) -> str:
    """Append an encoded watermark block after a document body."""
    return f"{codec.strip(body)}\n\n{block}\n"


__all__ = [
    "BUILTIN_CODECS",
    "LegacyWatermarkCodec",
    "WatermarkCodec",
    "YamlWatermarkCodec",
    "get_codec",
    "stamp",
]
