"""Byte-to-text decoders selected by a profile's encoding label."""

from __future__ import annotations

from abc import ABC, abstractmethod

_UTF8_BOM = b"\xef\xbb\xbf"
_UTF16LE_BOM = b"\xff\xfe"
_UTF16BE_BOM = b"\xfe\xff"


def _strip_bom(data: bytes) -> bytes:
    return data[len(_UTF8_BOM):] if data.startswith(_UTF8_BOM) else data


def _decode_strict(data: bytes, codec: str, label: str) -> str:
    try:
        return data.decode(codec)
    except UnicodeDecodeError as exc:
        raise ValueError(f"{label} decode had replacement characters") from exc


def _decode_sniffing(data: bytes, codec: str, label: str) -> str:
    """Decode with a leading byte-order mark taking precedence over ``codec``."""
    if data.startswith(_UTF8_BOM):
        codec, data = "utf-8", data[3:]
    elif data.startswith(_UTF16LE_BOM):
        codec, data = "utf-16-le", data[2:]
    elif data.startswith(_UTF16BE_BOM):
        codec, data = "utf-16-be", data[2:]
    return _decode_strict(data, codec, label)


class Decoder(ABC):
    """Turns raw bytes into text, stripping any byte-order mark."""

    @abstractmethod
    def decode(self, data: bytes) -> str:
        """Decode ``data``; raise ValueError on malformed input."""


class Utf8Decoder(Decoder):
    """UTF-8, with an optional BOM."""

    def decode(self, data: bytes) -> str:
        return _decode_sniffing(_strip_bom(data), "utf-8", "utf-8")


class Big5Decoder(Decoder):
    """Big5 (traditional Chinese)."""

    def decode(self, data: bytes) -> str:
        return _decode_sniffing(_strip_bom(data), "big5hkscs", "big5")


class BomDecoder(Decoder):
    """Chooses UTF-8 / UTF-16LE / UTF-16BE by BOM, defaulting to UTF-8."""

    def decode(self, data: bytes) -> str:
        if data.startswith(_UTF8_BOM):
            return Utf8Decoder().decode(data)
        if data.startswith(_UTF16LE_BOM):
            return _decode_sniffing(data[2:], "utf-16-le", "utf-16le")
        if data.startswith(_UTF16BE_BOM):
            return _decode_sniffing(data[2:], "utf-16-be", "utf-16be")
        return Utf8Decoder().decode(data)


def from_label(label: str) -> Decoder:
    """Build a decoder from "utf-8", "utf8", "big5", "bom" or "auto"; others mean UTF-8."""
    key = label.encode("ascii", "ignore").decode().lower() if label.isascii() else label
    match key:
        case "big5":
            return Big5Decoder()
        case "bom" | "auto":
            return BomDecoder()
        case _:
            return Utf8Decoder()