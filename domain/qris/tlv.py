"""
Tag-Length-Value cursor for EMV/QRIS payloads.

Each field is ``TT LL V...`` where TT is a two digit tag, LL a two digit
decimal length and V exactly LL characters. Parsing walks the payload with an
explicit cursor instead of regex lookahead so tag order does not matter.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional


TAG_WIDTH = 2
LENGTH_WIDTH = 2
MAX_VALUE_LENGTH = 99


@dataclass(frozen=True)
class TLVField:
    tag: str
    length: int
    value: str
    position: int  # offset of the tag inside the payload


class TLVCursor:
    """Stateful reader over a TLV payload."""

    def __init__(self, payload: str, position: int = 0) -> None:
        self.payload = payload
        self.position = position

    def at_end(self) -> bool:
        return self.position >= len(self.payload)

    def read(self) -> Optional[TLVField]:
        """Read the field at the cursor and advance; None if the remainder is malformed."""
        start = self.position
        header_end = start + TAG_WIDTH + LENGTH_WIDTH
        if header_end > len(self.payload):
            return None
        tag = self.payload[start:start + TAG_WIDTH]
        raw_length = self.payload[start + TAG_WIDTH:header_end]
        if not (tag.isdigit() and raw_length.isdigit()):
            return None
        length = int(raw_length)
        value_end = header_end + length
        if value_end > len(self.payload):
            return None
        self.position = value_end
        return TLVField(tag=tag, length=length, value=self.payload[header_end:value_end], position=start)


def iter_fields(payload: str) -> Iterator[TLVField]:
    """Yield top-level fields until the payload ends or stops being well formed."""
    cursor = TLVCursor(payload)
    while not cursor.at_end():
        field = cursor.read()
        if field is None:
            return
        yield field


def find_field(payload: str, tag: str) -> Optional[TLVField]:
    for field in iter_fields(payload):
        if field.tag == tag:
            return field
    return None


def encode_field(tag: str, value: str) -> str:
    if len(tag) != TAG_WIDTH or not tag.isdigit():
        raise ValueError(f"invalid TLV tag: {tag!r}")
    if len(value) > MAX_VALUE_LENGTH:
        raise ValueError(f"TLV value longer than {MAX_VALUE_LENGTH} characters")
    return f"{tag}{len(value):02d}{value}"
