import struct
from typing import Iterable, Iterator, NamedTuple, Optional, Tuple, Union

from ipp_failures import Failure, StageFailure


TAG_END_OF_ATTRIBUTES = 0x03

MAX_FIELD_LENGTH = 0xFFFF


class AttributeRecord(NamedTuple):
    tag: int
    name: str
    # View into the scanned buffer; copy with bytes() to keep it.
    value: memoryview


class AttributeScan:
    """Single forward pass over a tag/name-length/name/value-length/value stream.

    Iterating yields AttributeRecord values until the end-of-attributes tag
    (0x03) or the end of the buffer. A field that runs past the buffer stops
    the iteration and leaves a Truncated StageFailure in ``failure``; it is
    never raised. The scan cannot be restarted: call scan() again for a new
    cursor at position 0.
    """

    def __init__(self, buffer: Union[bytes, bytearray, memoryview]) -> None:
        self._view = memoryview(buffer).cast("B")
        self._pos = 0
        self.failure: Optional[StageFailure] = None
        self.finished = False

    @property
    def position(self) -> int:
        return self._pos

    def __iter__(self) -> Iterator[AttributeRecord]:
        return self

    def __next__(self) -> AttributeRecord:
        if self.finished:
            raise StopIteration
        record = self._step()
        if record is None:
            self.finished = True
            raise StopIteration
        return record

    def _truncated(self, field: str, needed: int) -> None:
        available = len(self._view) - self._pos
        self.failure = StageFailure(
            Failure.TRUNCATED,
            "scan",
            f"{field} needs {needed} bytes at offset {self._pos}, {available} left",
        )

    def _read_u16(self, field: str) -> Optional[int]:
        if self._pos + 2 > len(self._view):
            self._truncated(field, 2)
            return None
        value = struct.unpack_from(">H", self._view, self._pos)[0]
        self._pos += 2
        return value

    def _read_view(self, field: str, n: int) -> Optional[memoryview]:
        if self._pos + n > len(self._view):
            self._truncated(field, n)
            return None
        view = self._view[self._pos : self._pos + n]
        self._pos += n
        return view

    def _step(self) -> Optional[AttributeRecord]:
        if self._pos >= len(self._view):
            return None

        tag = self._view[self._pos]
        self._pos += 1
        if tag == TAG_END_OF_ATTRIBUTES:
            return None

        name_len = self._read_u16("name-length")
        if name_len is None:
            return None
        name_view = self._read_view("name", name_len)
        if name_view is None:
            return None

        value_len = self._read_u16("value-length")
        if value_len is None:
            return None
        value = self._read_view("value", value_len)
        if value is None:
            return None

        # names are normally ASCII; a bad byte must not end the scan
        name = bytes(name_view).decode("utf-8", errors="replace")
        return AttributeRecord(tag, name, value)


def scan(buffer: Union[bytes, bytearray, memoryview]) -> AttributeScan:
    return AttributeScan(buffer)


def encode_attribute(tag: int, name: str, value: bytes) -> bytes:
    name_b = name.encode("utf-8")
    if len(name_b) > MAX_FIELD_LENGTH or len(value) > MAX_FIELD_LENGTH:
        raise ValueError(f"IPP attribute field too long for 16-bit length: {name!r}")
    return bytes([tag & 0xFF]) + struct.pack(">H", len(name_b)) + name_b + struct.pack(">H", len(value)) + bytes(value)


def encode_attributes(records: Iterable[Tuple[int, str, bytes]]) -> bytes:
    out = bytearray()
    for tag, name, value in records:
        out += encode_attribute(tag, name, value)
    out += bytes([TAG_END_OF_ATTRIBUTES])
    return bytes(out)
