"""
Little-endian record codec used by the contract stores

Integers are fixed width, byte strings carry a one-byte length prefix and
optional values a 0x00/0x01 tag.
"""

from .errors import MalformedRecord
from .safe_math import U8_MAX


class Encoder:
    """Accumulates encoded fields"""

    def __init__(self):
        self._parts = []

    def uint(self, value: int, width: int) -> 'Encoder':
        try:
            self._parts.append(int(value).to_bytes(width, 'little'))
        except OverflowError:
            raise MalformedRecord(f"{value} does not fit in {width} bytes")
        return self

    def u8(self, value: int) -> 'Encoder':
        return self.uint(value, 1)

    def u32(self, value: int) -> 'Encoder':
        return self.uint(value, 4)

    def u128(self, value: int) -> 'Encoder':
        return self.uint(value, 16)

    def short_bytes(self, data: bytes) -> 'Encoder':
        if len(data) > U8_MAX:
            raise MalformedRecord(f"{len(data)} bytes exceed a one-byte length prefix")
        self._parts.append(bytes([len(data)]) + bytes(data))
        return self

    def flag(self, present: bool) -> 'Encoder':
        return self.u8(1 if present else 0)

    def finish(self) -> bytes:
        return b"".join(self._parts)


class Decoder:
    """Reads fields back in the order they were encoded"""

    def __init__(self, data: bytes):
        self._data = bytes(data)
        self._pos = 0

    def _take(self, size: int) -> bytes:
        end = self._pos + size
        if end > len(self._data):
            raise MalformedRecord(f"truncated record: need {size} bytes at offset {self._pos}")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def uint(self, width: int) -> int:
        return int.from_bytes(self._take(width), 'little')

    def u8(self) -> int:
        return self.uint(1)

    def u32(self) -> int:
        return self.uint(4)

    def u128(self) -> int:
        return self.uint(16)

    def short_bytes(self) -> bytes:
        return self._take(self.u8())

    def flag(self) -> bool:
        tag = self.u8()
        if tag not in (0, 1):
            raise MalformedRecord(f"invalid option tag {tag}")
        return tag == 1

    def finish(self) -> None:
        """Reject trailing bytes"""
        if self._pos != len(self._data):
            raise MalformedRecord(f"{len(self._data) - self._pos} trailing bytes")
