from __future__ import annotations

import math
import struct

from .exceptions import TruncatedPayload


def to_f32(v: float) -> float:
    """Round a Python float to the nearest single-precision value (NaN -> 0.0)."""
    v = struct.unpack(">f", struct.pack(">f", v))[0]
    return 0.0 if math.isnan(v) else v


class BER:
    """Big-endian reader with UTF-16BE (length-prefixed) helper."""

    def __init__(self, data: bytes, off: int = 0, end: int | None = None) -> None:
        self.data = data
        self.off = off
        self.end = len(data) if end is None else end

    def tell(self) -> int:
        return self.off

    def remain(self) -> int:
        return self.end - self.off

    def _need(self, n: int) -> None:
        if self.off + n > self.end:
            raise TruncatedPayload(
                f"need {n} bytes at offset {self.off}, only {self.remain()} left"
            )

    def u32(self) -> int:
        self._need(4)
        v = struct.unpack_from(">I", self.data, self.off)[0]
        self.off += 4
        return v

    def s32(self) -> int:
        self._need(4)
        v = struct.unpack_from(">i", self.data, self.off)[0]
        self.off += 4
        return v

    def f32(self) -> float:
        self._need(4)
        v = struct.unpack_from(">f", self.data, self.off)[0]
        self.off += 4
        return 0.0 if math.isnan(v) else v

    def bytes(self, n: int) -> bytes:
        self._need(n)
        b = self.data[self.off : self.off + n]
        self.off += n
        return b

    def wstr_prefixed(self) -> str:
        """Reads: u32 length (UTF-16 code units), then UTF-16BE bytes (2*len)."""
        n = self.u32()
        raw = self.bytes(n * 2)
        # The TSI controller blob is big-endian overall; wchar_t is UTF-16BE here.
        return raw.decode("utf-16-be", errors="ignore")


class BEW:
    """Big-endian writer, the mirror of BER."""

    def __init__(self) -> None:
        self._buf = bytearray()

    def u32(self, v: int) -> "BEW":
        self._buf += struct.pack(">I", v & 0xFFFFFFFF)
        return self

    def s32(self, v: int) -> "BEW":
        self._buf += struct.pack(">i", v)
        return self

    def f32(self, v: float) -> "BEW":
        self._buf += struct.pack(">f", v)
        return self

    def bytes(self, b: bytes) -> "BEW":
        self._buf += b
        return self

    def wstr_prefixed(self, s: str) -> "BEW":
        raw = s.encode("utf-16-be")
        self.u32(len(raw) // 2)
        self._buf += raw
        return self

    def getvalue(self) -> bytes:
        return bytes(self._buf)
