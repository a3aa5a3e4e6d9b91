from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from .beio import BER
from .exceptions import (
    InvalidIdentifier,
    TruncatedHeader,
    TruncatedPayload,
    UnsupportedFrameGrammar,
)

HEADER_SIZE = 8

# Allow 0-9, A-Z, _, a-z
ASCII_OK = set(range(48, 58)) | set(range(65, 91)) | set(range(95, 96)) | set(range(97, 123))


def looks_like_id(b: bytes) -> bool:
    return len(b) == 4 and all(c in ASCII_OK for c in b)


@dataclass(frozen=True)
class Frame:
    """
    One length-prefixed record: 4-byte ASCII id, u32 BE payload size, payload.

    The size is always ``len(payload)``; on the wire a frame takes 8 + size bytes.
    """
    id4: str
    payload: bytes = b""

    @property
    def size(self) -> int:
        return len(self.payload)

    @property
    def total_size(self) -> int:
        return HEADER_SIZE + self.size

    @classmethod
    def parse(cls, data: bytes, offset: int = 0, end: int | None = None) -> "Frame":
        if end is None:
            end = len(data)
        if end - offset < HEADER_SIZE:
            raise TruncatedHeader(
                f"frame header at offset {offset} needs 8 bytes, {end - offset} left"
            )
        raw_id = data[offset : offset + 4]
        try:
            fid = raw_id.decode("ascii")
        except UnicodeDecodeError:
            raise InvalidIdentifier(
                f"non-ASCII frame identifier {raw_id.hex()} at offset {offset}"
            ) from None
        size = struct.unpack_from(">I", data, offset + 4)[0]
        start = offset + HEADER_SIZE
        if start + size > end:
            raise TruncatedPayload(
                f"frame {fid!r} at offset {offset} declares {size} bytes, "
                f"only {end - start} available"
            )
        return cls(fid, bytes(data[start : start + size]))

    def serialize(self) -> bytes:
        try:
            raw_id = self.id4.encode("ascii")
        except UnicodeEncodeError:
            raise InvalidIdentifier(f"frame identifier {self.id4!r} is not ASCII") from None
        if len(raw_id) != 4:
            raise InvalidIdentifier(f"frame identifier {self.id4!r} is not 4 characters")
        return raw_id + struct.pack(">I", self.size) + self.payload


def parse_sequence(data: bytes, start: int = 0, end: int | None = None) -> List[Frame]:
    """
    Split ``data[start:end]`` into consecutive frames.

    Up to 7 trailing bytes are treated as padding. Any malformed frame aborts
    the whole sequence.
    """
    if end is None:
        end = len(data)
    frames: List[Frame] = []
    off = start
    while end - off >= HEADER_SIZE:
        frame = Frame.parse(data, off, end)
        frames.append(frame)
        off += frame.total_size
    return frames


def serialize_sequence(frames: Sequence[Frame]) -> bytes:
    return b"".join(f.serialize() for f in frames)


# ---------- Frame tree ----------


class Prefix:
    """How many payload bytes precede the children of a container frame."""

    NONE = "none"
    COUNT = "count"   # u32 item count
    WSTR = "wstr"     # u32 code-unit count + UTF-16BE text

    def __init__(self, kind: str, fixed: int = 0) -> None:
        self.kind = kind
        self.fixed = fixed

    @classmethod
    def fixed_size(cls, n: int) -> "Prefix":
        return cls("fixed", n)

    def length(self, payload: bytes) -> int:
        if self.kind == self.NONE:
            return 0
        if self.kind == self.COUNT:
            return 4
        if self.kind == self.WSTR:
            if len(payload) < 4:
                return 4  # caller reports the overflow
            return 4 + 2 * BER(payload).u32()
        return self.fixed

    def __repr__(self) -> str:
        return f"Prefix({self.kind!r}, {self.fixed})" if self.kind == "fixed" else f"Prefix({self.kind!r})"


# (parent id or None for the top level, id) -> prefix of a container payload
Grammar = Mapping[Tuple[Optional[str], str], Prefix]


@dataclass(frozen=True)
class LeafNode:
    frame: Frame

    @property
    def id4(self) -> str:
        return self.frame.id4

    def to_frame(self) -> Frame:
        return self.frame


@dataclass(frozen=True)
class ContainerNode:
    id4: str
    prefix: bytes
    children: Tuple["FrameNode", ...]

    def to_frame(self) -> Frame:
        body = serialize_sequence([c.to_frame() for c in self.children])
        return Frame(self.id4, self.prefix + body)

    def child(self, id4: str) -> Optional["FrameNode"]:
        for c in self.children:
            if c.id4 == id4:
                return c
        return None

    def children_of(self, id4: str) -> List["FrameNode"]:
        return [c for c in self.children if c.id4 == id4]


FrameNode = Union[LeafNode, ContainerNode]


def build_node(frame: Frame, grammar: Grammar, parent: Optional[str] = None) -> FrameNode:
    prefix = grammar.get((parent, frame.id4))
    if prefix is None:
        return LeafNode(frame)
    n = prefix.length(frame.payload)
    if n > frame.size:
        raise UnsupportedFrameGrammar(
            f"{frame.id4!r} under {parent!r}: {prefix!r} needs {n} bytes, payload has {frame.size}"
        )
    children = tuple(
        build_node(f, grammar, frame.id4)
        for f in parse_sequence(frame.payload, n)
    )
    return ContainerNode(frame.id4, frame.payload[:n], children)


def build_tree(data: bytes, grammar: Grammar) -> List[FrameNode]:
    """Parse a top-level frame sequence and recurse into every container the grammar names."""
    return [build_node(f, grammar) for f in parse_sequence(data)]


def serialize_tree(nodes: Sequence[FrameNode]) -> bytes:
    return serialize_sequence([n.to_frame() for n in nodes])


def iter_tree(nodes: Sequence[FrameNode], depth: int = 0) -> Iterator[Tuple[int, FrameNode]]:
    """Pre-order walk yielding (depth, node)."""
    for n in nodes:
        yield depth, n
        if isinstance(n, ContainerNode):
            yield from iter_tree(n.children, depth + 1)


# ---------- Tolerant scanner (diagnostics) ----------


@dataclass
class ScannedFrame:
    """Frame found by the scanner with a shallow child count (for diagnostics)."""
    id4: str
    start: int  # offset where frame header starts (id)
    end: int    # end offset of payload (exclusive)
    children_count: int


class FrameScanner:
    """
    Resynchronising frame scanner for damaged blobs. Yields every frame that
    looks plausible (pre-order), stepping a byte at a time over junk.
    """

    def walk(self, data: bytes, start: int = 0, end: int | None = None) -> Iterator[ScannedFrame]:
        if end is None:
            end = len(data)
        off = start

        while off + HEADER_SIZE <= end:
            if not looks_like_id(data[off : off + 4]):
                # resync inside container payloads when we hit non-frame bytes
                off += 1
                continue

            try:
                frame = Frame.parse(data, off, end)
            except TruncatedPayload:
                off += 1
                continue

            pstart = off + HEADER_SIZE
            pend = off + frame.total_size
            yield ScannedFrame(
                id4=frame.id4,
                start=off,
                end=pend,
                children_count=self._count_children(data, pstart, pend),
            )

            yield from self.walk(data, pstart, pend)

            # Jump to the end of this frame to continue with next sibling
            off = pend

    def _count_children(self, data: bytes, start: int, end: int) -> int:
        """Quick shallow scan to count immediate children; tolerant of junk."""
        count = 0
        off = start
        while off + HEADER_SIZE <= end:
            if not looks_like_id(data[off : off + 4]):
                break
            try:
                frame = Frame.parse(data, off, end)
            except TruncatedPayload:
                break
            count += 1
            off += frame.total_size
        return count
