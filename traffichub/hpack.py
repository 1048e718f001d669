"""HPACK header block decoding (static table, dynamic table and Huffman strings)."""

from __future__ import annotations

from collections import deque

DEFAULT_TABLE_SIZE = 4096
_ENTRY_OVERHEAD = 32


class HpackError(ValueError):
    """Raised when a header block cannot be decoded."""


class _NeedMore(Exception):
    """The buffered data ends in the middle of a header field."""


_STATIC_TABLE: tuple[tuple[str, str], ...] = (
    (":authority", ""),
    (":method", "GET"),
    (":method", "POST"),
    (":path", "/"),
    (":path", "/index.html"),
    (":scheme", "http"),
    (":scheme", "https"),
    (":status", "200"),
    (":status", "204"),
    (":status", "206"),
    (":status", "304"),
    (":status", "400"),
    (":status", "404"),
    (":status", "500"),
    ("accept-charset", ""),
    ("accept-encoding", "gzip, deflate"),
    ("accept-language", ""),
    ("accept-ranges", ""),
    ("accept", ""),
    ("access-control-allow-origin", ""),
    ("age", ""),
    ("allow", ""),
    ("authorization", ""),
    ("cache-control", ""),
    ("content-disposition", ""),
    ("content-encoding", ""),
    ("content-language", ""),
    ("content-length", ""),
    ("content-location", ""),
    ("content-range", ""),
    ("content-type", ""),
    ("cookie", ""),
    ("date", ""),
    ("etag", ""),
    ("expect", ""),
    ("expires", ""),
    ("from", ""),
    ("host", ""),
    ("if-match", ""),
    ("if-modified-since", ""),
    ("if-none-match", ""),
    ("if-range", ""),
    ("if-unmodified-since", ""),
    ("last-modified", ""),
    ("link", ""),
    ("location", ""),
    ("max-forwards", ""),
    ("proxy-authenticate", ""),
    ("proxy-authorization", ""),
    ("range", ""),
    ("referer", ""),
    ("refresh", ""),
    ("retry-after", ""),
    ("server", ""),
    ("set-cookie", ""),
    ("strict-transport-security", ""),
    ("transfer-encoding", ""),
    ("user-agent", ""),
    ("vary", ""),
    ("via", ""),
    ("www-authenticate", ""),
)

# (code, bit length) for symbols 0..255 followed by EOS.
_HUFFMAN_CODES: tuple[tuple[int, int], ...] = (
    (0x1FF8, 13), (0x7FFFD8, 23), (0xFFFFFE2, 28), (0xFFFFFE3, 28),
    (0xFFFFFE4, 28), (0xFFFFFE5, 28), (0xFFFFFE6, 28), (0xFFFFFE7, 28),
    (0xFFFFFE8, 28), (0xFFFFEA, 24), (0x3FFFFFFC, 30), (0xFFFFFE9, 28),
    (0xFFFFFEA, 28), (0x3FFFFFFD, 30), (0xFFFFFEB, 28), (0xFFFFFEC, 28),
    (0xFFFFFED, 28), (0xFFFFFEE, 28), (0xFFFFFEF, 28), (0xFFFFFF0, 28),
    (0xFFFFFF1, 28), (0xFFFFFF2, 28), (0x3FFFFFFE, 30), (0xFFFFFF3, 28),
    (0xFFFFFF4, 28), (0xFFFFFF5, 28), (0xFFFFFF6, 28), (0xFFFFFF7, 28),
    (0xFFFFFF8, 28), (0xFFFFFF9, 28), (0xFFFFFFA, 28), (0xFFFFFFB, 28),
    (0x14, 6), (0x3F8, 10), (0x3F9, 10), (0xFFA, 12),
    (0x1FF9, 13), (0x15, 6), (0xF8, 8), (0x7FA, 11),
    (0x3FA, 10), (0x3FB, 10), (0xF9, 8), (0x7FB, 11),
    (0xFA, 8), (0x16, 6), (0x17, 6), (0x18, 6),
    (0x0, 5), (0x1, 5), (0x2, 5), (0x19, 6),
    (0x1A, 6), (0x1B, 6), (0x1C, 6), (0x1D, 6),
    (0x1E, 6), (0x1F, 6), (0x5C, 7), (0xFB, 8),
    (0x7FFC, 15), (0x20, 6), (0xFFB, 12), (0x3FC, 10),
    (0x1FFA, 13), (0x21, 6), (0x5D, 7), (0x5E, 7),
    (0x5F, 7), (0x60, 7), (0x61, 7), (0x62, 7),
    (0x63, 7), (0x64, 7), (0x65, 7), (0x66, 7),
    (0x67, 7), (0x68, 7), (0x69, 7), (0x6A, 7),
    (0x6B, 7), (0x6C, 7), (0x6D, 7), (0x6E, 7),
    (0x6F, 7), (0x70, 7), (0x71, 7), (0x72, 7),
    (0xFC, 8), (0x73, 7), (0xFD, 8), (0x1FFB, 13),
    (0x7FFF0, 19), (0x1FFC, 13), (0x3FFC, 14), (0x22, 6),
    (0x7FFD, 15), (0x3, 5), (0x23, 6), (0x4, 5),
    (0x24, 6), (0x5, 5), (0x25, 6), (0x26, 6),
    (0x27, 6), (0x6, 5), (0x74, 7), (0x75, 7),
    (0x28, 6), (0x29, 6), (0x2A, 6), (0x7, 5),
    (0x2B, 6), (0x76, 7), (0x2C, 6), (0x8, 5),
    (0x9, 5), (0x2D, 6), (0x77, 7), (0x78, 7),
    (0x79, 7), (0x7A, 7), (0x7B, 7), (0x7FFE, 15),
    (0x7FC, 11), (0x3FFD, 14), (0x1FFD, 13), (0xFFFFFFC, 28),
    (0xFFFE6, 20), (0x3FFFD2, 22), (0xFFFE7, 20), (0xFFFE8, 20),
    (0x3FFFD3, 22), (0x3FFFD4, 22), (0x3FFFD5, 22), (0x7FFFD9, 23),
    (0x3FFFD6, 22), (0x7FFFDA, 23), (0x7FFFDB, 23), (0x7FFFDC, 23),
    (0x7FFFDD, 23), (0x7FFFDE, 23), (0xFFFFEB, 24), (0x7FFFDF, 23),
    (0xFFFFEC, 24), (0xFFFFED, 24), (0x3FFFD7, 22), (0x7FFFE0, 23),
    (0xFFFFEE, 24), (0x7FFFE1, 23), (0x7FFFE2, 23), (0x7FFFE3, 23),
    (0x7FFFE4, 23), (0x1FFFDC, 21), (0x3FFFD8, 22), (0x7FFFE5, 23),
    (0x3FFFD9, 22), (0x7FFFE6, 23), (0x7FFFE7, 23), (0xFFFFEF, 24),
    (0x3FFFDA, 22), (0x1FFFDD, 21), (0xFFFE9, 20), (0x3FFFDB, 22),
    (0x3FFFDC, 22), (0x7FFFE8, 23), (0x7FFFE9, 23), (0x1FFFDE, 21),
    (0x7FFFEA, 23), (0x3FFFDD, 22), (0x3FFFDE, 22), (0xFFFFF0, 24),
    (0x1FFFDF, 21), (0x3FFFDF, 22), (0x7FFFEB, 23), (0x7FFFEC, 23),
    (0x1FFFE0, 21), (0x1FFFE1, 21), (0x3FFFE0, 22), (0x1FFFE2, 21),
    (0x7FFFED, 23), (0x3FFFE1, 22), (0x7FFFEE, 23), (0x7FFFEF, 23),
    (0xFFFEA, 20), (0x3FFFE2, 22), (0x3FFFE3, 22), (0x3FFFE4, 22),
    (0x7FFFF0, 23), (0x3FFFE5, 22), (0x3FFFE6, 22), (0x7FFFF1, 23),
    (0x3FFFFE0, 26), (0x3FFFFE1, 26), (0xFFFEB, 20), (0x7FFF1, 19),
    (0x3FFFE7, 22), (0x7FFFF2, 23), (0x3FFFE8, 22), (0x1FFFFEC, 25),
    (0x3FFFFE2, 26), (0x3FFFFE3, 26), (0x3FFFFE4, 26), (0x7FFFFDE, 27),
    (0x7FFFFDF, 27), (0x3FFFFE5, 26), (0xFFFFF1, 24), (0x1FFFFED, 25),
    (0x7FFF2, 19), (0x1FFFE3, 21), (0x3FFFFE6, 26), (0x7FFFFE0, 27),
    (0x7FFFFE1, 27), (0x3FFFFE7, 26), (0x7FFFFE2, 27), (0xFFFFF2, 24),
    (0x1FFFE4, 21), (0x1FFFE5, 21), (0x3FFFFE8, 26), (0x3FFFFE9, 26),
    (0xFFFFFFD, 28), (0x7FFFFE3, 27), (0x7FFFFE4, 27), (0x7FFFFE5, 27),
    (0xFFFEC, 20), (0xFFFFF3, 24), (0xFFFED, 20), (0x1FFFE6, 21),
    (0x3FFFE9, 22), (0x1FFFE7, 21), (0x1FFFE8, 21), (0x7FFFF3, 23),
    (0x3FFFEA, 22), (0x3FFFEB, 22), (0x1FFFFEE, 25), (0x1FFFFEF, 25),
    (0xFFFFF4, 24), (0xFFFFF5, 24), (0x3FFFFEA, 26), (0x7FFFF4, 23),
    (0x3FFFFEB, 26), (0x7FFFFE6, 27), (0x3FFFFEC, 26), (0x3FFFFED, 26),
    (0x7FFFFE7, 27), (0x7FFFFE8, 27), (0x7FFFFE9, 27), (0x7FFFFEA, 27),
    (0x7FFFFEB, 27), (0xFFFFFFE, 28), (0x7FFFFEC, 27), (0x7FFFFED, 27),
    (0x7FFFFEE, 27), (0x7FFFFEF, 27), (0x7FFFFF0, 27), (0x3FFFFEE, 26),
    (0x3FFFFFFF, 30),
)

_HUFFMAN_LOOKUP: dict[tuple[int, int], int] = {
    (length, code): symbol for symbol, (code, length) in enumerate(_HUFFMAN_CODES[:256])
}
_MAX_CODE_BITS = 30

_INVALID_HUFFMAN = "hpack: invalid Huffman-encoded data"


def huffman_decode(data: bytes) -> bytes:
    """Decode a Huffman-coded HPACK string literal."""
    out = bytearray()
    code = 0
    bits = 0
    for byte in data:
        for shift in range(7, -1, -1):
            code = (code << 1) | ((byte >> shift) & 1)
            bits += 1
            symbol = _HUFFMAN_LOOKUP.get((bits, code))
            if symbol is not None:
                out.append(symbol)
                code = 0
                bits = 0
            elif bits >= _MAX_CODE_BITS:
                raise HpackError(_INVALID_HUFFMAN)
    if bits > 7 or code != (1 << bits) - 1:
        raise HpackError(_INVALID_HUFFMAN)
    return bytes(out)


def _read_int(buf: bytes, pos: int, prefix_bits: int) -> tuple[int, int]:
    if pos >= len(buf):
        raise _NeedMore
    mask = (1 << prefix_bits) - 1
    value = buf[pos] & mask
    pos += 1
    if value < mask:
        return value, pos
    shift = 0
    while pos < len(buf):
        byte = buf[pos]
        pos += 1
        value += (byte & 0x7F) << shift
        if not byte & 0x80:
            return value, pos
        shift += 7
        if shift >= 63:
            raise HpackError("decoding error: varint integer overflow")
    raise _NeedMore


def _read_string(buf: bytes, pos: int) -> tuple[str, int]:
    if pos >= len(buf):
        raise _NeedMore
    huffman = bool(buf[pos] & 0x80)
    length, pos = _read_int(buf, pos, 7)
    end = pos + length
    if end > len(buf):
        raise _NeedMore
    raw = buf[pos:end]
    if huffman:
        raw = huffman_decode(raw)
    return raw.decode("utf-8", errors="replace"), end


class HpackDecoder:
    """Stateful decoder for the header blocks of one HTTP/2 connection.

    Data that ends in the middle of a header field is kept and prepended to
    the next block handed to decode().
    """

    def __init__(self, max_table_size: int = DEFAULT_TABLE_SIZE) -> None:
        self._entries: deque[tuple[str, str]] = deque()
        self._size = 0
        self._max_size = max_table_size
        self._allowed_max_size = max_table_size
        self._pending = b""
        self._first_field = True

    def _set_max_size(self, size: int) -> None:
        self._max_size = size
        self._evict()

    def _evict(self) -> None:
        while self._size > self._max_size and self._entries:
            name, value = self._entries.pop()
            self._size -= len(name.encode()) + len(value.encode()) + _ENTRY_OVERHEAD

    def _add(self, name: str, value: str) -> None:
        self._entries.appendleft((name, value))
        self._size += len(name.encode()) + len(value.encode()) + _ENTRY_OVERHEAD
        self._evict()

    def _lookup(self, index: int) -> tuple[str, str]:
        if index >= 1:
            if index <= len(_STATIC_TABLE):
                return _STATIC_TABLE[index - 1]
            dynamic_index = index - len(_STATIC_TABLE) - 1
            if dynamic_index < len(self._entries):
                return self._entries[dynamic_index]
        raise HpackError(f"decoding error: invalid indexed representation index {index}")

    def _parse_literal(
        self, buf: bytes, pos: int, prefix_bits: int, fields: list[tuple[str, str]], index: bool
    ) -> int:
        name_index, pos = _read_int(buf, pos, prefix_bits)
        if name_index:
            name = self._lookup(name_index)[0]
        else:
            name, pos = _read_string(buf, pos)
        value, pos = _read_string(buf, pos)
        fields.append((name, value))
        if index:
            self._add(name, value)
        return pos

    def _parse_field(self, buf: bytes, pos: int, fields: list[tuple[str, str]]) -> int:
        first = buf[pos]
        if first & 0x80:
            index, pos = _read_int(buf, pos, 7)
            fields.append(self._lookup(index))
            return pos
        if first & 0xC0 == 0x40:
            return self._parse_literal(buf, pos, 6, fields, index=True)
        if first & 0xE0 == 0x20:
            if not self._first_field and self._size > 0:
                raise HpackError(
                    "decoding error: dynamic table size update MUST occur "
                    "at the beginning of a header block"
                )
            size, pos = _read_int(buf, pos, 5)
            if size > self._allowed_max_size:
                raise HpackError("decoding error: dynamic table size update too large")
            self._set_max_size(size)
            return pos
        return self._parse_literal(buf, pos, 4, fields, index=False)

    def decode(self, block: bytes) -> list[tuple[str, str]]:
        """Decode a header block fragment into (name, value) pairs."""
        if not block:
            return []
        buf = self._pending + bytes(block)
        self._pending = b""
        fields: list[tuple[str, str]] = []
        pos = 0
        while pos < len(buf):
            try:
                pos = self._parse_field(buf, pos, fields)
            except _NeedMore:
                self._pending = buf[pos:]
                return fields
            except HpackError:
                self._first_field = False
                raise
            self._first_field = False
        return fields