"""Reassembly and decompression of gzip bodies carried on HTTP/2 streams."""

from __future__ import annotations

import binascii
import gzip
import threading
import zlib

_END_STREAM = 0x1
_FNV32_OFFSET = 0x811C9DC5
_FNV32_PRIME = 0x01000193


def _fnv1a_32(data: bytes) -> int:
    value = _FNV32_OFFSET
    for byte in data:
        value = ((value ^ byte) * _FNV32_PRIME) & 0xFFFFFFFF
    return value


class GzipDecompressor:
    """Collects gzip chunks per stream and inflates them when a stream ends."""

    def __init__(self) -> None:
        self._streams: dict[str, list[bytes]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _interleaved_id(connection_id: str, stream_id: int) -> str:
        try:
            id_bytes = binascii.unhexlify(connection_id[-8:])
        except (binascii.Error, ValueError):
            id_bytes = b""
        if len(id_bytes) != 4:
            id_bytes = _fnv1a_32(connection_id.encode()).to_bytes(4, "big")
        sid_bytes = (stream_id & 0xFFFFFFFF).to_bytes(4, "big")
        return bytes(a ^ b for a, b in zip(id_bytes, sid_bytes)).hex()

    def feed(self, connection_id: str, stream_id: int, payload: bytes, flags: int) -> str | None:
        """Add a DATA payload; return the inflated text once END_STREAM is seen.

        Returns None while a stream is incomplete or carries no gzip data.
        Raises ValueError when a finished stream is not valid gzip.
        """
        if len(payload) < 2:
            return None
        is_gzip = payload[0] == 0x1F and payload[1] == 0x8B
        key = self._interleaved_id(connection_id, stream_id)

        with self._lock:
            chunks = self._streams.get(key)
            if not is_gzip and chunks is None:
                return None
            if chunks is None:
                chunks = self._streams[key] = []
            chunks.append(bytes(payload))
            if not flags & _END_STREAM:
                return None
            del self._streams[key]

        try:
            data = gzip.decompress(b"".join(chunks))
        except (OSError, EOFError, zlib.error) as exc:
            raise ValueError(f"invalid gzip stream: {exc}") from exc
        return data.decode("utf-8", errors="replace")