"""Reassembly and description of HTTP/2 frames from captured connection bytes."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from traffichub.hpack import HpackDecoder, HpackError

HTTP2_PREFACE = b"PRI * HTTP/2.0\r\n\r\nSM\r\n\r\n"
FRAME_TYPES = {
    0x00: "DATA",
    0x01: "HEADERS",
    0x02: "PRIORITY",
    0x03: "RST_STREAM",
    0x04: "SETTINGS",
    0x05: "PUSH_PROMISE",
    0x06: "PING",
    0x07: "GOAWAY",
    0x08: "WINDOW_UPDATE",
    0x09: "CONTINUATION",
}

_SETTING_NAMES = {
    0x1: "SETTINGS_HEADER_TABLE_SIZE",
    0x2: "SETTINGS_ENABLE_PUSH",
    0x3: "SETTINGS_MAX_CONCURRENT_STREAMS",
    0x4: "SETTINGS_INITIAL_WINDOW_SIZE",
    0x5: "SETTINGS_MAX_FRAME_SIZE",
    0x6: "SETTINGS_MAX_HEADER_LIST_SIZE",
}

_HEADER_SIZE = 9


@dataclass(frozen=True)
class FrameHeader:
    """The fixed nine-byte header of an HTTP/2 frame."""

    length: int
    type: str
    flags: int
    stream_id: int


@dataclass
class DecodedFrame:
    """A frame recovered from a connection, with a readable description."""

    connection_id: str
    header: FrameHeader
    payload: bytes = b""
    incomplete: bool = False
    additional_info: str = ""


@dataclass
class _ConnectionState:
    buffer: bytes
    decoder: HpackDecoder = field(default_factory=HpackDecoder)
    expecting: FrameHeader | None = None


def setting_name(setting_id: int) -> str:
    """Return the name of a SETTINGS parameter."""
    return _SETTING_NAMES.get(setting_id, f"UNKNOWN({setting_id})")


def describe_frame(header: FrameHeader, payload: bytes, decoder: HpackDecoder | None = None) -> str:
    """Describe a frame; HEADERS payloads are decoded with the given HPACK decoder."""
    info = (
        f"Frame Type: {header.type}, Length: {header.length}, Flags: {header.flags}, "
        f"Stream ID: {header.stream_id}\nAdditional Info:\n"
    )
    if header.type == "SETTINGS":
        if len(payload) % 6:
            return info + "  Invalid SETTINGS frame length"
        for pos in range(0, len(payload), 6):
            ident = int.from_bytes(payload[pos:pos + 2], "big")
            value = int.from_bytes(payload[pos + 2:pos + 6], "big")
            info += f"  {setting_name(ident)} = {value}\n"
    elif header.type == "WINDOW_UPDATE":
        if len(payload) != 4:
            info += f"  Invalid WINDOW_UPDATE frame: expected 4 bytes, got {len(payload)}\n"
        else:
            increment = int.from_bytes(payload, "big") & 0x7FFFFFFF
            info += f"  Window Size Increment: {increment}\n"
    elif header.type == "DATA":
        info += f"  Data Length: {len(payload)}\n"
    elif header.type == "HEADERS":
        if decoder is None:
            decoder = HpackDecoder()
        try:
            headers = decoder.decode(payload)
        except HpackError as exc:
            return info + f"  Failed to decode HEADERS: {exc}\n"
        if not headers:
            info += "  No headers found in HEADERS frame"
        else:
            info += "  HEADERS:\n"
            info += "".join(f"    {name}: {value}\n" for name, value in headers)
    else:
        info += "  No additional info available."
    return info


class Reassembler:
    """Rebuilds HTTP/2 frames from chunks of bytes seen on each connection."""

    def __init__(self) -> None:
        self._states: dict[str, _ConnectionState] = {}
        self._lock = threading.Lock()

    def feed(self, connection_id: str, raw: bytes) -> list[DecodedFrame]:
        """Add bytes for a connection and return the frames now complete.

        A connection is tracked only once its data starts with the client
        preface. Malformed frames stop tracking of the connection.
        """
        raw = bytes(raw)
        with self._lock:
            state = self._states.get(connection_id)
            if state is None:
                if not raw.startswith(HTTP2_PREFACE):
                    return []
                state = _ConnectionState(buffer=raw[len(HTTP2_PREFACE):])
                self._states[connection_id] = state
            else:
                state.buffer += raw

            frames: list[DecodedFrame] = []
            buf = state.buffer
            offset = 0
            while True:
                if state.expecting is not None:
                    total = _HEADER_SIZE + state.expecting.length
                    if len(buf) - offset < total:
                        break
                    payload = buf[offset + _HEADER_SIZE:offset + total]
                    frames.append(self._complete(connection_id, state.expecting, payload, state))
                    offset += total
                    state.expecting = None
                    continue

                if len(buf) - offset < _HEADER_SIZE:
                    break
                length = int.from_bytes(buf[offset:offset + 3], "big")
                type_name = FRAME_TYPES.get(buf[offset + 3])
                flags = buf[offset + 4]
                stream_id = int.from_bytes(buf[offset + 5:offset + 9], "big") & 0x7FFFFFFF

                if (
                    type_name is None
                    or (type_name in ("DATA", "HEADERS") and stream_id == 0)
                    or (type_name == "SETTINGS" and length % 6)
                ):
                    del self._states[connection_id]
                    return frames

                header = FrameHeader(length=length, type=type_name, flags=flags, stream_id=stream_id)
                available = len(buf) - offset - _HEADER_SIZE
                if available < length:
                    if available == 0:
                        frames.append(DecodedFrame(connection_id, header, b"", incomplete=True))
                    else:
                        state.expecting = header
                    break

                payload = buf[offset + _HEADER_SIZE:offset + _HEADER_SIZE + length]
                frames.append(self._complete(connection_id, header, payload, state))
                offset += _HEADER_SIZE + length

            state.buffer = buf[offset:]
            return frames

    @staticmethod
    def _complete(
        connection_id: str, header: FrameHeader, payload: bytes, state: _ConnectionState
    ) -> DecodedFrame:
        return DecodedFrame(
            connection_id=connection_id,
            header=header,
            payload=payload,
            additional_info=describe_frame(header, payload, state.decoder),
        )