# traffichub

A library that turns raw captured socket data into readable HTTP/2 traffic.

## Modules

### `traffichub.http2`

- `Reassembler.feed(connection_id, raw)` takes the bytes seen on a connection,
  one chunk at a time. It returns a list of the `DecodedFrame` objects that are
  now complete. A connection is tracked only if its first chunk begins with
  the HTTP/2 client preface (`HTTP2_PREFACE`); otherwise an empty list comes
  back. A frame of unknown type, a DATA or HEADERS frame on stream 0, or a
  SETTINGS frame whose length is not a multiple of 6 stops tracking of that
  connection. A frame header that arrives with no payload bytes yet is
  reported with `incomplete=True`. A partial payload is held until the rest
  arrives.
- `DecodedFrame` has `connection_id`, `header` (a `FrameHeader` with `length`,
  `type`, `flags`, `stream_id`), `payload`, `incomplete` and
  `additional_info`.
- `describe_frame(header, payload, decoder=None)` builds the text summary. It
  lists SETTINGS entries (named by `setting_name`), WINDOW_UPDATE increments,
  DATA lengths and the header fields of HEADERS frames, which it decodes with
  the connection's `HpackDecoder`.

### `traffichub.hpack`

- `HpackDecoder(max_table_size=4096)` is a stateful header-block decoder with
  the static table and a dynamic table. `decode(block)` returns a list of
  `(name, value)` pairs. If a block ends partway through a field, the rest is
  kept and joined onto the next block.
- `huffman_decode(data)` decodes an HPACK Huffman-coded string.
- Malformed input raises `HpackError`, a subclass of `ValueError`.

### `traffichub.gzipstream`

- `GzipDecompressor.feed(connection_id, stream_id, payload, flags)` collects
  DATA payloads for each connection and stream. A stream is collected once a
  payload starting with the gzip magic bytes is seen. When `flags` has the
  END_STREAM bit (`0x1`), the chunks are joined and decompressed and the text
  is returned. Until then, and for streams that are not gzip, it returns
  `None`. A finished stream that is not valid gzip raises `ValueError`.

### `traffichub.addressing`

- `AddressInfo` holds a raw address record, with ports in network byte order.
  `get_normalized_address_info(addr, event_type)` turns it into a
  `NormalizedAddrInfo`. The source is the sending side for write events
  (`EVENT_TYPE_WRITE`) and the remote side otherwise.
- Helpers: `reverse_endian`, `uint32_to_ipv4`, `decode_ipv6`,
  `is_ipv4_mapped_ipv6`, `compress_ipv6`.
- `generate_event_id(ts, tid, data)` gives a 16-hex-digit event id.
  `get_connection_id(src_ip, dst_ip, src_port, dst_port)` gives a SHA-1 id that
  does not depend on the direction of the endpoints.

## Install

```
pip install .
```

## Example

```python
from traffichub.http2 import HTTP2_PREFACE, Reassembler

settings = bytes([0, 0, 6, 4, 0, 0, 0, 0, 0]) + bytes([0, 3, 0, 0, 0, 100])

reassembler = Reassembler()
for frame in reassembler.feed("conn-1", HTTP2_PREFACE + settings):
    print(frame.header.type, frame.header.length)
    print(frame.additional_info)
```

```python
from traffichub.addressing import get_connection_id

# The same id comes back whichever direction the endpoints are given in.
assert get_connection_id("10.0.0.1", "10.0.0.2", 5000, 443) == \
       get_connection_id("10.0.0.2", "10.0.0.1", 443, 5000)
```

## What it does not do

traffichub does not capture traffic itself. It has no command-line program
and no server, and it does not store or forward what it decodes. You pass it
bytes and address records taken from your own capture source, and it gives
back plain Python objects. Header fields are decoded only from HEADERS frames.
CONTINUATION and PUSH_PROMISE frames get the generic description.

## Tests

```
pip install .[test]
pytest
```