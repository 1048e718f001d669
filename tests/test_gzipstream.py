import gzip

import pytest

from traffichub.gzipstream import GzipDecompressor

CONN = "a1b2c3d4e5f6a7b8c9d0e1f2a3b4c5d600000010"
TEXT = "hello, compressed world " * 20


@pytest.fixture
def body() -> bytes:
    return gzip.compress(TEXT.encode())


def test_short_payload_ignored():
    assert GzipDecompressor().feed(CONN, 1, b"\x1f", 1) is None


def test_plain_payload_ignored():
    assert GzipDecompressor().feed(CONN, 1, b"plain text", 1) is None


def test_single_chunk(body):
    assert GzipDecompressor().feed(CONN, 1, body, 1) == TEXT


def test_split_chunks(body):
    dec = GzipDecompressor()
    pieces = [body[:10], body[10:25], body[25:]]
    assert dec.feed(CONN, 3, pieces[0], 0) is None
    assert dec.feed(CONN, 3, pieces[1], 0) is None
    assert dec.feed(CONN, 3, pieces[2], 1) == TEXT


def test_state_cleared_after_end(body):
    dec = GzipDecompressor()
    assert dec.feed(CONN, 1, body, 1) == TEXT
    assert dec.feed(CONN, 1, b"trailing bytes", 1) is None


def test_streams_are_separate(body):
    other_text = "second stream"
    other = gzip.compress(other_text.encode())
    dec = GzipDecompressor()
    assert dec.feed(CONN, 1, body[:12], 0) is None
    assert dec.feed(CONN, 3, other[:12], 0) is None
    assert dec.feed(CONN, 3, other[12:], 1) == other_text
    assert dec.feed(CONN, 1, body[12:], 1) == TEXT


def test_key_mixes_connection_and_stream(body):
    dec = GzipDecompressor()
    assert dec.feed("ff00000001", 0, body[:15], 0) is None
    assert dec.feed("ee00000000", 1, body[15:], 1) == TEXT


def test_non_hex_connection_id(body):
    dec = GzipDecompressor()
    assert dec.feed("conn-xyz", 5, body[:8], 0) is None
    assert dec.feed("conn-xyz", 5, body[8:], 1) == TEXT


def test_corrupt_stream_raises_and_clears():
    dec = GzipDecompressor()
    with pytest.raises(ValueError):
        dec.feed(CONN, 7, b"\x1f\x8bnot really gzip", 1)
    assert dec.feed(CONN, 7, b"no header here", 1) is None


def test_multiple_members(body):
    extra = gzip.compress(b"!")
    assert GzipDecompressor().feed(CONN, 9, body + extra, 1) == TEXT + "!"