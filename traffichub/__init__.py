"""Reassembly of HTTP/2 frames, HPACK and gzip decoding, and address normalisation for captured traffic."""

__version__ = "0.1.0"
__all__ = ["addressing", "gzipstream", "hpack", "http2"]