"""Wire encodings for flushed batches: JSON array (optionally zlib'd) and NDJSON."""

import json
import zlib

MAGIC_HEADER = b"\xcb\xf2"
FLAG_COMPRESSED = 0x01


def serialize_batch(entries: list[dict], compress: bool = False) -> bytes:
    """Encode a batch as one JSON array.

    Compressed batches carry a 3-byte prefix (magic + flags byte) so the
    receiver can tell them apart from plain JSON.
    """
    payload = json.dumps(entries).encode("utf-8")
    if not compress:
        return payload
    return MAGIC_HEADER + bytes([FLAG_COMPRESSED]) + zlib.compress(payload)


def deserialize_batch(data: bytes) -> list[dict]:
    if data[:2] == MAGIC_HEADER:
        data = zlib.decompress(data[3:])
    return json.loads(data)


def format_ndjson(entry: dict) -> bytes:
    """One compact JSON object per line, UTF-8 encoded."""
    return (json.dumps(entry, separators=(",", ":")) + "\n").encode("utf-8")
