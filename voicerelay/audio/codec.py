"""
Base64 helpers for audio fragments.

Outbound chunks are encoded one at a time. Inbound fragments are accumulated
as text and joined before decoding; each fragment carries its own padding, so
the joined text is decoded segment by segment instead of stopping at the first
``=``.

This differs from decoding the joined text in one call: a plain
``base64.b64decode("QQ==Qg==")``, like Node's ``Buffer.from(text, "base64")``,
returns only the first fragment (``b"A"``) and silently drops the rest, where
``decode_concatenated`` returns ``b"AB"``.
"""

import base64
import binascii
import re

# One padded base64 group run: data characters followed by optional padding.
_SEGMENT_RE = re.compile(r"[A-Za-z0-9+/]+={0,2}")


def encode_chunk(data: bytes) -> str:
    """Encode raw PCM bytes as base64 text for an append message."""
    return base64.b64encode(data).decode("ascii")


def decode_concatenated(text: str) -> bytes:
    """Decode base64 text made of one or more independently padded fragments.

    ``"QQ==Qg=="`` decodes to ``b"AB"``: the bytes of each fragment in order.

    Raises:
        ValueError: if a segment is not valid base64.
    """
    cleaned = "".join(text.split())
    if not cleaned:
        return b""

    decoded = bytearray()
    position = 0
    for match in _SEGMENT_RE.finditer(cleaned):
        if match.start() != position:
            raise ValueError(
                f"Invalid base64 character at offset {position}: {cleaned[position]!r}"
            )
        decoded.extend(_decode_segment(match.group()))
        position = match.end()

    if position != len(cleaned):
        raise ValueError(
            f"Invalid base64 character at offset {position}: {cleaned[position]!r}"
        )
    return bytes(decoded)


def _decode_segment(segment: str) -> bytes:
    # unpadded trailing groups are tolerated
    missing = -len(segment) % 4
    try:
        return base64.b64decode(segment + "=" * missing, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 segment {segment[:16]!r}: {e}") from e
