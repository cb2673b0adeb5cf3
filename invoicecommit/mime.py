"""
invoicecommit Media Type Detection

Media types are sniffed from content, never from file names, so the same
bytes always report the same type regardless of what the file is called.
"""

from typing import List, Tuple

from .policy import MIME_PNG, MIME_TEXT_UTF8


MIME_OCTET_STREAM = "application/octet-stream"

SNIFF_LEN = 512

# (signature, media type), checked in order against the start of the payload.
MAGIC_SIGNATURES: List[Tuple[bytes, str]] = [
    (b"\x89PNG\r\n\x1a\n", MIME_PNG),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"%PDF-", "application/pdf"),
    (b"PK\x03\x04", "application/zip"),
    (b"\x1f\x8b\x08", "application/x-gzip"),
]

# Control bytes that never appear in text. Tab, LF, FF, CR and ESC are allowed.
BINARY_BYTES = frozenset(
    set(range(0x00, 0x09)) | {0x0B, 0x0E, 0x0F} | set(range(0x10, 0x1B)) | set(range(0x1C, 0x20))
)


def detect_mime_type(data: bytes) -> str:
    """
    Detect the media type of a payload.

    Known binary formats are matched by magic number. Anything else is
    plain UTF-8 text when its leading bytes hold no binary control bytes,
    and application/octet-stream otherwise. JSON and CSV are plain text.
    """
    head = data[:SNIFF_LEN]
    for signature, media_type in MAGIC_SIGNATURES:
        if head.startswith(signature):
            return media_type

    if any(b in BINARY_BYTES for b in head):
        return MIME_OCTET_STREAM
    return MIME_TEXT_UTF8
