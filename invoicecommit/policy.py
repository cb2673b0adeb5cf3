"""
invoicecommit Invoice Policy

The authority publishes a fixed invoice policy. It is passed explicitly
into the parser and bundle builder rather than read from ambient state.
"""

from dataclasses import dataclass, field
from typing import FrozenSet


MIME_PNG = "image/png"
MIME_TEXT_UTF8 = "text/plain; charset=utf-8"

INVOICE_FILE_NAME = "invoice.json"


@dataclass(frozen=True)
class InvoicePolicy:
    """
    Invoice submission policy.

    - field_delimiter: column separator of the invoice table
    - comment_char: lines starting with this character are ignored
    - line_item_field_count: exact number of columns per row
    - max_attachments: attachments allowed next to the invoice itself
    - allowed_media_types: detected media types accepted for attachments
    """
    field_delimiter: str = ","
    comment_char: str = "#"
    line_item_field_count: int = 6
    max_attachments: int = 5
    allowed_media_types: FrozenSet[str] = field(
        default_factory=lambda: frozenset({MIME_PNG, MIME_TEXT_UTF8})
    )

    def __post_init__(self):
        if len(self.field_delimiter) != 1:
            raise ValueError("field_delimiter must be a single character")
        if len(self.comment_char) != 1:
            raise ValueError("comment_char must be a single character")
        if self.comment_char == self.field_delimiter:
            raise ValueError("comment_char must differ from field_delimiter")
        if self.field_delimiter in ('"', "\r", "\n"):
            raise ValueError(f"invalid field_delimiter {self.field_delimiter!r}")
        if self.comment_char in ('"', " ", "\r", "\n"):
            raise ValueError(f"invalid comment_char {self.comment_char!r}")
        if self.line_item_field_count < 6:
            raise ValueError("line_item_field_count must be at least 6")
        if self.max_attachments < 0:
            raise ValueError("max_attachments must not be negative")


DEFAULT_POLICY = InvoicePolicy()
