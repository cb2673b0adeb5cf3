"""
invoicecommit Records

Value types threaded through the submission pipeline. Each record is
immutable once constructed and converts to and from its wire dictionary.
"""

import base64
import binascii
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Optional, Tuple

from .canonicalization import canonicalize


UINT16_MAX = 0xFFFF


class LineItemType(IntEnum):
    """Closed set of invoice line item types. Wire values are integers."""
    INVALID = 0
    LABOR = 1
    EXPENSE = 2
    MISC = 3


# Case-insensitive lookup from the invoice table's type column.
LINE_ITEM_TYPES: Dict[str, LineItemType] = {
    "labor": LineItemType.LABOR,
    "expense": LineItemType.EXPENSE,
    "misc": LineItemType.MISC,
}


@dataclass(frozen=True)
class LineItem:
    """One row of the invoice table."""
    line_number: int
    type: LineItemType
    subtype: str
    description: str
    proposal_token: str
    hours: float
    total_cost: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "linenumber": self.line_number,
            "type": int(self.type),
            "subtype": self.subtype,
            "description": self.description,
            "proposaltoken": self.proposal_token,
            "hours": self.hours,
            "totalcost": self.total_cost,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LineItem':
        return cls(
            line_number=int(data["linenumber"]),
            type=LineItemType(int(data["type"])),
            subtype=data.get("subtype", ""),
            description=data.get("description", ""),
            proposal_token=data.get("proposaltoken", ""),
            hours=float(data["hours"]),
            total_cost=float(data["totalcost"]),
        )


@dataclass(frozen=True)
class InvoicePeriod:
    """Billing month and year of an invoice."""
    month: int
    year: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ValueError(f"month must be between 1 and 12, got {self.month}")
        if not 1 <= self.year <= UINT16_MAX:
            raise ValueError(f"year out of range: {self.year}")


@dataclass(frozen=True)
class InvoiceInput:
    """
    The structured invoice record.

    Line items keep the order of the source table; that order is part of
    the canonical encoding and therefore of the signed commitment.
    """
    line_items: Tuple[LineItem, ...] = ()
    period: Optional[InvoicePeriod] = None

    def with_period(self, period: InvoicePeriod) -> 'InvoiceInput':
        return InvoiceInput(line_items=self.line_items, period=period)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month": self.period.month if self.period else 0,
            "year": self.period.year if self.period else 0,
            "lineitems": [item.to_dict() for item in self.line_items],
        }

    def to_bytes(self) -> bytes:
        """Canonical byte encoding used as the invoice file payload."""
        return canonicalize(self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'InvoiceInput':
        period = None
        if data.get("month") or data.get("year"):
            period = InvoicePeriod(month=int(data["month"]), year=int(data["year"]))
        return cls(
            line_items=tuple(LineItem.from_dict(i) for i in data.get("lineitems") or []),
            period=period,
        )


@dataclass(frozen=True)
class FileDescriptor:
    """
    A file inside a submission bundle.

    digest is the hex SHA-256 of the raw payload bytes, and mime is
    detected from those bytes, never from the name.
    """
    name: str
    mime: str
    digest: str
    payload: str

    def raw_payload(self) -> bytes:
        """Decode the base64 payload. Raises ValueError on bad encoding."""
        try:
            return base64.b64decode(self.payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"invalid base64 payload for {self.name}: {e}")

    def to_dict(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "mime": self.mime,
            "digest": self.digest,
            "payload": self.payload,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FileDescriptor':
        return cls(
            name=data["name"],
            mime=data["mime"],
            digest=data["digest"],
            payload=data["payload"],
        )


@dataclass(frozen=True)
class SubmissionBundle:
    """
    The signed submission unit.

    The signature covers the Merkle root of files in this exact order;
    reordering files invalidates it.
    """
    files: Tuple[FileDescriptor, ...]
    public_key: str
    signature: str
    period: InvoicePeriod

    def to_request(self) -> Dict[str, Any]:
        """Wire request, fields in the order the authority expects."""
        return {
            "files": [f.to_dict() for f in self.files],
            "publickey": self.public_key,
            "signature": self.signature,
            "month": self.period.month,
            "year": self.period.year,
        }

    @classmethod
    def from_request(cls, data: Dict[str, Any]) -> 'SubmissionBundle':
        return cls(
            files=tuple(FileDescriptor.from_dict(f) for f in data.get("files") or []),
            public_key=data["publickey"],
            signature=data["signature"],
            period=InvoicePeriod(month=int(data["month"]), year=int(data["year"])),
        )


@dataclass(frozen=True)
class CensorshipRecord:
    """
    Receipt issued by the authority.

    signature is the authority's signature over merkle || token. merkle is
    echoed by the authority and may be empty in older replies.
    """
    token: str
    signature: str
    merkle: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "token": self.token,
            "merkle": self.merkle,
            "signature": self.signature,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CensorshipRecord':
        return cls(
            token=data["token"],
            signature=data["signature"],
            merkle=data.get("merkle") or "",
        )


@dataclass(frozen=True)
class VersionReply:
    """Handshake reply; pubkey is the authority's Ed25519 key in hex."""
    version: int
    route: str
    pubkey: str
    testnet: bool = False


@dataclass(frozen=True)
class NewInvoiceReply:
    """Reply to a new invoice submission."""
    censorship_record: CensorshipRecord
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data["censorshiprecord"] = self.censorship_record.to_dict()
        return data
