"""
invoicecommit Invoice Table Parser

Decodes the contractor's delimited invoice table into an InvoiceInput.
The schema is strict and the parse is atomic: either every row decodes
cleanly or MalformedRecord is raised and nothing is returned.

Row layout (policy.line_item_field_count columns, first six used):

    type, subtype, description, proposal token, hours, total cost

Leading spaces of an unquoted field are dropped; text inside quotes is
kept as written, including newlines and lines that start with the comment
marker.
"""

import csv
import io
import logging
import math
import re
from typing import Iterator, List

from .errors import MalformedRecord
from .policy import DEFAULT_POLICY, InvoicePolicy
from .records import LINE_ITEM_TYPES, UINT16_MAX, InvoiceInput, LineItem


logger = logging.getLogger(__name__)

# Plain decimal notation only; no underscores, hex, inf or nan.
FLOAT_PATTERN = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$')

QUOTE_CHAR = '"'

FIELD_TYPE = 0
FIELD_SUBTYPE = 1
FIELD_DESCRIPTION = 2
FIELD_PROPOSAL_TOKEN = 3
FIELD_HOURS = 4
FIELD_TOTAL_COST = 5


def parse_invoice_csv(data: bytes, policy: InvoicePolicy = DEFAULT_POLICY) -> InvoiceInput:
    """
    Parse an invoice table.

    Args:
        data: Raw file contents, UTF-8 encoded
        policy: Delimiter, comment marker and column count

    Returns:
        InvoiceInput with line items in file order and no period set

    Raises:
        MalformedRecord: on any decoding, arity, type or number error
    """
    try:
        text = data.decode('utf-8')
    except UnicodeDecodeError as e:
        raise MalformedRecord(f"invoice is not valid UTF-8: {e.reason}")

    reader = csv.reader(
        _data_lines(text, policy),
        delimiter=policy.field_delimiter,
        quotechar=QUOTE_CHAR,
        skipinitialspace=True,
        strict=True,
    )

    line_items: List[LineItem] = []
    try:
        for row in reader:
            if not row:
                continue
            line_items.append(_parse_row(len(line_items), row, policy))
    except csv.Error as e:
        raise MalformedRecord(f"invalid table syntax: {e}", line=len(line_items))

    logger.debug("parsed %d invoice line items", len(line_items))
    return InvoiceInput(line_items=tuple(line_items))


def _data_lines(text: str, policy: InvoicePolicy) -> Iterator[str]:
    """
    Yield the physical lines of the table minus comment lines.

    A line is a comment only when it starts a new record; a line that
    continues a quoted field is data even if it begins with the comment
    marker.
    """
    in_quotes = False
    for line in io.StringIO(text, newline=''):
        if not in_quotes and line.startswith(policy.comment_char):
            continue
        in_quotes = _ends_inside_quotes(line, in_quotes, policy.field_delimiter)
        yield line


def _ends_inside_quotes(line: str, in_quotes: bool, delimiter: str) -> bool:
    # Follows the reader's dialect: a quote opens a field only at the start
    # of the field, and "" inside a quoted field is an escaped quote.
    can_open = not in_quotes
    for ch in line:
        if in_quotes:
            if ch == QUOTE_CHAR:
                in_quotes = False
                can_open = True
        elif ch == QUOTE_CHAR and can_open:
            in_quotes = True
        elif ch == delimiter or ch in '\r\n':
            can_open = True
        elif ch != ' ':
            can_open = False
    return in_quotes


def _parse_row(line_number: int, fields: List[str], policy: InvoicePolicy) -> LineItem:
    if line_number > UINT16_MAX:
        raise MalformedRecord("too many line items", line=line_number)

    if len(fields) != policy.line_item_field_count:
        raise MalformedRecord(
            f"expected {policy.line_item_field_count} fields, got {len(fields)}",
            line=line_number,
        )

    hours = _parse_float(fields[FIELD_HOURS], "hours", line_number)
    total_cost = _parse_float(fields[FIELD_TOTAL_COST], "total cost", line_number)

    item_type = LINE_ITEM_TYPES.get(fields[FIELD_TYPE].lower())
    if item_type is None:
        raise MalformedRecord(
            f"unknown line item type {fields[FIELD_TYPE]!r}", line=line_number
        )

    return LineItem(
        line_number=line_number,
        type=item_type,
        subtype=fields[FIELD_SUBTYPE],
        description=fields[FIELD_DESCRIPTION],
        proposal_token=fields[FIELD_PROPOSAL_TOKEN],
        hours=hours,
        total_cost=total_cost,
    )


def _parse_float(value: str, label: str, line_number: int) -> float:
    if not FLOAT_PATTERN.match(value):
        raise MalformedRecord(f"{label} is not a number: {value!r}", line=line_number)
    number = float(value)
    if not math.isfinite(number):
        raise MalformedRecord(f"{label} is out of range: {value!r}", line=line_number)
    return number


def serialize_invoice_csv(invoice: InvoiceInput, policy: InvoicePolicy = DEFAULT_POLICY) -> bytes:
    """
    Write line items back out as an invoice table in the policy's dialect.

    parse_invoice_csv(serialize_invoice_csv(x)) reproduces x's line items.
    """
    out = io.StringIO()
    writer = csv.writer(
        out,
        delimiter=policy.field_delimiter,
        quotechar=QUOTE_CHAR,
        quoting=csv.QUOTE_NONNUMERIC,
        lineterminator='\n',
    )
    padding = [""] * (policy.line_item_field_count - 6)
    for item in invoice.line_items:
        writer.writerow([
            item.type.name.lower(),
            item.subtype,
            item.description,
            item.proposal_token,
            item.hours,
            item.total_cost,
        ] + padding)
    return out.getvalue().encode('utf-8')
