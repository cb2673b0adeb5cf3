"""
invoicecommit File Bundle Builder

Wraps the invoice and its attachments into FileDescriptors. The invoice
always comes first, attachments follow in the order given; that order is
what the Merkle root and signature commit to.
"""

import base64
import logging
import os
from pathlib import Path
from typing import List, Sequence, Tuple, Union

from .errors import BundleIOError, PolicyViolation
from .hashing import digest_hex
from .mime import detect_mime_type
from .policy import DEFAULT_POLICY, INVOICE_FILE_NAME, InvoicePolicy
from .records import FileDescriptor, InvoiceInput


logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def clean_and_expand_path(path: PathLike) -> Path:
    """Expand ~ and environment variables, then normalise the path."""
    expanded = os.path.expandvars(os.path.expanduser(os.fspath(path)))
    return Path(os.path.normpath(expanded))


def read_file(path: PathLike) -> bytes:
    """
    Read a whole file into memory.

    Raises:
        BundleIOError: if the file cannot be read
    """
    resolved = clean_and_expand_path(path)
    try:
        return resolved.read_bytes()
    except OSError as e:
        raise BundleIOError(str(resolved), e.strerror or str(e)) from e


def file_descriptor(name: str, data: bytes) -> FileDescriptor:
    """Build a descriptor: content-sniffed type, digest of the raw bytes, base64 payload."""
    return FileDescriptor(
        name=name,
        mime=detect_mime_type(data),
        digest=digest_hex(data),
        payload=base64.b64encode(data).decode('ascii'),
    )


def invoice_file(invoice: InvoiceInput) -> FileDescriptor:
    """Serialize the invoice canonically and wrap it as invoice.json."""
    return file_descriptor(INVOICE_FILE_NAME, invoice.to_bytes())


def attachment_file(path: PathLike) -> FileDescriptor:
    """Read an attachment from disk, named by its base name."""
    data = read_file(path)
    return file_descriptor(clean_and_expand_path(path).name, data)


def build_bundle_files(
    invoice: InvoiceInput,
    attachment_paths: Sequence[PathLike] = (),
    policy: InvoicePolicy = DEFAULT_POLICY,
) -> Tuple[FileDescriptor, ...]:
    """
    Build the ordered file list for a submission.

    Args:
        invoice: Parsed invoice, period already set
        attachment_paths: Attachment files in submission order
        policy: Attachment count and media type limits

    Returns:
        Tuple of FileDescriptors, invoice first

    Raises:
        PolicyViolation: too many attachments or a disallowed media type
        BundleIOError: an attachment could not be read
    """
    if len(attachment_paths) > policy.max_attachments:
        raise PolicyViolation(
            f"too many attachments: {len(attachment_paths)} > {policy.max_attachments}"
        )

    files: List[FileDescriptor] = [invoice_file(invoice)]
    names = {INVOICE_FILE_NAME}
    for path in attachment_paths:
        f = attachment_file(path)
        if f.mime not in policy.allowed_media_types:
            raise PolicyViolation(f"{f.name}: media type {f.mime!r} is not allowed")
        if f.name in names:
            raise PolicyViolation(f"duplicate file name {f.name!r}")
        names.add(f.name)
        files.append(f)

    logger.debug("built bundle with %d files", len(files))
    return tuple(files)
