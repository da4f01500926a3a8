"""Opaque file identifiers.

An identifier is the unpadded URL-safe base64 form of a workspace-relative
path, so it can travel as a single URL path segment. Neither direction looks
at the filesystem; validating the decoded path is the resolver's job.
"""
import base64
import binascii
import re

from excaliweb.core.errors import MalformedIdentifier

_IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9_-]*$")


def encode_file_id(relative_path: str) -> str:
    """Encode a relative path as an identifier."""
    raw = base64.urlsafe_b64encode(relative_path.encode("utf-8"))
    return raw.decode("ascii").rstrip("=")


def decode_file_id(file_id: str) -> str:
    """Decode an identifier back to the relative path it was built from.

    Raises:
        MalformedIdentifier: if ``file_id`` is not valid unpadded base64url
            or does not decode to a UTF-8 path.
    """
    if not _IDENTIFIER_RE.match(file_id) or len(file_id) % 4 == 1:
        raise MalformedIdentifier(f"Malformed file identifier: {file_id!r}")

    padded = file_id + "=" * (-len(file_id) % 4)
    try:
        decoded = base64.urlsafe_b64decode(padded).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise MalformedIdentifier(f"Malformed file identifier: {file_id!r}") from e

    if "\x00" in decoded:
        raise MalformedIdentifier("File identifier decodes to an invalid path")
    return decoded
