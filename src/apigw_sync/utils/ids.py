"""Identifier generation."""

from __future__ import annotations

import hashlib
import re
import secrets
import string

_ID_ALPHABET = string.ascii_lowercase + string.digits
_STATEMENT_ID_INVALID = re.compile(r"[^0-9A-Za-z_]+")
MAX_STATEMENT_ID_LENGTH = 100
STATEMENT_DIGEST_LENGTH = 12


def generate_id(length: int = 8) -> str:
    """Generate a short random lowercase alphanumeric id."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


def statement_id(*parts: str) -> str:
    """Build a deterministic Lambda permission statement id.

    Runs of characters outside ``[0-9A-Za-z_]`` collapse to one ``-``, which
    keeps the id readable but is lossy (``/users/{id}`` and ``/users/id``
    read alike). A short sha1 digest of the unsanitised parts is always
    appended, so distinct inputs map to distinct ids. Over-long readable
    prefixes are cut to fit the Lambda limit.

    Args:
        *parts: Components joined with ``-`` (e.g. api id, method, path).

    Returns:
        A statement id valid for ``lambda:AddPermission``.
    """
    readable = _STATEMENT_ID_INVALID.sub("-", "-".join(parts)).strip("-")
    # Unit separator: parts themselves may contain "-"
    raw = "\x1f".join(parts).encode()
    digest = hashlib.sha1(raw, usedforsecurity=False).hexdigest()[:STATEMENT_DIGEST_LENGTH]
    prefix = readable[: MAX_STATEMENT_ID_LENGTH - STATEMENT_DIGEST_LENGTH - 1].rstrip("-")
    return f"{prefix}-{digest}" if prefix else digest
