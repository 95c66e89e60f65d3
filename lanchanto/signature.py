"""
GitHub webhook signature verification.

GitHub signs the raw request body with HMAC-SHA256 using the webhook
secret and sends `sha256=<hex>` in X-Hub-Signature-256. Verification
must run on the bytes as received: re-serialized JSON is not guaranteed
to be byte-identical.
"""

import hashlib
import hmac
import string
from typing import Mapping

from lanchanto.errors import (
    EmptySecret, MalformedSignature, MissingSignatureHeader, SignatureMismatch,
)

SIGNATURE_HEADERS = ("X-Hub-Signature-256", "X-Hub-Signature")
PREFIX = "sha256="


def sign(secret: bytes, body: bytes) -> str:
    """Signature header value GitHub would send for `body`."""
    return PREFIX + hmac.new(secret, body, hashlib.sha256).hexdigest()


def _signature_header(headers: Mapping[str, str]) -> str | None:
    for name in SIGNATURE_HEADERS:
        value = headers.get(name)
        if value is None:
            value = headers.get(name.lower())
        if value is not None:
            return value
    return None


def verify(secret: bytes, headers: Mapping[str, str], body: bytes) -> None:
    """
    Check the webhook signature. Returns None or raises a
    VerificationError subclass. An empty secret never verifies.
    """
    if not secret:
        raise EmptySecret()

    header = _signature_header(headers)
    if header is None:
        raise MissingSignatureHeader()

    if not header.startswith(PREFIX):
        raise MalformedSignature("signature must start with 'sha256='")
    digest = header[len(PREFIX):]
    if not digest or any(c not in string.hexdigits for c in digest):
        raise MalformedSignature("signature is not valid hex")
    try:
        provided = bytes.fromhex(digest)
    except ValueError:
        raise MalformedSignature("signature is not valid hex")

    expected = hmac.new(secret, body, hashlib.sha256).digest()
    if not hmac.compare_digest(expected, provided):
        raise SignatureMismatch()
