"""Webhook signature verification."""

import hashlib
import hmac

import pytest

from lanchanto.errors import (
    EmptySecret, MalformedSignature, MissingSignatureHeader,
    SignatureMismatch, VerificationError,
)
from lanchanto.signature import sign, verify

SECRET = b"It's a Secret to Everybody"
BODY = b'{"action":"completed","repository":{"full_name":"octo/site"}}'


def _flip_bit(data: bytes, index: int) -> bytes:
    b = bytearray(data)
    b[index] ^= 0x01
    return bytes(b)


class TestSign:
    def test_matches_hmac_sha256(self):
        expected = hmac.new(SECRET, BODY, hashlib.sha256).hexdigest()
        assert sign(SECRET, BODY) == "sha256=" + expected

    def test_github_documented_example(self):
        # https://docs.github.com/webhooks/using-webhooks/validating-webhook-deliveries
        assert sign(SECRET, b"Hello, World!") == (
            "sha256=757107ea0eb2509fc211221cce984b8a"
            "37570b6d7586c22c46f4379c8b043e17"
        )


class TestVerify:
    def test_valid_signature(self):
        verify(SECRET, {"X-Hub-Signature-256": sign(SECRET, BODY)}, BODY)

    def test_legacy_header_name_accepted(self):
        verify(SECRET, {"X-Hub-Signature": sign(SECRET, BODY)}, BODY)

    def test_lowercase_header_names(self):
        verify(SECRET, {"x-hub-signature-256": sign(SECRET, BODY)}, BODY)

    def test_sha256_header_preferred(self):
        headers = {
            "X-Hub-Signature-256": sign(SECRET, BODY),
            "X-Hub-Signature": "sha256=00",
        }
        verify(SECRET, headers, BODY)

    def test_empty_secret_never_valid(self):
        headers = {"X-Hub-Signature-256": sign(b"", BODY)}
        with pytest.raises(EmptySecret):
            verify(b"", headers, BODY)

    def test_empty_secret_checked_before_headers(self):
        with pytest.raises(EmptySecret):
            verify(b"", {}, BODY)

    def test_missing_header(self):
        with pytest.raises(MissingSignatureHeader):
            verify(SECRET, {"X-GitHub-Event": "workflow_run"}, BODY)

    def test_wrong_prefix(self):
        digest = hmac.new(SECRET, BODY, hashlib.sha1).hexdigest()
        with pytest.raises(MalformedSignature):
            verify(SECRET, {"X-Hub-Signature": "sha1=" + digest}, BODY)

    def test_non_hex(self):
        with pytest.raises(MalformedSignature):
            verify(SECRET, {"X-Hub-Signature-256": "sha256=zzzz"}, BODY)

    @pytest.mark.parametrize("digest", [" ", "\t", "\n", "_"])
    def test_separators_in_hex_rejected(self, digest):
        """bytes.fromhex() skips whitespace; the header must be bare hex."""
        good = sign(SECRET, BODY)[len("sha256="):]
        pairs = [good[i:i + 2] for i in range(0, len(good), 2)]
        spaced = "sha256=" + digest.join(pairs)
        with pytest.raises(MalformedSignature):
            verify(SECRET, {"X-Hub-Signature-256": spaced}, BODY)

    def test_empty_digest(self):
        with pytest.raises(MalformedSignature):
            verify(SECRET, {"X-Hub-Signature-256": "sha256="}, BODY)

    def test_wrong_secret(self):
        headers = {"X-Hub-Signature-256": sign(b"other", BODY)}
        with pytest.raises(SignatureMismatch):
            verify(SECRET, headers, BODY)

    @pytest.mark.parametrize("index", [0, len(BODY) // 2, len(BODY) - 1])
    def test_body_bit_flip_fails(self, index):
        headers = {"X-Hub-Signature-256": sign(SECRET, BODY)}
        with pytest.raises(SignatureMismatch):
            verify(SECRET, headers, _flip_bit(BODY, index))

    def test_signature_bit_flip_fails(self):
        digest = bytes.fromhex(sign(SECRET, BODY)[len("sha256="):])
        tampered = "sha256=" + _flip_bit(digest, 5).hex()
        with pytest.raises(SignatureMismatch):
            verify(SECRET, {"X-Hub-Signature-256": tampered}, BODY)

    def test_truncated_signature_fails(self):
        header = sign(SECRET, BODY)[:-2]
        with pytest.raises(VerificationError):
            verify(SECRET, {"X-Hub-Signature-256": header}, BODY)

    def test_reserialized_json_fails(self):
        """Signing covers raw bytes; equivalent JSON with other spacing fails."""
        headers = {"X-Hub-Signature-256": sign(SECRET, BODY)}
        respaced = BODY.replace(b":", b": ")
        with pytest.raises(SignatureMismatch):
            verify(SECRET, headers, respaced)
