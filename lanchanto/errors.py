"""
Error taxonomy for the deploy pipeline.

Request-time errors (VerificationError) become HTTP responses.
Background errors (FetchError, ExtractError) end one deploy attempt and
are only ever logged. ConfigError is raised at startup.
"""


class DeployError(Exception):
    """Base class for everything the webhook → deploy pipeline raises."""


# ---------------------------------------------------------------------------
# Signature verification
# ---------------------------------------------------------------------------

class VerificationError(DeployError):
    pass


class EmptySecret(VerificationError):
    def __init__(self):
        super().__init__("empty secret")


class MissingSignatureHeader(VerificationError):
    def __init__(self):
        super().__init__("missing signature")


class MalformedSignature(VerificationError):
    def __init__(self, reason: str = "invalid signature"):
        super().__init__(reason)


class SignatureMismatch(VerificationError):
    def __init__(self):
        super().__init__("signature mismatch")


# ---------------------------------------------------------------------------
# Artifact fetching
# ---------------------------------------------------------------------------

class FetchError(DeployError):
    def __init__(self, message: str, url: str = ""):
        self.url = url
        super().__init__(message)


class MissingToken(FetchError):
    def __init__(self):
        super().__init__("empty github token")


class ListingError(FetchError):
    pass


class DownloadError(FetchError):
    pass


# ---------------------------------------------------------------------------
# Archive extraction
# ---------------------------------------------------------------------------

class ExtractError(DeployError):
    pass


class CorruptArchive(ExtractError):
    pass


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class ConfigError(Exception):
    """Config file missing, unreadable or semantically invalid."""
