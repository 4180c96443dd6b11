from __future__ import annotations

from typing import Optional


class DecryptorError(RuntimeError):
    """Base error for the secure-json decryptor."""


class InputReadError(DecryptorError):
    """Source document is unreadable or not valid JSON."""


class OutputWriteError(DecryptorError):
    """Target document could not be written."""


class CredentialUnavailableError(DecryptorError):
    """Bearer credential source is missing, unreadable or empty."""


class ResolverError(DecryptorError):
    """Base error for a failed resolution call.

    `path` is filled in by the walker with the location of the marker being
    resolved when the error surfaced, e.g. "$.db.servers[0].password".
    """

    path: Optional[str] = None

    def __str__(self) -> str:
        msg = super().__str__()
        if self.path:
            return f"{msg} (at {self.path})"
        return msg


class ResolverTransportError(ResolverError):
    """Resolver endpoint could not be reached or answered malformed."""


class ResolutionRejectedError(ResolverError):
    """Resolver answered with a non-success status."""

    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        detail = f": {body[:200]}" if body else ""
        super().__init__(f"HTTP {status_code} from resolver{detail}")


__all__ = [
    "DecryptorError",
    "InputReadError",
    "OutputWriteError",
    "CredentialUnavailableError",
    "ResolverError",
    "ResolverTransportError",
    "ResolutionRejectedError",
]
