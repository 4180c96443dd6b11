from __future__ import annotations

import logging
from typing import Optional

import httpx
from pydantic import BaseModel, Field

from .credentials import CredentialProvider
from .errors import (
    CredentialUnavailableError,
    ResolutionRejectedError,
    ResolverTransportError,
)


logger = logging.getLogger(__name__)

# Highest status code treated as success
MAX_SUCCESS_STATUS = 299


class DecryptRequest(BaseModel):
    data: str = Field(..., description="Opaque ciphertext token")


class ResolverClient:
    """
    Minimal client for the decryption endpoint.

    Notes
    - One `POST {"data": <token>}` per call with `Authorization: Bearer <credential>`.
    - The credential is obtained from `credentials` before every call.
    - Redirects are followed. A 2xx response body is returned verbatim as
      plaintext; it is not parsed.
    - No retries, no backoff, no caching: every failure is final.
    """

    def __init__(
        self,
        url: str,
        *,
        credentials: CredentialProvider,
        timeout: float = 15.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        if not url:
            raise ValueError("url is required")
        self._url = url
        self._credentials = credentials
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=self._timeout)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "ResolverClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --------------- Public API ---------------
    def resolve(self, token: str) -> str:
        """
        Exchange `token` for its plaintext using a freshly read credential.

        Raises CredentialUnavailableError before any network use when the
        credential cannot be obtained, then whatever `exchange` raises.
        """
        try:
            credential = self._credentials()
        except CredentialUnavailableError:
            raise
        except Exception as exc:
            raise CredentialUnavailableError(f"Credential provider failed: {exc}") from exc
        if not credential:
            raise CredentialUnavailableError("Credential provider returned an empty credential")
        return self.exchange(token, credential)

    def exchange(self, token: str, credential: str) -> str:
        """
        Perform a single request/response exchange for `token`.

        Raises ResolverTransportError when the endpoint cannot be reached or
        the response is malformed, and ResolutionRejectedError on a
        non-success status.
        """
        body = DecryptRequest(data=token).model_dump()
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {credential}",
        }
        try:
            resp = self._client.post(self._url, json=body, headers=headers, follow_redirects=True)
            text = resp.text
        except httpx.RequestError as exc:
            raise ResolverTransportError(f"Failed to reach resolver at {self._url}: {exc}") from exc

        if resp.status_code > MAX_SUCCESS_STATUS:
            logger.warning("Resolver answered HTTP %s", resp.status_code)
            raise ResolutionRejectedError(resp.status_code, text)
        return text


__all__ = [
    "DecryptRequest",
    "ResolverClient",
]
