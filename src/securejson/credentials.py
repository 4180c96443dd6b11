from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Optional

from .errors import CredentialUnavailableError


DEFAULT_TOKEN_PATH = "/var/run/secrets/kubernetes.io/serviceaccount/token"

CredentialProvider = Callable[[], str]


class FileCredentialProvider:
    """
    Reads the bearer credential from a file on every call.

    Defaults to the Kubernetes service account token, which the kubelet
    rotates in place; the file is therefore never cached.
    """

    def __init__(self, path: Optional[os.PathLike[str] | str] = None) -> None:
        self._path = Path(path) if path else Path(DEFAULT_TOKEN_PATH)

    @property
    def path(self) -> Path:
        return self._path

    def __call__(self) -> str:
        try:
            with self._path.open("r", encoding="utf-8") as f:
                token = f.read().strip()
        except (OSError, UnicodeDecodeError) as exc:
            raise CredentialUnavailableError(
                f"Cannot read credential file {self._path}: {exc}"
            ) from exc
        if not token:
            raise CredentialUnavailableError(f"Credential file {self._path} is empty")
        return token


class StaticCredentialProvider:
    """Returns a fixed credential. Useful for local runs and tests."""

    def __init__(self, token: str) -> None:
        if not token:
            raise ValueError("token is required")
        self._token = token

    def __call__(self) -> str:
        return self._token


class SsmCredentialProvider:
    """
    Reads the bearer credential from AWS SSM Parameter Store on every call.

    The parameter is fetched with decryption (SecureString). A missing
    parameter, denied access or an empty value are reported as
    `CredentialUnavailableError`. Other AWS errors leave this provider as
    `ClientError`; `ResolverClient.resolve` reports them as
    `CredentialUnavailableError` too, like any provider failure.
    """

    def __init__(
        self,
        name: str,
        *,
        ssm: Optional[object] = None,
        region_name: Optional[str] = None,
    ) -> None:
        if not name:
            raise ValueError("name is required")
        self._name = name
        self._ssm = ssm
        self._region_name = region_name

    def _client(self):
        if self._ssm is None:
            import boto3

            self._ssm = boto3.client("ssm", region_name=self._region_name)
        return self._ssm

    def __call__(self) -> str:
        from botocore.exceptions import ClientError

        try:
            resp = self._client().get_parameter(Name=self._name, WithDecryption=True)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("ParameterNotFound", "AccessDeniedException"):
                raise CredentialUnavailableError(
                    f"SSM parameter {self._name} unavailable ({code})"
                ) from e
            raise
        val = resp.get("Parameter", {}).get("Value")
        if not isinstance(val, str) or not val.strip():
            raise CredentialUnavailableError(f"SSM parameter {self._name} is empty")
        return val.strip()


__all__ = [
    "DEFAULT_TOKEN_PATH",
    "CredentialProvider",
    "FileCredentialProvider",
    "SsmCredentialProvider",
    "StaticCredentialProvider",
]
