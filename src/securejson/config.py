from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .credentials import (
    DEFAULT_TOKEN_PATH,
    CredentialProvider,
    FileCredentialProvider,
    SsmCredentialProvider,
)


# Environment variable names
ENV_URL = "DECRYPTOR_URL"
ENV_TOKEN_PATH = "DECRYPTOR_TOKEN_PATH"
ENV_SSM_PARAMETER = "DECRYPTOR_SSM_PARAMETER"
ENV_TIMEOUT = "DECRYPTOR_TIMEOUT"
ENV_LOG_LEVEL = "DECRYPTOR_LOG_LEVEL"

DEFAULT_URL = "http://hamuste.team-dev-ops.svc.cluster.local/api/v1/decrypt"
DEFAULT_TIMEOUT = 15.0


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.environ.get(name)
    return val if val not in (None, "") else default


class DecryptorSettings(BaseModel):
    """
    Runtime configuration for the decryptor.

    Fields
    - url: resolver endpoint accepting `{"data": <token>}` POSTs.
    - token_path: file holding the bearer credential, read before every call.
    - ssm_parameter: when set, the credential is read from this SSM parameter
      instead of `token_path`.
    - timeout: transport timeout in seconds.
    - log_level: logging level name used by the CLI.
    """

    url: str = Field(default=DEFAULT_URL, description="Resolver endpoint")
    token_path: str = Field(default=DEFAULT_TOKEN_PATH, description="Credential file")
    ssm_parameter: Optional[str] = Field(default=None, description="SSM credential parameter")
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Transport timeout (s)")
    log_level: str = Field(default="INFO", description="Logging level name")

    @field_validator("url")
    @classmethod
    def _check_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"resolver url must be http(s): {v!r}")
        return v

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {v!r}")
        return level

    @classmethod
    def from_env(cls) -> "DecryptorSettings":
        """Build settings from `DECRYPTOR_*` environment variables.

        Unset or empty variables fall back to the defaults. Invalid values
        raise `ValueError` (pydantic's ValidationError is a subclass).
        """
        raw = {
            "url": _getenv(ENV_URL, DEFAULT_URL),
            "token_path": _getenv(ENV_TOKEN_PATH, DEFAULT_TOKEN_PATH),
            "ssm_parameter": _getenv(ENV_SSM_PARAMETER),
            "timeout": _getenv(ENV_TIMEOUT, str(DEFAULT_TIMEOUT)),
            "log_level": _getenv(ENV_LOG_LEVEL, "INFO"),
        }
        return cls.model_validate(raw)

    def credential_provider(self) -> CredentialProvider:
        if self.ssm_parameter:
            return SsmCredentialProvider(self.ssm_parameter)
        return FileCredentialProvider(self.token_path)


__all__ = ["DecryptorSettings", "DEFAULT_URL", "DEFAULT_TIMEOUT"]
