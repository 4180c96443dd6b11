"""
Shared building blocks for the secure-json decryptor.

Modules:
- walker: recursive rewrite of `secure:<token>` leaves in a JSON value
- resolver: HTTP client exchanging a token + bearer credential for plaintext
- credentials: bearer credential providers (file, SSM, static)
- config: environment-driven settings
- errors: fatal error taxonomy
"""

__all__ = [
    "config",
    "credentials",
    "errors",
    "resolver",
    "walker",
]
