"""
Exception hierarchy for the auth core.

Adapters translate library exceptions into these at their boundary; the HTTP
layer maps them to status codes in ``api.middleware``.
"""

from __future__ import annotations


class AuthServiceError(Exception):
    """Root of every error raised by the auth core."""


class InvalidRequestError(AuthServiceError):
    """Input failed the (shallow) checks done by a flow."""


# ── Authentication failures (401) ───────────────────────────────────────


class AuthError(AuthServiceError):
    """The caller could not be authenticated."""


class InvalidCredentialsError(AuthError):
    """Unknown account, wrong password or unreadable stored hash."""


class NoPendingCodeError(AuthError):
    """No OTP was issued for the address, or it has expired."""


class OtpMismatchError(AuthError):
    """A pending OTP exists but the presented code differs."""


class TokenError(AuthError):
    pass


class TokenExpiredError(TokenError):
    pass


class TokenInvalidError(TokenError):
    """Bad signature, malformed token or missing claims."""


# ── Internal failures (500 unless noted) ────────────────────────────────


class StoreError(AuthServiceError):
    """The TTL store or the credential store failed."""


class DuplicateAccountError(StoreError):
    """An account with this email already exists (409)."""


class SigningError(AuthServiceError):
    pass


class HashingError(AuthServiceError):
    pass


class DeliveryError(AuthServiceError):
    """The OTP could not be handed to the delivery channel."""
