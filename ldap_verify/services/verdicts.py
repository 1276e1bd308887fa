from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ..directory.errors import DirectoryError, DirectoryTimeout, LdapBindError, LdapConnectionError
from .attributes import NormalizedProfile

MSG_NOT_FOUND = "Employee not found in company directory"
MSG_INVALID_CREDENTIALS = "Invalid username or password"
MSG_UNAVAILABLE = "Directory server connection failed"


@dataclass(frozen=True)
class Authenticated:
    profile: NormalizedProfile


@dataclass(frozen=True)
class InvalidCredentials:
    pass


@dataclass(frozen=True)
class NotFound:
    pass


@dataclass(frozen=True)
class DirectoryUnavailable:
    detail: str = ""


VerificationVerdict = Union[Authenticated, InvalidCredentials, NotFound, DirectoryUnavailable]


def explain_directory_error(exc: DirectoryError) -> str:
    """Readable cause of an infrastructure failure (service bind, transport)."""
    text = str(exc)
    if isinstance(exc, DirectoryTimeout):
        return "request deadline elapsed while waiting for the directory"
    if isinstance(exc, LdapBindError) and exc.invalid_credentials:
        return "service account credentials were rejected by the directory"
    if "strongerAuthRequired" in text:
        return "the directory requires a stronger authentication method (use LDAPS or StartTLS)"
    if "SSL" in text or "certificate" in text.lower() or "handshake" in text.lower():
        return f"TLS negotiation failed, check certificate validation settings: {text}"
    if isinstance(exc, LdapConnectionError):
        return f"cannot reach the directory server: {text}"
    return text


@dataclass
class VerificationResult:
    """What the HTTP layer returns. Exactly one verdict stands behind it."""

    verified: bool
    profile: NormalizedProfile | None = None
    reason: str | None = None
    detail: str | None = None
    diagnostics: dict | None = None

    @property
    def unavailable(self) -> bool:
        return self.reason == MSG_UNAVAILABLE

    def to_dict(self) -> dict:
        return {
            "verified": self.verified,
            "profile": self.profile.to_dict() if self.profile else None,
            "reason": self.reason,
            "detail": self.detail,
            "diagnostics": self.diagnostics,
        }


def resolve_result(verdict: VerificationVerdict, diagnostics: dict | None = None) -> VerificationResult:
    if isinstance(verdict, Authenticated):
        return VerificationResult(verified=True, profile=verdict.profile, diagnostics=diagnostics)
    if isinstance(verdict, DirectoryUnavailable):
        return VerificationResult(verified=False, reason=MSG_UNAVAILABLE, detail=verdict.detail or None)
    return VerificationResult(verified=False, reason=MSG_NOT_FOUND, diagnostics=diagnostics)


def authenticate_result(verdict: VerificationVerdict) -> VerificationResult:
    # NotFound and InvalidCredentials must be indistinguishable here.
    if isinstance(verdict, Authenticated):
        return VerificationResult(verified=True, profile=verdict.profile)
    if isinstance(verdict, DirectoryUnavailable):
        return VerificationResult(verified=False, reason=MSG_UNAVAILABLE, detail=verdict.detail or None)
    return VerificationResult(verified=False, reason=MSG_INVALID_CREDENTIALS)
