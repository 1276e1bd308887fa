from __future__ import annotations

from enum import Enum


class DirectoryError(Exception):
    """Base class for failures talking to the directory."""


class LdapConnectionError(DirectoryError):
    """Network/TLS level failure: host unreachable, handshake failed, timeout."""


class DirectoryTimeout(LdapConnectionError):
    """The caller's request deadline elapsed before the directory answered."""


class BindFailure(str, Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    PROTOCOL_ERROR = "protocol_error"


class LdapBindError(DirectoryError):
    def __init__(self, reason: BindFailure, message: str = "") -> None:
        super().__init__(message or reason.value)
        self.reason = reason

    @property
    def invalid_credentials(self) -> bool:
        return self.reason is BindFailure.INVALID_CREDENTIALS


class LdapSearchError(DirectoryError):
    """Malformed filter or a directory-side search failure."""
