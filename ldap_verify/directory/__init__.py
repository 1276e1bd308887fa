"""Directory (LDAP) access layer.

Public API:
    - DirectoryConfig, DirectoryRecord, SearchLimits
    - DirectoryConnection
    - error taxonomy (LdapConnectionError, LdapBindError, LdapSearchError, ...)
"""

from .connection import DirectoryConnection, build_server
from .errors import (
    BindFailure,
    DirectoryError,
    DirectoryTimeout,
    LdapBindError,
    LdapConnectionError,
    LdapSearchError,
)
from .models import DirectoryConfig, DirectoryRecord, SearchLimits
from .utils import escape_ldap_filter_value

__all__ = [
    "BindFailure",
    "DirectoryConfig",
    "DirectoryConnection",
    "DirectoryError",
    "DirectoryRecord",
    "DirectoryTimeout",
    "LdapBindError",
    "LdapConnectionError",
    "LdapSearchError",
    "SearchLimits",
    "build_server",
    "escape_ldap_filter_value",
]
