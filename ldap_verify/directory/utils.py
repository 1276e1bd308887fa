from __future__ import annotations

from datetime import datetime
from typing import Any


def escape_ldap_filter_value(value: str) -> str:
    """RFC 4515 escaping for LDAP filter values."""
    out: list[str] = []
    for ch in value:
        if ch == "\\":
            out.append("\\5c")
        elif ch == "*":
            out.append("\\2a")
        elif ch == "(":
            out.append("\\28")
        elif ch == ")":
            out.append("\\29")
        elif ch == "\x00":
            out.append("\\00")
        else:
            out.append(ch)
    return "".join(out)


def coerce_values(value: Any) -> tuple[str, ...]:
    """Turn an ldap3 attribute value (scalar or list, str/bytes/datetime) into a tuple of str.

    None and empty values are dropped; bytes are decoded as UTF-8 with replacement.
    """
    if value is None:
        return ()
    vals = value if isinstance(value, (list, tuple, set, frozenset)) else [value]
    out: list[str] = []
    for it in vals:
        if it is None:
            continue
        if isinstance(it, (bytes, bytearray)):
            it = bytes(it).decode("utf-8", errors="replace")
        elif isinstance(it, datetime):
            it = it.isoformat(timespec="seconds")
        s = str(it)
        if s:
            out.append(s)
    return tuple(out)
