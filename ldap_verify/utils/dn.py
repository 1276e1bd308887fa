from __future__ import annotations

import re

_RDN_RE = re.compile(r"^\s*[A-Za-z][A-Za-z0-9-]*\s*=.+,\s*[A-Za-z][A-Za-z0-9-]*\s*=", re.DOTALL)
_HEX_PAIR_RE = re.compile(r"[0-9A-Fa-f]{2}")


def looks_like_dn(value: str) -> bool:
    """True for values such as 'cn=Bob,ou=People,dc=co,dc=com' (at least two RDNs)."""
    return bool(_RDN_RE.match(value or ""))


def dn_first_component_value(dn: str) -> str:
    """Return first RDN value from a DN (e.g. CN=Bob Boss,OU=People,... -> Bob Boss)."""
    s = (dn or "").strip()
    if not s:
        return ""

    # Cut the first RDN, honouring escapes: "\," and hex pairs such as "\2C" or "\C3\A9" (RFC 4514)
    first = bytearray()
    i = 0
    while i < len(s):
        ch = s[i]
        if ch == "\\" and i + 1 < len(s):
            pair = s[i + 1:i + 3]
            if _HEX_PAIR_RE.fullmatch(pair):
                first.append(int(pair, 16))
                i += 3
            else:
                first += s[i + 1].encode("utf-8")
                i += 2
            continue
        if ch == ",":
            break
        first += ch.encode("utf-8")
        i += 1
    rdn = first.decode("utf-8", errors="replace").strip()

    if "=" in rdn:
        _, val = rdn.split("=", 1)
    else:
        val = rdn
    return val.strip()
