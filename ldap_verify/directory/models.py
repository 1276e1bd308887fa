from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from .utils import coerce_values


@dataclass(frozen=True)
class SearchLimits:
    size_limit: int = 50
    time_limit: int = 10


@dataclass
class DirectoryConfig:
    server_uri: str
    bind_dn: str
    bind_password: str
    base_dn: str
    starttls: bool = False
    tls_validate: bool = True
    ca_cert_file: str = ""
    connect_timeout: int = 15
    size_limit: int = 50
    time_limit: int = 10

    @property
    def use_ssl(self) -> bool:
        return (self.server_uri or "").strip().lower().startswith("ldaps://")

    @property
    def is_configured(self) -> bool:
        return bool((self.server_uri or "").strip() and (self.bind_dn or "").strip() and (self.base_dn or "").strip())

    @property
    def limits(self) -> SearchLimits:
        return SearchLimits(size_limit=self.size_limit, time_limit=self.time_limit)


@dataclass(frozen=True)
class DirectoryRecord:
    """One entry returned by a search.

    `dn` is the stable key of the record inside a directory. Attribute values are
    always tuples of strings, even for single-valued attributes.
    """

    dn: str
    attributes: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Freeze the mapping so a record cannot change after the search returned it.
        frozen = {str(k): tuple(v) for k, v in dict(self.attributes).items()}
        object.__setattr__(self, "attributes", MappingProxyType(frozen))

    @classmethod
    def from_ldap(cls, dn: str, raw: Mapping[str, Any] | None) -> "DirectoryRecord":
        attrs: dict[str, tuple[str, ...]] = {}
        for name, value in (raw or {}).items():
            vals = coerce_values(value)
            if vals:
                attrs[str(name)] = vals
        return cls(dn=str(dn or ""), attributes=attrs)

    @property
    def attribute_names(self) -> list[str]:
        return sorted(self.attributes.keys(), key=str.lower)

    def values(self, name: str) -> tuple[str, ...]:
        """Values of `name`; exact key first, then a case-insensitive match.

        LDAP attribute descriptions are case-insensitive on the wire, so a server
        returning `employeeID` still satisfies a lookup of `employeeId`.
        """
        if name in self.attributes:
            return self.attributes[name]
        low = name.lower()
        for key, vals in self.attributes.items():
            if key.lower() == low:
                return vals
        return ()

    def first(self, name: str) -> str:
        """First non-blank value of `name` (stripped), or ''."""
        for v in self.values(name):
            s = v.strip()
            if s:
                return s
        return ""
