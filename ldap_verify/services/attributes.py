"""Schema-tolerant profile extraction.

Directory vendors expose the same concept under different attribute names
(JumpCloud fills `cn`, AD fills `displayName`, some schemas only `fullName`).
Every canonical field has a fixed, ordered list of candidates; the first one
with a non-blank value wins. No per-vendor branches.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Mapping

from ..directory.models import DirectoryRecord
from ..utils.dn import dn_first_component_value, looks_like_dn

GIVEN_NAME_ATTRS = ("givenName", "firstName")
SURNAME_ATTRS = ("sn", "lastName")


@dataclass(frozen=True)
class FieldRule:
    attributes: tuple[str, ...]
    sentinel: str
    compose_name: bool = False  # given + surname after the plain attributes
    fallback: str = ""  # key in Fallbacks used before the sentinel
    dn_to_name: bool = False  # render DN values as their first RDN value


# Order of this mapping is the order of NormalizedProfile fields.
FIELD_RULES: Mapping[str, FieldRule] = {
    "name": FieldRule(("cn", "displayName", "name", "fullName"), "Name not available", compose_name=True, fallback="display_name"),
    "email": FieldRule(("mail", "email", "emailAddress"), "Email not available", fallback="email"),
    "employee_id": FieldRule(("employeeNumber", "employeeId", "empId", "uid"), "Not provided"),
    "department": FieldRule(("ou", "department", "departmentNumber", "dept"), "Not specified"),
    "title": FieldRule(("title", "jobTitle", "position"), "Not specified"),
    "manager": FieldRule(("manager", "managedBy", "supervisorName"), "Not specified", dn_to_name=True),
    "phone": FieldRule(("telephoneNumber", "phone", "mobile"), "Not provided"),
    "office": FieldRule(("physicalDeliveryOfficeName", "office", "roomNumber", "l"), "Not specified"),
}


def profile_attributes(rules: Mapping[str, FieldRule] = FIELD_RULES) -> list[str]:
    """Every attribute any rule may read, in rule order, without duplicates."""
    out: list[str] = []
    for rule in rules.values():
        names = list(rule.attributes)
        if rule.compose_name:
            names += list(GIVEN_NAME_ATTRS) + list(SURNAME_ATTRS)
        for n in names:
            if n not in out:
                out.append(n)
    return out


@dataclass(frozen=True)
class Fallbacks:
    """Caller-supplied values used when the record has nothing better."""

    email: str = ""
    display_name: str = ""


@dataclass(frozen=True)
class NormalizedProfile:
    name: str
    email: str
    employee_id: str
    department: str
    title: str
    manager: str
    phone: str
    office: str

    def to_dict(self) -> dict[str, str]:
        d = asdict(self)
        d["employeeId"] = d.pop("employee_id")
        return d


def _first_of(record: DirectoryRecord, names: tuple[str, ...]) -> str:
    for n in names:
        v = record.first(n)
        if v:
            return v
    return ""


class AttributeResolver:
    def __init__(self, rules: Mapping[str, FieldRule] = FIELD_RULES) -> None:
        self.rules = rules

    def resolve_field(self, record: DirectoryRecord, rule: FieldRule, fallbacks: Fallbacks) -> str:
        value = _first_of(record, rule.attributes)

        if not value and rule.compose_name:
            given = _first_of(record, GIVEN_NAME_ATTRS)
            surname = _first_of(record, SURNAME_ATTRS)
            value = f"{given} {surname}".strip()

        if not value and rule.fallback:
            value = str(getattr(fallbacks, rule.fallback, "") or "").strip()

        if value and rule.dn_to_name and looks_like_dn(value):
            value = dn_first_component_value(value) or value

        return value or rule.sentinel

    def normalize(self, record: DirectoryRecord, fallbacks: Fallbacks | None = None) -> NormalizedProfile:
        fb = fallbacks or Fallbacks()
        values = {field: self.resolve_field(record, rule, fb) for field, rule in self.rules.items()}
        return NormalizedProfile(**values)
