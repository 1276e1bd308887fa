from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from ..directory.utils import escape_ldap_filter_value

log = logging.getLogger(__name__)

EMAIL_ATTRS = ("mail", "email", "emailAddress", "userPrincipalName")
USER_ID_ATTRS = ("uid", "sAMAccountName", "employeeNumber", "employeeId", "userId", "username")
NAME_ATTRS = ("cn", "displayName", "name", "fullName")
LOGIN_ATTRS = ("uid", "cn", "mail", "sAMAccountName")
IDENTITY_ATTRS = ("uid", "sAMAccountName", "userPrincipalName")

PERSON_FILTER = "(objectClass=person)"

STRATEGY_EMAIL = "email"
STRATEGY_USER_ID = "user_id"
STRATEGY_DISPLAY_NAME = "display_name"
STRATEGY_COMBINED = "combined"
STRATEGY_LOGIN = "login"

DEFAULT_ORDER = (STRATEGY_EMAIL, STRATEGY_USER_ID, STRATEGY_DISPLAY_NAME, STRATEGY_COMBINED)


@dataclass(frozen=True)
class SearchStrategy:
    name: str
    filter: str
    rationale: str


@dataclass(frozen=True)
class IdentifyingInputs:
    email: str = ""
    user_id: str = ""
    display_name: str = ""

    def cleaned(self) -> "IdentifyingInputs":
        return IdentifyingInputs(
            email=(self.email or "").strip(),
            user_id=(self.user_id or "").strip(),
            display_name=(self.display_name or "").strip(),
        )

    @property
    def is_empty(self) -> bool:
        c = self.cleaned()
        return not (c.email or c.user_id or c.display_name)


def _eq(attr: str, value: str) -> str:
    return f"({attr}={escape_ldap_filter_value(value)})"


def _contains(attr: str, value: str) -> str:
    return f"({attr}=*{escape_ldap_filter_value(value)}*)"


def _any(parts: Sequence[str]) -> str:
    if len(parts) == 1:
        return parts[0]
    return "(|" + "".join(parts) + ")"


def parse_order(raw: str | Iterable[str] | None) -> tuple[str, ...]:
    """Parse a strategy order ("email,user_id,...") keeping known names once each."""
    if raw is None:
        return DEFAULT_ORDER
    items = raw.split(",") if isinstance(raw, str) else list(raw)
    out: list[str] = []
    for it in items:
        name = str(it or "").strip().lower()
        if not name:
            continue
        if name not in DEFAULT_ORDER:
            log.warning("Unknown search strategy %r ignored", name)
            continue
        if name not in out:
            out.append(name)
    return tuple(out) or DEFAULT_ORDER


class SearchStrategyPlanner:
    """Builds the ordered list of filters tried for one resolution.

    `order` selects which strategies run and in what order. Two placements are
    fixed regardless of configuration: the email strategy always runs first when
    an email is supplied (highest trust), and the combined strategy always runs
    last when enabled.
    """

    def __init__(self, order: Sequence[str] | str | None = None) -> None:
        self.order = parse_order(order)

    def plan(self, inputs: IdentifyingInputs) -> list[SearchStrategy]:
        inp = inputs.cleaned()
        strategies: list[SearchStrategy] = []

        if inp.email:
            strategies.append(SearchStrategy(
                name=STRATEGY_EMAIL,
                filter=_eq("mail", inp.email),
                rationale="exact match on the primary email attribute",
            ))

        for name in self.order:
            if name == STRATEGY_USER_ID and inp.user_id:
                strategies.append(SearchStrategy(
                    name=STRATEGY_USER_ID,
                    filter=_any([_eq("uid", inp.user_id), _eq("sAMAccountName", inp.user_id)]),
                    rationale="exact match on the account id",
                ))
            elif name == STRATEGY_DISPLAY_NAME and inp.display_name:
                strategies.append(SearchStrategy(
                    name=STRATEGY_DISPLAY_NAME,
                    filter=_any([_contains("cn", inp.display_name), _contains("displayName", inp.display_name)]),
                    rationale="substring match on the common/display name",
                ))

        if STRATEGY_COMBINED in self.order:
            parts: list[str] = []
            if inp.email:
                parts += [_eq(a, inp.email) for a in EMAIL_ATTRS]
            if inp.user_id:
                parts += [_eq(a, inp.user_id) for a in USER_ID_ATTRS]
            if inp.display_name:
                parts += [_contains(a, inp.display_name) for a in NAME_ATTRS]
            if parts:
                strategies.append(SearchStrategy(
                    name=STRATEGY_COMBINED,
                    filter=f"(&{PERSON_FILTER}{_any(parts)})",
                    rationale="any equivalent attribute, for schemas that populate only one of them",
                ))
        return strategies

    def plan_login(self, username: str) -> SearchStrategy:
        login = (username or "").strip()
        return SearchStrategy(
            name=STRATEGY_LOGIN,
            filter=f"(&{PERSON_FILTER}{_any([_eq(a, login) for a in LOGIN_ATTRS])})",
            rationale="exact match of the login against identity attributes",
        )
