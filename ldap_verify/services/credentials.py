from __future__ import annotations

import logging
from typing import Callable

from ..directory.connection import DirectoryConnection
from ..directory.errors import LdapBindError, LdapConnectionError
from ..directory.models import SearchLimits
from .attributes import AttributeResolver, Fallbacks
from .matcher import RecordMatcher
from .planner import SearchStrategyPlanner
from .verdicts import (
    Authenticated,
    DirectoryUnavailable,
    InvalidCredentials,
    NotFound,
    VerificationVerdict,
    explain_directory_error,
)

log = logging.getLogger(__name__)

# Two results are enough to tell "exactly one" from "ambiguous".
LOGIN_SIZE_LIMIT = 2


class CredentialVerifier:
    """Password check by bind:
    1) service bind (failure = infrastructure problem)
    2) find exactly one record for the login (single strategy, no ranking)
    3) re-bind the same session as that record's DN with the supplied password
    """

    def __init__(
        self,
        connect: Callable[[], DirectoryConnection],
        matcher: RecordMatcher,
        planner: SearchStrategyPlanner | None = None,
        resolver: AttributeResolver | None = None,
        time_limit: int = 10,
    ) -> None:
        self.connect = connect
        self.matcher = matcher
        self.planner = planner or SearchStrategyPlanner()
        self.resolver = resolver or AttributeResolver()
        self.time_limit = time_limit

    def authenticate(self, username: str, password: str) -> VerificationVerdict:
        login = (username or "").strip()
        if not login or not password:
            return InvalidCredentials()

        try:
            with self.connect() as conn:
                try:
                    conn.service_bind()
                except LdapBindError as e:
                    log.error("Service bind failed (%s): %s", e.reason.value, e)
                    return DirectoryUnavailable(explain_directory_error(e))

                strategy = self.planner.plan_login(login)
                limits = SearchLimits(size_limit=LOGIN_SIZE_LIMIT, time_limit=self.time_limit)
                found, _ = self.matcher.collect(conn, [strategy], limits=limits)
                if len(found) != 1:
                    log.info("Login lookup returned %d unique record(s); refusing", len(found))
                    return NotFound()

                record = found[0][0]
                try:
                    conn.bind_as(record.dn, password)
                except LdapBindError as e:
                    # Reason stays in the log only; the caller sees a single generic verdict.
                    log.info("User bind rejected (%s)", e.reason.value)
                    return InvalidCredentials()
        except LdapConnectionError as e:
            log.error("Directory unavailable during authentication: %s", e)
            return DirectoryUnavailable(explain_directory_error(e))

        fallbacks = Fallbacks(email=login if "@" in login else "")
        return Authenticated(self.resolver.normalize(record, fallbacks))
