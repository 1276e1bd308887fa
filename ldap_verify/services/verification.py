from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from ..directory.connection import DirectoryConnection
from ..directory.errors import LdapBindError, LdapConnectionError
from ..directory.models import DirectoryConfig
from ..env_settings import EnvSettings
from ..utils.deadline import Deadline
from .attributes import AttributeResolver, Fallbacks, profile_attributes
from .credentials import CredentialVerifier
from .matcher import MatchReport, RecordMatcher
from .planner import (
    EMAIL_ATTRS,
    IDENTITY_ATTRS,
    LOGIN_ATTRS,
    NAME_ATTRS,
    USER_ID_ATTRS,
    IdentifyingInputs,
    SearchStrategyPlanner,
)
from .verdicts import (
    Authenticated,
    DirectoryUnavailable,
    NotFound,
    VerificationResult,
    VerificationVerdict,
    authenticate_result,
    explain_directory_error,
    resolve_result,
)

log = logging.getLogger(__name__)

NOT_CONFIGURED = "directory is not configured"


def _clamp(value, default: int, lo: int, hi: int) -> int:
    try:
        v = int(value)
    except (TypeError, ValueError):
        v = default
    return max(lo, min(hi, v))


def directory_cfg_from_env(env: EnvSettings) -> DirectoryConfig | None:
    """DirectoryConfig from environment settings, or None when not configured."""
    cfg = DirectoryConfig(
        server_uri=(env.ldap_server or "").strip(),
        bind_dn=(env.ldap_bind_dn or "").strip(),
        bind_password=env.ldap_password or "",
        base_dn=(env.ldap_base_dn or "").strip(),
        starttls=bool(env.ldap_starttls),
        tls_validate=bool(env.ldap_tls_validate),
        ca_cert_file=(env.ldap_ca_cert_file or "").strip(),
        connect_timeout=_clamp(env.ldap_connect_timeout, 15, 1, 30),
        size_limit=_clamp(env.ldap_search_size_limit, 50, 1, 1000),
        time_limit=_clamp(env.ldap_search_time_limit, 10, 1, 30),
    )
    if not cfg.is_configured:
        return None
    return cfg


class VerificationService:
    """The two public operations: ResolveProfile and Authenticate.

    Every call opens its own DirectoryConnection and releases it before
    returning; nothing is shared between calls.
    """

    def __init__(
        self,
        cfg: DirectoryConfig | None,
        *,
        planner: SearchStrategyPlanner | None = None,
        resolver: AttributeResolver | None = None,
        request_timeout: int = 30,
        expose_diagnostics: bool = False,
        connection_factory: Callable[[], DirectoryConnection] | None = None,
    ) -> None:
        self.cfg = cfg
        self.planner = planner or SearchStrategyPlanner()
        self.resolver = resolver or AttributeResolver()
        self.request_timeout = request_timeout
        self.expose_diagnostics = expose_diagnostics
        self._connection_factory = connection_factory

        attrs = profile_attributes(self.resolver.rules)
        # Scoring and the login lookup read these as well
        for group in (EMAIL_ATTRS, USER_ID_ATTRS, NAME_ATTRS, LOGIN_ATTRS, IDENTITY_ATTRS):
            attrs += [a for a in group if a not in attrs]
        self.matcher = RecordMatcher(cfg.base_dn if cfg else "", attrs, cfg.limits if cfg else None)
        self.verifier = CredentialVerifier(
            self.connect,
            self.matcher,
            planner=self.planner,
            resolver=self.resolver,
            time_limit=cfg.time_limit if cfg else 10,
        )

    @classmethod
    def from_env(cls, env: EnvSettings) -> "VerificationService":
        return cls(
            directory_cfg_from_env(env),
            planner=SearchStrategyPlanner(env.ldap_strategies),
            request_timeout=_clamp(env.ldap_request_timeout, 30, 1, 120),
            expose_diagnostics=bool(env.ldap_expose_diagnostics),
        )

    def connect(self) -> DirectoryConnection:
        """A fresh, not yet opened connection carrying this request's deadline."""
        if self._connection_factory is not None:
            return self._connection_factory()
        if self.cfg is None:
            raise LdapConnectionError(NOT_CONFIGURED)
        return DirectoryConnection(self.cfg, deadline=Deadline(self.request_timeout))

    # -- verdict level -----------------------------------------------------

    def resolve_verdict(self, inputs: IdentifyingInputs) -> tuple[VerificationVerdict, MatchReport | None]:
        if self.cfg is None:
            return DirectoryUnavailable(NOT_CONFIGURED), None
        inp = inputs.cleaned()
        if inp.is_empty:
            return NotFound(), None

        try:
            with self.connect() as conn:
                try:
                    conn.service_bind()
                except LdapBindError as e:
                    log.error("Service bind failed (%s): %s", e.reason.value, e)
                    return DirectoryUnavailable(explain_directory_error(e)), None
                strategies = self.planner.plan(inp)
                report = self.matcher.resolve(conn, strategies, inp)
        except LdapConnectionError as e:
            log.error("Directory unavailable during profile resolution: %s", e)
            return DirectoryUnavailable(explain_directory_error(e)), None

        best = report.best
        if best is None:
            log.info("No directory record matched (%d strategies)", len(report.outcomes))
            return NotFound(), report

        log.info(
            "Resolved directory record via %s: score=%d candidates=%d",
            best.strategy, best.score, len(report.candidates),
        )
        profile = self.resolver.normalize(best.record, Fallbacks(email=inp.email, display_name=inp.display_name))
        return Authenticated(profile), report

    def authenticate_verdict(self, username: str, password: str) -> VerificationVerdict:
        if self.cfg is None:
            return DirectoryUnavailable(NOT_CONFIGURED)
        return self.verifier.authenticate(username, password)

    # -- public operations -------------------------------------------------

    def resolve_profile(self, inputs: IdentifyingInputs) -> VerificationResult:
        try:
            verdict, report = self.resolve_verdict(inputs)
        except Exception:
            log.exception("Unexpected error during profile resolution")
            verdict, report = DirectoryUnavailable("unexpected error"), None

        diagnostics = None
        if self.expose_diagnostics and report is not None:
            diagnostics = self._diagnostics(report)
        return resolve_result(verdict, diagnostics)

    def authenticate(self, username: str, password: str) -> VerificationResult:
        try:
            verdict = self.authenticate_verdict(username, password)
        except Exception:
            log.exception("Unexpected error during authentication")
            verdict = DirectoryUnavailable("unexpected error")
        return authenticate_result(verdict)

    def _diagnostics(self, report: MatchReport) -> dict:
        d = report.diagnostics()
        d.update({
            "server": self.cfg.server_uri if self.cfg else "",
            "baseDN": self.cfg.base_dn if self.cfg else "",
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        })
        return d
