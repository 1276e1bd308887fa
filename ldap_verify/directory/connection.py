from __future__ import annotations

import logging
import ssl
from typing import Any, Iterator, Sequence

from ldap3 import AUTO_BIND_NONE, NONE, SIMPLE, SUBTREE, SYNC, Connection, Server, Tls
from ldap3.core.exceptions import LDAPCommunicationError, LDAPException

from ..utils.deadline import Deadline
from .errors import BindFailure, DirectoryTimeout, LdapBindError, LdapConnectionError, LdapSearchError
from .models import DirectoryConfig, DirectoryRecord, SearchLimits

log = logging.getLogger(__name__)

# LDAP result codes (RFC 4511)
RESULT_SUCCESS = 0
RESULT_TIME_LIMIT_EXCEEDED = 3
RESULT_SIZE_LIMIT_EXCEEDED = 4
RESULT_INVALID_CREDENTIALS = 49

_PARTIAL_RESULT_CODES = {RESULT_TIME_LIMIT_EXCEEDED, RESULT_SIZE_LIMIT_EXCEEDED}

MIN_RECEIVE_TIMEOUT = 0.05  # seconds


def build_server(cfg: DirectoryConfig) -> Server:
    tls_kwargs: dict[str, Any] = {
        "validate": ssl.CERT_REQUIRED if cfg.tls_validate else ssl.CERT_NONE,
    }
    # Custom CA only matters when verification is enabled.
    if cfg.tls_validate and cfg.ca_cert_file:
        tls_kwargs["ca_certs_file"] = cfg.ca_cert_file

    return Server(
        cfg.server_uri,
        use_ssl=cfg.use_ssl,
        get_info=NONE,
        tls=Tls(**tls_kwargs),
        connect_timeout=cfg.connect_timeout,
    )


def _result_text(res: dict) -> str:
    desc = str(res.get("description") or "")
    msg = str(res.get("message") or "")
    if desc and msg and msg != desc:
        return f"{desc}: {msg}"
    return desc or msg or "unknown error"


class DirectoryConnection:
    """A single session to the directory server.

    Lifecycle: connect() -> bind_as(service) -> search()* -> [bind_as(user)] -> release().
    Used as a context manager the session is always released, whatever happens
    inside the block. Nothing here knows about users, profiles or verdicts.
    """

    def __init__(
        self,
        cfg: DirectoryConfig,
        *,
        server: Server | None = None,
        client_strategy: str = SYNC,
        deadline: Deadline | None = None,
    ) -> None:
        self.cfg = cfg
        self._server = server
        self._client_strategy = client_strategy
        self._deadline = deadline
        self._conn: Connection | None = None
        self.bound_as: str = ""

    def __enter__(self) -> "DirectoryConnection":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def is_bound(self) -> bool:
        return bool(self._conn is not None and self.bound_as)

    def _check_deadline(self, step: str) -> None:
        if self._deadline is not None and self._deadline.expired:
            raise DirectoryTimeout(f"request deadline elapsed before {step}")

    def _receive_timeout(self) -> float:
        timeout = float(self.cfg.connect_timeout)
        if self._deadline is not None:
            # settimeout(0) would switch the socket to non-blocking mode
            timeout = min(timeout, max(MIN_RECEIVE_TIMEOUT, self._deadline.remaining()))
        return timeout

    def _arm_timeout(self, conn: Connection) -> None:
        """Re-apply the remaining budget to the socket before each operation.

        ldap3 sets the socket timeout once, at open.
        """
        timeout = self._receive_timeout()
        conn.receive_timeout = timeout
        sock = getattr(conn, "socket", None)
        if sock is not None and hasattr(sock, "settimeout"):
            sock.settimeout(timeout)

    def _lost(self, step: str, exc: Exception) -> LdapConnectionError:
        if self._deadline is not None and self._deadline.expired:
            return DirectoryTimeout(f"request deadline elapsed during {step}: {exc}")
        return LdapConnectionError(f"{step} interrupted: {exc}")

    def _require_open(self) -> Connection:
        if self._conn is None:
            raise LdapConnectionError("directory session is not open")
        return self._conn

    def connect(self) -> None:
        """Open the transport (TCP, TLS or StartTLS). Does not authenticate."""
        if self._conn is not None:
            return
        self._check_deadline("connect")
        try:
            server = self._server or build_server(self.cfg)
            self._conn = Connection(
                server,
                authentication=SIMPLE,
                auto_bind=AUTO_BIND_NONE,
                client_strategy=self._client_strategy,
                receive_timeout=self._receive_timeout(),
                raise_exceptions=False,
            )
            self._conn.open()
            if self.cfg.starttls and not self.cfg.use_ssl:
                if not self._conn.start_tls():
                    raise LdapConnectionError(f"StartTLS failed: {_result_text(dict(self._conn.result or {}))}")
        except LDAPException as e:
            self.release()
            raise LdapConnectionError(f"cannot connect to {self.cfg.server_uri}: {e}") from e
        except LdapConnectionError:
            self.release()
            raise
        log.debug("Directory session opened: %s", self.cfg.server_uri)

    def bind_as(self, dn: str, secret: str) -> None:
        """Authenticate the session as `dn` (simple bind).

        An empty secret is refused locally: many servers treat it as an
        unauthenticated bind and report success.
        """
        conn = self._require_open()
        self._check_deadline("bind")
        if not (dn or "").strip() or not secret:
            raise LdapBindError(BindFailure.INVALID_CREDENTIALS, "empty principal or secret")

        self.bound_as = ""
        conn.user = dn
        conn.password = secret
        try:
            self._arm_timeout(conn)
            ok = bool(conn.bind())
        except (LDAPCommunicationError, OSError) as e:
            raise self._lost("bind", e) from e
        except LDAPException as e:
            raise LdapBindError(BindFailure.PROTOCOL_ERROR, str(e)) from e

        if not ok:
            res = dict(conn.result or {})
            if res.get("result") == RESULT_INVALID_CREDENTIALS:
                raise LdapBindError(BindFailure.INVALID_CREDENTIALS, _result_text(res))
            raise LdapBindError(BindFailure.PROTOCOL_ERROR, _result_text(res))
        self.bound_as = dn

    def service_bind(self) -> None:
        self.bind_as(self.cfg.bind_dn, self.cfg.bind_password)

    def search(
        self,
        base: str,
        search_filter: str,
        attributes: Sequence[str],
        limits: SearchLimits | None = None,
    ) -> Iterator[DirectoryRecord]:
        """Subtree search, yielding records lazily.

        The protocol exchange happens on first iteration. Exceeding the size or
        time limit is not an error: the records collected so far are returned.
        """
        conn = self._require_open()
        self._check_deadline("search")
        lim = limits or self.cfg.limits
        try:
            self._arm_timeout(conn)
            conn.search(
                search_base=base,
                search_filter=search_filter,
                search_scope=SUBTREE,
                attributes=list(attributes),
                size_limit=lim.size_limit,
                time_limit=lim.time_limit,
            )
        except (LDAPCommunicationError, OSError) as e:
            raise self._lost("search", e) from e
        except LDAPException as e:
            raise LdapSearchError(str(e)) from e

        res = dict(conn.result or {})
        code = res.get("result", RESULT_SUCCESS)
        if code in _PARTIAL_RESULT_CODES:
            log.warning("Search %s stopped early (%s), returning partial results", search_filter, _result_text(res))
        elif code != RESULT_SUCCESS:
            raise LdapSearchError(_result_text(res))

        # Copy: the next operation on this connection overwrites conn.response.
        entries = [e for e in (conn.response or []) if e.get("type") == "searchResEntry"]
        for entry in entries[: lim.size_limit]:
            yield DirectoryRecord.from_ldap(entry.get("dn", ""), entry.get("attributes"))

    def release(self) -> None:
        """Unbind and drop the session. Never raises."""
        conn, self._conn = self._conn, None
        self.bound_as = ""
        if conn is None:
            return
        try:
            conn.unbind()
        except Exception:
            log.warning("Directory unbind failed (ignored)", exc_info=True)
