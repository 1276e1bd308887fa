"""Shared fixtures: an in-memory stand-in for DirectoryConnection.

The fake evaluates filters loosely (every `(attr=value)` / `(attr=*value*)` term is
OR-ed, `objectClass` terms are ignored). That is enough to drive the matcher and
the services; real filter semantics are covered by the ldap3 MOCK_SYNC tests.
"""
from __future__ import annotations

import re
from typing import Iterable

import pytest

from ldap_verify.directory import (
    BindFailure,
    DirectoryConfig,
    DirectoryRecord,
    LdapBindError,
)
from ldap_verify.services import VerificationService

SERVICE_DN = "cn=svc-verify,ou=Service,dc=co,dc=com"
SERVICE_PASSWORD = "svc-secret"
BASE_DN = "ou=People,dc=co,dc=com"

_TERM_RE = re.compile(r"\(([A-Za-z][A-Za-z0-9-]*)=([^()]*)\)")
_UNESCAPE = {"\\2a": "*", "\\28": "(", "\\29": ")", "\\00": "\x00", "\\5c": "\\"}


def _unescape(value: str) -> str:
    for k, v in _UNESCAPE.items():
        value = value.replace(k, v)
    return value


def record(dn: str, **attrs) -> DirectoryRecord:
    return DirectoryRecord.from_ldap(dn, attrs)


class FakeDirectory:
    def __init__(self, records: Iterable[DirectoryRecord] = (), passwords: dict[str, str] | None = None) -> None:
        self.records = list(records)
        self.passwords = {SERVICE_DN: SERVICE_PASSWORD, **(passwords or {})}
        self.connect_error: Exception | None = None
        self.search_errors: dict[str, Exception] = {}  # filter substring -> error
        self.connections: list[FakeConnection] = []

    def matches(self, rec: DirectoryRecord, search_filter: str) -> bool:
        for attr, raw in _TERM_RE.findall(search_filter):
            if attr.lower() == "objectclass":
                continue
            if raw.startswith("*") and raw.endswith("*") and len(raw) > 2:
                needle = _unescape(raw[1:-1]).casefold()
                if any(needle in v.casefold() for v in rec.values(attr)):
                    return True
            else:
                wanted = _unescape(raw).casefold()
                if any(v.casefold() == wanted for v in rec.values(attr)):
                    return True
        return False

    def connection(self) -> "FakeConnection":
        conn = FakeConnection(self)
        self.connections.append(conn)
        return conn


class FakeConnection:
    def __init__(self, directory: FakeDirectory) -> None:
        self.directory = directory
        self.opened = False
        self.released = False
        self.bound_as = ""
        self.binds: list[str] = []
        self.filters: list[str] = []

    def __enter__(self) -> "FakeConnection":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def connect(self) -> None:
        if self.directory.connect_error is not None:
            raise self.directory.connect_error
        self.opened = True

    def bind_as(self, dn: str, secret: str) -> None:
        self.binds.append(dn)
        self.bound_as = ""
        expected = self.directory.passwords.get(dn)
        if expected is None or expected != secret:
            raise LdapBindError(BindFailure.INVALID_CREDENTIALS, "invalidCredentials")
        self.bound_as = dn

    def service_bind(self) -> None:
        self.bind_as(SERVICE_DN, SERVICE_PASSWORD)

    def search(self, base, search_filter, attributes, limits=None):
        self.filters.append(search_filter)
        for needle, err in self.directory.search_errors.items():
            if needle in search_filter:
                raise err
        hits = [r for r in self.directory.records if self.directory.matches(r, search_filter)]
        if limits is not None:
            hits = hits[: limits.size_limit]
        # Like a real server: only the requested attributes come back.
        wanted = {a.lower() for a in attributes}
        for r in hits:
            yield DirectoryRecord(r.dn, {k: v for k, v in r.attributes.items() if k.lower() in wanted})

    def release(self) -> None:
        self.released = True
        self.bound_as = ""


@pytest.fixture
def directory_cfg() -> DirectoryConfig:
    return DirectoryConfig(
        server_uri="ldaps://ldap.co.com:636",
        bind_dn=SERVICE_DN,
        bind_password=SERVICE_PASSWORD,
        base_dn=BASE_DN,
    )


@pytest.fixture
def alice() -> DirectoryRecord:
    return record(
        "uid=alice,ou=People,dc=co,dc=com",
        uid="alice",
        cn="Alice A",
        mail="a@co.com",
        title="Engineer",
        manager="cn=Bob Boss,ou=People,dc=co,dc=com",
        objectClass=["top", "person", "inetOrgPerson"],
    )


@pytest.fixture
def fake_directory(alice) -> FakeDirectory:
    return FakeDirectory([alice], passwords={alice.dn: "s3cret"})


@pytest.fixture
def service(directory_cfg, fake_directory) -> VerificationService:
    return VerificationService(directory_cfg, connection_factory=fake_directory.connection)
