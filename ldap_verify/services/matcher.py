from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from ..directory.connection import DirectoryConnection
from ..directory.errors import LdapSearchError
from ..directory.models import DirectoryRecord, SearchLimits
from .planner import EMAIL_ATTRS, NAME_ATTRS, USER_ID_ATTRS, IdentifyingInputs, SearchStrategy

log = logging.getLogger(__name__)

SCORE_EMAIL = 100
SCORE_USER_ID = 50
SCORE_NAME = 25


@dataclass(frozen=True)
class CandidateMatch:
    record: DirectoryRecord
    score: int = 0
    reasons: tuple[str, ...] = ()
    strategy: str = ""  # strategy that found the record first


@dataclass
class StrategyOutcome:
    name: str
    filter: str
    records: int = 0
    new_records: int = 0
    error: str = ""


@dataclass
class MatchReport:
    outcomes: list[StrategyOutcome] = field(default_factory=list)
    candidates: list[CandidateMatch] = field(default_factory=list)

    @property
    def best(self) -> CandidateMatch | None:
        return self.candidates[0] if self.candidates else None

    def diagnostics(self) -> dict:
        best = self.best
        return {
            "strategies": [
                {"name": o.name, "filter": o.filter, "records": o.records, "newRecords": o.new_records, "error": o.error or None}
                for o in self.outcomes
            ],
            "totalResults": len(self.candidates),
            "score": best.score if best else None,
            "reasons": list(best.reasons) if best else [],
            "availableAttributes": best.record.attribute_names if best else [],
        }


def _dedup_key(dn: str) -> str:
    return (dn or "").strip().lower()


def _matches_exact(record: DirectoryRecord, attrs: Iterable[str], wanted: str) -> str:
    """Name of the first attribute having a value equal to `wanted` (case-insensitive)."""
    w = wanted.casefold()
    for a in attrs:
        if any(v.strip().casefold() == w for v in record.values(a)):
            return a
    return ""


def _matches_substring(record: DirectoryRecord, attrs: Iterable[str], wanted: str) -> str:
    w = wanted.casefold()
    for a in attrs:
        if any(w in v.casefold() for v in record.values(a)):
            return a
    return ""


class RecordMatcher:
    """Runs strategies one after another over a single bound connection,
    keeps the first occurrence of every record, then ranks what was found."""

    def __init__(self, base_dn: str, attributes: Sequence[str], limits: SearchLimits | None = None) -> None:
        self.base_dn = base_dn
        self.attributes = list(attributes)
        self.limits = limits

    def collect(
        self,
        conn: DirectoryConnection,
        strategies: Sequence[SearchStrategy],
        limits: SearchLimits | None = None,
    ) -> tuple[list[tuple[DirectoryRecord, str]], list[StrategyOutcome]]:
        """Unique records in discovery order, each paired with the strategy that found it.

        A failing strategy is logged and contributes nothing; connection-level
        failures (LdapConnectionError) propagate.
        """
        seen: set[str] = set()
        found: list[tuple[DirectoryRecord, str]] = []
        outcomes: list[StrategyOutcome] = []

        for st in strategies:
            outcome = StrategyOutcome(name=st.name, filter=st.filter)
            outcomes.append(outcome)
            try:
                for record in conn.search(self.base_dn, st.filter, self.attributes, limits or self.limits):
                    outcome.records += 1
                    key = _dedup_key(record.dn)
                    if not key or key in seen:
                        continue
                    seen.add(key)
                    found.append((record, st.name))
                    outcome.new_records += 1
            except LdapSearchError as e:
                outcome.error = str(e)
                log.warning("Search strategy %s failed, skipping: %s", st.name, e)
                continue
            log.debug("Strategy %s: %d record(s), %d new", st.name, outcome.records, outcome.new_records)

        return found, outcomes

    def score(self, record: DirectoryRecord, inputs: IdentifyingInputs) -> tuple[int, tuple[str, ...]]:
        inp = inputs.cleaned()
        total = 0
        reasons: list[str] = []

        if inp.email:
            attr = _matches_exact(record, EMAIL_ATTRS, inp.email)
            if attr:
                total += SCORE_EMAIL
                reasons.append(f"email matched {attr}")
        if inp.user_id:
            attr = _matches_exact(record, USER_ID_ATTRS, inp.user_id)
            if attr:
                total += SCORE_USER_ID
                reasons.append(f"user id matched {attr}")
        if inp.display_name:
            attr = _matches_substring(record, NAME_ATTRS, inp.display_name)
            if attr:
                total += SCORE_NAME
                reasons.append(f"name contained in {attr}")
        return total, tuple(reasons)

    def resolve(
        self,
        conn: DirectoryConnection,
        strategies: Sequence[SearchStrategy],
        inputs: IdentifyingInputs,
    ) -> MatchReport:
        found, outcomes = self.collect(conn, strategies)
        candidates: list[CandidateMatch] = []
        for record, strategy in found:
            score, reasons = self.score(record, inputs)
            candidates.append(CandidateMatch(record=record, score=score, reasons=reasons, strategy=strategy))
        # sorted() is stable: equal scores keep discovery (= trust) order.
        candidates = sorted(candidates, key=lambda c: -c.score)
        return MatchReport(outcomes=outcomes, candidates=candidates)
