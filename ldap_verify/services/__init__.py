"""Verification service layer.

Stable import surface for routers:
    from ldap_verify.services import ...
"""

from .attributes import AttributeResolver, Fallbacks, NormalizedProfile
from .credentials import CredentialVerifier
from .matcher import CandidateMatch, MatchReport, RecordMatcher
from .planner import IdentifyingInputs, SearchStrategy, SearchStrategyPlanner
from .verdicts import (
    Authenticated,
    DirectoryUnavailable,
    InvalidCredentials,
    NotFound,
    VerificationResult,
    VerificationVerdict,
)
from .verification import VerificationService, directory_cfg_from_env

__all__ = [
    "AttributeResolver",
    "Authenticated",
    "CandidateMatch",
    "CredentialVerifier",
    "DirectoryUnavailable",
    "Fallbacks",
    "IdentifyingInputs",
    "InvalidCredentials",
    "MatchReport",
    "NormalizedProfile",
    "NotFound",
    "RecordMatcher",
    "SearchStrategy",
    "SearchStrategyPlanner",
    "VerificationResult",
    "VerificationService",
    "VerificationVerdict",
    "directory_cfg_from_env",
]
