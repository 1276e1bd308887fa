from __future__ import annotations

from functools import lru_cache

from .env_settings import get_env
from .services import VerificationService


@lru_cache(maxsize=1)
def _service() -> VerificationService:
    return VerificationService.from_env(get_env())


def get_verification_service() -> VerificationService:
    """FastAPI dependency. The service holds configuration only, so one instance
    serves all requests; each call still opens its own directory connection."""
    return _service()
