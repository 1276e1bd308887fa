from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..deps import get_verification_service
from ..schema import AuthRequest, ResolveRequest
from ..services import IdentifyingInputs, VerificationResult, VerificationService

router = APIRouter(prefix="/api")
log = logging.getLogger(__name__)

MSG_MISSING_INPUT = "Missing email, name or userId in request body"


def _respond(result: VerificationResult) -> JSONResponse:
    return JSONResponse(result.to_dict(), status_code=500 if result.unavailable else 200)


@router.post("/ldap-verify")
def ldap_verify(
    body: ResolveRequest | None = None,
    service: VerificationService = Depends(get_verification_service),
):
    body = body or ResolveRequest()
    inputs = IdentifyingInputs(email=body.email, user_id=body.user_id, display_name=body.name)
    if inputs.is_empty:
        return JSONResponse({"error": MSG_MISSING_INPUT}, status_code=400)

    result = service.resolve_profile(inputs)
    if result.unavailable:
        log.warning("Profile resolution failed: %s", result.detail)
    return _respond(result)


@router.post("/ldap-auth")
def ldap_auth(
    body: AuthRequest | None = None,
    service: VerificationService = Depends(get_verification_service),
):
    body = body or AuthRequest()
    result = service.authenticate(body.username, body.password)
    if result.unavailable:
        log.warning("Authentication could not reach the directory: %s", result.detail)
    return _respond(result)
