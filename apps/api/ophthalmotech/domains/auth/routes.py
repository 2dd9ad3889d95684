# apps/api/ophthalmotech/domains/auth/routes.py
from fastapi import APIRouter, Depends, status
from supabase import Client

from ophthalmotech.core.database import get_db
from ophthalmotech.domains.auth.dependencies import get_session
from ophthalmotech.domains.auth.models import (
    SendOTPRequest,
    SendOTPResponse,
    Session,
    SessionState,
    VerifyOTPRequest,
    VerifyOTPResponse,
)
from ophthalmotech.domains.auth.service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/otp",
    response_model=SendOTPResponse,
    status_code=status.HTTP_202_ACCEPTED,
    operation_id="sendOtp",
)
async def send_otp(
    request: SendOTPRequest, db: Client = Depends(get_db)
) -> SendOTPResponse:
    service = AuthService(db)
    await service.send_otp(request.email)
    return SendOTPResponse(email=request.email)


@router.post(
    "/otp/verify", response_model=VerifyOTPResponse, operation_id="verifyOtp"
)
async def verify_otp(
    request: VerifyOTPRequest, db: Client = Depends(get_db)
) -> VerifyOTPResponse:
    """
    Exchange an emailed passcode for session tokens.

    First-time users are provisioned with a default viewer profile.
    """
    service = AuthService(db)
    return await service.verify_otp(request.email, request.code)


@router.post(
    "/logout", status_code=status.HTTP_204_NO_CONTENT, operation_id="logout"
)
async def logout(
    session: Session = Depends(get_session), db: Client = Depends(get_db)
) -> None:
    service = AuthService(db)
    await service.logout(session)


@router.get("/session", response_model=SessionState, operation_id="getSessionState")
async def get_session_state(
    session: Session = Depends(get_session), db: Client = Depends(get_db)
) -> SessionState:
    service = AuthService(db)
    return await service.get_session_state(session)
