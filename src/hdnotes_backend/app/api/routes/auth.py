# src/hdnotes_backend/app/api/routes/auth.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from ...auth.deps import get_auth_service, require_user
from ...db.models import User
from ...schemas.auth import (
    GoogleAuthBody,
    RequestOtpBody,
    SigninRequestOtpBody,
    SigninVerifyOtpBody,
    VerifyOtpBody,
)
from ...services.auth_service import AuthService
from ...services.identity import public_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/request-otp")
def request_otp(body: RequestOtpBody, svc: AuthService = Depends(get_auth_service)) -> Dict[str, Any]:
    """Signup step 1: mail a code. The account is created on verify."""
    svc.request_email_otp(body.name, body.email, body.dob)
    return {"message": "OTP sent. Check your inbox (or console in dev)."}


@router.post("/signin-request-otp")
def signin_request_otp(body: SigninRequestOtpBody, svc: AuthService = Depends(get_auth_service)) -> Dict[str, Any]:
    svc.request_signin_otp(body.email)
    return {"message": "OTP sent for sign-in."}


@router.post("/verify-otp")
def verify_otp(body: VerifyOtpBody, svc: AuthService = Depends(get_auth_service)) -> Dict[str, Any]:
    result = svc.verify_otp(body.email, body.otp, name=body.name, dob=body.dob)
    return result.to_dict()


@router.post("/signin-verify-otp")
def signin_verify_otp(body: SigninVerifyOtpBody, svc: AuthService = Depends(get_auth_service)) -> Dict[str, Any]:
    result = svc.verify_signin_otp(body.email, body.otp)
    return result.to_dict()


@router.post("/google")
def google_signin(body: GoogleAuthBody, svc: AuthService = Depends(get_auth_service)) -> Dict[str, Any]:
    """Exchange a Google ID token (from the browser) for a session token."""
    result = svc.verify_google_identity(body.idToken)
    return result.to_dict()


@router.get("/me")
def me(user: User = Depends(require_user)) -> Dict[str, Any]:
    return {"user": public_user(user)}
