# pulse/api/routers/auth.py
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pulse.api.deps import get_current_user, get_db
from pulse.domain.schemas import (
    AppleLoginIn,
    AuthOut,
    ChangePasswordIn,
    Envelope,
    ForgotPasswordIn,
    LoginIn,
    ProfileUpdateIn,
    RegisterIn,
    ResetPasswordIn,
    UserOut,
)
from pulse.services.auth_service import AuthService

router = APIRouter(prefix="/api/auth", tags=["auth"])


def get_service(db: Session):
    return AuthService(db)


@router.post("/register", response_model=Envelope[AuthOut], status_code=201)
def register(payload: RegisterIn, db: Session = Depends(get_db)):
    result = get_service(db).register(payload.email, payload.password, payload.name, payload.apple_id)
    return {"success": True, "data": result, "message": "User registered successfully"}


@router.post("/login", response_model=Envelope[AuthOut])
def login(payload: LoginIn, db: Session = Depends(get_db)):
    result = get_service(db).login(payload.email, payload.password)
    return {"success": True, "data": result, "message": "Login successful"}


@router.post("/apple", response_model=Envelope[AuthOut])
def apple_login(payload: AppleLoginIn, db: Session = Depends(get_db)):
    result = get_service(db).login_with_federated_id(payload.apple_id, payload.email, payload.name)
    return {"success": True, "data": result, "message": "Apple login successful"}


@router.get("/profile", response_model=Envelope[UserOut])
def get_profile(claims: Dict[str, Any] = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "data": get_service(db).get_profile(claims["user_id"])}


@router.put("/profile", response_model=Envelope[UserOut])
def update_profile(
    payload: ProfileUpdateIn,
    claims: Dict[str, Any] = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = get_service(db).update_profile(claims["user_id"], name=payload.name, email=payload.email)
    return {"success": True, "data": user, "message": "Profile updated successfully"}


@router.post("/change-password", response_model=Envelope[None])
def change_password(
    payload: ChangePasswordIn,
    claims: Dict[str, Any] = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    get_service(db).change_password(claims["user_id"], payload.current_password, payload.new_password)
    return {"success": True, "message": "Password changed successfully"}


@router.post("/forgot-password", response_model=Envelope[None])
def forgot_password(payload: ForgotPasswordIn, db: Session = Depends(get_db)):
    message = get_service(db).request_password_reset(payload.email)
    return {"success": True, "message": message}


@router.post("/reset-password", response_model=Envelope[None])
def reset_password(payload: ResetPasswordIn, db: Session = Depends(get_db)):
    get_service(db).reset_password(payload.token, payload.new_password)
    return {"success": True, "message": "Password reset successfully"}


@router.delete("/account", response_model=Envelope[None])
def delete_account(claims: Dict[str, Any] = Depends(get_current_user), db: Session = Depends(get_db)):
    get_service(db).deactivate_account(claims["user_id"])
    return {"success": True, "message": "Account deleted successfully"}
