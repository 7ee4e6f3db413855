from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config import Settings
from database import get_db
from dependencies import get_settings
from schemas import RegisterRequest, LoginRequest, AuthEnvelope, AuthData, UserResponse
from services import auth_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=AuthEnvelope, status_code=201)
def register(
    register_request: RegisterRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    user, token = auth_service.register_user(register_request, db, settings)
    return AuthEnvelope(data=AuthData(user=UserResponse.model_validate(user), token=token))


@router.post("/login", response_model=AuthEnvelope)
def login(
    login_request: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    user, token = auth_service.login_user(login_request, db, settings)
    return AuthEnvelope(data=AuthData(user=UserResponse.model_validate(user), token=token))
