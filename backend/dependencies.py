import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from auth import decode_access_token, TokenExpiredError, InvalidTokenError
from config import Settings
from database import get_db
from errors import AppError, ErrorKind
from services.auth_service import get_user_by_id

logger = logging.getLogger(__name__)

# 未認証時の 403 は使わず、401 を自前で返す
security = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    """設定を取得（dependency injection用）"""
    return request.app.state.settings


def get_storage(request: Request):
    """ストレージサービスを取得（dependency injection用）"""
    return request.app.state.storage


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    認証必須ルートの保護

    Authorization: Bearer <token> を検証し、トークンのユーザーを返す。

    Raises:
        AppError: 401
            - トークンなし
            - 署名・形式が不正
            - 期限切れ
            - ユーザーが存在しない
    """
    if credentials is None or not credentials.credentials:
        raise AppError(ErrorKind.AUTHENTICATION, "Not authorized, no token provided")

    try:
        user_id = decode_access_token(credentials.credentials, settings)
    except TokenExpiredError:
        raise AppError(ErrorKind.AUTHENTICATION, "Not authorized, token expired")
    except InvalidTokenError:
        raise AppError(ErrorKind.AUTHENTICATION, "Not authorized, invalid token")

    user = get_user_by_id(user_id, db)
    if user is None:
        logger.warning(f"Token for unknown user: ID={user_id}")
        raise AppError(ErrorKind.AUTHENTICATION, "Not authorized, user not found")
    return user
