import logging
import re

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth import hash_password, verify_password, create_access_token
from config import Settings
from errors import AppError, ErrorKind
from models import User
from schemas import RegisterRequest, LoginRequest

logger = logging.getLogger(__name__)

# 一意制約違反のメッセージから email 列の違反を判定する（MySQL / SQLite / PostgreSQL）
DUPLICATE_EMAIL_KEY = re.compile(r"for key '(?:users\.)?email'|UNIQUE constraint failed: users\.email|Key \(email\)")


def get_user_by_id(user_id: int, db: Session):
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(email: str, db: Session):
    return db.query(User).filter(User.email == email).first()


def register_user(data: RegisterRequest, db: Session, settings: Settings):
    """
    ユーザー登録

    メールアドレスとユーザー名の重複を確認し（メールアドレスを優先して報告）、
    パスワードをハッシュ化して保存、トークンを発行する。

    Returns:
        tuple[User, str]: 作成したユーザーとトークン

    Raises:
        AppError: 409 メールアドレスまたはユーザー名の重複
    """
    existing = db.query(User).filter(
        or_(User.email == data.email, User.username == data.username)
    ).all()
    if any(user.email == data.email for user in existing):
        raise AppError(ErrorKind.CONFLICT, "Email already in use")
    if existing:
        raise AppError(ErrorKind.CONFLICT, "Username already taken")

    user = User(
        username=data.username,
        email=data.email,
        password=hash_password(data.password),
    )

    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError as e:
        db.rollback()
        # 同時登録による一意制約違反
        error_msg = str(e.orig)
        logger.warning(f"Duplicate key on register: {error_msg}")
        if DUPLICATE_EMAIL_KEY.search(error_msg):
            raise AppError(ErrorKind.CONFLICT, "Email already in use") from e
        raise AppError(ErrorKind.CONFLICT, "Username already taken") from e

    logger.info(f"User registered: ID={user.id}")
    return user, create_access_token(user.id, settings)


def login_user(data: LoginRequest, db: Session, settings: Settings):
    """ログイン。ユーザー不在とパスワード不一致は区別しない"""
    user = get_user_by_email(data.email, db)
    if not user or not verify_password(data.password, user.password):
        raise AppError(ErrorKind.AUTHENTICATION, "Invalid credentials")

    logger.info(f"User logged in: ID={user.id}")
    return user, create_access_token(user.id, settings)
