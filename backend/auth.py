import re
from calendar import timegm
from datetime import datetime, timedelta, timezone

from jose import jwt, ExpiredSignatureError, JWTError
from passlib.context import CryptContext

from config import Settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

DURATION_PATTERN = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


class TokenExpiredError(Exception):
    pass


class InvalidTokenError(Exception):
    pass


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def parse_expires_in(value: str) -> timedelta:
    """'1d' / '12h' / '30m' / '45s' / '3600' 形式の有効期限を timedelta に変換"""
    match = DURATION_PATTERN.match(value or "")
    if not match:
        raise ValueError(f"Invalid token expiry: {value!r}")
    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * DURATION_UNITS[unit])


def create_access_token(user_id: int, settings: Settings, expires_delta: timedelta = None) -> str:
    if expires_delta is None:
        expires_delta = parse_expires_in(settings.jwt_expires_in)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {"sub": str(user_id), "exp": expire}
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> int:
    """
    トークンを検証してユーザーIDを返す

    exp が現在時刻以下のトークンは期限切れとして扱う。

    Raises:
        TokenExpiredError: 期限切れ
        InvalidTokenError: 署名不正、形式不正、sub 欠如
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as e:
        raise TokenExpiredError() from e
    except JWTError as e:
        raise InvalidTokenError() from e

    exp = payload.get("exp")
    now = timegm(datetime.now(timezone.utc).utctimetuple())
    if exp is not None and now >= exp:
        raise TokenExpiredError()

    sub = payload.get("sub")
    if sub is None:
        raise InvalidTokenError()
    try:
        return int(sub)
    except (TypeError, ValueError) as e:
        raise InvalidTokenError() from e
