"""
アプリケーション設定モジュール

環境タグ（dev / test / prod）と環境変数のマッピングから
Settings を組み立てる。グローバルインスタンスは持たず、
create_app() で生成して app.state 経由で受け渡す。

環境変数はタグごとのプレフィックス付きで読み込む。
- dev:  DEV_PORT, DEV_DATABASE_URL, ...
- test: TEST_PORT, TEST_DATABASE_URL, ...
- prod: PROD_PORT, PROD_DATABASE_URL, ...
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

ENV_STATES = ("dev", "test", "prod")

DEFAULT_LOG_LEVELS = {
    "dev": "DEBUG",
    "test": "WARNING",
    "prod": "INFO",
}

DEV_JWT_SECRET = "dev-secret-key-change-me"


@dataclass(frozen=True)
class Settings:
    """設定値オブジェクト"""

    env_state: str
    port: int
    database_url: str
    jwt_secret: str
    jwt_algorithm: str
    jwt_expires_in: str
    cloudinary_cloud_name: str
    cloudinary_api_key: str
    cloudinary_api_secret: str
    cloudinary_folder: str
    frontend_url: str
    log_level: str
    max_upload_size: int
    max_upload_files: int

    @property
    def is_production(self) -> bool:
        return self.env_state == "prod"

    @property
    def max_upload_size_mb(self) -> int:
        return self.max_upload_size // (1024 * 1024)


def _build_mysql_url(get) -> str:
    """DB_* 変数から MySQL 接続URLを組み立てる"""
    host = get("DB_HOST", "localhost")
    user = get("DB_USER", "memories_album_user")
    password = get("DB_PASSWORD", "root")
    name = get("DB_NAME", "memories_album")
    port = get("DB_PORT", "3306")
    return f"mysql+pymysql://{user}:{password}@{host}:{port}/{name}"


def load_settings(env_state: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    環境タグと環境変数から設定を生成する

    Args:
        env_state: 環境タグ。未指定の場合は ENV_STATE 変数（既定値 dev）
        environ: 環境変数のマッピング。未指定の場合は os.environ

    Returns:
        Settings: 設定値

    Raises:
        ValueError: 未知の環境タグ、本番環境で JWT_SECRET 未設定、数値変換失敗
    """
    if environ is None:
        environ = os.environ
    if env_state is None:
        env_state = environ.get("ENV_STATE", "dev")
    env_state = env_state.strip().lower()
    if env_state not in ENV_STATES:
        raise ValueError(f"Unknown ENV_STATE: {env_state}")

    prefix = f"{env_state.upper()}_"

    def get(key: str, default: str = "") -> str:
        value = environ.get(prefix + key)
        if value is None or value == "":
            return default
        return value

    jwt_secret = get("JWT_SECRET")
    if not jwt_secret:
        if env_state == "prod":
            raise ValueError("PROD_JWT_SECRET must be set in production")
        jwt_secret = DEV_JWT_SECRET

    return Settings(
        env_state=env_state,
        port=int(get("PORT", "3001")),
        database_url=get("DATABASE_URL") or _build_mysql_url(get),
        jwt_secret=jwt_secret,
        jwt_algorithm=get("JWT_ALGORITHM", "HS256"),
        jwt_expires_in=get("JWT_EXPIRES_IN", "1d"),
        cloudinary_cloud_name=get("CLOUDINARY_CLOUD_NAME"),
        cloudinary_api_key=get("CLOUDINARY_API_KEY"),
        cloudinary_api_secret=get("CLOUDINARY_API_SECRET"),
        cloudinary_folder=get("CLOUDINARY_FOLDER", "memories-album"),
        frontend_url=get("FRONTEND_URL", "http://localhost:5173"),
        log_level=get("LOG_LEVEL", DEFAULT_LOG_LEVELS[env_state]).upper(),
        max_upload_size=int(get("MAX_UPLOAD_SIZE", "10485760")),  # 10MB
        max_upload_files=int(get("MAX_UPLOAD_FILES", "5")),
    )
