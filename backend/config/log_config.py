"""
ロギング設定モジュール

dictConfig でコンソール出力（本番はエラーログファイルも）を設定する。
ログ中のメールアドレスは EmailObfuscationFilter で伏せ字にする。
"""

import logging
import logging.config
import os
import re

from .settings import Settings

EMAIL_PATTERN = re.compile(r"([a-zA-Z0-9._%+-]+)@([a-zA-Z0-9.-]+\.[a-zA-Z]{2,})")


def obfuscate_emails(message: str, env_state: str) -> str:
    """メールアドレスを伏せ字にする（dev は先頭1文字のみ残す）"""

    def _mask(match):
        local, domain = match.group(1), match.group(2)
        if env_state == "dev":
            return f"{local[0]}***@{domain}"
        return f"***@{domain}"

    return EMAIL_PATTERN.sub(_mask, message)


class EmailObfuscationFilter(logging.Filter):
    def __init__(self, env_state: str = "dev"):
        super().__init__()
        self.env_state = env_state

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = obfuscate_emails(record.getMessage(), self.env_state)
        record.args = None
        return True


def setup_logging(settings: Settings, log_dir: str = "logs") -> None:
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
            "filters": ["obfuscate_emails"],
        },
    }
    if settings.is_production:
        os.makedirs(log_dir, exist_ok=True)
        handlers["error_file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "ERROR",
            "filename": os.path.join(log_dir, "error.log"),
            "maxBytes": 1024 * 1024 * 5,  # 5MB
            "backupCount": 5,
            "formatter": "verbose",
            "filters": ["obfuscate_emails"],
        }

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "verbose": {
                "format": "[{asctime}] [{levelname}] {name}: {message}",
                "datefmt": "%Y-%m-%d %H:%M:%S",
                "style": "{",
            },
        },
        "filters": {
            "obfuscate_emails": {
                "()": EmailObfuscationFilter,
                "env_state": settings.env_state,
            },
        },
        "handlers": handlers,
        "root": {
            "handlers": list(handlers),
            "level": settings.log_level,
        },
    })
