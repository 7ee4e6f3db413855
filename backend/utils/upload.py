"""
アップロードファイル検証

サービス層に渡す前に、ファイル数・MIMEタイプ・ファイルサイズを検証する。
検証に失敗した場合、ストレージへのアップロードやDB書き込みは一切行わない。
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import UploadFile

from config import Settings
from errors import AppError, ErrorKind

ALLOWED_TYPE_PREFIXES = ("image/", "video/")


@dataclass
class UploadedFile:
    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


def is_allowed_media_type(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.startswith(ALLOWED_TYPE_PREFIXES)


def check_file_type(file: UploadFile) -> None:
    if not is_allowed_media_type(file.content_type):
        raise AppError(ErrorKind.VALIDATION, "Only image and video files are allowed")


async def read_upload(file: UploadFile, settings: Settings) -> UploadedFile:
    """ファイル内容を上限+1バイトまで読み込み、サイズ上限を確認する"""
    content = await file.read(settings.max_upload_size + 1)
    if len(content) > settings.max_upload_size:
        raise AppError(
            ErrorKind.VALIDATION,
            f"File too large. Maximum size is {settings.max_upload_size_mb}MB"
        )
    return UploadedFile(
        filename=file.filename or "",
        content_type=file.content_type,
        content=content,
    )


async def validate_single_upload(file: Optional[UploadFile], settings: Settings) -> UploadedFile:
    if file is None:
        raise AppError(ErrorKind.VALIDATION, "No file uploaded")
    check_file_type(file)
    return await read_upload(file, settings)


async def validate_multiple_uploads(files: Optional[list], settings: Settings) -> list:
    """
    複数ファイルの検証

    ファイル数 → 全ファイルの種別 → 各ファイルのサイズの順に確認し、
    1件でも不正があればリクエスト全体を拒否する。
    """
    if not files:
        raise AppError(ErrorKind.VALIDATION, "No files uploaded")
    if len(files) > settings.max_upload_files:
        raise AppError(
            ErrorKind.VALIDATION,
            f"Too many files. Maximum is {settings.max_upload_files}"
        )

    for file in files:
        check_file_type(file)

    return [await read_upload(file, settings) for file in files]
