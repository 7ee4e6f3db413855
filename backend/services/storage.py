"""
Cloudinary ストレージサービス

画像・動画のアップロードと削除を担当する。
認証情報はプロセス全体の cloudinary.config() ではなく、
呼び出しごとのオプションとして Settings から渡す。
"""

import base64
import logging
from dataclasses import dataclass
from typing import Optional

import cloudinary.uploader

from config import Settings
from errors import AppError, ErrorKind

logger = logging.getLogger(__name__)

# 動画アップロード時に同時生成するサムネイル
VIDEO_THUMBNAIL_TRANSFORM = {"width": 300, "height": 300, "crop": "fill", "format": "jpg"}


@dataclass
class UploadResult:
    public_id: str
    secure_url: str
    resource_type: str
    width: Optional[int] = None
    height: Optional[int] = None
    duration: Optional[float] = None
    thumbnail_url: Optional[str] = None


def resource_type_for(mime_type: str) -> str:
    """MIMEタイプから Cloudinary のリソース種別（image / video）を判定"""
    return "image" if mime_type.startswith("image/") else "video"


class CloudinaryStorage:
    """Cloudinary へのアップロード・削除"""

    def __init__(self, settings: Settings):
        self.folder = settings.cloudinary_folder
        self._credentials = {
            "cloud_name": settings.cloudinary_cloud_name,
            "api_key": settings.cloudinary_api_key,
            "api_secret": settings.cloudinary_api_secret,
            "secure": True,
        }

    def upload(self, content: bytes, mime_type: str) -> UploadResult:
        """
        ファイルを base64 データURIとしてアップロードする

        Args:
            content: ファイルのバイナリ
            mime_type: ファイルのMIMEタイプ（image/* または video/*）

        Returns:
            UploadResult: 公開ID、URL、サイズ、（動画の場合）再生時間とサムネイルURL

        Raises:
            AppError: アップロード失敗（UPSTREAM）
        """
        data_uri = f"data:{mime_type};base64,{base64.b64encode(content).decode('ascii')}"
        resource_type = resource_type_for(mime_type)

        options = dict(self._credentials, resource_type=resource_type, folder=self.folder)
        if resource_type == "video":
            options["eager"] = [VIDEO_THUMBNAIL_TRANSFORM]

        try:
            result = cloudinary.uploader.upload(data_uri, **options)
        except Exception as e:
            logger.error(f"Error uploading to Cloudinary: {e}")
            raise AppError(ErrorKind.UPSTREAM, "Failed to upload file to storage") from e

        thumbnail_url = None
        eager = result.get("eager") or []
        if resource_type == "video" and eager:
            thumbnail_url = eager[0].get("secure_url")

        logger.info(f"Uploaded to Cloudinary: public_id={result.get('public_id')}, type={resource_type}")
        return UploadResult(
            public_id=result["public_id"],
            secure_url=result["secure_url"],
            resource_type=result.get("resource_type", resource_type),
            width=result.get("width"),
            height=result.get("height"),
            duration=result.get("duration"),
            thumbnail_url=thumbnail_url,
        )

    def delete(self, public_id: str, resource_type: str = "image") -> None:
        """公開IDを指定してアセットを削除する。失敗時は例外をそのまま送出"""
        result = cloudinary.uploader.destroy(public_id, resource_type=resource_type, **self._credentials)
        logger.info(f"Deleted from Cloudinary: public_id={public_id}, result={result.get('result')}")


def delete_remote_assets(storage, assets) -> int:
    """
    リモートアセットのベストエフォート削除

    ローカルの削除がコミット済みの後に呼ぶ。失敗はログに残すのみで
    呼び出し元には伝えない（削除済み扱いのまま孤立アセットとして残る）。

    Args:
        storage: CloudinaryStorage
        assets: (public_id, resource_type) のイテラブル

    Returns:
        int: 削除に失敗した件数
    """
    failures = 0
    for public_id, resource_type in assets:
        try:
            storage.delete(public_id, resource_type)
        except Exception as e:
            failures += 1
            logger.warning(f"Failed to delete remote asset {public_id} ({resource_type}): {e}")
    return failures
