from typing import List, Optional

from fastapi import APIRouter, Depends, UploadFile, File, Form
from sqlalchemy.orm import Session

from config import Settings
from database import get_db
from dependencies import get_current_user, get_settings, get_storage
from models import User
from schemas import (
    FileUploadRequest, MediaItemUpdateRequest, MediaItemResponse, MediaItemData,
    MediaItemEnvelope, MediaItemListData, MediaItemUploadEnvelope, MessageResponse,
)
from services import media_service
from utils.upload import validate_single_upload, validate_multiple_uploads

router = APIRouter(prefix="/api/media", tags=["media"])


def _media_item_envelope(media_item) -> MediaItemEnvelope:
    return MediaItemEnvelope(data=MediaItemData(media_item=MediaItemResponse.model_validate(media_item)))


@router.post("", response_model=MediaItemEnvelope, status_code=201)
async def upload_media(
    file: Optional[UploadFile] = File(None),
    album_id: Optional[str] = Form(None, alias="albumId"),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    storage=Depends(get_storage)
):
    """
    メディアアップロードAPI

    multipart/form-dataで画像・動画ファイルとメタデータを受信し、
    Cloudinaryへアップロードしてメディアを作成する。

    Args:
        file: アップロードするファイル（image/* または video/*、最大10MB）
        album_id: アップロード先アルバムID（必須）
        title: タイトル（任意）
        description: 説明（任意）

    Raises:
        AppError:
            - 400: ファイルなし、形式不正、サイズ超過、albumId なし
            - 403: アルバムのオーナー以外
            - 404: アルバムが見つからない
            - 500: ストレージ・DB保存エラー
    """
    upload = await validate_single_upload(file, settings)
    upload_request = FileUploadRequest(album_id=album_id, title=title, description=description)

    media_item = media_service.upload_media(upload, upload_request, current_user, db, storage)
    return _media_item_envelope(media_item)


@router.post("/multiple", response_model=MediaItemUploadEnvelope, status_code=201)
async def upload_multiple_media(
    files: Optional[List[UploadFile]] = File(None),
    album_id: Optional[str] = Form(None, alias="albumId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    storage=Depends(get_storage)
):
    """
    複数メディアアップロードAPI

    最大5ファイルを同じアルバムへ順番にアップロードする。
    途中で失敗した場合、それまでに作成したメディアは残る。
    """
    uploads = await validate_multiple_uploads(files, settings)
    upload_request = FileUploadRequest(album_id=album_id)

    media_items = media_service.upload_multiple_media(uploads, upload_request, current_user, db, storage)
    return MediaItemUploadEnvelope(
        results=len(media_items),
        message=f"{len(media_items)} files uploaded successfully",
        data=MediaItemListData(media_items=[MediaItemResponse.model_validate(m) for m in media_items])
    )


@router.get("/{media_item_id}", response_model=MediaItemEnvelope)
def get_media_item(
    media_item_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """メディア詳細取得API（公開アルバムまたはアルバムのオーナー）"""
    return _media_item_envelope(media_service.get_media_item(media_item_id, current_user, db))


@router.patch("/{media_item_id}", response_model=MediaItemEnvelope)
def update_media_item(
    media_item_id: int,
    media_update: MediaItemUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """メディア更新API（アップローダーのみ）"""
    media_item = media_service.update_media_item(media_item_id, media_update, current_user, db)
    return _media_item_envelope(media_item)


@router.delete("/{media_item_id}", response_model=MessageResponse)
def delete_media_item(
    media_item_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage=Depends(get_storage)
):
    """
    メディア削除API

    アップローダーまたはアルバムのオーナーが削除可能。
    Cloudinary上のファイル削除に失敗しても削除成功として応答する。
    """
    media_service.delete_media_item(media_item_id, current_user, db, storage)
    return MessageResponse(message="Media item deleted successfully")
