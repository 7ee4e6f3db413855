from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from dependencies import get_current_user, get_storage
from models import User
from schemas import (
    AlbumCreateRequest, AlbumUpdateRequest, AlbumResponse, AlbumData, AlbumEnvelope,
    AlbumListData, AlbumListEnvelope, MediaItemResponse, MediaItemListData,
    MediaItemListEnvelope, MessageResponse,
)
from services import album_service, media_service

router = APIRouter(prefix="/api/albums", tags=["albums"])


def _album_envelope(album) -> AlbumEnvelope:
    return AlbumEnvelope(data=AlbumData(album=AlbumResponse.model_validate(album)))


def _album_list_envelope(albums) -> AlbumListEnvelope:
    return AlbumListEnvelope(
        results=len(albums),
        data=AlbumListData(albums=[AlbumResponse.model_validate(a) for a in albums])
    )


@router.post("", response_model=AlbumEnvelope, status_code=201)
def create_album(
    album_request: AlbumCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """アルバム作成API（作成者がオーナー）"""
    album = album_service.create_album(album_request, current_user, db)
    return _album_envelope(album)


@router.get("", response_model=AlbumListEnvelope)
def get_albums(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """閲覧可能なアルバム一覧API（自分のアルバム + 公開アルバム）"""
    return _album_list_envelope(album_service.get_albums(current_user, db))


@router.get("/my", response_model=AlbumListEnvelope)
def get_my_albums(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """自分のアルバム一覧API"""
    return _album_list_envelope(album_service.get_my_albums(current_user, db))


@router.get("/{album_id}", response_model=AlbumEnvelope)
def get_album(
    album_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    アルバム詳細取得API

    Raises:
        AppError:
            - 404: アルバムが見つからない
            - 403: 非公開アルバムかつオーナー以外
    """
    return _album_envelope(album_service.get_album(album_id, current_user, db))


@router.patch("/{album_id}", response_model=AlbumEnvelope)
def update_album(
    album_id: int,
    album_update: AlbumUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """アルバム更新API（オーナーのみ）"""
    album = album_service.update_album(album_id, album_update, current_user, db)
    return _album_envelope(album)


@router.delete("/{album_id}", response_model=MessageResponse)
def delete_album(
    album_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage=Depends(get_storage)
):
    """
    アルバム削除API（オーナーのみ）

    アルバムに属するメディアもまとめて削除する。
    """
    album_service.delete_album(album_id, current_user, db, storage)
    return MessageResponse(message="Album deleted successfully")


@router.get("/{album_id}/media", response_model=MediaItemListEnvelope)
def get_album_media_items(
    album_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """アルバム内のメディア一覧API（新しい順）"""
    media_items = media_service.get_media_items_by_album(album_id, current_user, db)
    return MediaItemListEnvelope(
        results=len(media_items),
        data=MediaItemListData(media_items=[MediaItemResponse.model_validate(m) for m in media_items])
    )
