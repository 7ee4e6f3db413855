"""
メディア（画像・動画）サービス

アップロード、取得、更新、削除と、アルバムのメディア一覧の整合性を扱う。
"""

import logging

from sqlalchemy import desc
from sqlalchemy.orm import Session

from errors import AppError, ErrorKind
from models import MediaItem, User
from schemas import FileUploadRequest, MediaItemUpdateRequest
from services.album_service import find_album, can_read_album, is_album_owner
from services.storage import delete_remote_assets
from utils.upload import UploadedFile

logger = logging.getLogger(__name__)


def find_media_item(media_item_id: int, db: Session) -> MediaItem:
    media_item = db.query(MediaItem).filter(MediaItem.id == media_item_id).first()
    if not media_item:
        raise AppError(ErrorKind.NOT_FOUND, "Media item not found")
    return media_item


def get_upload_target_album(album_id: int, user: User, db: Session):
    """アップロード先アルバムの存在とオーナー権限を確認"""
    album = find_album(album_id, db)
    if not is_album_owner(album, user):
        raise AppError(ErrorKind.FORBIDDEN, "You do not have permission to add media to this album")
    return album


def create_media_item(upload: UploadedFile, album, data: FileUploadRequest, user: User, db: Session, storage) -> MediaItem:
    """
    1ファイルをアップロードしてメディアを作成する

    ストレージへのアップロード後にDBへ保存し、アルバムのメディア一覧へ追加する。
    DB保存に失敗した場合はロールバックし、アップロード済みアセットを削除する。

    Raises:
        AppError: 500 ストレージまたはDBへの保存失敗
    """
    result = storage.upload(upload.content, upload.content_type)
    media_type = result.resource_type

    try:
        media_item = MediaItem(
            type=media_type,
            cloudinary_public_id=result.public_id,
            cloudinary_url=result.secure_url,
            thumbnail_url=result.thumbnail_url,
            width=result.width,
            height=result.height,
            duration=result.duration,
            title=data.title,
            description=data.description,
            uploader_id=user.id,
        )
        album.media_items.append(media_item)
        db.commit()
        db.refresh(media_item)
    except Exception as e:
        logger.error(f"Database save failed for {upload.filename}: {e}")
        db.rollback()
        delete_remote_assets(storage, [(result.public_id, media_type)])
        raise AppError(ErrorKind.INTERNAL, "Failed to save media item") from e

    logger.info(f"Media item saved: ID={media_item.id}, Album={album.id}, User={user.id}")
    return media_item


def upload_media(upload: UploadedFile, data: FileUploadRequest, user: User, db: Session, storage) -> MediaItem:
    album = get_upload_target_album(data.album_id, user, db)
    return create_media_item(upload, album, data, user, db, storage)


def upload_multiple_media(uploads: list, data: FileUploadRequest, user: User, db: Session, storage) -> list:
    """
    複数ファイルのアップロード

    アルバムの確認は1回のみ。ファイルは順番に1件ずつ処理する。
    途中のファイルで失敗した場合はそのエラーを送出し、
    それまでに作成したメディアは残す。
    """
    album = get_upload_target_album(data.album_id, user, db)

    media_items = []
    for index, upload in enumerate(uploads, start=1):
        try:
            media_items.append(create_media_item(upload, album, data, user, db, storage))
        except AppError:
            logger.error(
                f"Multiple upload aborted at file {index}/{len(uploads)} ({upload.filename}); "
                f"{len(media_items)} item(s) already created in album {album.id}"
            )
            raise
    return media_items


def get_media_items_by_album(album_id: int, user: User, db: Session) -> list:
    album = find_album(album_id, db)
    if not can_read_album(album, user):
        raise AppError(ErrorKind.FORBIDDEN, "You do not have permission to access this album")

    return db.query(MediaItem).filter(
        MediaItem.album_id == album.id
    ).order_by(desc(MediaItem.created_at), desc(MediaItem.id)).all()


def get_media_item(media_item_id: int, user: User, db: Session) -> MediaItem:
    media_item = find_media_item(media_item_id, db)
    album = find_album(media_item.album_id, db)
    if not can_read_album(album, user):
        raise AppError(ErrorKind.FORBIDDEN, "You do not have permission to access this media item")
    return media_item


def update_media_item(media_item_id: int, data: MediaItemUpdateRequest, user: User, db: Session) -> MediaItem:
    media_item = find_media_item(media_item_id, db)
    if media_item.uploader_id != user.id:
        raise AppError(ErrorKind.FORBIDDEN, "You do not have permission to update this media item")

    update_data = data.model_dump(exclude_unset=True)
    try:
        for field, value in update_data.items():
            setattr(media_item, field, value)
        db.commit()
        db.refresh(media_item)
    except Exception as e:
        logger.error(f"Failed to update media item {media_item_id}: {e}")
        db.rollback()
        raise AppError(ErrorKind.INTERNAL, "Failed to update media item") from e

    logger.info(f"Media item updated: ID={media_item_id}, User={user.id}")
    return media_item


def delete_media_item(media_item_id: int, user: User, db: Session, storage) -> None:
    """
    メディア削除

    アップローダーまたはアルバムのオーナーのみ削除可能。
    メディアの削除とアルバムのメディア一覧からの除去を1トランザクションで行い、
    コミット後にリモートアセットをベストエフォートで削除する。
    """
    media_item = find_media_item(media_item_id, db)
    album = find_album(media_item.album_id, db)

    is_uploader = media_item.uploader_id == user.id
    if not is_uploader and not is_album_owner(album, user):
        raise AppError(ErrorKind.FORBIDDEN, "You do not have permission to delete this media item")

    public_id = media_item.cloudinary_public_id
    resource_type = media_item.type

    try:
        if media_item in album.media_items:
            album.media_items.remove(media_item)
        db.delete(media_item)
        db.commit()
    except Exception as e:
        logger.error(f"Failed to delete media item {media_item_id}: {e}")
        db.rollback()
        raise

    logger.info(f"Media item deleted: ID={media_item_id}, User={user.id}")
    delete_remote_assets(storage, [(public_id, resource_type)])
