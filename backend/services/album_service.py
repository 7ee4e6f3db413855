import logging

from sqlalchemy import or_, desc
from sqlalchemy.orm import Session

from errors import AppError, ErrorKind
from models import Album, MediaItem, User
from schemas import AlbumCreateRequest, AlbumUpdateRequest
from services.storage import delete_remote_assets

logger = logging.getLogger(__name__)

# name と is_public は NOT NULL のため null での更新は無視する
NON_NULLABLE_FIELDS = ("name", "is_public")


def can_read_album(album: Album, user: User) -> bool:
    return album.is_public or album.owner_id == user.id


def is_album_owner(album: Album, user: User) -> bool:
    return album.owner_id == user.id


def find_album(album_id: int, db: Session) -> Album:
    """アルバム取得。存在しない場合は 404"""
    album = db.query(Album).filter(Album.id == album_id).first()
    if not album:
        raise AppError(ErrorKind.NOT_FOUND, "Album not found")
    return album


def create_album(data: AlbumCreateRequest, user: User, db: Session) -> Album:
    album = Album(
        name=data.name,
        description=data.description,
        is_public=data.is_public,
        cover_image_url=data.cover_image_url,
        owner_id=user.id,
    )
    try:
        db.add(album)
        db.commit()
        db.refresh(album)
    except Exception as e:
        logger.error(f"Failed to create album: {e}")
        db.rollback()
        raise AppError(ErrorKind.INTERNAL, "Failed to create album") from e

    logger.info(f"Album created: ID={album.id}, User={user.id}")
    return album


def get_albums(user: User, db: Session) -> list:
    """自分のアルバムと公開アルバム（新しい順）"""
    return db.query(Album).filter(
        or_(Album.owner_id == user.id, Album.is_public.is_(True))
    ).order_by(desc(Album.created_at), desc(Album.id)).all()


def get_my_albums(user: User, db: Session) -> list:
    return db.query(Album).filter(
        Album.owner_id == user.id
    ).order_by(desc(Album.created_at), desc(Album.id)).all()


def get_album(album_id: int, user: User, db: Session) -> Album:
    album = find_album(album_id, db)
    if not can_read_album(album, user):
        raise AppError(ErrorKind.FORBIDDEN, "You do not have permission to access this album")
    return album


def update_album(album_id: int, data: AlbumUpdateRequest, user: User, db: Session) -> Album:
    album = find_album(album_id, db)
    if not is_album_owner(album, user):
        raise AppError(ErrorKind.FORBIDDEN, "You do not have permission to update this album")

    # 提供されたフィールドのみ更新（owner は変更不可）
    update_data = data.model_dump(exclude_unset=True)
    try:
        for field, value in update_data.items():
            if value is None and field in NON_NULLABLE_FIELDS:
                continue
            setattr(album, field, value)
        db.commit()
        db.refresh(album)
    except Exception as e:
        logger.error(f"Failed to update album {album_id}: {e}")
        db.rollback()
        raise AppError(ErrorKind.INTERNAL, "Failed to update album") from e

    logger.info(f"Album updated: ID={album_id}, User={user.id}")
    return album


def delete_album(album_id: int, user: User, db: Session, storage) -> None:
    """
    アルバム削除

    アルバムに属するメディアとアルバム本体を1トランザクションで削除する。
    コミット後、メディアのリモートアセットをベストエフォートで削除する。

    Raises:
        AppError: 404 アルバムなし / 403 オーナー以外
    """
    album = find_album(album_id, db)
    if not is_album_owner(album, user):
        raise AppError(ErrorKind.FORBIDDEN, "You do not have permission to delete this album")

    try:
        media_items = db.query(MediaItem).filter(MediaItem.album_id == album.id).all()
        assets = [(item.cloudinary_public_id, item.type) for item in media_items]
        for item in media_items:
            db.delete(item)
        db.delete(album)
        db.commit()
    except Exception as e:
        logger.error(f"Failed to delete album {album_id}: {e}")
        db.rollback()
        raise

    logger.info(f"Album deleted: ID={album_id}, User={user.id}, media_items={len(assets)}")

    failures = delete_remote_assets(storage, assets)
    if failures:
        logger.warning(f"Album {album_id}: {failures} remote asset(s) left orphaned")
