"""
DELETE /api/media/:id APIのテストファイル（メディア削除）

メディア削除API仕様:
- アップローダーまたはアルバムのオーナーが削除可能
- メディアの削除とアルバムのメディア一覧からの除去を同一トランザクションで実行
- コミット後にCloudinaryのアセットを公開IDで1回だけ削除
- Cloudinary削除に失敗しても削除成功として応答

テスト項目:
- test_uploader_deletes_media_item
- test_album_owner_deletes_others_upload
- test_other_user_cannot_delete
- test_delete_missing_media_item
- test_remote_delete_failure_still_succeeds
- test_commit_failure_rolls_back_and_skips_remote_delete
"""

from unittest.mock import MagicMock

import pytest

from models import Album, MediaItem
from services import media_service


class TestMediaDelete:

    def test_uploader_deletes_media_item(self, client, db_session, mock_storage, make_user, make_album, make_media_item, auth_headers):
        owner = make_user()
        album = make_album(owner)
        keep = make_media_item(album, owner)
        media_item = make_media_item(album, owner, "video")
        media_id = media_item.id
        public_id = media_item.cloudinary_public_id
        keep_id = keep.id

        response = client.delete(f"/api/media/{media_id}", headers=auth_headers(owner))

        assert response.status_code == 200
        assert response.json() == {"status": "success", "message": "Media item deleted successfully"}
        mock_storage.delete.assert_called_once_with(public_id, "video")

        db_session.expire_all()
        assert db_session.query(MediaItem).filter(MediaItem.id == media_id).first() is None
        stored_album = db_session.query(Album).filter(Album.id == album.id).first()
        assert [m.id for m in stored_album.media_items] == [keep_id]

    def test_album_owner_deletes_others_upload(self, client, db_session, mock_storage, make_user, make_album, make_media_item, auth_headers):
        owner = make_user("usera")
        uploader = make_user("userb")
        album = make_album(owner)
        media_id = make_media_item(album, uploader).id

        response = client.delete(f"/api/media/{media_id}", headers=auth_headers(owner))

        assert response.status_code == 200
        mock_storage.delete.assert_called_once()

    def test_other_user_cannot_delete(self, client, db_session, mock_storage, make_user, make_album, make_media_item, auth_headers):
        owner = make_user("usera")
        other = make_user("userb")
        album = make_album(owner, is_public=True)
        media_id = make_media_item(album, owner).id

        response = client.delete(f"/api/media/{media_id}", headers=auth_headers(other))

        assert response.status_code == 403
        assert response.json()["message"] == "You do not have permission to delete this media item"
        mock_storage.delete.assert_not_called()
        db_session.expire_all()
        assert db_session.query(MediaItem).filter(MediaItem.id == media_id).first() is not None

    def test_delete_missing_media_item(self, client, mock_storage, make_user, auth_headers):
        user = make_user()

        response = client.delete("/api/media/9999", headers=auth_headers(user))

        assert response.status_code == 404
        mock_storage.delete.assert_not_called()

    def test_remote_delete_failure_still_succeeds(self, client, db_session, mock_storage, make_user, make_album, make_media_item, auth_headers):
        owner = make_user()
        album = make_album(owner)
        media_id = make_media_item(album, owner).id
        mock_storage.delete.side_effect = RuntimeError("Cloudinary unavailable")

        response = client.delete(f"/api/media/{media_id}", headers=auth_headers(owner))

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.query(MediaItem).filter(MediaItem.id == media_id).first() is None

    def test_commit_failure_rolls_back_and_skips_remote_delete(self):
        user = MagicMock(id=1)
        media_item = MagicMock(id=5, album_id=10, uploader_id=1, cloudinary_public_id="memories-album/x", type="image")
        album = MagicMock(id=10, owner_id=1, media_items=[media_item])

        mock_db = MagicMock()
        mock_db.query.return_value.filter.return_value.first.side_effect = [media_item, album]
        mock_db.commit.side_effect = RuntimeError("transaction aborted")
        storage = MagicMock()

        with pytest.raises(RuntimeError):
            media_service.delete_media_item(5, user, mock_db, storage)

        mock_db.rollback.assert_called_once()
        storage.delete.assert_not_called()
