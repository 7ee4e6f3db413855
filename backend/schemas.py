import re
from datetime import datetime
from typing import Optional, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
URL_PATTERN = r'^https?://[^\s/$.?#].[^\s]*$'


class CamelModel(BaseModel):
    """JSONのキーはキャメルケース、Python側はスネークケース"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _strip_optional(v):
    if isinstance(v, str):
        v = v.strip()
    return v


def _to_id(v):
    """リレーション先のオブジェクトをIDに変換"""
    return getattr(v, "id", v)


def _validate_url(v, field_label: str):
    if v is not None and not re.match(URL_PATTERN, v):
        raise ValueError(f'{field_label} must be a valid URL')
    return v


# ========================================
# 認証・ユーザー
# ========================================

class RegisterRequest(CamelModel):
    username: str = Field(min_length=3, max_length=30)
    email: str = Field(max_length=255)
    password: str = Field(min_length=8, max_length=100)

    @field_validator('username', mode='before')
    @classmethod
    def strip_username(cls, v):
        return _strip_optional(v)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        v = v.strip().lower()
        if not re.match(EMAIL_PATTERN, v):
            raise ValueError('Invalid email address')
        return v


class LoginRequest(CamelModel):
    email: str = Field(max_length=255)
    password: str = Field(min_length=1)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        v = v.strip().lower()
        if not re.match(EMAIL_PATTERN, v):
            raise ValueError('Invalid email address')
        return v


class UserResponse(CamelModel):
    id: int
    username: str
    email: str
    profile_picture_url: Optional[str] = None
    albums: list[int] = []

    @field_validator('albums', mode='before')
    @classmethod
    def albums_to_ids(cls, v):
        return [_to_id(a) for a in v or []]


class UserData(BaseModel):
    user: UserResponse


class AuthData(BaseModel):
    user: UserResponse
    token: str


class UserEnvelope(BaseModel):
    status: str = "success"
    data: UserData


class AuthEnvelope(BaseModel):
    status: str = "success"
    data: AuthData


# ========================================
# アルバム
# ========================================

class AlbumCreateRequest(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    is_public: bool = False
    cover_image_url: Optional[str] = None

    @field_validator('name', 'description', mode='before')
    @classmethod
    def strip_text(cls, v):
        return _strip_optional(v)

    @field_validator('cover_image_url')
    @classmethod
    def validate_cover_image_url(cls, v):
        return _validate_url(v, 'Cover image URL')


class AlbumUpdateRequest(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    is_public: Optional[bool] = None
    cover_image_url: Optional[str] = None

    @field_validator('name', 'description', mode='before')
    @classmethod
    def strip_text(cls, v):
        return _strip_optional(v)

    @field_validator('cover_image_url')
    @classmethod
    def validate_cover_image_url(cls, v):
        return _validate_url(v, 'Cover image URL')


class AlbumResponse(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    owner: int
    cover_image_url: Optional[str] = None
    media_items: list[int] = []
    is_public: bool
    created_at: datetime
    updated_at: datetime

    @field_validator('owner', mode='before')
    @classmethod
    def owner_to_id(cls, v):
        return _to_id(v)

    @field_validator('media_items', mode='before')
    @classmethod
    def media_items_to_ids(cls, v):
        return [_to_id(m) for m in v or []]


class AlbumData(BaseModel):
    album: AlbumResponse


class AlbumListData(BaseModel):
    albums: list[AlbumResponse]


class AlbumEnvelope(BaseModel):
    status: str = "success"
    data: AlbumData


class AlbumListEnvelope(BaseModel):
    status: str = "success"
    results: int
    data: AlbumListData


# ========================================
# メディア
# ========================================

class FileUploadRequest(CamelModel):
    album_id: int
    title: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)

    @field_validator('album_id', mode='before')
    @classmethod
    def require_album_id(cls, v):
        if v is None or (isinstance(v, str) and len(v.strip()) == 0):
            raise ValueError('Album ID is required')
        return v

    @field_validator('title', 'description', mode='before')
    @classmethod
    def strip_text(cls, v):
        v = _strip_optional(v)
        if v == "":
            return None
        return v


class MediaItemUpdateRequest(CamelModel):
    title: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)

    @field_validator('title', 'description', mode='before')
    @classmethod
    def strip_text(cls, v):
        return _strip_optional(v)


class MediaItemResponse(CamelModel):
    id: int
    type: Literal["image", "video"]
    cloudinary_public_id: str
    cloudinary_url: str
    thumbnail_url: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    duration: Optional[float] = None
    title: Optional[str] = None
    description: Optional[str] = None
    album: int
    uploader: int
    created_at: datetime
    updated_at: datetime

    @field_validator('album', 'uploader', mode='before')
    @classmethod
    def relation_to_id(cls, v):
        return _to_id(v)


class MediaItemData(CamelModel):
    media_item: MediaItemResponse


class MediaItemListData(CamelModel):
    media_items: list[MediaItemResponse]


class MediaItemEnvelope(BaseModel):
    status: str = "success"
    data: MediaItemData


class MediaItemListEnvelope(BaseModel):
    status: str = "success"
    results: int
    data: MediaItemListData


class MediaItemUploadEnvelope(BaseModel):
    status: str = "success"
    results: int
    message: str
    data: MediaItemListData


class MessageResponse(BaseModel):
    status: str = "success"
    message: str
