from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def decode_feed_date(value: Any) -> Any:
    """Feed dates are milliseconds since the epoch."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(int(value) // 1000, tz=timezone.utc)
    return value


def _optional_count(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        cleaned = value.replace(",", "").strip()
        return int(cleaned) if cleaned else None
    return value


def _as_text(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _as_list(value: Any) -> Any:
    return [] if value is None else value


class FeedModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CompatibilityItem(FeedModel):
    version: str
    name: str

    @field_validator("version", "name", mode="before")
    @classmethod
    def coerce_text(cls, value):
        return _as_text(value)


class CatalogItem(FeedModel):
    id: int = Field(alias="UID")
    category_id: int = Field(alias="UICATID")
    version: str = Field(alias="UIVersion")
    date: datetime = Field(alias="UIDate")
    name: str = Field(alias="UIName")
    author_name: Optional[str] = Field(None, alias="UIAuthorName")
    file_info_url: Optional[str] = Field(None, alias="UIFileInfoURL")
    download_total: Optional[int] = Field(None, alias="UIDownloadTotal")
    download_monthly: Optional[int] = Field(None, alias="UIDownloadMonthly")
    favorite_total: Optional[int] = Field(None, alias="UIFavoriteTotal")
    directories: List[str] = Field(default_factory=list, alias="UIDir")
    compatibility: List[CompatibilityItem] = Field(default_factory=list, alias="UICompatibility")
    image_thumbnails: List[str] = Field(default_factory=list, alias="UIIMG_Thumbs")
    images: List[str] = Field(default_factory=list, alias="UIIMGs")

    @field_validator("date", mode="before")
    @classmethod
    def decode_date(cls, value):
        return decode_feed_date(value)

    @field_validator("download_total", "download_monthly", "favorite_total", mode="before")
    @classmethod
    def coerce_counts(cls, value):
        return _optional_count(value)

    @field_validator("version", "name", mode="before")
    @classmethod
    def coerce_text(cls, value):
        return _as_text(value)

    @field_validator("directories", "compatibility", "image_thumbnails", "images", mode="before")
    @classmethod
    def coerce_lists(cls, value):
        return _as_list(value)


class DetailRecord(FeedModel):
    id: int = Field(alias="UID")
    version: str = Field(alias="UIVersion")
    date: Optional[datetime] = Field(None, alias="UIDate")
    md5: Optional[str] = Field(None, alias="UIMD5")
    file_name: Optional[str] = Field(None, alias="UIFileName")
    download_url: Optional[str] = Field(None, alias="UIDownload")
    description: Optional[str] = Field(None, alias="UIDescription")
    change_log: Optional[str] = Field(None, alias="UIChangeLog")

    @field_validator("date", mode="before")
    @classmethod
    def decode_date(cls, value):
        return decode_feed_date(value)

    @field_validator("version", mode="before")
    @classmethod
    def coerce_text(cls, value):
        return _as_text(value)


class CategoryItem(FeedModel):
    id: int = Field(alias="UICATID")
    title: str = Field(alias="UICATTitle")
    icon: Optional[str] = Field(None, alias="UICATICON")
    file_count: Optional[int] = Field(None, alias="UICATFileCount")
    parent_ids: List[int] = Field(default_factory=list, alias="UICATParentIDs")

    @field_validator("file_count", mode="before")
    @classmethod
    def coerce_count(cls, value):
        return _optional_count(value)

    @field_validator("parent_ids", mode="before")
    @classmethod
    def coerce_parents(cls, value):
        return _as_list(value)


class ApiFeeds(FeedModel):
    file_list: str = Field(alias="FileList")
    file_details: str = Field(alias="FileDetails")
    list_files: str = Field(alias="ListFiles")
    category_list: str = Field("", alias="CategoryList")


class GameApiConfig(FeedModel):
    api_feeds: ApiFeeds = Field(alias="APIFeeds")


class GameEntry(FeedModel):
    game_id: str = Field(alias="GameID")
    game_config: str = Field(alias="GameConfig")


class GlobalConfig(FeedModel):
    games: List[GameEntry] = Field(default_factory=list, alias="GAMES")
