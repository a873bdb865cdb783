from datetime import datetime
from typing import Optional

from pydantic import BaseModel

# Version recorded for installs restored from a backup, forcing a recheck.
UNKNOWN_VERSION = "unknown"


class Addon(BaseModel):
    id: int
    category_id: int
    version: str
    date: datetime
    name: str
    author_name: Optional[str] = None
    file_info_url: Optional[str] = None
    download_total: Optional[int] = None
    download_monthly: Optional[int] = None
    favorite_total: Optional[int] = None
    md5: Optional[str] = None
    file_name: Optional[str] = None
    download: Optional[str] = None


class AddonDetail(BaseModel):
    id: int
    description: Optional[str] = None
    change_log: Optional[str] = None
    version: Optional[str] = None


class AddonDirectory(BaseModel):
    addon_id: int
    dir: str


class InstalledAddon(BaseModel):
    addon_id: int
    version: str
    date: datetime


class GameCompatibility(BaseModel):
    addon_id: int
    seq: int
    version: str
    name: str


class AddonImage(BaseModel):
    addon_id: int
    seq: int
    thumbnail: str
    image: str


class StaleAddon(BaseModel):
    id: int
    name: str
    installed_version: str
    installed_date: datetime
    version: str
    date: datetime


class AddonSummary(BaseModel):
    id: int
    name: str
    author_name: Optional[str] = None
    category: Optional[str] = None
    version: str
    date: datetime
    installed: bool = False
    installed_version: Optional[str] = None
    download_total: Optional[int] = None
    download_monthly: Optional[int] = None
    favorite_total: Optional[int] = None
    file_info_url: Optional[str] = None
    download: Optional[str] = None
    file_name: Optional[str] = None
    md5: Optional[str] = None
    description: Optional[str] = None
    change_log: Optional[str] = None

    @property
    def is_upgradable(self) -> bool:
        if not self.installed:
            return False
        return (self.installed_version or "") != self.version
