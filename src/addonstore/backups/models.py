from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class BackupInstalledAddon(BaseModel):
    addon_id: int
    date: datetime


class BackupManualDependency(BaseModel):
    addon_dir: str
    satisfied_by: Optional[int] = None
    ignore: Optional[bool] = None


class Snapshot(BaseModel):
    installed_addons: List[BackupInstalledAddon] = Field(default_factory=list)
    manual_dependencies: List[BackupManualDependency] = Field(default_factory=list)
