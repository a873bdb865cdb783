from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class InstallStatus(str, Enum):
    INSTALLED = "installed"
    UPDATED = "updated"
    ALREADY_UP_TO_DATE = "already_up_to_date"


class InstallOutcome(BaseModel):
    addon_id: int
    name: str
    status: InstallStatus
    version: str
    root_directory: Optional[str] = None
    dependencies: List[str] = Field(default_factory=list)


class UpgradeResult(BaseModel):
    """Result of one add-on inside a bulk upgrade or import."""

    addon_id: int
    name: Optional[str] = None
    outcome: Optional[InstallOutcome] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None
