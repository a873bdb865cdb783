from typing import Optional

from pydantic import BaseModel


class AddonDependency(BaseModel):
    addon_id: int
    dependency_dir: str


class ManualDependency(BaseModel):
    addon_dir: str
    satisfied_by: Optional[int] = None
    ignore: Optional[bool] = None

    @property
    def is_resolved(self) -> bool:
        return bool(self.ignore) or self.satisfied_by is not None


class RequiredDependency(BaseModel):
    """A dependency directory declared by an installed add-on."""

    dependency_dir: str
    addon_id: int
    addon_name: str


class DirectoryProvider(BaseModel):
    """A catalog add-on that ships a given directory."""

    dir: str
    addon_id: int
    addon_name: str
