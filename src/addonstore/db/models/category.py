from typing import List, Optional

from pydantic import BaseModel, Field


class Category(BaseModel):
    id: int
    title: str
    icon: Optional[str] = None
    file_count: Optional[int] = None


class CategoryParent(BaseModel):
    id: int
    parent_id: int


class ParentCategory(BaseModel):
    id: int
    title: str
    child_categories: List[Category] = Field(default_factory=list)
