from typing import List, Optional

from pydantic import BaseModel, Field


class DependencyCandidate(BaseModel):
    id: int
    name: str


class MissingDependency(BaseModel):
    directory: str
    required_by: List[str] = Field(default_factory=list)
    candidates: List[DependencyCandidate] = Field(default_factory=list)

    @property
    def required_by_display(self) -> str:
        return ", ".join(self.required_by)


class UserDecision(BaseModel):
    directory: str
    ignore: bool = False
    satisfied_by: Optional[int] = None
