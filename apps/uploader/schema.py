from typing import Any, Dict

from pydantic import BaseModel, Field


class Blob(BaseModel):
    id: str
    data: Dict[str, Any] = Field(default_factory=dict)


class UserResumeLink(BaseModel):
    id: str
    link: str
