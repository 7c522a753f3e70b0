"""
Worker directory schemas.

POST /workers       → WorkerCreateRequest → WorkerResponse
GET  /workers/{id}  → WorkerResponse
"""
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.worker import WorkerRole


class WorkerCreateRequest(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: Annotated[str, Field(min_length=1, max_length=128, examples=["Asha Verma"])]
    email: Annotated[str, Field(min_length=3, max_length=256, examples=["asha@mine.example"])]
    role: WorkerRole = Field(default=WorkerRole.worker, description="Directory role.")

    @field_validator("name", "email", mode="before")
    @classmethod
    def strip_and_check_empty(cls, v: str) -> str:
        stripped = v.strip() if isinstance(v, str) else v
        if not stripped:
            raise ValueError("must not be empty after stripping whitespace")
        return stripped


class WorkerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: str
    created_at: str
