from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


class FileOperationResult(BaseModel):
    operation: Literal["open", "save"]
    success: bool
    path: str = Field(description="Path that was read or written")
    file_name: str = Field(default="", description="Final component of path")
    message: Optional[str] = Field(
        default=None,
        description="Diagnostic for a failed operation",
    )
    bone_count: int = Field(default=0, ge=0)

    @field_validator("path")
    @classmethod
    def validate_path(cls, value: str) -> str:
        if not value:
            msg = "path must not be empty"
            raise ValueError(msg)
        return value
