# vipgate/schemas/files.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils.timeutils import ensure_utc


class FileRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    filename: str = Field(..., description="Name of the file inside the upload directory")
    original_filename: str
    file_size: int = Field(..., ge=0)
    mime_type: str
    uploaded_at: datetime
    uploaded_by: Optional[int] = None

    @field_validator("uploaded_at")
    @classmethod
    def normalize_uploaded(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class FileView(FileRecord):
    url: str = Field(..., description="Download endpoint for this file")

    @classmethod
    def from_record(cls, record: FileRecord) -> "FileView":
        return cls(**record.model_dump(), url=f"/api/files/{record.id}/download")
