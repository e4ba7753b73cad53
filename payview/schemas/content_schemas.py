from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SignedUrlRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_id: int = Field(alias="fileId")


class SignedUrlResponse(BaseModel):
    url: str
    expiresIn: int


class AccessResponse(BaseModel):
    granted: bool
    reason: str
    access_expires_at: Optional[datetime] = None
