"""
Upload and client activity schemas.
"""

from pydantic import BaseModel, Field


class UploadResponse(BaseModel):
    file_url: str


class AppLogCreate(BaseModel):
    page_name: str = Field(..., min_length=1, max_length=200)
