"""
VIN decode schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional


class VinDecodeRequest(BaseModel):
    vin: str = Field(..., min_length=17, max_length=17, pattern=r"^[A-Za-z0-9]{17}$")


class VinDecodeResponse(BaseModel):
    year: Optional[int]
    make: str = ""
    model: str = ""
    trim: str = ""
