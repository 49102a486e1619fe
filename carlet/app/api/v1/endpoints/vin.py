"""
VIN decode endpoint.
"""

from fastapi import APIRouter, Depends
from carlet.app.core.dependencies import get_current_user
from carlet.app.schemas.vin import VinDecodeRequest, VinDecodeResponse
from carlet.app.services.vin_decoder import decode_vin

router = APIRouter(prefix="/vin", tags=["VIN"])


@router.post("/decode", response_model=VinDecodeResponse)
async def decode(
    data: VinDecodeRequest,
    current_user: dict = Depends(get_current_user)
):
    """Decode the model year of a VIN; make, model and trim come back empty."""
    return VinDecodeResponse(**decode_vin(data.vin))
