"""
Share API - create and open shareable calculation links.
"""
from fastapi import APIRouter, HTTPException

from ..services.share import ShareTokenError, decode_share_token, encode_share_token
from .schemas import CalculatorInputsModel
from .state import engine

router = APIRouter(prefix="/api/share", tags=["share"])


@router.post("")
async def create_share(data: CalculatorInputsModel):
    """Calculate and return a token that reproduces the calculation."""
    inputs = data.to_inputs()
    result = engine.calculate(inputs)
    return {"token": encode_share_token(inputs, result), "results": result.to_dict()}


@router.get("/{token}")
async def open_share(token: str):
    """Decode a share token back into inputs and results."""
    try:
        shared = decode_share_token(token)
    except ShareTokenError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"inputs": shared.inputs.to_dict(), "results": shared.result.to_dict()}
