"""
Calculations API - FastAPI router for saved calculations.
"""
import json
from typing import Optional

from fastapi import APIRouter, HTTPException, Response
from pydantic import BaseModel

from ..services.saved_calculations import CalculationNotFoundError
from .schemas import CalculatorInputsModel
from .state import analytics, calculations_service, engine

router = APIRouter(prefix="/api/calculations", tags=["calculations"])


class CalculationCreate(BaseModel):
    """Request model for saving a calculation; results are computed server-side."""
    name: Optional[str] = None
    notes: str = ""
    inputs: CalculatorInputsModel


class CalculationUpdate(BaseModel):
    """Request model for updating a calculation."""
    name: Optional[str] = None
    notes: Optional[str] = None
    inputs: Optional[CalculatorInputsModel] = None


class CalculationResponse(BaseModel):
    """Response model for a saved calculation."""
    id: str
    name: str
    inputs: dict
    results: dict
    timestamp: str
    notes: str
    updated: Optional[str]


class ImportRequest(BaseModel):
    """Request model for importing calculations."""
    calculations: list[dict]


# Endpoints

@router.get("", response_model=list[CalculationResponse])
async def list_calculations():
    """List all saved calculations."""
    return [CalculationResponse(**c.to_record()) for c in calculations_service.list_calculations()]


@router.get("/stats")
async def get_stats():
    """Get saved calculation statistics."""
    return calculations_service.get_stats()


@router.get("/export")
async def export_calculations():
    """Download every saved calculation as JSON."""
    return Response(
        content=calculations_service.export_json(),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="saas-pricing-calculations.json"'},
    )


@router.post("/import")
async def import_calculations(request: ImportRequest):
    """Merge calculations exported earlier."""
    try:
        count = calculations_service.import_json(json.dumps(request.calculations))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "imported": count}


@router.get("/{calculation_id}", response_model=CalculationResponse)
async def get_calculation(calculation_id: str):
    """Get a single calculation by ID."""
    calc = calculations_service.get_calculation(calculation_id)
    if not calc:
        raise HTTPException(status_code=404, detail=f"Calculation '{calculation_id}' not found")
    return CalculationResponse(**calc.to_record())


@router.post("", response_model=CalculationResponse)
async def create_calculation(data: CalculationCreate):
    """Calculate and save."""
    inputs = data.inputs.to_inputs()
    result = engine.calculate(inputs)
    analytics.track_calculation(result)
    calc = calculations_service.save_calculation(inputs, result, name=data.name, notes=data.notes)
    return CalculationResponse(**calc.to_record())


@router.put("/{calculation_id}", response_model=CalculationResponse)
async def update_calculation(calculation_id: str, updates: CalculationUpdate):
    """Rename, annotate, or recalculate with new inputs."""
    update_dict = {}
    if updates.name is not None:
        update_dict['name'] = updates.name
    if updates.notes is not None:
        update_dict['notes'] = updates.notes
    if updates.inputs is not None:
        inputs = updates.inputs.to_inputs()
        update_dict['inputs'] = inputs
        update_dict['results'] = engine.calculate(inputs)

    try:
        calc = calculations_service.update_calculation(calculation_id, update_dict)
    except CalculationNotFoundError:
        raise HTTPException(status_code=404, detail=f"Calculation '{calculation_id}' not found")
    return CalculationResponse(**calc.to_record())


@router.delete("/{calculation_id}")
async def delete_calculation(calculation_id: str):
    """Delete a calculation."""
    try:
        calculations_service.delete_calculation(calculation_id)
    except CalculationNotFoundError:
        raise HTTPException(status_code=404, detail=f"Calculation '{calculation_id}' not found")
    return {"success": True, "message": f"Calculation '{calculation_id}' deleted"}
