"""
Manual pipeline triggers.
"""

from fastapi import APIRouter, Depends, HTTPException

from ..models import StageRunResponse
from ..services.pipeline import STAGE_ORDER, ClipPipeline
from .dependencies import get_pipeline

router = APIRouter(prefix="/pipeline", tags=["pipeline"])


@router.get("/stages")
async def list_stages():
    return {"stages": STAGE_ORDER}


@router.post("/stages/{stage}/run", response_model=StageRunResponse)
async def run_stage(stage: str, pipeline: ClipPipeline = Depends(get_pipeline)):
    """Run one stage over every eligible job now"""
    if stage not in STAGE_ORDER:
        raise HTTPException(status_code=404, detail=f"Unknown stage '{stage}'")
    report = await pipeline.run_stage(stage)
    return StageRunResponse(**report.to_dict())


@router.post("/discover")
async def discover(pipeline: ClipPipeline = Depends(get_pipeline)):
    """Search for new candidates and create jobs for the good ones"""
    report = await pipeline.discover()
    return report.to_dict()
