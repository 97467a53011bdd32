"""Workload endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.workload import (
    CriticalPathModel,
    CriticalPathRequest,
    SequenceRequest,
    SequenceResponse,
    WorkloadAnalysisRequest,
    WorkloadAnalysisResponse,
)
from ...services.workload.service import analyze_workload, build_critical_path, optimize_vehicle_sequence

router = APIRouter(prefix="/workload", tags=["workload"])


@router.post("/analyze", response_model=WorkloadAnalysisResponse, status_code=status.HTTP_200_OK)
def analyze(payload: WorkloadAnalysisRequest) -> WorkloadAnalysisResponse:
    try:
        return analyze_workload(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error analyzing workload: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to analyze workload: {str(exc)}"
        ) from exc


@router.post("/sequence", response_model=SequenceResponse, status_code=status.HTTP_200_OK)
def sequence(payload: SequenceRequest) -> SequenceResponse:
    """Best visiting order for one vehicle's trips."""
    try:
        return optimize_vehicle_sequence(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error optimizing trip sequence: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize trip sequence: {str(exc)}"
        ) from exc


@router.post("/critical-path", response_model=CriticalPathModel, status_code=status.HTTP_200_OK)
def critical_path(payload: CriticalPathRequest) -> CriticalPathModel:
    """Timed itinerary for one vehicle's trips."""
    try:
        return build_critical_path(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error building critical path: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to build critical path: {str(exc)}"
        ) from exc
