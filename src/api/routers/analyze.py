"""Silence analysis endpoints."""

from __future__ import annotations

import numpy as np
from fastapi import APIRouter, Depends, File, Form, UploadFile

from ..deps.auth import get_api_key
from ..schemas import AnalyzeResponse, AnalyzeSamplesRequest
from ..services.analysis_service import AnalysisService
from ..settings import APISettings, get_settings

router = APIRouter(prefix="/v1", tags=["analyze"])


def get_service(settings: APISettings = Depends(get_settings)) -> AnalysisService:
    return AnalysisService(settings)


@router.post("/analyze", response_model=AnalyzeResponse, response_model_exclude_none=True)
async def analyze_audio(
    file: UploadFile = File(...),
    threshold: float | None = Form(None),
    min_silence_duration: float | None = Form(None),
    padding: float | None = Form(None),
    chunk_size: float | None = Form(None),
    per_channel: bool = Form(False),
    _: str = Depends(get_api_key),
    service: AnalysisService = Depends(get_service),
):
    analysis_settings = service.resolve_settings(threshold, min_silence_duration, padding, chunk_size)
    result = await service.analyze_upload(file, analysis_settings, per_channel=per_channel)
    return AnalyzeResponse(**result)


@router.post("/analyze/samples", response_model=AnalyzeResponse, response_model_exclude_none=True)
async def analyze_samples(
    payload: AnalyzeSamplesRequest,
    _: str = Depends(get_api_key),
    service: AnalysisService = Depends(get_service),
):
    service.check_sample_count(len(payload.samples))
    analysis_settings = service.resolve_settings(
        payload.threshold,
        payload.min_silence_duration,
        payload.padding,
        payload.chunk_size,
        threshold_amplitude=payload.threshold_amplitude,
    )
    samples = np.asarray(payload.samples, dtype=np.float64)
    result = service.analyze_samples(samples, payload.sample_rate, analysis_settings)
    return AnalyzeResponse(**result)
