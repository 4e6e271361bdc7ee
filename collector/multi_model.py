"""
Tidewatch - Multi-Model Orchestrator
Fetches every configured model in parallel, drops the ones that fail, then
normalizes and scores whatever came back.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional

import httpx

from collector.marine_fetcher import fetch_wave_model, has_nonzero_wave_height
from collector.open_meteo_fetcher import fetch_weather_model
from config import CONUS_ONLY_MODELS, FetchSettings, is_in_conus_coverage, load_fetch_settings_from_env
from core.models import (
    MultiModelData,
    SingleModelForecast,
    SingleWaveModelForecast,
    WaveModelId,
    WeatherModelId,
)
from core.normalizer import normalize_to_common_grid
from synthesizer.confidence import compute_confidence_scores

logger = logging.getLogger("multi_model")


async def _safe_weather(
    client: httpx.AsyncClient,
    latitude: float,
    longitude: float,
    model_id: WeatherModelId,
    forecast_days: int,
) -> Optional[SingleModelForecast]:
    try:
        return await fetch_weather_model(client, latitude, longitude, model_id, forecast_days)
    except Exception as e:
        logger.warning("[%s] fetch failed: %s", model_id.value, e)
        return None


async def _safe_wave(
    client: httpx.AsyncClient,
    latitude: float,
    longitude: float,
    model_id: WaveModelId,
    forecast_days: int,
) -> Optional[SingleWaveModelForecast]:
    try:
        return await fetch_wave_model(client, latitude, longitude, model_id, forecast_days)
    except Exception as e:
        logger.warning("[%s] fetch failed: %s", model_id.value, e)
        return None


def select_weather_models(latitude: float, longitude: float, settings: FetchSettings) -> List[WeatherModelId]:
    """Configured weather models that cover the point (HRRR/NAM are CONUS-only)."""
    in_conus = is_in_conus_coverage(latitude, longitude)
    return [m for m in settings.weather_models if in_conus or m not in CONUS_ONLY_MODELS]


def drop_land_cell_wave_models(wave_models: List[SingleWaveModelForecast]) -> List[SingleWaveModelForecast]:
    kept = []
    for forecast in wave_models:
        if not has_nonzero_wave_height(forecast):
            logger.warning(
                "[%s] all wave heights are zero, point is likely a land cell for this grid. Excluding.",
                forecast.model_id.value,
            )
            continue
        kept.append(forecast)
    return kept


async def fetch_multi_model_data(
    latitude: float,
    longitude: float,
    settings: Optional[FetchSettings] = None,
) -> MultiModelData:
    """
    Fetch, align and score all models for one point.

    A model that fails (timeout, non-2xx, malformed payload) is simply absent
    from the result; this never raises because of a single model.

    Args:
        latitude: Point latitude
        longitude: Point longitude
        settings: Fetch settings (default: from environment)

    Returns:
        MultiModelData with the raw series, the hourly grid and its scores
    """
    settings = settings or load_fetch_settings_from_env()
    fetched_at = datetime.now(timezone.utc)
    weather_ids = select_weather_models(latitude, longitude, settings)

    async with httpx.AsyncClient(timeout=settings.timeout_seconds) as client:
        weather_tasks = [
            _safe_weather(client, latitude, longitude, model_id, settings.forecast_days)
            for model_id in weather_ids
        ]
        wave_tasks = [
            _safe_wave(client, latitude, longitude, model_id, settings.forecast_days)
            for model_id in settings.wave_models
        ]
        results = await asyncio.gather(*weather_tasks, *wave_tasks)

    weather_results = results[:len(weather_tasks)]
    wave_results = results[len(weather_tasks):]

    models = [m for m in weather_results if m is not None]
    wave_models = drop_land_cell_wave_models([m for m in wave_results if m is not None])

    if not models and not wave_models:
        logger.error("No model data available for (%.4f, %.4f)", latitude, longitude)

    normalized = normalize_to_common_grid(models, wave_models)
    confidence = compute_confidence_scores(normalized)

    logger.info(
        "(%.4f, %.4f): %d/%d weather, %d/%d wave models, %d hours",
        latitude, longitude,
        len(models), len(weather_tasks),
        len(wave_models), len(wave_tasks),
        len(normalized),
    )

    return MultiModelData(
        models=models,
        wave_models=wave_models,
        normalized=normalized,
        confidence=confidence,
        fetched_at=fetched_at,
    )
