"""
Tidewatch - Open-Meteo Marine (Wave Model) Fetcher
Fetches one wave model's hourly point forecast (feet, degrees, seconds).
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from collector.open_meteo_fetcher import ForecastFetchError, _at, parse_api_time
from config import OPEN_METEO_MARINE_URL, WAVE_HOURLY_VARIABLES, WAVE_MODEL_PARAMS
from core.models import ModelWaveData, SingleWaveModelForecast, WaveModelId

logger = logging.getLogger("marine_fetcher")


def parse_wave_model_response(
    data: Dict[str, Any],
    model_id: WaveModelId,
    fetched_at: Optional[datetime] = None,
) -> SingleWaveModelForecast:
    """
    Parse a /marine payload. Hours with a null wave height are skipped.

    Raises:
        ForecastFetchError: payload is an API error or has no hourly block
    """
    if data.get("error"):
        raise ForecastFetchError(f"{model_id.value} API error: {data.get('reason', 'unknown')}")
    hourly = data.get("hourly")
    if not isinstance(hourly, dict) or "time" not in hourly:
        raise ForecastFetchError(f"{model_id.value} response has no hourly data")

    fetched_at = fetched_at or datetime.now(timezone.utc)

    waves: List[ModelWaveData] = []
    for idx, raw_time in enumerate(hourly["time"]):
        height = _at(hourly, "wave_height", idx)
        if height is None:
            continue
        waves.append(ModelWaveData(
            timestamp=parse_api_time(raw_time),
            height=height,
            direction=_at(hourly, "wave_direction", idx),
            period=_at(hourly, "wave_period", idx),
        ))

    return SingleWaveModelForecast(
        model_id=model_id,
        fetched_at=fetched_at,
        available_through=waves[-1].timestamp if waves else fetched_at,
        waves=waves,
    )


def has_nonzero_wave_height(forecast: SingleWaveModelForecast) -> bool:
    """
    False when every height is zero: the point sits on a land cell of that
    model's grid. An empty series is not treated as land.
    """
    if not forecast.waves:
        return True
    return any(w.height > 0 for w in forecast.waves)


async def fetch_wave_model(
    client: httpx.AsyncClient,
    latitude: float,
    longitude: float,
    model_id: WaveModelId,
    forecast_days: int = 10,
) -> SingleWaveModelForecast:
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "hourly": ",".join(WAVE_HOURLY_VARIABLES),
        "models": WAVE_MODEL_PARAMS[model_id],
        "length_unit": "imperial",
        "timezone": "GMT",
        "forecast_days": forecast_days,
    }
    response = await client.get(OPEN_METEO_MARINE_URL, params=params)
    response.raise_for_status()
    forecast = parse_wave_model_response(response.json(), model_id)
    logger.debug("[%s] %d wave hours", model_id.value, len(forecast.waves))
    return forecast
