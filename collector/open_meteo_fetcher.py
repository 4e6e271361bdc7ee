"""
Tidewatch - Open-Meteo Weather Model Fetcher
Fetches one atmospheric model's hourly point forecast and parses it into a
SingleModelForecast (mph, °F, inHg; upstream nulls kept as None).
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from config import (
    HOURLY_VARIABLES,
    HPA_TO_INHG,
    OPEN_METEO_URL,
    PRECIP_RAIN_MM,
    PRECIP_RAIN_PROBABILITY,
    SHORT_RANGE_MODELS,
    WEATHER_MODEL_PARAMS,
    WIND_80M_TO_10M,
)
from core.models import (
    ModelPressureData,
    ModelTemperatureData,
    ModelWeatherData,
    ModelWindData,
    SingleModelForecast,
    WeatherModelId,
)

logger = logging.getLogger("open_meteo_fetcher")


class ForecastFetchError(Exception):
    """A model endpoint answered, but not with a usable forecast."""


def parse_api_time(value: str) -> datetime:
    """Open-Meteo times are naive ISO strings in the requested zone (GMT here)."""
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _at(hourly: Dict[str, Any], key: str, idx: int) -> Optional[float]:
    values = hourly.get(key)
    if not values or idx >= len(values):
        return None
    return values[idx]


def _precip_probability(hourly: Dict[str, Any], idx: int) -> Optional[float]:
    if "precipitation_probability" in hourly:
        return _at(hourly, "precipitation_probability", idx)
    if "precipitation" in hourly:
        amount_mm = _at(hourly, "precipitation", idx)
        if amount_mm is None:
            return None
        return PRECIP_RAIN_PROBABILITY if amount_mm > PRECIP_RAIN_MM else 0.0
    return None


def parse_weather_model_response(
    data: Dict[str, Any],
    model_id: WeatherModelId,
    fetched_at: Optional[datetime] = None,
) -> SingleModelForecast:
    """
    Parse an Open-Meteo /forecast payload into per-family series.

    Rules:
        - Hours where temperature, wind speed and pressure are all null are
          dropped (short-range models pad past their horizon with nulls).
        - Missing 10m wind falls back to 80m wind scaled to 10m.
        - Models without precipitation probability get one derived from the
          precipitation amount (> 0.1 mm → 80%).
        - Every kept hour has a wind entry; temperature, weather and pressure
          entries exist only when they carry at least one value.

    Raises:
        ForecastFetchError: payload is an API error or has no hourly block
    """
    if data.get("error"):
        raise ForecastFetchError(f"{model_id.value} API error: {data.get('reason', 'unknown')}")
    hourly = data.get("hourly")
    if not isinstance(hourly, dict) or "time" not in hourly:
        raise ForecastFetchError(f"{model_id.value} response has no hourly data")

    fetched_at = fetched_at or datetime.now(timezone.utc)

    wind: List[ModelWindData] = []
    temperature: List[ModelTemperatureData] = []
    weather: List[ModelWeatherData] = []
    pressure: List[ModelPressureData] = []

    for idx, raw_time in enumerate(hourly["time"]):
        speed_10m = _at(hourly, "wind_speed_10m", idx)
        speed_80m = _at(hourly, "wind_speed_80m", idx)
        if speed_10m is not None:
            speed = speed_10m
        elif speed_80m is not None:
            speed = speed_80m * WIND_80M_TO_10M
        else:
            speed = None

        temp = _at(hourly, "temperature_2m", idx)
        pressure_hpa = _at(hourly, "surface_pressure", idx)
        if temp is None and speed is None and pressure_hpa is None:
            continue

        ts = parse_api_time(raw_time)

        direction = _at(hourly, "wind_direction_10m", idx)
        if direction is None:
            direction = _at(hourly, "wind_direction_80m", idx)
        wind.append(ModelWindData(
            timestamp=ts,
            speed=speed,
            gusts=_at(hourly, "wind_gusts_10m", idx),
            direction=direction,
        ))

        feels_like = _at(hourly, "apparent_temperature", idx)
        if temp is not None or feels_like is not None:
            temperature.append(ModelTemperatureData(timestamp=ts, temperature=temp, feels_like=feels_like))

        precip = _precip_probability(hourly, idx)
        clouds = _at(hourly, "cloud_cover", idx)
        if precip is not None or clouds is not None:
            weather.append(ModelWeatherData(timestamp=ts, precipitation_probability=precip, cloud_cover=clouds))

        if pressure_hpa is not None:
            pressure.append(ModelPressureData(timestamp=ts, pressure=round(pressure_hpa * HPA_TO_INHG, 3)))

    available_through = wind[-1].timestamp if wind else fetched_at

    return SingleModelForecast(
        model_id=model_id,
        fetched_at=fetched_at,
        available_through=available_through,
        wind=wind,
        temperature=temperature,
        weather=weather,
        pressure=pressure,
    )


def build_weather_params(
    latitude: float,
    longitude: float,
    model_id: WeatherModelId,
    forecast_days: int,
) -> Dict[str, Any]:
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "hourly": ",".join(HOURLY_VARIABLES[model_id]),
        "models": WEATHER_MODEL_PARAMS[model_id],
        "temperature_unit": "fahrenheit",
        "wind_speed_unit": "mph",
        "timezone": "GMT",
    }
    if model_id not in SHORT_RANGE_MODELS:
        params["forecast_days"] = forecast_days
    return params


async def fetch_weather_model(
    client: httpx.AsyncClient,
    latitude: float,
    longitude: float,
    model_id: WeatherModelId,
    forecast_days: int = 10,
) -> SingleModelForecast:
    """
    Fetch one weather model for a point.

    Raises:
        httpx.HTTPError: transport failure or non-2xx status
        ForecastFetchError: API error payload
    """
    params = build_weather_params(latitude, longitude, model_id, forecast_days)
    response = await client.get(OPEN_METEO_URL, params=params)
    response.raise_for_status()
    forecast = parse_weather_model_response(response.json(), model_id)
    logger.debug("[%s] %d hours through %s", model_id.value, len(forecast.wind), forecast.available_through)
    return forecast
