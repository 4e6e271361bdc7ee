"""
Tidewatch - Configuration
Central configuration for forecast model endpoints, model tables and fetch settings.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from core.models import WaveModelId, WeatherModelId

logger = logging.getLogger("config")

# ============================================================================
# API ENDPOINTS
# ============================================================================

# Open-Meteo atmospheric models
OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"

# Open-Meteo marine (wave) models
OPEN_METEO_MARINE_URL = "https://marine-api.open-meteo.com/v1/marine"

# ============================================================================
# MODEL TABLES
# ============================================================================

# Open-Meteo `models=` values
WEATHER_MODEL_PARAMS: Dict[WeatherModelId, str] = {
    WeatherModelId.GFS: "ncep_gfs025",
    WeatherModelId.ECMWF: "ecmwf_ifs025",
    WeatherModelId.HRRR: "ncep_hrrr_conus",
    WeatherModelId.NAM: "ncep_nam_conus",
}

WAVE_MODEL_PARAMS: Dict[WaveModelId, str] = {
    WaveModelId.ECMWF_WAM: "ecmwf_wam025",
    # 0.16° grid: the 0.25° one marks many coastal points as land (all-zero heights).
    WaveModelId.GFS_WW3: "ncep_gfswave016",
}

_HOURLY_COMMON = [
    "temperature_2m",
    "apparent_temperature",
    "wind_speed_10m",
    "wind_direction_10m",
    "wind_gusts_10m",
    "cloud_cover",
    "surface_pressure",
]

# GFS has no 10m wind on Open-Meteo for many points; 80m is requested as fallback.
# ECMWF and NAM only publish precipitation amount, not probability.
HOURLY_VARIABLES: Dict[WeatherModelId, List[str]] = {
    WeatherModelId.GFS: _HOURLY_COMMON + ["wind_speed_80m", "wind_direction_80m", "precipitation_probability"],
    WeatherModelId.ECMWF: _HOURLY_COMMON + ["precipitation"],
    WeatherModelId.HRRR: _HOURLY_COMMON + ["precipitation_probability"],
    WeatherModelId.NAM: _HOURLY_COMMON + ["precipitation"],
}

WAVE_HOURLY_VARIABLES = ["wave_height", "wave_direction", "wave_period"]

# Short-range regional models run for the continental US only
CONUS_ONLY_MODELS = {WeatherModelId.HRRR, WeatherModelId.NAM}

# Short-range models ignore forecast_days and return their full horizon
SHORT_RANGE_MODELS = {WeatherModelId.HRRR, WeatherModelId.NAM}

WEATHER_MODEL_LABELS: Dict[WeatherModelId, str] = {
    WeatherModelId.GFS: "GFS",
    WeatherModelId.ECMWF: "ECMWF",
    WeatherModelId.HRRR: "HRRR",
    WeatherModelId.NAM: "NAM",
}

WAVE_MODEL_LABELS: Dict[WaveModelId, str] = {
    WaveModelId.ECMWF_WAM: "ECMWF WAM",
    WaveModelId.GFS_WW3: "GFS WW3",
}

# ============================================================================
# COVERAGE
# ============================================================================

CONUS_MIN_LAT = 21.0
CONUS_MAX_LAT = 53.0
CONUS_MIN_LON = -134.0
CONUS_MAX_LON = -60.0


def is_in_conus_coverage(latitude: float, longitude: float) -> bool:
    """True when HRRR/NAM cover the point."""
    return (
        CONUS_MIN_LAT <= latitude <= CONUS_MAX_LAT
        and CONUS_MIN_LON <= longitude <= CONUS_MAX_LON
    )

# ============================================================================
# UNIT CONVERSION
# ============================================================================

# 10m wind is ~85% of 80m wind (power law, exponent ~0.143 over water)
WIND_80M_TO_10M = 0.85

HPA_TO_INHG = 0.02953

# Precipitation amount above which a model without probabilities "expects rain"
PRECIP_RAIN_MM = 0.1
PRECIP_RAIN_PROBABILITY = 80.0

# ============================================================================
# FETCH SETTINGS (environment)
# ============================================================================

DEFAULT_HTTP_TIMEOUT_SECONDS = 15.0
DEFAULT_FORECAST_DAYS = 10


def _env_int(name: str, default: int) -> int:
    raw = str(os.environ.get(name, "")).strip()
    if not raw:
        return int(default)
    try:
        return int(raw)
    except ValueError:
        return int(default)


def _env_float(name: str, default: float) -> float:
    raw = str(os.environ.get(name, "")).strip()
    if not raw:
        return float(default)
    try:
        return float(raw)
    except ValueError:
        return float(default)


def _env_list(name: str, default: Optional[List[str]] = None) -> List[str]:
    raw = str(os.environ.get(name, "")).strip()
    if not raw:
        return list(default or [])
    return [item.strip().lower() for item in raw.split(",") if item.strip()]


def _parse_model_ids(names: List[str], enum_cls):
    selected = []
    for name in names:
        try:
            model_id = enum_cls(name)
        except ValueError:
            logger.warning("Ignoring unknown model id %r", name)
            continue
        if model_id not in selected:
            selected.append(model_id)
    return selected


@dataclass
class FetchSettings:
    """Runtime settings for one multi-model fetch."""
    timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    forecast_days: int = DEFAULT_FORECAST_DAYS
    weather_models: List[WeatherModelId] = field(default_factory=lambda: list(WeatherModelId))
    wave_models: List[WaveModelId] = field(default_factory=lambda: list(WaveModelId))


def load_fetch_settings_from_env() -> FetchSettings:
    return FetchSettings(
        timeout_seconds=_env_float("TIDEWATCH_HTTP_TIMEOUT_SECONDS", DEFAULT_HTTP_TIMEOUT_SECONDS),
        forecast_days=_env_int("TIDEWATCH_FORECAST_DAYS", DEFAULT_FORECAST_DAYS),
        weather_models=_parse_model_ids(
            _env_list("TIDEWATCH_WEATHER_MODELS", [m.value for m in WeatherModelId]),
            WeatherModelId,
        ),
        wave_models=_parse_model_ids(
            _env_list("TIDEWATCH_WAVE_MODELS", [m.value for m in WaveModelId]),
            WaveModelId,
        ),
    )
