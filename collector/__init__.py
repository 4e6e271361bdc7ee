"""
Tidewatch - Collector Module
Fetch/parse boundary for Open-Meteo weather and wave models, plus the
multi-model orchestrator.
"""

from .open_meteo_fetcher import ForecastFetchError, fetch_weather_model, parse_weather_model_response
from .marine_fetcher import fetch_wave_model, parse_wave_model_response
from .multi_model import fetch_multi_model_data

__all__ = [
    "ForecastFetchError",
    "fetch_weather_model", "fetch_wave_model",
    "parse_weather_model_response", "parse_wave_model_response",
    "fetch_multi_model_data",
]
