"""
Alignment of independent model series onto one hourly grid.

The grid is the union of every hour that any weather model reports wind for
or any wave model reports waves for. Nothing is interpolated: a model that
stops early simply disappears from later hours.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Sequence, TypeVar, Union

from core.models import (
    ModelWaveData,
    NormalizedModelData,
    NormalizedTimestamp,
    SingleModelForecast,
    SingleWaveModelForecast,
    WaveModelId,
    WeatherModelId,
)

logger = logging.getLogger("normalizer")

T = TypeVar("T")


def round_to_hour(ts: Union[datetime, str]) -> datetime:
    """Floor a timestamp to the top of its hour, in UTC. Naive values are read as UTC."""
    if isinstance(ts, str):
        ts = datetime.fromisoformat(ts.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    else:
        ts = ts.astimezone(timezone.utc)
    return ts.replace(minute=0, second=0, microsecond=0)


def _index_by_hour(items: Iterable[T], get_ts: Callable[[T], datetime]) -> Dict[datetime, T]:
    # Later readings win when two fall in the same hour.
    return {round_to_hour(get_ts(item)): item for item in items}


def _build_weather_index(
    models: Sequence[SingleModelForecast],
    accessor: Callable[[SingleModelForecast], List[T]],
) -> Dict[WeatherModelId, Dict[datetime, T]]:
    return {
        model.model_id: _index_by_hour(accessor(model), lambda item: item.timestamp)
        for model in models
    }


def _build_wave_index(
    wave_models: Sequence[SingleWaveModelForecast],
) -> Dict[WaveModelId, Dict[datetime, ModelWaveData]]:
    return {
        model.model_id: _index_by_hour(model.waves, lambda item: item.timestamp)
        for model in wave_models
    }


def normalize_to_common_grid(
    models: Sequence[SingleModelForecast],
    wave_models: Sequence[SingleWaveModelForecast],
) -> List[NormalizedTimestamp]:
    """
    Merge weather and wave model series onto a sorted, de-duplicated hourly grid.

    Args:
        models: Successfully fetched weather-model forecasts (may be empty)
        wave_models: Successfully fetched wave-model forecasts (may be empty)

    Returns:
        One NormalizedTimestamp per hour, ascending.
    """
    if not models and not wave_models:
        return []

    hours = set()
    for model in models:
        for reading in model.wind:
            hours.add(round_to_hour(reading.timestamp))
    for wave_model in wave_models:
        for reading in wave_model.waves:
            hours.add(round_to_hour(reading.timestamp))

    wind_index = _build_weather_index(models, lambda m: m.wind)
    temp_index = _build_weather_index(models, lambda m: m.temperature)
    weather_index = _build_weather_index(models, lambda m: m.weather)
    pressure_index = _build_weather_index(models, lambda m: m.pressure)
    wave_index = _build_wave_index(wave_models)

    grid: List[NormalizedTimestamp] = []
    for hour in sorted(hours):
        per_model: Dict[WeatherModelId, NormalizedModelData] = {}
        for model in models:
            bundle = NormalizedModelData(
                wind=wind_index[model.model_id].get(hour),
                temperature=temp_index[model.model_id].get(hour),
                weather=weather_index[model.model_id].get(hour),
                pressure=pressure_index[model.model_id].get(hour),
            )
            if bundle.has_data:
                per_model[model.model_id] = bundle

        per_wave_model: Dict[WaveModelId, Optional[ModelWaveData]] = {
            wave_model.model_id: wave_index[wave_model.model_id].get(hour)
            for wave_model in wave_models
        }

        grid.append(NormalizedTimestamp(timestamp=hour, models=per_model, wave_models=per_wave_model))

    logger.debug(
        "Normalized %d weather + %d wave models onto %d hours",
        len(models), len(wave_models), len(grid),
    )
    return grid
