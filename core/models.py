"""
Tidewatch - Multi-model data types.

Per-model series as produced by the fetch/parse boundary, the common hourly
grid built from them, and the per-hour confidence verdicts.
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class WeatherModelId(str, Enum):
    GFS = "gfs"
    ECMWF = "ecmwf"
    HRRR = "hrrr"
    NAM = "nam"


class WaveModelId(str, Enum):
    ECMWF_WAM = "ecmwf_wam"
    GFS_WW3 = "gfs_ww3"


class ConfidenceParameter(str, Enum):
    WIND_SPEED = "windSpeed"
    WIND_GUSTS = "windGusts"
    WAVE_HEIGHT = "waveHeight"
    PRECIPITATION = "precipitation"
    WIND_DIRECTION = "windDirection"


class ConfidenceLevel(str, Enum):
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"


# =============================================================================
# Per-model readings (already unit-converted; None = not reported)
# =============================================================================

@dataclass(frozen=True)
class ModelWindData:
    timestamp: datetime
    speed: Optional[float]       # mph
    gusts: Optional[float]       # mph
    direction: Optional[float]   # degrees 0-360


@dataclass(frozen=True)
class ModelTemperatureData:
    timestamp: datetime
    temperature: Optional[float]  # °F
    feels_like: Optional[float]   # °F


@dataclass(frozen=True)
class ModelWeatherData:
    timestamp: datetime
    precipitation_probability: Optional[float]  # 0-100
    cloud_cover: Optional[float] = None         # 0-100


@dataclass(frozen=True)
class ModelPressureData:
    timestamp: datetime
    pressure: float  # inHg


@dataclass(frozen=True)
class ModelWaveData:
    timestamp: datetime
    height: float                # feet
    direction: Optional[float]   # degrees 0-360
    period: Optional[float]      # seconds


@dataclass(frozen=True)
class SingleModelForecast:
    """One weather model's complete output for a point."""
    model_id: WeatherModelId
    fetched_at: datetime
    available_through: datetime
    wind: List[ModelWindData] = field(default_factory=list)
    temperature: List[ModelTemperatureData] = field(default_factory=list)
    weather: List[ModelWeatherData] = field(default_factory=list)
    pressure: List[ModelPressureData] = field(default_factory=list)


@dataclass(frozen=True)
class SingleWaveModelForecast:
    """One wave model's complete output for a point."""
    model_id: WaveModelId
    fetched_at: datetime
    available_through: datetime
    waves: List[ModelWaveData] = field(default_factory=list)


# =============================================================================
# Common hourly grid
# =============================================================================

@dataclass(frozen=True)
class NormalizedModelData:
    """
    One weather model's readings at one grid hour.

    Each family is independently optional: a model can report wind at an
    hour and still lack a pressure value there.
    """
    wind: Optional[ModelWindData] = None
    temperature: Optional[ModelTemperatureData] = None
    weather: Optional[ModelWeatherData] = None
    pressure: Optional[ModelPressureData] = None

    @property
    def has_data(self) -> bool:
        return any(
            part is not None
            for part in (self.wind, self.temperature, self.weather, self.pressure)
        )


@dataclass(frozen=True)
class NormalizedTimestamp:
    """
    One hour on the common grid.

    `models` only carries weather models with data at this hour.
    `wave_models` carries every input wave model, mapped to None when that
    model has no reading here.
    """
    timestamp: datetime
    models: Dict[WeatherModelId, NormalizedModelData] = field(default_factory=dict)
    wave_models: Dict[WaveModelId, Optional[ModelWaveData]] = field(default_factory=dict)

    def model(self, model_id: WeatherModelId) -> Optional[NormalizedModelData]:
        return self.models.get(model_id)

    def wave_model(self, model_id: WaveModelId) -> Optional[ModelWaveData]:
        return self.wave_models.get(model_id)


# =============================================================================
# Confidence scoring
# =============================================================================

@dataclass(frozen=True)
class ParameterAgreement:
    parameter: ConfidenceParameter
    agrees: bool
    spread: float            # max-min, or the circular arc for directions
    threshold: float         # applied threshold after model-count scaling
    models_compared: int     # models with a non-null value for this parameter
    weight: float


@dataclass(frozen=True)
class ConfidenceScore:
    timestamp: datetime
    overall: int                     # 0-100
    level: ConfidenceLevel
    breakdown: List[ParameterAgreement] = field(default_factory=list)
    models_available: List[WeatherModelId] = field(default_factory=list)
    wave_models_available: List[WaveModelId] = field(default_factory=list)

    def agreement_for(self, parameter: ConfidenceParameter) -> Optional[ParameterAgreement]:
        for item in self.breakdown:
            if item.parameter == parameter:
                return item
        return None


@dataclass(frozen=True)
class MultiModelData:
    """Everything one orchestrated run produces, in grid order."""
    models: List[SingleModelForecast]
    wave_models: List[SingleWaveModelForecast]
    normalized: List[NormalizedTimestamp]
    confidence: List[ConfidenceScore]
    fetched_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {_jsonable(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value
