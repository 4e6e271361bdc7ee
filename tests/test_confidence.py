import os
import sys
from datetime import datetime, timezone

import pytest

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.models import (
    ConfidenceLevel,
    ConfidenceParameter,
    ModelPressureData,
    ModelWaveData,
    ModelWeatherData,
    ModelWindData,
    NormalizedModelData,
    NormalizedTimestamp,
    WaveModelId,
    WeatherModelId,
)
from synthesizer.agreement import AgreementPolicy
from synthesizer.confidence import (
    WAVE_VALUE_ACCESSORS,
    WEATHER_VALUE_ACCESSORS,
    ConfidenceAggregator,
    compute_confidence_scores,
    disagreeing_parameters,
    format_confidence_line,
    level_for_score,
)


TS = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _bundle(speed=None, gusts=None, direction=None, precip=None, pressure=None) -> NormalizedModelData:
    wind = None
    if speed is not None or gusts is not None or direction is not None:
        wind = ModelWindData(TS, speed, gusts, direction)
    weather = ModelWeatherData(TS, precip, 50.0) if precip is not None else None
    return NormalizedModelData(
        wind=wind,
        weather=weather,
        pressure=ModelPressureData(TS, pressure) if pressure is not None else None,
    )


def _wave(height) -> ModelWaveData:
    return ModelWaveData(TS, height, 90.0, 9.0)


def _entry(models=None, waves=None) -> NormalizedTimestamp:
    return NormalizedTimestamp(timestamp=TS, models=models or {}, wave_models=waves or {})


def test_two_models_agreeing_on_everything_score_100():
    entry = _entry({
        WeatherModelId.GFS: _bundle(speed=10, gusts=15, direction=180, precip=10),
        WeatherModelId.ECMWF: _bundle(speed=12, gusts=17, direction=185, precip=15),
    })
    score = ConfidenceAggregator().score(entry)

    assert score.overall == 100
    assert score.level == ConfidenceLevel.HIGH
    assert score.models_available == [WeatherModelId.GFS, WeatherModelId.ECMWF]
    assert score.wave_models_available == []

    by_param = {item.parameter: item for item in score.breakdown}
    assert by_param[ConfidenceParameter.WIND_SPEED].spread == 2
    assert by_param[ConfidenceParameter.WIND_SPEED].threshold == 7
    assert by_param[ConfidenceParameter.WIND_GUSTS].threshold == 10
    assert by_param[ConfidenceParameter.WIND_DIRECTION].spread == 5
    assert by_param[ConfidenceParameter.WAVE_HEIGHT].models_compared == 0
    assert sum(i.weight for i in score.breakdown if i.models_compared >= 2) == pytest.approx(0.75)


def test_two_models_disagreeing_on_everything_score_0():
    entry = _entry({
        WeatherModelId.GFS: _bundle(speed=10, gusts=12, direction=90, precip=10),
        WeatherModelId.ECMWF: _bundle(speed=25, gusts=35, direction=270, precip=80),
    })
    score = ConfidenceAggregator().score(entry)

    assert score.overall == 0
    assert score.level == ConfidenceLevel.LOW
    assert disagreeing_parameters(score) == [
        ConfidenceParameter.WIND_SPEED,
        ConfidenceParameter.WIND_GUSTS,
        ConfidenceParameter.PRECIPITATION,
        ConfidenceParameter.WIND_DIRECTION,
    ]


def test_partial_agreement_is_moderate():
    # Speed and gusts agree (0.55), precipitation and direction split (0.20).
    entry = _entry({
        WeatherModelId.GFS: _bundle(speed=10, gusts=15, direction=0, precip=10),
        WeatherModelId.ECMWF: _bundle(speed=12, gusts=17, direction=180, precip=70),
    })
    score = ConfidenceAggregator().score(entry)
    assert score.overall == 73
    assert score.level == ConfidenceLevel.MODERATE


def test_wave_height_is_scored_from_wave_models():
    entry = _entry(
        {WeatherModelId.GFS: _bundle(speed=10, gusts=15, direction=180, precip=10)},
        {WaveModelId.ECMWF_WAM: _wave(3.0), WaveModelId.GFS_WW3: _wave(6.5)},
    )
    score = ConfidenceAggregator().score(entry)
    wave = score.agreement_for(ConfidenceParameter.WAVE_HEIGHT)

    assert wave.models_compared == 2
    assert not wave.agrees
    assert score.overall == 0
    assert score.wave_models_available == [WaveModelId.ECMWF_WAM, WaveModelId.GFS_WW3]


def test_absent_wave_model_is_not_available():
    entry = _entry(waves={WaveModelId.ECMWF_WAM: _wave(3.0), WaveModelId.GFS_WW3: None})
    score = ConfidenceAggregator().score(entry)
    assert score.wave_models_available == [WaveModelId.ECMWF_WAM]
    assert score.agreement_for(ConfidenceParameter.WAVE_HEIGHT).models_compared == 1


def test_single_model_everywhere_scores_floor():
    entry = _entry(
        {WeatherModelId.GFS: _bundle(speed=10, gusts=15, direction=180, precip=10)},
        {WaveModelId.ECMWF_WAM: _wave(3.0)},
    )
    score = ConfidenceAggregator().score(entry)
    assert score.overall == 0
    assert score.level == ConfidenceLevel.LOW
    assert len(score.breakdown) == 5
    assert all(item.agrees for item in score.breakdown)


def test_empty_hour_still_reports_all_five_parameters():
    score = ConfidenceAggregator().score(_entry())
    assert [item.parameter for item in score.breakdown] == [
        ConfidenceParameter.WIND_SPEED,
        ConfidenceParameter.WIND_GUSTS,
        ConfidenceParameter.WAVE_HEIGHT,
        ConfidenceParameter.PRECIPITATION,
        ConfidenceParameter.WIND_DIRECTION,
    ]
    assert score.overall == 0
    assert score.models_available == []


def test_models_compared_counts_non_null_values_only():
    # ECMWF has pressure at this hour but no wind.
    entry = _entry({
        WeatherModelId.GFS: _bundle(speed=10, gusts=15, direction=180, precip=10),
        WeatherModelId.ECMWF: _bundle(pressure=29.9),
        WeatherModelId.HRRR: _bundle(speed=11, gusts=None, direction=170, precip=5),
    })
    score = ConfidenceAggregator().score(entry)

    assert score.models_available == [WeatherModelId.GFS, WeatherModelId.ECMWF, WeatherModelId.HRRR]
    assert score.agreement_for(ConfidenceParameter.WIND_SPEED).models_compared == 2
    assert score.agreement_for(ConfidenceParameter.WIND_GUSTS).models_compared == 1
    assert score.agreement_for(ConfidenceParameter.PRECIPITATION).models_compared == 2


def test_three_models_use_scaled_threshold():
    # Spread of 8 mph disagrees for two models (7) but agrees for three (8.4).
    entry = _entry({
        WeatherModelId.GFS: _bundle(speed=10),
        WeatherModelId.ECMWF: _bundle(speed=14),
        WeatherModelId.HRRR: _bundle(speed=18),
    })
    speed = ConfidenceAggregator().score(entry).agreement_for(ConfidenceParameter.WIND_SPEED)
    assert speed.threshold == 8.4
    assert speed.agrees


@pytest.mark.parametrize(
    "overall, level",
    [(100, ConfidenceLevel.HIGH), (80, ConfidenceLevel.HIGH), (79, ConfidenceLevel.MODERATE),
     (50, ConfidenceLevel.MODERATE), (49, ConfidenceLevel.LOW), (0, ConfidenceLevel.LOW)],
)
def test_level_for_score(overall, level):
    assert level_for_score(overall) == level


def test_compute_confidence_scores_preserves_grid_order():
    later = datetime(2024, 6, 1, 13, 0, tzinfo=timezone.utc)
    grid = [_entry(), NormalizedTimestamp(timestamp=later)]
    scores = compute_confidence_scores(grid)
    assert [s.timestamp for s in scores] == [TS, later]


def test_aggregator_uses_its_own_policy():
    policy = AgreementPolicy(rain_threshold_pct=50.0)
    entry = _entry({
        WeatherModelId.GFS: _bundle(precip=29),
        WeatherModelId.ECMWF: _bundle(precip=31),
    })
    assert ConfidenceAggregator().score(entry).overall == 0
    assert ConfidenceAggregator(policy).score(entry).overall == 100


def test_format_confidence_line():
    entry = _entry(
        {
            WeatherModelId.GFS: _bundle(speed=10, gusts=15, direction=180, precip=10),
            WeatherModelId.ECMWF: _bundle(speed=25, gusts=17, direction=185, precip=15),
        },
        {WaveModelId.ECMWF_WAM: _wave(3.0)},
    )
    line = format_confidence_line(ConfidenceAggregator().score(entry))
    assert line.startswith("2024-06-01 12:00Z   53% MODERATE")
    assert "[GFS, ECMWF | ECMWF WAM]" in line
    assert line.endswith("split: windSpeed")


def test_every_parameter_has_exactly_one_value_source():
    weather = set(WEATHER_VALUE_ACCESSORS)
    wave = set(WAVE_VALUE_ACCESSORS)
    assert weather.isdisjoint(wave)
    assert weather | wave == set(ConfidenceParameter)


def test_precipitation_is_read_from_weather_bundle_only():
    entry = _entry(
        models={
            WeatherModelId.GFS: _bundle(speed=10.0, precip=10.0),
            WeatherModelId.ECMWF: _bundle(speed=11.0),
        },
        waves={WaveModelId.ECMWF_WAM: _wave(3.0)},
    )
    score = ConfidenceAggregator().score(entry)
    assert score.agreement_for(ConfidenceParameter.PRECIPITATION).models_compared == 1
    assert score.agreement_for(ConfidenceParameter.WIND_SPEED).models_compared == 2
    assert score.agreement_for(ConfidenceParameter.WAVE_HEIGHT).models_compared == 1
