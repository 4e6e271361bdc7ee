"""
Tidewatch - Confidence Aggregator
Per-hour multi-model agreement score (0-100) and level.

Formula:
    overall = 100 × Σ(weight of agreeing parameters) / Σ(weight of assessable parameters)

A parameter is assessable when at least two models report it at that hour.
An hour with nothing assessable scores 0 (low): too little data to claim agreement.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from core.models import (
    ConfidenceLevel,
    ConfidenceParameter,
    ConfidenceScore,
    ModelWaveData,
    NormalizedModelData,
    NormalizedTimestamp,
    ParameterAgreement,
    WaveModelId,
    WeatherModelId,
)
from config import WAVE_MODEL_LABELS, WEATHER_MODEL_LABELS
from synthesizer.agreement import DEFAULT_POLICY, AgreementPolicy, evaluate

logger = logging.getLogger("confidence")


def level_for_score(overall: int, policy: AgreementPolicy = DEFAULT_POLICY) -> ConfidenceLevel:
    if overall >= policy.high_min:
        return ConfidenceLevel.HIGH
    if overall >= policy.moderate_min:
        return ConfidenceLevel.MODERATE
    return ConfidenceLevel.LOW


def _present(values: Iterable[Optional[float]]) -> List[float]:
    return [v for v in values if v is not None]


# Where each tracked parameter is read from, per model family.
WEATHER_VALUE_ACCESSORS: Dict[ConfidenceParameter, Callable[[NormalizedModelData], Optional[float]]] = {
    ConfidenceParameter.WIND_SPEED: lambda b: b.wind.speed if b.wind else None,
    ConfidenceParameter.WIND_GUSTS: lambda b: b.wind.gusts if b.wind else None,
    ConfidenceParameter.WIND_DIRECTION: lambda b: b.wind.direction if b.wind else None,
    ConfidenceParameter.PRECIPITATION: lambda b: b.weather.precipitation_probability if b.weather else None,
}

WAVE_VALUE_ACCESSORS: Dict[ConfidenceParameter, Callable[[ModelWaveData], Optional[float]]] = {
    ConfidenceParameter.WAVE_HEIGHT: lambda w: w.height,
}


class ConfidenceAggregator:
    """Scores NormalizedTimestamps against a fixed AgreementPolicy."""

    def __init__(self, policy: Optional[AgreementPolicy] = None):
        self.policy = policy or DEFAULT_POLICY

    def _parameter_values(
        self,
        entry: NormalizedTimestamp,
        parameter: ConfidenceParameter,
        weather_ids: Sequence[WeatherModelId],
        wave_ids: Sequence[WaveModelId],
    ) -> List[float]:
        wave_read = WAVE_VALUE_ACCESSORS.get(parameter)
        if wave_read is not None:
            return _present(wave_read(entry.wave_models[i]) for i in wave_ids)
        read = WEATHER_VALUE_ACCESSORS[parameter]
        return _present(read(entry.models[i]) for i in weather_ids)

    def score(self, entry: NormalizedTimestamp) -> ConfidenceScore:
        """
        Build the ConfidenceScore for one grid hour.

        Every tracked parameter gets a breakdown entry, even when fewer than
        two models report it; those entries agree trivially and are left out
        of the weighted score.
        """
        weather_ids = [model_id for model_id, bundle in entry.models.items() if bundle.has_data]
        wave_ids = [model_id for model_id, wave in entry.wave_models.items() if wave is not None]

        breakdown: List[ParameterAgreement] = []
        for rule in self.policy.rules:
            values = self._parameter_values(entry, rule.parameter, weather_ids, wave_ids)
            breakdown.append(evaluate(rule.parameter, values, self.policy))

        total_weight = 0.0
        weighted_score = 0.0
        for item in breakdown:
            if item.models_compared >= 2:
                total_weight += item.weight
                if item.agrees:
                    weighted_score += item.weight

        if total_weight > 0:
            # Half-up rounding, same as the threshold scaling.
            overall = int(weighted_score / total_weight * 100 + 0.5)
        else:
            overall = 0

        return ConfidenceScore(
            timestamp=entry.timestamp,
            overall=overall,
            level=level_for_score(overall, self.policy),
            breakdown=breakdown,
            models_available=weather_ids,
            wave_models_available=wave_ids,
        )

    def score_all(self, normalized: Sequence[NormalizedTimestamp]) -> List[ConfidenceScore]:
        scores = [self.score(entry) for entry in normalized]
        logger.debug("Scored %d hours", len(scores))
        return scores


def compute_confidence_scores(
    normalized: Sequence[NormalizedTimestamp],
    policy: Optional[AgreementPolicy] = None,
) -> List[ConfidenceScore]:
    """One ConfidenceScore per grid hour, same order as the grid."""
    return ConfidenceAggregator(policy).score_all(normalized)


def disagreeing_parameters(score: ConfidenceScore) -> List[ConfidenceParameter]:
    """Assessable parameters the models disagree on at this hour."""
    return [
        item.parameter
        for item in score.breakdown
        if item.models_compared >= 2 and not item.agrees
    ]


def format_confidence_line(score: ConfidenceScore) -> str:
    """Single console line for one hour, e.g. `2024-06-01 14:00Z  85% HIGH  [GFS, ECMWF | ECMWF WAM]`."""
    models = ", ".join(WEATHER_MODEL_LABELS[m] for m in score.models_available) or "-"
    waves = ", ".join(WAVE_MODEL_LABELS[m] for m in score.wave_models_available)
    if waves:
        models = f"{models} | {waves}"

    line = f"{score.timestamp:%Y-%m-%d %H:%MZ}  {score.overall:3d}% {score.level.value.upper():<8}  [{models}]"

    split = disagreeing_parameters(score)
    if split:
        line += "  split: " + ", ".join(p.value for p in split)
    return line
