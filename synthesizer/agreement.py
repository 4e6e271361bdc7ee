"""
Tidewatch - Parameter Agreement Evaluators

Three agreement families, one per kind of physical quantity:

    linear    wind speed, gusts, wave height    spread = max - min
    circular  wind direction                    spread = smallest arc holding every value
    binary    precipitation probability         all models on the same side of the rain cut

Thresholds are written for two models and scaled up as more models are
compared, since max-min widens with every extra sample.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional, Sequence, Tuple

from core.models import ConfidenceParameter, ParameterAgreement


class AgreementKind(str, Enum):
    LINEAR = "linear"
    CIRCULAR = "circular"
    BINARY = "binary"


@dataclass(frozen=True)
class ParameterRule:
    parameter: ConfidenceParameter
    kind: AgreementKind
    weight: float
    threshold: float  # base threshold for two models


DEFAULT_RULES: Tuple[ParameterRule, ...] = (
    ParameterRule(ConfidenceParameter.WIND_SPEED, AgreementKind.LINEAR, 0.35, 7.0),       # mph
    ParameterRule(ConfidenceParameter.WIND_GUSTS, AgreementKind.LINEAR, 0.20, 10.0),      # mph
    ParameterRule(ConfidenceParameter.WAVE_HEIGHT, AgreementKind.LINEAR, 0.25, 2.0),      # feet
    ParameterRule(ConfidenceParameter.PRECIPITATION, AgreementKind.BINARY, 0.15, 0.0),
    ParameterRule(ConfidenceParameter.WIND_DIRECTION, AgreementKind.CIRCULAR, 0.05, 30.0),  # degrees
)

DEFAULT_MODEL_COUNT_SCALING: Mapping[int, float] = MappingProxyType({2: 1.0, 3: 1.2, 4: 1.4})


@dataclass(frozen=True)
class AgreementPolicy:
    """
    Immutable weight/threshold configuration for confidence scoring.

    Attributes:
        rules: One rule per tracked parameter, in breakdown order
        model_count_scaling: Explicit threshold multipliers by model count
        scaling_step: Multiplier increment per model beyond two, for counts
            missing from model_count_scaling
        rain_threshold_pct: Probability at or above which a model "expects rain"
        high_min: Lowest overall score reported as high
        moderate_min: Lowest overall score reported as moderate
    """
    rules: Tuple[ParameterRule, ...] = DEFAULT_RULES
    model_count_scaling: Mapping[int, float] = field(default_factory=lambda: DEFAULT_MODEL_COUNT_SCALING)
    scaling_step: float = 0.2
    rain_threshold_pct: float = 30.0
    high_min: int = 80
    moderate_min: int = 50

    def __post_init__(self):
        parameters = [rule.parameter for rule in self.rules]
        if len(set(parameters)) != len(parameters):
            raise ValueError("Agreement policy lists a parameter more than once")
        missing = set(ConfidenceParameter) - set(parameters)
        if missing:
            names = ", ".join(sorted(p.value for p in missing))
            raise ValueError(f"Agreement policy has no rule for: {names}")
        total = sum(rule.weight for rule in self.rules)
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(f"Agreement weights must sum to 1.0, got {total:.4f}")
        if not self.moderate_min <= self.high_min:
            raise ValueError("moderate_min must not exceed high_min")
        # Freeze caller-supplied containers so the policy stays immutable.
        object.__setattr__(self, "rules", tuple(self.rules))
        object.__setattr__(self, "model_count_scaling", MappingProxyType(dict(self.model_count_scaling)))

    def rule_for(self, parameter: ConfidenceParameter) -> ParameterRule:
        for rule in self.rules:
            if rule.parameter == parameter:
                return rule
        raise KeyError(parameter)


DEFAULT_POLICY = AgreementPolicy()


def _round_half_up(value: float, decimals: int = 0) -> float:
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def scaling_factor(count: int, policy: AgreementPolicy = DEFAULT_POLICY) -> float:
    """Threshold multiplier for `count` contributing models (1.0 at two)."""
    explicit = policy.model_count_scaling.get(count)
    if explicit is not None:
        return explicit
    return 1 + (count - 2) * policy.scaling_step


def _trivial(rule: ParameterRule, count: int) -> ParameterAgreement:
    # Fewer than two values: nothing to disagree about.
    return ParameterAgreement(
        parameter=rule.parameter,
        agrees=True,
        spread=0.0,
        threshold=rule.threshold,
        models_compared=count,
        weight=rule.weight,
    )


def _evaluate_linear(rule: ParameterRule, values: Sequence[float], policy: AgreementPolicy) -> ParameterAgreement:
    if len(values) < 2:
        return _trivial(rule, len(values))

    threshold = _round_half_up(rule.threshold * scaling_factor(len(values), policy), 1)
    spread = max(values) - min(values)
    return ParameterAgreement(
        parameter=rule.parameter,
        agrees=spread <= threshold,
        spread=spread,
        threshold=threshold,
        models_compared=len(values),
        weight=rule.weight,
    )


def circular_spread(degrees: Sequence[float]) -> float:
    """
    Smallest arc (degrees) containing every direction.

    The arc is 360 minus the widest empty gap between neighbouring
    directions, including the gap that wraps through 0/360.
    """
    if len(degrees) < 2:
        return 0.0
    ordered = sorted(degrees)
    widest_gap = max(b - a for a, b in zip(ordered, ordered[1:]))
    widest_gap = max(widest_gap, 360 - ordered[-1] + ordered[0])
    return 360 - widest_gap


def _evaluate_circular(rule: ParameterRule, values: Sequence[float], policy: AgreementPolicy) -> ParameterAgreement:
    if len(values) < 2:
        return _trivial(rule, len(values))

    threshold = _round_half_up(rule.threshold * scaling_factor(len(values), policy))
    spread = circular_spread(values)
    return ParameterAgreement(
        parameter=rule.parameter,
        agrees=spread <= threshold,
        spread=spread,
        threshold=threshold,
        models_compared=len(values),
        weight=rule.weight,
    )


def _evaluate_binary(rule: ParameterRule, values: Sequence[float], policy: AgreementPolicy) -> ParameterAgreement:
    if len(values) < 2:
        return _trivial(rule, len(values))

    cut = policy.rain_threshold_pct
    all_rain = all(v >= cut for v in values)
    all_dry = all(v < cut for v in values)
    # Spread is diagnostic only here.
    return ParameterAgreement(
        parameter=rule.parameter,
        agrees=all_rain or all_dry,
        spread=max(values) - min(values),
        threshold=rule.threshold,
        models_compared=len(values),
        weight=rule.weight,
    )


Evaluator = Callable[[ParameterRule, Sequence[float], AgreementPolicy], ParameterAgreement]

EVALUATORS: Dict[AgreementKind, Evaluator] = {
    AgreementKind.LINEAR: _evaluate_linear,
    AgreementKind.CIRCULAR: _evaluate_circular,
    AgreementKind.BINARY: _evaluate_binary,
}


def evaluate(
    parameter: ConfidenceParameter,
    values: Sequence[float],
    policy: Optional[AgreementPolicy] = None,
) -> ParameterAgreement:
    """Run the evaluator declared for `parameter` on the non-null model values."""
    policy = policy or DEFAULT_POLICY
    rule = policy.rule_for(parameter)
    return EVALUATORS[rule.kind](rule, values, policy)


def compute_spread_agreement(
    parameter: ConfidenceParameter,
    values: Sequence[float],
    policy: AgreementPolicy = DEFAULT_POLICY,
) -> ParameterAgreement:
    """Linear max-min agreement for `parameter` (wind speed, gusts, wave height)."""
    return _evaluate_linear(policy.rule_for(parameter), values, policy)


def compute_direction_agreement(
    values: Sequence[float],
    policy: AgreementPolicy = DEFAULT_POLICY,
) -> ParameterAgreement:
    """Circular agreement for wind direction; 350° and 10° are 20° apart."""
    return _evaluate_circular(policy.rule_for(ConfidenceParameter.WIND_DIRECTION), values, policy)


def compute_precip_agreement(
    values: Sequence[float],
    policy: AgreementPolicy = DEFAULT_POLICY,
) -> ParameterAgreement:
    """
    Rain/no-rain consensus for precipitation probability.

    29% and 2% agree (both dry); 29% and 31% disagree even though they are
    numerically close.
    """
    return _evaluate_binary(policy.rule_for(ConfidenceParameter.PRECIPITATION), values, policy)
