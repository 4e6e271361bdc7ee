"""
Tidewatch - Synthesizer Module
Deterministic multi-model agreement scoring.
"""

from .agreement import (
    AgreementKind,
    AgreementPolicy,
    DEFAULT_POLICY,
    ParameterRule,
    compute_direction_agreement,
    compute_precip_agreement,
    compute_spread_agreement,
    scaling_factor,
)
from .confidence import (
    ConfidenceAggregator,
    compute_confidence_scores,
    format_confidence_line,
    level_for_score,
)

__all__ = [
    "AgreementKind",
    "AgreementPolicy",
    "DEFAULT_POLICY",
    "ParameterRule",
    "compute_direction_agreement",
    "compute_precip_agreement",
    "compute_spread_agreement",
    "scaling_factor",
    "ConfidenceAggregator",
    "compute_confidence_scores",
    "format_confidence_line",
    "level_for_score",
]
