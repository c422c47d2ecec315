"""Kinetic leak classification as an ordered rule table.

Rules are evaluated top to bottom and the first one whose predicate holds
decides the leak. When none match the result is ``unknown``.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from functools import partial
from typing import TypeVar

from swing_scorer.domain.leak import LeakResult, LeakType
from swing_scorer.domain.scoring_config import LeakConfig, LeakThresholds
from swing_scorer.domain.session import SessionMetrics
from swing_scorer.pipeline.protocols import LeakPredicate

logger = logging.getLogger(__name__)

UNMATCHED_MESSAGE = "No leak pattern matched; classification is low confidence"


@dataclass(frozen=True)
class LeakRule:
    name: str
    predicate: LeakPredicate
    leak_type: LeakType


S = TypeVar("S")
R = TypeVar("R")


def first_match(rules: Iterable[tuple[Callable[[S], bool], R]], subject: S) -> R | None:
    """Return the result paired with the first predicate that accepts ``subject``."""
    for predicate, result in rules:
        if predicate(subject):
            return result
    return None


# -- Predicates ----------------------------------------------------------------


def no_bat_delivery(metrics: SessionMetrics, t: LeakThresholds, min_coverage: float) -> bool:
    if not metrics.capabilities.has_energy:
        return False
    if metrics.bat_ke_coverage < min_coverage:
        return True
    efficiency = metrics.mean("bat_efficiency")
    return efficiency is None or efficiency < t.min_bat_efficiency


def late_engine(metrics: SessionMetrics, t: LeakThresholds) -> bool:
    return metrics.late_legs_fraction is not None and metrics.late_legs_fraction > t.majority


def core_disconnect(metrics: SessionMetrics, t: LeakThresholds) -> bool:
    if metrics.capabilities.has_kinematics and metrics.proper_sequence_rate is not None:
        return metrics.proper_sequence_rate < t.min_sequence_rate
    transfer = metrics.mean("torso_to_arms")
    return transfer is not None and transfer < t.min_torso_to_arms


def early_back_leg_release(metrics: SessionMetrics, t: LeakThresholds) -> bool:
    return metrics.early_arms_fraction is not None and metrics.early_arms_fraction > t.majority


def late_lead_leg_acceptance(metrics: SessionMetrics, t: LeakThresholds) -> bool:
    return metrics.ground_timing_ms is not None and metrics.ground_timing_ms < t.late_front_leg_ms


def glide_without_capture(metrics: SessionMetrics, t: LeakThresholds) -> bool:
    return metrics.ground_timing_ms is not None and metrics.ground_timing_ms > t.glide_ms


def clean_transfer(metrics: SessionMetrics, t: LeakThresholds) -> bool:
    efficiency = metrics.mean("bat_efficiency")
    if efficiency is None or efficiency < t.clean_efficiency:
        return False
    if metrics.capabilities.has_kinematics:
        rate = metrics.proper_sequence_rate
        return rate is not None and rate >= t.clean_sequence_rate
    return True


def build_leak_rules(thresholds: LeakThresholds, min_bat_coverage: float) -> tuple[LeakRule, ...]:
    """The default rule table, in evaluation order."""
    return (
        LeakRule(
            "no_bat_delivery",
            partial(no_bat_delivery, t=thresholds, min_coverage=min_bat_coverage),
            LeakType.NO_BAT_DELIVERY,
        ),
        LeakRule("late_engine", partial(late_engine, t=thresholds), LeakType.LATE_ENGINE),
        LeakRule("core_disconnect", partial(core_disconnect, t=thresholds), LeakType.CORE_DISCONNECT),
        LeakRule(
            "early_back_leg_release",
            partial(early_back_leg_release, t=thresholds),
            LeakType.EARLY_BACK_LEG_RELEASE,
        ),
        LeakRule(
            "late_lead_leg_acceptance",
            partial(late_lead_leg_acceptance, t=thresholds),
            LeakType.LATE_LEAD_LEG_ACCEPTANCE,
        ),
        LeakRule(
            "glide_without_capture",
            partial(glide_without_capture, t=thresholds),
            LeakType.GLIDE_WITHOUT_CAPTURE,
        ),
        LeakRule("clean_transfer", partial(clean_transfer, t=thresholds), LeakType.CLEAN_TRANSFER),
    )


def unknown_leak(config: LeakConfig, message: str = UNMATCHED_MESSAGE) -> LeakResult:
    pattern = config.catalog[LeakType.UNKNOWN]
    return LeakResult(
        leak_type=LeakType.UNKNOWN,
        caption=pattern.caption,
        training_focus=pattern.training_focus,
        message=message,
    )


def classify_leak(
    metrics: SessionMetrics,
    config: LeakConfig,
    *,
    min_bat_coverage: float = 0.5,
    rules: tuple[LeakRule, ...] | None = None,
) -> LeakResult:
    if rules is None:
        rules = build_leak_rules(config.thresholds, min_bat_coverage)
    matched = first_match(((rule.predicate, rule) for rule in rules), metrics)
    if matched is None:
        logger.debug("No leak rule matched")
        return unknown_leak(config)
    logger.debug("Leak rule %s matched", matched.name)
    pattern = config.catalog[matched.leak_type]
    return LeakResult(
        leak_type=matched.leak_type,
        caption=pattern.caption,
        training_focus=pattern.training_focus,
        matched_rule=matched.name,
    )
