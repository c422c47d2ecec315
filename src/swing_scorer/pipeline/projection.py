import logging
import math

from swing_scorer.domain.leak import LeakResult, LeakType
from swing_scorer.domain.score import PlayerLevel, Projections
from swing_scorer.domain.scoring_config import ProjectionConfig
from swing_scorer.domain.session import SessionMetrics
from swing_scorer.pipeline._numeric import clamp, round_half_up, round_score

logger = logging.getLogger(__name__)


def delivered_energy(metrics: SessionMetrics, config: ProjectionConfig) -> tuple[float, float, str]:
    """Energy reaching the barrel, its share of total energy (%), and how it was measured."""
    total = metrics.mean("total_ke") or 0.0
    bat = metrics.mean("bat_ke") or 0.0
    if metrics.capabilities.has_bat_ke and bat > 0:
        efficiency = bat / total * 100 if total > 0 else 0.0
        return bat, efficiency, "bat_ke"

    arms = metrics.mean("arms_ke") or 0.0
    transfer = metrics.mean("torso_to_arms") or 0.0
    delivered = arms * transfer / 100
    if total > 0:
        efficiency = delivered / total * 100
    else:
        efficiency = clamp(transfer * config.proxy_efficiency_factor, 0.0, config.proxy_efficiency_cap)
    return delivered, efficiency, "transfer_proxy"


def minimum_gap(leak: LeakResult, efficiency: float, config: ProjectionConfig) -> float:
    if leak.leak_type is LeakType.NO_BAT_DELIVERY or efficiency < config.severe_efficiency:
        return config.severe_gap
    if efficiency < config.moderate_efficiency:
        return config.moderate_gap
    return 0.0


def exit_speed(bat_speed: float, config: ProjectionConfig) -> int:
    return round_score(config.exit_slope * bat_speed + config.exit_intercept)


def compute_projection(
    metrics: SessionMetrics,
    leak: LeakResult,
    level: PlayerLevel,
    config: ProjectionConfig,
    *,
    speed_constant: float | None = None,
) -> Projections | None:
    """Project current and ceiling bat speed from delivered energy.

    Speed is ``K * sqrt(delivered)``; the ceiling uses the target share of
    total energy. A leak or a poor delivery efficiency forces a minimum
    gap between ceiling and current. Both speeds stay inside the level's
    bounds. Returns ``None`` for sessions without energy data.
    """
    if not metrics.capabilities.has_energy:
        return None

    k = speed_constant if speed_constant is not None else config.speed_constant
    bounds = config.levels[level]
    delivered, efficiency, method = delivered_energy(metrics, config)
    total = metrics.mean("total_ke") or 0.0
    potential = max(total * config.target_efficiency, delivered)

    gap = minimum_gap(leak, efficiency, config)
    current = k * math.sqrt(max(delivered, 0.0))
    ceiling = k * math.sqrt(max(potential, 0.0))

    current = round_half_up(clamp(current, bounds.min_speed, bounds.max_speed - gap), 1)
    ceiling = min(max(round_half_up(ceiling, 1), current + gap), bounds.max_speed)

    current_exit = int(clamp(exit_speed(current, config), config.exit_min, config.exit_max))
    ceiling_exit = int(clamp(exit_speed(ceiling, config), current_exit, config.ceiling_exit_max))

    logger.debug(
        "Projection (%s, %s): %.1f -> %.1f mph, efficiency %.1f%%, gap %.0f",
        level,
        method,
        current,
        ceiling,
        efficiency,
        gap,
    )
    return Projections(
        level=level,
        method=method,
        delivered_energy=round_half_up(delivered, 1),
        delivery_efficiency_pct=round_half_up(efficiency, 1),
        current_bat_speed=current,
        ceiling_bat_speed=ceiling,
        current_exit_speed=current_exit,
        ceiling_exit_speed=ceiling_exit,
        minimum_gap=gap,
    )
