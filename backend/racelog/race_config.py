"""Required scans and rounds for a race run on a given ground.

A race of ``N`` metres on a ground of ``G`` metres normally takes ``N // G``
rounds and ``rounds + 1`` scans: one at the start and one per lap. Known
pairings are listed in ``RACE_CONFIG_OVERRIDES`` and win over that rule.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

_DISTANCE_RE = re.compile(r"(\d{1,9})\s*m", re.IGNORECASE)


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class RaceConfig:
    required_scans: int
    required_rounds: int


# (race, running_ground) -> config
RACE_CONFIG_OVERRIDES: dict[tuple[str, str], RaceConfig] = {
    ("1600m", "400m"): RaceConfig(required_scans=5, required_rounds=4),
    # token-carry: the tag is read at the start and at the finish only
    ("1600m", "800m"): RaceConfig(required_scans=2, required_rounds=1),
}


def parse_distance(label: Optional[str]) -> int:
    m = _DISTANCE_RE.fullmatch((label or "").strip())
    if not m:
        raise ConfigError(f"Invalid distance label: {label!r} (expected e.g. '1600m')")
    metres = int(m.group(1))
    if metres <= 0:
        raise ConfigError(f"Distance must be positive: {label!r}")
    return metres


def _normalize(label: str) -> str:
    return f"{parse_distance(label)}m"


def _override_rule(race: str, ground: str) -> Optional[RaceConfig]:
    return RACE_CONFIG_OVERRIDES.get((race, ground))


def _lap_rule(race: str, ground: str) -> Optional[RaceConfig]:
    race_m = parse_distance(race)
    ground_m = parse_distance(ground)
    rounds = race_m // ground_m
    if rounds < 1:
        raise ConfigError(f"Running ground {ground} is longer than race {race}")
    if race_m % ground_m:
        raise ConfigError(f"Race {race} is not a whole number of laps on a {ground} ground")
    return RaceConfig(required_scans=rounds + 1, required_rounds=rounds)


# evaluated in order; the lap rule always answers, so it goes last
RULES: list[Callable[[str, str], Optional[RaceConfig]]] = [_override_rule, _lap_rule]


def resolve_config(race: str, running_ground: Optional[str] = None) -> RaceConfig:
    """Resolve the scan requirements for ``race`` on ``running_ground``.

    Without a running ground the race is treated as a single lap.
    Raises ``ConfigError`` for unparseable labels or degenerate pairs.
    """
    race_key = _normalize(race)
    ground_key = _normalize(running_ground) if running_ground else race_key
    for rule in RULES:
        config = rule(race_key, ground_key)
        if config is not None:
            logger.debug("race %s on %s -> %s", race_key, ground_key, config)
            return config
    raise ConfigError(f"No configuration for race {race} on {running_ground}")
