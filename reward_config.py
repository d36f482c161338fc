"""Static activity catalogue and reward scale.

Base rewards are expressed in whole units (0.01 == one hundredth) and kept as
exact fractions. The catalogue is loaded once per process and never written.

Environment:
- REWARD_SCALING_FACTOR   integer scale applied to every reward (default 100)
- REWARD_ACTIVITIES_FILE  path to a JSON object {"Check-in": "0.01", ...}
- REWARD_ACTIVITIES       same JSON inline (ignored when the file is set)
"""

from __future__ import annotations

import json
import os
from decimal import Decimal, InvalidOperation, localcontext
from fractions import Fraction
from functools import lru_cache
from types import MappingProxyType
from typing import Mapping

from dotenv import load_dotenv

from reward_errors import ConfigError

load_dotenv()


DEFAULT_SCALING_FACTOR = 100

# Check-in / View Analytics: 0.01, Cast a Vote / Refer a User: 0.05,
# Deploy a Contract / Stake SOL: 0.1
DEFAULT_ACTIVITIES: dict[str, str] = {
    "Check-in": "0.01",
    "View Analytics": "0.01",
    "Cast a Vote": "0.05",
    "Refer a User": "0.05",
    "Deploy a Contract": "0.1",
    "Stake SOL": "0.1",
}


def _to_fraction(activity: str, raw) -> Fraction:
    # Floats go through str() so 0.1 becomes exactly 1/10.
    if isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
        raise ConfigError(f"Base reward for {activity!r} must be a decimal, got {raw!r}")
    try:
        value = Decimal(str(raw).strip())
    except InvalidOperation:
        raise ConfigError(f"Base reward for {activity!r} is not a decimal: {raw!r}") from None
    if not value.is_finite() or value < 0:
        raise ConfigError(f"Base reward for {activity!r} must be a non-negative number")
    return Fraction(value)


class ActivityConfig:
    """Read-only mapping of activity id -> base reward."""

    def __init__(self, base_rewards: Mapping[str, object]):
        parsed: dict[str, Fraction] = {}
        for activity, raw in base_rewards.items():
            if not isinstance(activity, str) or not activity.strip():
                raise ConfigError(f"Activity names must be non-empty strings, got {activity!r}")
            parsed[activity] = _to_fraction(activity, raw)
        self._rewards = MappingProxyType(parsed)

    @property
    def base_rewards(self) -> Mapping[str, Fraction]:
        return self._rewards

    def lookup(self, activity: str) -> Fraction:
        try:
            return self._rewards[activity]
        except (KeyError, TypeError):
            raise ConfigError(f"Unknown activity: {activity!r}") from None

    def __contains__(self, activity) -> bool:
        return activity in self._rewards

    def __iter__(self):
        return iter(self._rewards)

    def __len__(self) -> int:
        return len(self._rewards)

    def to_dict(self) -> dict[str, str]:
        # Decimal strings, e.g. {"Check-in": "0.01"}
        return {name: format_fraction(value) for name, value in self._rewards.items()}


def format_fraction(value: Fraction) -> str:
    """Exact decimal string, e.g. Fraction(6, 5) -> "1.2"."""
    value = Fraction(value)
    rest, twos, fives = value.denominator, 0, 0
    while rest % 2 == 0:
        rest //= 2
        twos += 1
    while rest % 5 == 0:
        rest //= 5
        fives += 1
    if rest != 1:
        # Non-terminating; catalogue values and multipliers never get here.
        with localcontext() as ctx:
            ctx.prec = 50
            quotient = Decimal(value.numerator) / Decimal(value.denominator)
        return format(quotient, "f")

    places = max(twos, fives)
    sign = "-" if value < 0 else ""
    digits = str(abs(value.numerator) * 10**places // value.denominator)
    if places == 0:
        return sign + digits
    digits = digits.rjust(places + 1, "0")
    whole, frac = digits[:-places], digits[-places:].rstrip("0")
    return sign + whole + ("." + frac if frac else "")


def _read_activity_source(path: str | None, inline: str | None) -> Mapping[str, object]:
    if path:
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except OSError as e:
            raise ConfigError(f"Cannot read activity file {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigError(f"Activity file {path} is not valid JSON: {e}") from e
    elif inline:
        try:
            data = json.loads(inline)
        except json.JSONDecodeError as e:
            raise ConfigError(f"REWARD_ACTIVITIES is not valid JSON: {e}") from e
    else:
        return DEFAULT_ACTIVITIES

    if not isinstance(data, dict) or not data:
        raise ConfigError("Activity configuration must be a non-empty JSON object")
    return data


def load_activity_config(path: str | None = None, inline: str | None = None) -> ActivityConfig:
    """Build the catalogue from a file, an inline JSON string, or the defaults.

    Arguments default to REWARD_ACTIVITIES_FILE / REWARD_ACTIVITIES.
    """
    if path is None:
        path = os.getenv("REWARD_ACTIVITIES_FILE", "").strip() or None
    if inline is None:
        inline = os.getenv("REWARD_ACTIVITIES", "").strip() or None
    return ActivityConfig(_read_activity_source(path, inline))


def load_scaling_factor(raw: str | int | None = None) -> int:
    if raw is None:
        raw = os.getenv("REWARD_SCALING_FACTOR", "")
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return DEFAULT_SCALING_FACTOR
    if isinstance(raw, bool):
        raise ConfigError("REWARD_SCALING_FACTOR must be an integer, got a bool")
    try:
        factor = int(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"REWARD_SCALING_FACTOR must be an integer, got {raw!r}") from None
    if factor <= 0:
        raise ConfigError("REWARD_SCALING_FACTOR must be positive")
    return factor


@lru_cache(maxsize=1)
def get_activity_config() -> ActivityConfig:
    return load_activity_config()


@lru_cache(maxsize=1)
def get_scaling_factor() -> int:
    return load_scaling_factor()
