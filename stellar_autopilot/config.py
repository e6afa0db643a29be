"""
Tuning configuration for the autopilot.

All thresholds and gains used by targeting, propulsion and behavior live in a
single dataclass so a run can be tuned from a JSON file or from environment
variables (a local .env file is honoured).
"""

import json
import os
from dataclasses import asdict, dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv


class SteeringStrategy(Enum):
    """Available fly-to algorithms."""
    IMPROVED = "improved"  # Approach-and-brake planner (canonical)
    IMPULSE = "impulse"    # Rotate then continuous throttle
    DIRECT = "direct"      # Throttle by alignment, no rotation


@dataclass
class ControlConfig:
    """Thresholds and gains for one autopilot instance."""
    # Targeting
    weapon_rotation_epsilon_rad: float = 0.05
    intercept_linear_epsilon: float = 1e-9

    # Propulsion
    alignment_tolerance_rad: float = 0.1
    velocity_tolerance: float = 0.1
    power_epsilon: float = 0.1
    coarse_scan_step_deg: int = 10
    fine_scan_span_deg: int = 10
    fine_scan_step_deg: int = 1
    braking_safety_factor: float = 1.5
    rotation_time_tolerance_s: float = 1.0
    default_rotation_speed: float = 0.6

    # Behavior
    attack_steering: float = 0.7
    defense_steering: float = 0.6
    mining_steering: float = 0.6
    mining_engage_range: float = 200.0
    steering_strategy: SteeringStrategy = SteeringStrategy.IMPROVED
    truncate_target_ranking: bool = True

    # Scheduling
    control_interval_s: float = 0.3

    def __post_init__(self):
        if isinstance(self.steering_strategy, str):
            self.steering_strategy = SteeringStrategy(self.steering_strategy)
        if self.coarse_scan_step_deg <= 0 or self.fine_scan_step_deg <= 0:
            raise ValueError("Scan steps must be positive")
        if self.fine_scan_span_deg < 0:
            raise ValueError("Fine scan span must not be negative")
        if self.braking_safety_factor < 1.0:
            raise ValueError("Braking safety factor must be at least 1.0")
        if self.control_interval_s < 0:
            raise ValueError("Control interval must not be negative")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ControlConfig':
        """Create configuration from dictionary."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        return cls(**data)

    @classmethod
    def from_json(cls, path: str) -> 'ControlConfig':
        """Load configuration from JSON file."""
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Autopilot config not found: {path}")

        with open(config_path) as f:
            data = json.load(f)

        return cls.from_dict(data)

    @classmethod
    def from_env(cls, prefix: str = "AUTOPILOT_", base: Optional['ControlConfig'] = None) -> 'ControlConfig':
        """
        Override fields from environment variables.

        Each field maps to PREFIX + FIELD_NAME in upper case, for example
        AUTOPILOT_MINING_ENGAGE_RANGE=250.
        """
        load_dotenv()
        data = (base or cls()).to_dict()
        for f in fields(cls):
            raw = os.getenv(prefix + f.name.upper())
            if raw is None:
                continue
            data[f.name] = _parse_env_value(raw, data[f.name], f.name)
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Plain dictionary suitable for JSON."""
        data = asdict(self)
        data["steering_strategy"] = self.steering_strategy.value
        return data


def _parse_env_value(raw: str, current: Any, name: str) -> Any:
    # bool must be checked before int, bool is an int subclass
    if isinstance(current, bool):
        lowered = raw.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"Invalid boolean for {name}: {raw!r}")
    if isinstance(current, int):
        return int(raw)
    if isinstance(current, float):
        return float(raw)
    return raw.strip()


DEFAULT_CONFIG = ControlConfig()
