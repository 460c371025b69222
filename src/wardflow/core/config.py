"""Site-configurable operating rules.

Allows a hospital to tune the rule constants used by the allocation,
fatigue and inventory logic without touching code:
- Acuity to bed-skill mapping and the "optimal match" band
- Fatigue risk threshold and overtime penalty
- Stock consumption jitter and reorder multiplier
- Advisory service timeout

Configuration can be loaded from:
1. YAML/JSON files in a config directory
2. Environment variables (for deployment)

Example usage:
    from wardflow.core.config import load_config

    config = load_config(Path("config/st_marys.yaml"))
    bed_id = allocate_bed(patient, beds, config=config)
"""

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from wardflow.core.entities import ACUITY_SKILL_THRESHOLDS, AcuityLevel

CONFIG_DIR_ENV = "WARDFLOW_CONFIG_DIR"
CONFIG_SUFFIXES = (".yaml", ".yml", ".json")
PACKAGED_CONFIG_DIR = Path(__file__).parent / "default_config"


@dataclass(frozen=True)
class OperationsConfig:
    """Rule constants for the operations core.

    Instances are immutable: ``DEFAULT_CONFIG`` is shared as the default
    argument of every rule function. Use ``dataclasses.replace`` to derive a
    site variant.

    Attributes:
        site_name: Human-readable site name.
        acuity_skill_thresholds: Minimum bed skill level per acuity (1-4).
        optimal_skill_band: Largest skill surplus still counted as optimal.
        fatigue_risk_threshold: Fatigue strictly above this is at risk.
        overtime_threshold_hours: Hours after which the penalty applies.
        overtime_penalty_per_hour: Fatigue points added per hour beyond it.
        routine_usage_factor: Fraction of surgical usage a routine case uses.
        usage_jitter: Half-open [low, high) multiplier range for consumption.
        reorder_multiplier: Suggested reorder = threshold * multiplier.
        advisory_timeout_s: Seconds to wait on an advisory request.
    """

    site_name: str = "Default Site"
    acuity_skill_thresholds: Dict[int, int] = field(
        default_factory=lambda: {int(k): v for k, v in ACUITY_SKILL_THRESHOLDS.items()}
    )
    optimal_skill_band: int = 3
    fatigue_risk_threshold: int = 70
    overtime_threshold_hours: float = 8.0
    overtime_penalty_per_hour: float = 5.0
    routine_usage_factor: float = 0.2
    usage_jitter: Tuple[float, float] = (0.8, 1.2)
    reorder_multiplier: int = 3
    advisory_timeout_s: float = 30.0

    def __post_init__(self):
        """Normalise file-loaded values and validate."""
        # YAML/JSON keys arrive as strings, lists instead of tuples
        object.__setattr__(self, "acuity_skill_thresholds", {
            int(k): int(v) for k, v in self.acuity_skill_thresholds.items()
        })
        object.__setattr__(self, "usage_jitter", tuple(self.usage_jitter))

        missing = {int(a) for a in AcuityLevel} - set(self.acuity_skill_thresholds)
        if missing:
            raise ValueError(f"acuity_skill_thresholds missing levels: {sorted(missing)}")
        for level, skill in self.acuity_skill_thresholds.items():
            if not 1 <= skill <= 10:
                raise ValueError(f"Skill threshold for acuity {level} must be 1-10")
        if self.optimal_skill_band < 0:
            raise ValueError("optimal_skill_band must be non-negative")
        if not 0 <= self.fatigue_risk_threshold <= 100:
            raise ValueError("fatigue_risk_threshold must be 0-100")
        if self.overtime_threshold_hours < 0 or self.overtime_penalty_per_hour < 0:
            raise ValueError("overtime parameters must be non-negative")
        if not 0 <= self.routine_usage_factor <= 1:
            raise ValueError("routine_usage_factor must be between 0 and 1")
        low, high = self.usage_jitter
        if low < 0 or high <= low:
            raise ValueError("usage_jitter must be (low, high) with 0 <= low < high")
        if self.reorder_multiplier < 1:
            raise ValueError("reorder_multiplier must be at least 1")
        if self.advisory_timeout_s <= 0:
            raise ValueError("advisory_timeout_s must be positive")

    def min_skill_for(self, acuity: AcuityLevel) -> int:
        """Minimum bed skill level for an acuity level."""
        return self.acuity_skill_thresholds[int(acuity)]


DEFAULT_CONFIG = OperationsConfig()


def _check_suffix(config_path: Path) -> None:
    if config_path.suffix not in CONFIG_SUFFIXES:
        raise ValueError(
            f"Unsupported config format: {config_path.suffix}. "
            f"Use one of {', '.join(CONFIG_SUFFIXES)}"
        )


def load_config(config_path: Path) -> OperationsConfig:
    """Load operating rules from a YAML or JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the format is unsupported or a rule is invalid.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    _check_suffix(config_path)

    with open(config_path) as f:
        if config_path.suffix == ".json":
            data = json.load(f)
        else:
            import yaml

            data = yaml.safe_load(f) or {}

    return OperationsConfig(**data)


def save_config(config: OperationsConfig, config_path: Path) -> None:
    """Write operating rules to a YAML or JSON file, creating parent dirs.

    Raises:
        ValueError: If the format is unsupported.
    """
    _check_suffix(config_path)
    data = asdict(config)
    data["usage_jitter"] = list(config.usage_jitter)

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        if config_path.suffix == ".json":
            json.dump(data, f, indent=2)
        else:
            import yaml

            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)


def get_default_config_dir() -> Path:
    """Directory holding site rule files.

    ``WARDFLOW_CONFIG_DIR`` wins when set, even if the directory does not
    exist yet. Otherwise ``./config`` is used when present, and the rules
    shipped with the package are the last resort.
    """
    env_dir = os.environ.get(CONFIG_DIR_ENV)
    if env_dir:
        return Path(env_dir)
    local = Path.cwd() / "config"
    return local if local.is_dir() else PACKAGED_CONFIG_DIR


def list_available_configs(config_dir: Optional[Path] = None) -> List[Path]:
    """Rule files in a directory, sorted by name.

    Args:
        config_dir: Directory to scan. Defaults to ``get_default_config_dir()``.
    """
    directory = config_dir if config_dir is not None else get_default_config_dir()
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if p.suffix in CONFIG_SUFFIXES)
