"""Engine configuration: scoring constants, insight thresholds, environment setup."""

import tomllib
from dataclasses import dataclass, field, replace
from enum import StrEnum
from pathlib import Path

type ConfigDict = dict[str, str | int | float | bool]


class MissingScorePolicy(StrEnum):
    # spread the weight of an absent sub-score over the present ones
    REWEIGHT = "reweight"
    # leave the overall score absent when any sub-score is absent
    ABSENT = "absent"


@dataclass(frozen=True)
class ScoringWeights:
    speed: float = 0.3
    reliability: float = 0.5
    return_rate: float = 0.2

    def __post_init__(self) -> None:
        values = (self.speed, self.reliability, self.return_rate)
        if any(w < 0 for w in values):
            raise ValueError(f"Scoring weights must be non-negative: {values}")
        if sum(values) <= 0:
            raise ValueError("Scoring weights must sum to a positive value")


@dataclass(frozen=True)
class TierCutoffs:
    excellent: float = 85.0
    good: float = 70.0
    average: float = 50.0


@dataclass(frozen=True)
class ScoringConfig:
    """Constants of the scoring curve.

    A delivery time of ``speed_anchor_hours`` scores 100, and every
    ``speed_span_hours`` beyond it costs 100 points. Each percentage point of
    return rate costs ``return_rate_penalty`` points.
    """

    speed_anchor_hours: float = 48.0
    speed_span_hours: float = 96.0
    return_rate_penalty: float = 5.0
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    tiers: TierCutoffs = field(default_factory=TierCutoffs)
    precision: int = 0
    missing_score_policy: MissingScorePolicy = MissingScorePolicy.REWEIGHT


@dataclass(frozen=True)
class InsightThresholds:
    delivery_rate_strength: float = 10.0
    delivery_rate_weakness: float = 10.0
    return_rate_warning: float = 5.0
    delivery_time_strength: float = 12.0
    delivery_time_weakness: float = 24.0


@dataclass(frozen=True)
class EngineConfig:
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    insights: InsightThresholds = field(default_factory=InsightThresholds)
    at_risk_hours: float = 72.0
    data_dir: Path = Path("data") / "shipments"


DEFAULT_CONFIG = EngineConfig()


def load_engine_config(env: str = "production", overrides: ConfigDict | None = None) -> EngineConfig:
    match env:
        case "production":
            data_dir = Path("/var/lib/carrier-intel/snapshots")
        case "staging":
            data_dir = Path("/var/lib/carrier-intel/staging-snapshots")
        case "development":
            data_dir = Path("data") / "shipments"
        case other:
            raise ValueError(f"Unknown environment: {other}")

    config = EngineConfig(data_dir=data_dir)
    settings = get_env_config() if overrides is None else overrides
    return apply_overrides(config, settings)


def apply_overrides(config: EngineConfig, settings: ConfigDict) -> EngineConfig:
    """Apply flat ``[tool.carrier_intel]`` style settings onto a config."""
    scoring = config.scoring
    for key, value in settings.items():
        match key:
            case "at_risk_hours":
                config = replace(config, at_risk_hours=float(value))
            case "data_dir":
                config = replace(config, data_dir=Path(str(value)))
            case "missing_score_policy":
                scoring = replace(scoring, missing_score_policy=MissingScorePolicy(value))
            case "precision":
                scoring = replace(scoring, precision=int(value))
            case "speed_anchor_hours" | "speed_span_hours" | "return_rate_penalty":
                scoring = replace(scoring, **{key: float(value)})
            case unknown:
                raise ValueError(f"Unknown engine setting: {unknown}")
    return replace(config, scoring=scoring)


def get_env_config(pyproject: Path | None = None) -> ConfigDict:
    """Read engine settings from pyproject.toml, if one is present."""
    pyproject = pyproject or Path(__file__).parent.parent / "pyproject.toml"
    if not pyproject.exists():
        return {}
    with open(pyproject, "rb") as f:
        data = tomllib.load(f)
    return data.get("tool", {}).get("carrier_intel", {})
