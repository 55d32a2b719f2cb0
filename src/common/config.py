# ABOUTME: Loads YAML configuration for the roster and fairness reports.
# ABOUTME: Falls back to the client's defaults for any key the file omits.

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Optional

import yaml

from .pagination import DEFAULT_PAGE_SIZE
from .validation import ValidationPolicy

DEFAULT_CONFIG_PATH = Path("configs/akura.yaml")


@dataclass(frozen=True)
class BiasThresholds:
    """Disparate impact bounds; values inside [lower, upper] are not flagged."""

    lower: float = 0.8
    upper: float = 1.25

    def __post_init__(self) -> None:
        if self.lower > self.upper:
            raise ValueError(f"Bias lower threshold {self.lower} exceeds upper threshold {self.upper}")


@dataclass(frozen=True)
class ScoreBandThresholds:
    """Minimum scores for each band on the 14-point essay rubric."""

    excellent: float = 12
    good: float = 9
    average: float = 6


@dataclass(frozen=True)
class StoreConfig:
    path: Path = Path("data/akura_export.json")


@dataclass(frozen=True)
class RosterConfig:
    page_size: int = DEFAULT_PAGE_SIZE
    validation: ValidationPolicy = ValidationPolicy.STRICT
    attribute_policy: str = "first_seen"
    score_bands: ScoreBandThresholds = field(default_factory=ScoreBandThresholds)


@dataclass(frozen=True)
class FairnessConfig:
    validation: ValidationPolicy = ValidationPolicy.STRICT
    grades: List[int] = field(default_factory=lambda: [3, 4, 5, 6, 7, 8])
    thresholds: BiasThresholds = field(default_factory=BiasThresholds)


@dataclass(frozen=True)
class AppConfig:
    store: StoreConfig = field(default_factory=StoreConfig)
    roster: RosterConfig = field(default_factory=RosterConfig)
    fairness: FairnessConfig = field(default_factory=FairnessConfig)


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Read an AppConfig from YAML. Without a path the built-in defaults are used.
    """

    if config_path is None:
        return AppConfig()

    with open(config_path) as f:
        cfg = yaml.safe_load(f) or {}
    return config_from_mapping(cfg)


def config_from_mapping(cfg: Mapping[str, Any]) -> AppConfig:
    store_cfg = cfg.get("store") or {}
    roster_cfg = cfg.get("roster") or {}
    fairness_cfg = cfg.get("fairness") or {}

    store = StoreConfig(path=Path(store_cfg.get("path", StoreConfig.path)))

    page_size = int(roster_cfg.get("page_size", DEFAULT_PAGE_SIZE))
    if page_size < 1:
        raise ValueError(f"roster.page_size must be >= 1, got {page_size}")
    roster = RosterConfig(
        page_size=page_size,
        validation=ValidationPolicy.parse(roster_cfg.get("validation", "strict")),
        attribute_policy=str(roster_cfg.get("attribute_policy", "first_seen")),
        score_bands=ScoreBandThresholds(**(roster_cfg.get("score_bands") or {})),
    )

    fairness = FairnessConfig(
        validation=ValidationPolicy.parse(fairness_cfg.get("validation", "strict")),
        grades=list(fairness_cfg.get("grades", FairnessConfig().grades)),
        thresholds=BiasThresholds(**(fairness_cfg.get("thresholds") or {})),
    )
    return AppConfig(store=store, roster=roster, fairness=fairness)
