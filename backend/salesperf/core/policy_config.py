"""Analytics policy loader and manager."""
import json
import logging
from dataclasses import dataclass, fields, replace, asdict
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Any

logger = logging.getLogger(__name__)


class ReportSubject(str, Enum):
    """What the entity records describe."""
    PRODUCT_GROUPS = "product_groups"
    CUSTOMERS = "customers"


@dataclass(frozen=True)
class AnalyticsPolicy:
    """
    Business thresholds consumed by the engine.

    Percent values are expressed in percentage points (-15 means -15%),
    shares and rates as fractions (0.70 means 70%).
    """
    # Materiality / focus selection
    min_share: float = 0.05
    coverage_target: float = 0.70
    max_focus_items: int = 8
    max_list_items: int = 5

    # Underperformance (any breach qualifies)
    underperf_vol_pct: float = -15.0
    underperf_amt_pct: float = -15.0
    underperf_yoy_vol_pct: float = -10.0

    # Growth drivers (any breach qualifies)
    growth_vol_pct: float = 10.0
    growth_amt_pct: float = 10.0
    growth_yoy_vol_pct: float = 15.0

    # Pricing and pace
    asp_delta_show_pct: float = 5.0
    run_rate_warn: float = 0.85

    # Distribution checks
    outlier_z_threshold: float = 2.0
    concentration_low_count: int = 5
    concentration_high_top1: float = 0.50
    concentration_medium_top1: float = 0.30
    concentration_medium_top3: float = 0.80
    churn_high: float = 0.30
    churn_medium: float = 0.15

    # Full-year retrospective
    fy_strong_achievement_pct: float = 95.0
    fy_strong_growth_pct: float = 7.0
    fy_underperf_growth_cap_pct: float = 15.0
    fy_underperf_ceiling_pct: float = 120.0

    # Volume vs sales insights
    rate_trend_pct: float = 5.0
    significant_gap_pct: float = 10.0
    top_performers: int = 5
    kilo_rate_min_volume_share: float = 0.01
    ytd_decline_alert_pct: float = -5.0

    def __post_init__(self):
        if not 0 < self.coverage_target <= 1:
            raise ValueError(f"coverage_target must be in (0, 1], got {self.coverage_target}")
        if not 0 <= self.min_share <= 1:
            raise ValueError(f"min_share must be in [0, 1], got {self.min_share}")
        if self.max_focus_items < 1:
            raise ValueError("max_focus_items must be at least 1")
        if self.max_list_items < 1:
            raise ValueError("max_list_items must be at least 1")
        if self.outlier_z_threshold <= 0:
            raise ValueError("outlier_z_threshold must be positive")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalyticsPolicy":
        """Build a policy from a partial mapping; missing keys keep their defaults."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown policy keys: {', '.join(unknown)}")
        return cls(**data)

    def with_overrides(self, **overrides: Any) -> "AnalyticsPolicy":
        """Return a copy with the given thresholds replaced."""
        if not overrides:
            return self
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown policy keys: {', '.join(unknown)}")
        return replace(self, **overrides)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PolicyConfig:
    """A named policy from the policies directory."""
    policy_id: str
    policy_name: str
    subject: ReportSubject
    policy: AnalyticsPolicy
    description: str = ""


class PolicyConfigManager:
    """Manages reporting policies."""

    def __init__(self, config_dir: str = None):
        if config_dir is None:
            config_dir = Path(__file__).parent / "policies"
        self.config_dir = Path(config_dir)
        self._configs: Dict[str, PolicyConfig] = {}
        self._load_configs()

    def _load_configs(self):
        """Load all policy configurations."""
        for config_file in sorted(self.config_dir.glob("*.json")):
            with open(config_file, 'r') as f:
                data = json.load(f)
            config = self._parse_config(data)
            self._configs[config.policy_id] = config
            logger.debug("Loaded policy %s from %s", config.policy_id, config_file.name)

        if not self._configs:
            logger.warning("No policy files found in %s", self.config_dir)

    def _parse_config(self, data: Dict) -> PolicyConfig:
        """Parse configuration from JSON."""
        return PolicyConfig(
            policy_id=data["policy_id"],
            policy_name=data.get("policy_name", data["policy_id"]),
            subject=ReportSubject(data["subject"]),
            policy=AnalyticsPolicy.from_dict(data.get("thresholds", {})),
            description=data.get("description", "")
        )

    def get_config(self, policy_id: str) -> Optional[PolicyConfig]:
        """Get configuration for a policy id."""
        return self._configs.get(policy_id)

    def get_policy(self, policy_id: str) -> Optional[AnalyticsPolicy]:
        """Get the thresholds of a policy id."""
        config = self.get_config(policy_id)
        return config.policy if config else None

    def list_policies(self) -> List[str]:
        """List available policy IDs."""
        return list(self._configs.keys())

    def policy_for_subject(self, subject: ReportSubject) -> AnalyticsPolicy:
        """
        First policy declared for a subject, falling back to built-in defaults.
        """
        subject = ReportSubject(subject)
        for config in self._configs.values():
            if config.subject == subject:
                return config.policy
        logger.warning("No policy declared for %s, using defaults", subject.value)
        return AnalyticsPolicy()
