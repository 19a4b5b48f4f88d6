"""Executive summary and strategic priority lines."""
from typing import List, Optional

from salesperf.core.policy_config import AnalyticsPolicy
from salesperf.analytics.categorizer import PerformanceCategories
from salesperf.analytics.concentration import ConcentrationSummary, RISK_HIGH
from salesperf.analytics.periods import Period
from salesperf.analytics.retention import RetentionSummary


def format_pct(value: Optional[float]) -> str:
    return "N/A" if value is None else f"{abs(value):.1f}%"


def _direction_parts(volume: Optional[float], amount: Optional[float], up: str, down: str) -> List[str]:
    parts = []
    if volume is not None:
        parts.append(f"volume {up if volume >= 0 else down} {format_pct(volume)}")
    if amount is not None:
        parts.append(f"sales {up if amount >= 0 else down} {format_pct(amount)}")
    return parts


def executive_summary(
    base_period: Period,
    variances,
    availability,
    run_rate,
    categories: PerformanceCategories,
    subject_label: str
) -> List[str]:
    """
    One line each for budget, FY budget, YoY, YTD->FY progress and
    run-rate, followed by underperformer / growth counts.
    """
    lines = []

    budget = _direction_parts(variances.volume_vs_budget, variances.amount_vs_budget,
                              "ahead by", "behind by")
    if budget:
        lines.append(f"Budget: {', '.join(budget)}")

    fy_budget = _direction_parts(variances.volume_fy_budget_var, variances.amount_fy_budget_var,
                                 "ahead by", "behind by")
    if fy_budget:
        lines.append(f"FY Budget: {', '.join(fy_budget)}")

    yoy = _direction_parts(variances.volume_yoy, variances.amount_yoy, "up", "down")
    if yoy:
        lines.append(f"YoY: {', '.join(yoy)}")
    elif not availability.has_prev_year:
        lines.append(f"YoY: no {base_period.year - 1} data available")

    if variances.ytd_fy_progress_pct is not None:
        lines.append(f"YTD→FY: {format_pct(variances.ytd_fy_progress_pct)} of full-year achieved")

    if run_rate is not None:
        line = f"Run-rate vs {run_rate.basis}: {run_rate.ratio * 100:.1f}%"
        if run_rate.below_threshold:
            line += f" - below {run_rate.threshold * 100:.0f}% threshold"
        lines.append(line)

    if categories.underperformers:
        lines.append(f"{len(categories.underperformers)} high-budget {subject_label} underperforming")
    if categories.growth_drivers:
        lines.append(f"{len(categories.growth_drivers)} {subject_label} driving growth")

    return lines or ["Analysis complete."]


def strategic_priorities(
    categories: PerformanceCategories,
    variances,
    availability,
    concentration: ConcentrationSummary,
    retention: RetentionSummary,
    policy: AnalyticsPolicy,
    subject_label: str
) -> List[str]:
    """Mid-year action lines; empty when nothing needs attention."""
    priorities = []

    if categories.underperformers:
        share = sum(m.budget_share for m in categories.underperformers) * 100
        priorities.append(
            f"Address underperformance in high-budget {subject_label} representing "
            f"{share:.1f}% of budget through targeted sales initiatives."
        )
    if categories.growth_drivers:
        priorities.append(
            f"Capitalize on momentum in {len(categories.growth_drivers)} growth {subject_label} "
            f"and replicate their success factors across the portfolio."
        )
    if categories.pricing_concerns:
        priorities.append(
            f"Investigate pricing pressure in {len(categories.pricing_concerns)} material {subject_label}."
        )
    ytd = variances.volume_ytd_growth
    if availability.has_ytd and ytd is not None and ytd < policy.ytd_decline_alert_pct:
        priorities.append(
            f"YTD volume trending {format_pct(ytd)} below prior year requires corrective action."
        )
    if concentration.active_count and concentration.level == RISK_HIGH:
        priorities.append(
            f"Reduce concentration risk: top entity holds {concentration.top1_share * 100:.1f}% "
            f"of volume across {concentration.active_count} active {subject_label}."
        )
    if retention.has_data and retention.risk == RISK_HIGH:
        priorities.append(
            f"Churn at {retention.churn_rate * 100:.1f}%: {retention.lost_count} of "
            f"{retention.previous_active_count} prior-year {subject_label} were lost."
        )

    return priorities
