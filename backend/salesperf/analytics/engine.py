"""Deterministic sales performance engine."""
import logging
from typing import Iterable, List, Optional, Sequence

from salesperf.core.policy_config import AnalyticsPolicy, ReportSubject
from salesperf.analytics.catch_up import plan_catch_up
from salesperf.analytics.categorizer import (
    PerformanceCategories,
    categorize,
    review_full_year,
)
from salesperf.analytics.concentration import analyze_concentration
from salesperf.analytics.entities import (
    EntityRecord,
    JoinedEntity,
    MergeRule,
    apply_merge_rules,
    join_datasets,
)
from salesperf.analytics.findings import (
    AvailabilityFlags,
    CatchUpPlan,
    DataQuality,
    EntityCatchUp,
    EntityMetrics,
    EntityPvm,
    EntityVolumeSales,
    Findings,
    PortfolioTotals,
    PortfolioVariances,
    RateAnalysis,
    RunRate,
    TopPerformers,
    VolumeSalesInsights,
)
from salesperf.analytics.materiality import MaterialitySelection, STOP_EXHAUSTED, select_material
from salesperf.analytics.outliers import detect_outliers
from salesperf.analytics.periods import ColumnSchema, ResolvedPeriods, months_remaining, resolve_periods
from salesperf.analytics.pvm import decompose
from salesperf.analytics.retention import analyze_retention, unavailable_retention
from salesperf.analytics.safe_math import pct_of, ratio_pct, safe_divide, safe_share, sum_at
from salesperf.analytics.summary import executive_summary, strategic_priorities

logger = logging.getLogger(__name__)

SUBJECT_LABELS = {
    ReportSubject.PRODUCT_GROUPS: "products",
    ReportSubject.CUSTOMERS: "customers",
}


def _variance(current: float, reference: float, available: bool) -> Optional[float]:
    return ratio_pct(current, reference) if available else None


def kilo_rate(amount: float, volume: float) -> Optional[float]:
    """Amount per 1,000 volume units."""
    return safe_divide(amount, volume / 1000)


class SalesPerformanceEngine:
    """Compute budget, growth, concentration, retention and PVM findings."""

    def __init__(self, policy: AnalyticsPolicy = None):
        self.policy = policy or AnalyticsPolicy()

    def compute_findings(
        self,
        schema: ColumnSchema,
        volume: Sequence[EntityRecord],
        amount: Sequence[EntityRecord],
        base_period_index: int,
        subject: ReportSubject = ReportSubject.PRODUCT_GROUPS,
        merge_rules: Iterable[MergeRule] = ()
    ) -> Findings:
        """
        Compute the findings for one subject as of one base period.

        Args:
            schema: ordered period columns shared by every record
            volume: Volume rows
            amount: Amount rows
            base_period_index: position of the reported period in the schema
            subject: product groups or customers
            merge_rules: applied to each dataset before the join

        Returns:
            Findings snapshot; never raises for data conditions
        """
        subject = ReportSubject(subject)

        if not schema.is_valid_index(base_period_index):
            logger.warning(
                "Base period index %r is outside a schema of %d columns",
                base_period_index, len(schema)
            )
            return self._unavailable(
                subject, f"Base period index {base_period_index!r} is not a schema column"
            )

        rules = list(merge_rules)
        volume = apply_merge_rules(list(volume or []), rules)
        amount = apply_merge_rules(list(amount or []), rules)
        joined = join_datasets(volume, amount, len(schema))

        periods = resolve_periods(schema, base_period_index)
        base = schema[base_period_index]
        entities = joined.entities
        availability = self._availability(periods)

        totals = self._totals(entities, periods)
        variances = self._variances(totals, availability)
        run_rate_volume = self._run_rate(
            totals.volume_ytd_current, totals.volume_fy_budget, totals.volume_budget, periods
        )
        run_rate_amount = self._run_rate(
            totals.amount_ytd_current, totals.amount_fy_budget, totals.amount_budget, periods
        )

        metrics = tuple(self._entity_metrics(e, periods, totals, availability) for e in entities)
        focus = select_material(metrics, self.policy)
        logger.debug(
            "Focus list of %d entities covers %.1f%% of budget (stopped by %s)",
            len(focus), focus.coverage * 100, focus.stopped_by
        )

        if periods.is_fy_period:
            categories = PerformanceCategories((), (), (), ())
            full_year_review = review_full_year(focus.items, self.policy)
            catch_up = None
        else:
            categories = categorize(focus.items, self.policy)
            full_year_review = None
            catch_up = self._catch_up_plan(base, totals, focus.items, availability)

        portfolio_pvm = None
        entity_pvm = ()
        if availability.has_prev_year:
            portfolio_pvm = decompose(
                totals.volume_actual, totals.volume_prev_year,
                totals.amount_actual, totals.amount_prev_year,
            )
            entity_pvm = tuple(
                EntityPvm(
                    name=m.name,
                    pvm=decompose(m.volume_actual, m.volume_prev_year, m.amount_actual, m.amount_prev_year),
                )
                for m in focus.items
            )

        rates = self._rate_analysis(totals, availability)
        volume_sales = self._volume_sales(metrics, rates)
        top_performers = self._top_performers(volume_sales, totals.volume_actual)
        insights = self._insights(variances, rates, volume_sales)

        concentration = analyze_concentration(
            ((e.name, e.volume_at(periods.base_index)) for e in entities), self.policy
        )
        if availability.has_prev_year:
            retention = analyze_retention(
                [(e.name, e.volume_at(periods.previous_year_index)) for e in entities],
                [(e.name, e.volume_at(periods.base_index)) for e in entities],
                self.policy,
            )
        else:
            retention = unavailable_retention()

        outliers = ()
        if availability.has_prev_year:
            outliers = detect_outliers(
                ((m.name, m.volume_yoy) for m in metrics),
                self.policy.outlier_z_threshold,
            )

        label = SUBJECT_LABELS[subject]
        summary = executive_summary(base, variances, availability, run_rate_amount, categories, label)
        priorities = [] if periods.is_fy_period else strategic_priorities(
            categories, variances, availability, concentration, retention, self.policy, label
        )

        warnings = []
        if not availability.has_budget:
            warnings.append("No budget column for the base period")
        if not availability.has_prev_year:
            warnings.append(f"No {base.year - 1} actual column for {base.kind.label}")

        return Findings(
            subject=subject.value,
            is_available=True,
            base_period=base,
            periods=periods,
            is_fy_period=periods.is_fy_period,
            availability=availability,
            totals=totals,
            variances=variances,
            run_rate_volume=run_rate_volume,
            run_rate_amount=run_rate_amount,
            entities=metrics,
            focus=focus,
            categories=categories,
            full_year_review=full_year_review,
            catch_up=catch_up,
            portfolio_pvm=portfolio_pvm,
            entity_pvm=entity_pvm,
            rates=rates,
            volume_sales=volume_sales,
            top_performers=top_performers,
            insights=insights,
            concentration=concentration,
            retention=retention,
            outliers=outliers,
            executive_summary=tuple(summary),
            priorities=tuple(priorities),
            data_quality=DataQuality(
                schema_mismatches=joined.schema_mismatches,
                duplicate_keys=joined.duplicate_keys,
                unmatched_volume=joined.unmatched_volume,
                unmatched_amount=joined.unmatched_amount,
                warnings=tuple(warnings),
            ),
        )

    def _unavailable(self, subject: ReportSubject, reason: str) -> Findings:
        """Empty findings for a request with no usable base period."""
        return Findings(
            subject=subject.value,
            is_available=False,
            base_period=None,
            periods=None,
            is_fy_period=False,
            availability=AvailabilityFlags(),
            totals=PortfolioTotals(),
            variances=PortfolioVariances(),
            run_rate_volume=None,
            run_rate_amount=None,
            entities=(),
            focus=MaterialitySelection(items=(), coverage=0.0, stopped_by=STOP_EXHAUSTED),
            categories=PerformanceCategories((), (), (), ()),
            full_year_review=None,
            catch_up=None,
            portfolio_pvm=None,
            entity_pvm=(),
            rates=RateAnalysis(),
            volume_sales=(),
            top_performers=TopPerformers(),
            insights=VolumeSalesInsights(),
            concentration=analyze_concentration([], self.policy),
            retention=unavailable_retention(),
            outliers=(),
            executive_summary=(),
            priorities=(),
            data_quality=DataQuality(warnings=(reason,)),
        )

    def _availability(self, periods: ResolvedPeriods) -> AvailabilityFlags:
        return AvailabilityFlags(
            has_budget=periods.has_budget,
            has_prev_year=periods.has_prev_year,
            has_ytd=periods.has_ytd,
            has_ytd_current=periods.has_ytd_current,
            has_fy=periods.has_fy,
            has_fy_budget=periods.has_fy_budget,
            has_fy_comparison=periods.has_fy_comparison,
        )

    def _totals(self, entities: Sequence[JoinedEntity], periods: ResolvedPeriods) -> PortfolioTotals:
        volume = [e.volume for e in entities]
        amount = [e.amount for e in entities]
        return PortfolioTotals(
            volume_actual=sum_at(periods.base_index, volume),
            amount_actual=sum_at(periods.base_index, amount),
            volume_budget=sum_at(periods.budget_index, volume),
            amount_budget=sum_at(periods.budget_index, amount),
            volume_prev_year=sum_at(periods.previous_year_index, volume),
            amount_prev_year=sum_at(periods.previous_year_index, amount),
            volume_ytd_current=sum_at(periods.ytd_current_index, volume),
            amount_ytd_current=sum_at(periods.ytd_current_index, amount),
            volume_ytd_previous=sum_at(periods.ytd_previous_index, volume),
            amount_ytd_previous=sum_at(periods.ytd_previous_index, amount),
            volume_fy_current=sum_at(periods.fy_current_index, volume),
            amount_fy_current=sum_at(periods.fy_current_index, amount),
            volume_fy_previous=sum_at(periods.fy_previous_index, volume),
            amount_fy_previous=sum_at(periods.fy_previous_index, amount),
            volume_fy_budget=sum_at(periods.fy_budget_index, volume),
            amount_fy_budget=sum_at(periods.fy_budget_index, amount),
        )

    def _variances(self, t: PortfolioTotals, a: AvailabilityFlags) -> PortfolioVariances:
        fy_growth = a.has_fy and a.has_fy_comparison
        fy_budget = a.has_fy and a.has_fy_budget

        # Period actual against the full-year target, shown when there is activity
        volume_vs_fy = ratio_pct(t.volume_actual, t.volume_fy_budget) if t.volume_actual > 0 else None
        amount_vs_fy = ratio_pct(t.amount_actual, t.amount_fy_budget) if t.amount_actual > 0 else None

        progress = None
        if a.has_ytd_current and a.has_fy and t.amount_ytd_current > 0 and t.amount_fy_current > 0:
            progress = pct_of(t.amount_ytd_current, t.amount_fy_current)

        return PortfolioVariances(
            volume_vs_budget=_variance(t.volume_actual, t.volume_budget, a.has_budget),
            amount_vs_budget=_variance(t.amount_actual, t.amount_budget, a.has_budget),
            volume_yoy=_variance(t.volume_actual, t.volume_prev_year, a.has_prev_year),
            amount_yoy=_variance(t.amount_actual, t.amount_prev_year, a.has_prev_year),
            volume_ytd_growth=_variance(t.volume_ytd_current, t.volume_ytd_previous, a.has_ytd),
            amount_ytd_growth=_variance(t.amount_ytd_current, t.amount_ytd_previous, a.has_ytd),
            volume_fy_growth=_variance(t.volume_fy_current, t.volume_fy_previous, fy_growth),
            amount_fy_growth=_variance(t.amount_fy_current, t.amount_fy_previous, fy_growth),
            volume_fy_budget_var=_variance(t.volume_fy_current, t.volume_fy_budget, fy_budget),
            amount_fy_budget_var=_variance(t.amount_fy_current, t.amount_fy_budget, fy_budget),
            volume_vs_fy_budget=volume_vs_fy,
            amount_vs_fy_budget=amount_vs_fy,
            ytd_fy_progress_pct=progress,
        )

    def _run_rate(
        self,
        ytd_current: float,
        fy_budget: float,
        period_budget: float,
        periods: ResolvedPeriods
    ) -> Optional[RunRate]:
        """YTD actual against the FY budget, or the period budget when there is none."""
        if not periods.has_ytd_current:
            return None
        basis = "FY budget" if fy_budget > 0 else "period budget"
        ratio = safe_divide(ytd_current, fy_budget if fy_budget > 0 else period_budget)
        if ratio is None:
            return None
        return RunRate(ratio=ratio, basis=basis, threshold=self.policy.run_rate_warn)

    def _entity_metrics(
        self,
        entity: JoinedEntity,
        periods: ResolvedPeriods,
        totals: PortfolioTotals,
        a: AvailabilityFlags
    ) -> EntityMetrics:
        v, m = entity.volume_at, entity.amount_at
        p = periods

        volume_actual, amount_actual = v(p.base_index), m(p.base_index)
        volume_budget, amount_budget = v(p.budget_index), m(p.budget_index)
        volume_prev, amount_prev = v(p.previous_year_index), m(p.previous_year_index)
        volume_fy_budget, amount_fy_budget = v(p.fy_budget_index), m(p.fy_budget_index)

        # FY budget drives the shares whenever the portfolio has one
        if totals.volume_fy_budget > 0:
            volume_share = safe_share(volume_fy_budget, totals.volume_fy_budget)
        else:
            volume_share = safe_share(volume_budget, totals.volume_budget)
        if totals.amount_fy_budget > 0:
            amount_share = safe_share(amount_fy_budget, totals.amount_fy_budget)
        else:
            amount_share = safe_share(amount_budget, totals.amount_budget)
        budget_share = max(0.0, volume_share, amount_share)
        actual_share = max(
            0.0,
            safe_share(volume_actual, totals.volume_actual),
            safe_share(amount_actual, totals.amount_actual),
        )

        asp_current = safe_divide(amount_actual, volume_actual)
        asp_budget = safe_divide(amount_budget, volume_budget)
        asp_prev = safe_divide(amount_prev, volume_prev)

        fy_growth = a.has_fy and a.has_fy_comparison
        fy_budget = a.has_fy and a.has_fy_budget

        return EntityMetrics(
            name=entity.name,
            key=entity.key.value,
            volume_actual=volume_actual,
            amount_actual=amount_actual,
            volume_budget=volume_budget,
            amount_budget=amount_budget,
            volume_prev_year=volume_prev,
            amount_prev_year=amount_prev,
            volume_ytd_current=v(p.ytd_current_index),
            amount_ytd_current=m(p.ytd_current_index),
            volume_ytd_previous=v(p.ytd_previous_index),
            amount_ytd_previous=m(p.ytd_previous_index),
            volume_fy_current=v(p.fy_current_index),
            amount_fy_current=m(p.fy_current_index),
            volume_fy_previous=v(p.fy_previous_index),
            amount_fy_previous=m(p.fy_previous_index),
            volume_fy_budget=volume_fy_budget,
            amount_fy_budget=amount_fy_budget,
            budget_share=budget_share,
            actual_share=actual_share,
            materiality_score=budget_share * actual_share,
            volume_vs_budget=_variance(volume_actual, volume_budget, a.has_budget),
            amount_vs_budget=_variance(amount_actual, amount_budget, a.has_budget),
            volume_yoy=_variance(volume_actual, volume_prev, a.has_prev_year),
            amount_yoy=_variance(amount_actual, amount_prev, a.has_prev_year),
            volume_ytd_growth=_variance(v(p.ytd_current_index), v(p.ytd_previous_index), a.has_ytd),
            amount_ytd_growth=_variance(m(p.ytd_current_index), m(p.ytd_previous_index), a.has_ytd),
            volume_fy_growth=_variance(v(p.fy_current_index), v(p.fy_previous_index), fy_growth),
            amount_fy_growth=_variance(m(p.fy_current_index), m(p.fy_previous_index), fy_growth),
            volume_fy_budget_var=_variance(v(p.fy_current_index), volume_fy_budget, fy_budget),
            amount_fy_budget_var=_variance(m(p.fy_current_index), amount_fy_budget, fy_budget),
            asp_current=asp_current,
            asp_budget=asp_budget,
            asp_prev_year=asp_prev,
            asp_vs_budget_pct=ratio_pct(asp_current, asp_budget),
            asp_yoy_pct=ratio_pct(asp_current, asp_prev),
        )

    def _catch_up_plan(
        self,
        base,
        totals: PortfolioTotals,
        focus: Sequence[EntityMetrics],
        a: AvailabilityFlags
    ) -> CatchUpPlan:
        remaining = months_remaining(base)

        def plan(fy_budget, budget, ytd, actual):
            return plan_catch_up(fy_budget, budget, ytd if a.has_ytd_current else None, actual, remaining)

        return CatchUpPlan(
            months_remaining=remaining,
            volume=plan(totals.volume_fy_budget, totals.volume_budget,
                        totals.volume_ytd_current, totals.volume_actual),
            amount=plan(totals.amount_fy_budget, totals.amount_budget,
                        totals.amount_ytd_current, totals.amount_actual),
            entities=tuple(
                EntityCatchUp(
                    name=m.name,
                    volume=plan(m.volume_fy_budget, m.volume_budget, m.volume_ytd_current, m.volume_actual),
                    amount=plan(m.amount_fy_budget, m.amount_budget, m.amount_ytd_current, m.amount_actual),
                )
                for m in focus
            ),
        )

    def _rate_analysis(self, t: PortfolioTotals, a: AvailabilityFlags) -> RateAnalysis:
        current = kilo_rate(t.amount_actual, t.volume_actual)
        previous = kilo_rate(t.amount_prev_year, t.volume_prev_year) if a.has_prev_year else None
        budget = kilo_rate(t.amount_budget, t.volume_budget) if a.has_budget else None
        return RateAnalysis(
            avg_kilo_rate=current,
            avg_kilo_rate_prev=previous,
            avg_kilo_rate_budget=budget,
            kilo_rate_yoy=ratio_pct(current, previous),
            kilo_rate_vs_budget=ratio_pct(current, budget),
        )

    def _volume_sales(
        self,
        metrics: Sequence[EntityMetrics],
        rates: RateAnalysis
    ) -> tuple:
        """Per-entity kilo rate, growth and driver labels for active entities."""
        trend_band = self.policy.rate_trend_pct
        result: List[EntityVolumeSales] = []
        for m in metrics:
            if m.volume_actual <= 0 and m.amount_actual <= 0:
                continue
            rate = kilo_rate(m.amount_actual, m.volume_actual)
            prev_rate = kilo_rate(m.amount_prev_year, m.volume_prev_year)
            rate_change = ratio_pct(rate, prev_rate)

            if m.volume_yoy is not None and m.amount_yoy is not None:
                driver = "volume-driven" if m.volume_yoy > m.amount_yoy else "sales-driven"
            else:
                driver = "neutral"

            if rate_change is not None and rate_change > trend_band:
                trend = "improving"
            elif rate_change is not None and rate_change < -trend_band:
                trend = "declining"
            else:
                trend = "stable"

            beats_average = (
                rate is not None and rates.avg_kilo_rate is not None and rate > rates.avg_kilo_rate
            )
            result.append(EntityVolumeSales(
                name=m.name,
                volume=m.volume_actual,
                sales=m.amount_actual,
                kilo_rate=rate,
                prev_kilo_rate=prev_rate,
                volume_growth=m.volume_yoy,
                sales_growth=m.amount_yoy,
                kilo_rate_change=rate_change,
                advantage="sales" if beats_average else "volume",
                volume_vs_sales=driver,
                kilo_rate_trend=trend,
            ))
        return tuple(result)

    def _top_performers(self, rows: Sequence[EntityVolumeSales], total_volume: float) -> TopPerformers:
        n = self.policy.top_performers
        floor = total_volume * self.policy.kilo_rate_min_volume_share
        rated = [r for r in rows if r.kilo_rate is not None and r.volume > floor]
        return TopPerformers(
            by_volume=tuple(sorted(rows, key=lambda r: r.volume, reverse=True)[:n]),
            by_sales=tuple(sorted(rows, key=lambda r: r.sales, reverse=True)[:n]),
            by_kilo_rate=tuple(sorted(rated, key=lambda r: r.kilo_rate, reverse=True)[:n]),
        )

    def _insights(
        self,
        variances: PortfolioVariances,
        rates: RateAnalysis,
        rows: Sequence[EntityVolumeSales]
    ) -> VolumeSalesInsights:
        volume_var = variances.volume_vs_budget or 0.0
        amount_var = variances.amount_vs_budget or 0.0
        gap = abs(volume_var - amount_var)

        rate_yoy = rates.kilo_rate_yoy
        if rate_yoy is not None and rate_yoy > self.policy.rate_trend_pct:
            trend = "improving"
        elif rate_yoy is not None and rate_yoy < -self.policy.rate_trend_pct:
            trend = "declining"
        else:
            trend = "stable"

        return VolumeSalesInsights(
            dominant_driver="volume" if abs(volume_var) > abs(amount_var) else "sales",
            kilo_rate_trend=trend,
            performance_gap=gap,
            has_significant_gap=gap > self.policy.significant_gap_pct,
            volume_advantage_count=sum(1 for r in rows if r.advantage == "volume"),
            sales_advantage_count=sum(1 for r in rows if r.advantage == "sales"),
        )
