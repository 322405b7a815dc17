"""Performance analysis and optimization recommendations.

analyze_plan scores placements against per-channel benchmarks and emits
issues; generate_optimization_report turns each issue into a concrete
recommendation. Estimated impact is signed: positive values are savings
from waste, negative values are revenue upside from scaling.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import StrEnum

from planner.schemas import Placement, PlacementStatus

logger = logging.getLogger(__name__)

PLAN_LEVEL = "PLAN_LEVEL"


class Severity(StrEnum):
    CRITICAL = "CRITICAL"
    WARNING = "WARNING"
    INFO = "INFO"


class IssueType(StrEnum):
    PERFORMANCE = "PERFORMANCE"
    COST = "COST"
    BUDGET = "BUDGET"


class Priority(StrEnum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class RecommendedAction(StrEnum):
    PAUSE = "PAUSE"
    REDUCE_BUDGET = "REDUCE_BUDGET"
    INCREASE_BUDGET = "INCREASE_BUDGET"
    ADJUST_BID = "ADJUST_BID"
    DIVERSIFY = "DIVERSIFY"


@dataclass(frozen=True)
class Benchmark:
    cpa: float
    cpc: float
    cpm: float
    roas: float


CHANNEL_BENCHMARKS: dict[str, Benchmark] = {
    "Social": Benchmark(cpa=45, cpc=1.2, cpm=8.5, roas=2.5),
    "Display": Benchmark(cpa=65, cpc=2.5, cpm=12, roas=1.8),
    "Search": Benchmark(cpa=55, cpc=3.2, cpm=15, roas=3.0),
    "Video": Benchmark(cpa=75, cpc=0.8, cpm=18, roas=2.2),
    "CTV": Benchmark(cpa=85, cpc=0.5, cpm=25, roas=2.0),
    "Audio": Benchmark(cpa=70, cpc=1.5, cpm=20, roas=1.9),
    "TV": Benchmark(cpa=95, cpc=0.3, cpm=35, roas=1.5),
    "OOH": Benchmark(cpa=120, cpc=0.1, cpm=50, roas=1.2),
}
DEFAULT_BENCHMARK = Benchmark(cpa=60, cpc=2, cpm=15, roas=2)

_SEVERITY_ORDER = {Severity.CRITICAL: 0, Severity.WARNING: 1, Severity.INFO: 2}


@dataclass
class PerformanceIssue:
    severity: Severity
    type: IssueType
    placement_id: str
    placement_name: str
    message: str
    current_value: float
    benchmark: float
    recommendation: str
    estimated_waste: float = 0.0


@dataclass
class PlanAnalysis:
    overall_score: int
    issues: list[PerformanceIssue]
    critical_count: int
    warning_count: int
    info_count: int
    total_waste: float
    total_opportunity: float


@dataclass
class OptimizationRecommendation:
    priority: Priority
    action: RecommendedAction
    placement_id: str
    placement_name: str
    description: str
    current_metric: str
    target_metric: str
    estimated_impact: float
    specific_action: str


@dataclass
class OptimizationReport:
    analysis: PlanAnalysis
    recommendations: list[OptimizationRecommendation] = field(default_factory=list)
    total_savings: float = 0.0
    total_gains: float = 0.0
    quick_wins: list[OptimizationRecommendation] = field(default_factory=list)

    @property
    def net_impact(self) -> float:
        return self.total_savings + self.total_gains


def _money(amount: float) -> str:
    return f"{round(amount):,}"


def _thousands(amount: float) -> str:
    return f"${amount / 1000:.1f}k"


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------


def _placement_issues(placement: Placement) -> list[PerformanceIssue]:
    perf = placement.performance
    if perf is None or perf.status == PlacementStatus.PAUSED:
        return []

    bench = CHANNEL_BENCHMARKS.get(placement.channel, DEFAULT_BENCHMARK)
    cost = placement.total_cost
    issues: list[PerformanceIssue] = []

    def issue(severity, kind, message, value, benchmark, recommendation, waste=0.0):
        issues.append(
            PerformanceIssue(
                severity=severity,
                type=kind,
                placement_id=placement.id,
                placement_name=placement.name,
                message=message,
                current_value=value,
                benchmark=benchmark,
                recommendation=recommendation,
                estimated_waste=waste,
            )
        )

    roas = perf.roas
    if roas < 0.5:
        issue(
            Severity.CRITICAL, IssueType.PERFORMANCE,
            f"ROAS of {roas:.2f} is critically low (losing money)",
            roas, bench.roas, "Pause immediately to stop losses", cost * (1 - roas),
        )
    elif roas < 1.0:
        issue(
            Severity.WARNING, IssueType.PERFORMANCE,
            f"ROAS of {roas:.2f} is below break-even",
            roas, bench.roas, "Reduce budget by 50% or optimize targeting", cost * (1 - roas),
        )
    elif roas > 3.0:
        issue(
            Severity.INFO, IssueType.PERFORMANCE,
            f"ROAS of {roas:.2f} is excellent - scale opportunity",
            roas, bench.roas, "Increase budget by 50% to maximize returns", -cost * 0.5 * (roas - 1),
        )

    if perf.cpa > 0:
        ratio = perf.cpa / bench.cpa
        if ratio > 2:
            issue(
                Severity.CRITICAL, IssueType.COST,
                f"CPA of ${perf.cpa:.2f} is {ratio:.1f}x benchmark",
                perf.cpa, bench.cpa, "Reduce budget or pause", cost * 0.4,
            )
        elif ratio > 1.5:
            issue(
                Severity.WARNING, IssueType.COST,
                f"CPA of ${perf.cpa:.2f} is {ratio:.1f}x benchmark",
                perf.cpa, bench.cpa, "Lower bids or refine targeting", cost * 0.2,
            )

    if perf.clicks > 0:
        cpc = cost / perf.clicks
        if cpc > bench.cpc * 1.5:
            issue(
                Severity.WARNING, IssueType.COST,
                f"CPC of ${cpc:.2f} is {cpc / bench.cpc:.1f}x benchmark",
                cpc, bench.cpc, "Lower bids by 20-30%", cost * 0.15,
            )

    if perf.impressions > 0:
        cpm = cost / perf.impressions * 1000
        if cpm > bench.cpm * 1.5:
            issue(
                Severity.INFO, IssueType.COST,
                f"CPM of ${cpm:.2f} is {cpm / bench.cpm:.1f}x benchmark",
                cpm, bench.cpm, "Negotiate rates or test cheaper inventory", cost * 0.1,
            )

    return issues


def _concentration_issues(placements: list[Placement], total_budget: float) -> list[PerformanceIssue]:
    if total_budget <= 0:
        return []
    by_channel: dict[str, float] = defaultdict(float)
    for p in placements:
        by_channel[p.channel] += p.total_cost

    issues = []
    for channel, spend in by_channel.items():
        share = spend / total_budget * 100
        if share > 60:
            issues.append(
                PerformanceIssue(
                    severity=Severity.WARNING,
                    type=IssueType.BUDGET,
                    placement_id=PLAN_LEVEL,
                    placement_name=f"{channel} (channel)",
                    message=f"{share:.0f}% of budget concentrated in {channel}",
                    current_value=share,
                    benchmark=60,
                    recommendation="Diversify across more channels to reduce risk",
                )
            )
    return issues


def analyze_plan(placements: list[Placement], total_budget: float) -> PlanAnalysis:
    """Score the plan 0-100 and list issues, worst first.

    Score = 100 - 20 per critical - 10 per warning - 3 per info, floored at 0.
    Issues sort by severity, then by absolute estimated waste.
    """
    issues: list[PerformanceIssue] = []
    for placement in placements:
        issues.extend(_placement_issues(placement))
    issues.extend(_concentration_issues(placements, total_budget))

    issues.sort(key=lambda i: (_SEVERITY_ORDER[i.severity], -abs(i.estimated_waste)))

    critical = sum(1 for i in issues if i.severity == Severity.CRITICAL)
    warning = sum(1 for i in issues if i.severity == Severity.WARNING)
    info = sum(1 for i in issues if i.severity == Severity.INFO)

    return PlanAnalysis(
        overall_score=max(0, 100 - critical * 20 - warning * 10 - info * 3),
        issues=issues,
        critical_count=critical,
        warning_count=warning,
        info_count=info,
        total_waste=sum(i.estimated_waste for i in issues if i.estimated_waste > 0),
        total_opportunity=abs(sum(i.estimated_waste for i in issues if i.estimated_waste < 0)),
    )


def score_label(score: int) -> str:
    if score < 50:
        return "Needs Attention"
    if score < 70:
        return "Fair"
    if score < 85:
        return "Good"
    return "Excellent"


def get_analysis_summary(analysis: PlanAnalysis) -> str:
    parts = [f"Score: {analysis.overall_score}/100 ({score_label(analysis.overall_score)})"]
    if analysis.critical_count:
        parts.append(f"{analysis.critical_count} critical")
    if analysis.warning_count:
        parts.append(f"{analysis.warning_count} warnings")
    if analysis.total_waste > 0:
        parts.append(f"${_money(analysis.total_waste)} potential waste")
    if analysis.total_opportunity > 0:
        parts.append(f"${_money(analysis.total_opportunity)} growth opportunity")
    return " • ".join(parts)


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------


def _to_recommendation(
    issue: PerformanceIssue, by_id: dict[str, Placement]
) -> OptimizationRecommendation | None:
    placement = by_id.get(issue.placement_id)
    if placement is None and issue.placement_id != PLAN_LEVEL:
        return None

    def rec(priority, action, description, current, target, impact, specific):
        return OptimizationRecommendation(
            priority=priority,
            action=action,
            placement_id=issue.placement_id,
            placement_name=issue.placement_name,
            description=description,
            current_metric=current,
            target_metric=target,
            estimated_impact=impact,
            specific_action=specific,
        )

    value = issue.current_value
    if issue.type == IssueType.PERFORMANCE:
        if value < 0.5:
            return rec(
                Priority.HIGH, RecommendedAction.PAUSE,
                f"Pause placement due to critically low ROAS ({value:.2f})",
                f"ROAS: {value:.2f}", "Target: > 1.0", issue.estimated_waste,
                f'Pause "{issue.placement_name}" immediately to stop losses',
            )
        if value < 1.0:
            cost = placement.total_cost if placement else 0.0
            return rec(
                Priority.HIGH, RecommendedAction.REDUCE_BUDGET,
                "Reduce budget by 50% due to below break-even ROAS",
                f"ROAS: {value:.2f}", "Target: > 1.0", issue.estimated_waste * 0.5,
                f"Reduce budget from {_thousands(cost)} to {_thousands(cost * 0.5)}"
                if placement else "Reduce budget by 50%",
            )
        if value > 3.0:
            cost = placement.total_cost if placement else 0.0
            return rec(
                Priority.MEDIUM, RecommendedAction.INCREASE_BUDGET,
                f"Scale high-performing placement (ROAS {value:.2f})",
                f"ROAS: {value:.2f}", "Budget: +50%", issue.estimated_waste,
                f"Increase budget from {_thousands(cost)} to {_thousands(cost * 1.5)}"
                if placement else "Increase budget by 50%",
            )
        return None

    if issue.type == IssueType.COST:
        if value > issue.benchmark * 2:
            cost = placement.total_cost if placement else 0.0
            return rec(
                Priority.HIGH, RecommendedAction.REDUCE_BUDGET,
                "Reduce budget by 40% due to high costs",
                issue.message, f"Target CPA: ${issue.benchmark:.2f}", issue.estimated_waste,
                f"Reduce budget from {_thousands(cost)} to {_thousands(cost * 0.6)}"
                if placement else "Reduce budget by 40%",
            )
        return rec(
            Priority.MEDIUM,
            RecommendedAction.ADJUST_BID,
            "Lower bids to improve cost efficiency",
            issue.message, f"Target: ${issue.benchmark:.2f}", issue.estimated_waste * 0.3,
            "Lower bid by 20-30% and monitor performance",
        )

    return rec(
        Priority.MEDIUM, RecommendedAction.DIVERSIFY, issue.message,
        f"Concentration: {value:.0f}%", "Target: < 50%", 0.0,
        "Allocate 10-20% budget to complementary channels",
    )


def generate_optimization_report(placements: list[Placement], total_budget: float) -> OptimizationReport:
    """Recommendations ordered by absolute impact, plus quick wins and totals.

    Quick wins are high or medium priority pause, budget-cut actions worth
    more than $1,000.
    """
    analysis = analyze_plan(placements, total_budget)
    by_id = {p.id: p for p in placements}

    recommendations = [
        r for r in (_to_recommendation(i, by_id) for i in analysis.issues) if r is not None
    ]
    recommendations.sort(key=lambda r: abs(r.estimated_impact), reverse=True)

    quick_wins = [
        r
        for r in recommendations
        if r.priority in (Priority.HIGH, Priority.MEDIUM)
        and abs(r.estimated_impact) > 1000
        and r.action in (RecommendedAction.PAUSE, RecommendedAction.REDUCE_BUDGET)
    ]

    report = OptimizationReport(
        analysis=analysis,
        recommendations=recommendations,
        total_savings=sum(r.estimated_impact for r in recommendations if r.estimated_impact > 0),
        total_gains=abs(sum(r.estimated_impact for r in recommendations if r.estimated_impact < 0)),
        quick_wins=quick_wins,
    )
    logger.debug(
        "Optimization report: score=%d recs=%d quick_wins=%d",
        analysis.overall_score,
        len(recommendations),
        len(quick_wins),
    )
    return report


def _impact_text(amount: float) -> str:
    return f"Save ${_money(amount)}" if amount > 0 else f"Gain ${_money(abs(amount))}"


def format_optimization_report(report: OptimizationReport, placements: list[Placement] | None = None) -> str:
    analysis = report.analysis
    lines = [
        "**Plan Optimization Report**",
        "",
        f"**Overall Score:** {analysis.overall_score}/100 {score_label(analysis.overall_score)}",
        "",
    ]

    if placements:
        groups: dict[str, list[Placement]] = defaultdict(list)
        for p in placements:
            groups[p.channel or "Unknown"].append(p)
        lines.append("**Channel Breakdown:**")
        ordered = sorted(groups.items(), key=lambda kv: sum(p.total_cost for p in kv[1]), reverse=True)
        for channel, group in ordered:
            spend = sum(p.total_cost for p in group)
            with_roas = [p.performance.roas for p in group if p.performance and p.performance.roas]
            avg_roas = sum(with_roas) / len(with_roas) if with_roas else None
            roas_text = f" | ROAS: {avg_roas:.2f}" if avg_roas is not None else ""
            arrow = ""
            if avg_roas is not None:
                arrow = " ↑" if avg_roas >= 3.0 else " ↓" if avg_roas < 1.0 else ""
            lines.append(f"\n**{channel}** (${_money(spend)}{roas_text}){arrow}")
            for p in group:
                marker = ""
                metrics = ""
                if p.performance:
                    if p.is_paused:
                        marker = " [PAUSED]"
                    elif p.performance.roas >= 3.0:
                        marker = " ★"
                    elif p.performance.roas < 1.0:
                        marker = " !"
                    metrics = f" | ROAS: {p.performance.roas:.2f} | CTR: {p.performance.ctr * 100:.2f}%"
                lines.append(f"  • {p.vendor}: ${_money(p.total_cost)}{metrics}{marker}")
        lines.append("")

    critical = [r for r in report.recommendations if r.priority == Priority.HIGH]
    if critical:
        lines.append(f"**Critical Issues ({len(critical)}):**")
        for r in critical[:3]:
            lines.append(f"• {r.placement_name}: {r.description}")
            lines.append(f"  {r.current_metric} → {r.specific_action}")
            lines.append(f"  {_impact_text(r.estimated_impact)}\n")
        if len(critical) > 3:
            lines.append(f"  _...and {len(critical) - 3} more critical issues_\n")

    opportunities = [r for r in report.recommendations if r.estimated_impact < 0]
    if opportunities:
        lines.append(f"**Growth Opportunities ({len(opportunities)}):**")
        for r in opportunities[:2]:
            lines.append(f"• {r.placement_name}: {r.description}")
            lines.append(f"  {r.current_metric} → {r.specific_action}")
            lines.append(f"  Potential gain: ${_money(abs(r.estimated_impact))}\n")

    lines.append("**Total Impact:**")
    if report.total_savings > 0:
        lines.append(f"• Save: ${_money(report.total_savings)} from waste reduction")
    if report.total_gains > 0:
        lines.append(f"• Gain: ${_money(report.total_gains)} from scaling winners")
    if report.net_impact > 0:
        lines.append(f"• **Net Impact: +${_money(report.net_impact)}**")

    if report.quick_wins:
        count = len(report.quick_wins)
        lines.append(f"\n{count} quick win{'s' if count > 1 else ''} available - easy actions with high impact")

    return "\n".join(lines)
