"""Numeric engines consumed by command handlers.

Public API:
    analyze_plan, get_analysis_summary      - benchmark scoring of placements
    generate_optimization_report            - issues turned into recommendations
    forecast_campaign, format_forecast_result - percentile delivery forecast
    recommend_budget_allocation             - objective-weighted channel split
"""

from planner.engines.allocation import BudgetRecommendation, recommend_budget_allocation
from planner.engines.forecast import (
    ForecastResult,
    calculate_audience_overlap,
    forecast_campaign,
    format_forecast_result,
)
from planner.engines.optimization import (
    OptimizationReport,
    PlanAnalysis,
    analyze_plan,
    format_optimization_report,
    generate_optimization_report,
    get_analysis_summary,
)

__all__ = [
    "BudgetRecommendation",
    "ForecastResult",
    "OptimizationReport",
    "PlanAnalysis",
    "analyze_plan",
    "calculate_audience_overlap",
    "forecast_campaign",
    "format_forecast_result",
    "format_optimization_report",
    "generate_optimization_report",
    "get_analysis_summary",
    "recommend_budget_allocation",
]
