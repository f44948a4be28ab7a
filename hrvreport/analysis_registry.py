"""
analysis_registry.py - Catalog of analysis kinds

Each kind carries its title, data dependency and one render function per
mode. Render functions take a RenderContext and return one of:
    matplotlib Figure       (graph artifacts)
    pandas DataFrame        (tables)
    list of ReportSection   (multi-section reports)
    str                     (interpretation text)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Union

import pandas as pd
from matplotlib.figure import Figure

from hrvreport.metrics.time_domain import calculate_metrics, successive_differences
from hrvreport.rendering import plots, tables, texts
from hrvreport.rendering.context import RenderContext, ReportSection


class AnalysisKind(str, Enum):
    POINCARE = "poincare"
    HISTOGRAM = "histogram"
    HR_HISTOGRAM = "hr_histogram"
    TIME_SERIES = "time_series"
    HR_TIME_SERIES = "hr_time_series"
    SUCCESSIVE_DIFF_HISTOGRAM = "successive_diff_histogram"
    GENERAL_SUMMARY = "general_summary"
    ALL_RR_DATA_VIEW = "all_rr_data_view"
    COMPREHENSIVE_USER_REPORT = "comprehensive_user_report"
    ALL_USER_SETTINGS_REPORT = "all_user_settings_report"
    ALL_MEMBERS_REPORT = "all_members_report"
    ALL_SUBSCRIPTIONS_REPORT = "all_subscriptions_report"
    ALL_FINANCIALS_REPORT = "all_financials_report"


class DataDependency(str, Enum):
    HRV = "hrv"
    HRV_RAW = "hrv_raw"
    LIST = "indexedDB_list"
    COMPREHENSIVE = "comprehensive"


class RenderMode(str, Enum):
    GRAPH = "graph"
    TABLE = "table"
    TEXT = "text"


RenderOutput = Union[Figure, pd.DataFrame, List[ReportSection], str]
RenderFunction = Callable[[RenderContext], RenderOutput]


@dataclass(frozen=True)
class AnalysisSpec:
    kind: AnalysisKind
    title: str
    dependency: DataDependency
    render_graph: RenderFunction
    render_table: RenderFunction
    render_text: RenderFunction
    unique_global: bool = False
    collection: Optional[str] = None

    @property
    def needs_intervals(self) -> bool:
        return self.dependency in (DataDependency.HRV, DataDependency.HRV_RAW)

    @property
    def default_mode(self) -> RenderMode:
        if self.dependency in (DataDependency.LIST, DataDependency.COMPREHENSIVE):
            return RenderMode.TABLE
        return RenderMode.GRAPH

    def renderer_for(self, mode: Union[RenderMode, str]) -> RenderFunction:
        mode = RenderMode(mode)
        if mode is RenderMode.GRAPH:
            return self.render_graph
        if mode is RenderMode.TABLE:
            return self.render_table
        return self.render_text


# =========================
# Render helpers
# =========================


def _summary_frame(ctx: RenderContext):
    return tables.summary_table(calculate_metrics(ctx.values))


def _list_table(columns):
    def render(ctx: RenderContext):
        return tables.record_table(ctx.records, columns)

    return render


def _list_graph(columns, title):
    def render(ctx: RenderContext):
        return plots.table_figure(tables.record_table(ctx.records, columns), title)

    return render


def _text(key: str):
    def render(ctx: RenderContext) -> str:
        return texts.interpretation_text(key)

    return render


def comprehensive_sections(ctx: RenderContext) -> List[ReportSection]:
    """
    Profile section followed by each data section; empty sections keep
    their heading with a 'No ... data available.' line.
    """
    profile = [ctx.profile] if ctx.profile else []
    sections = [
        _section(
            "User Profile & Biometrics",
            tables.record_table(profile, tables.USER_PROFILE_COLUMNS),
            "user_profile_interpretation",
        )
    ]

    grouped_done = set()
    for spec in tables.COMPREHENSIVE_SECTIONS:
        frame = tables.record_table(ctx.sections.get(spec.key, []), spec.columns)
        if spec.group is None:
            sections.append(_section(spec.title, frame, spec.interpretation))
            continue

        if spec.group not in grouped_done:
            grouped_done.add(spec.group)
            members = [s for s in tables.COMPREHENSIVE_SECTIONS if s.group == spec.group]
            has_any = any(ctx.sections.get(s.key) for s in members)
            sections.append(
                ReportSection(
                    title=spec.group,
                    table=None,
                    text=texts.interpretation_text(spec.interpretation)
                    if has_any
                    else f"No {spec.group.lower()} data available.",
                )
            )
        if not frame.empty:
            sections.append(ReportSection(title=spec.title, table=frame, level=2))

    for number, section in enumerate(s for s in sections if s.level == 1):
        section.title = f"{number + 1}. {section.title}"
    return sections


def _section(title: str, frame, interpretation: str) -> ReportSection:
    if frame.empty:
        return ReportSection(title=title, table=None, text=f"No {title.lower()} data available.")
    return ReportSection(title=title, table=frame, text=texts.interpretation_text(interpretation))


ANALYSIS_REGISTRY: Dict[AnalysisKind, AnalysisSpec] = {
    spec.kind: spec
    for spec in (
        AnalysisSpec(
            kind=AnalysisKind.POINCARE,
            title="Poincaré Plot",
            dependency=DataDependency.HRV,
            render_graph=lambda ctx: plots.poincare_figure(ctx.values),
            render_table=lambda ctx: tables.poincare_table(ctx.values),
            render_text=lambda ctx: texts.poincare_text(),
        ),
        AnalysisSpec(
            kind=AnalysisKind.HISTOGRAM,
            title="RR Interval Histogram",
            dependency=DataDependency.HRV,
            render_graph=lambda ctx: plots.histogram_figure(
                ctx.values, "RR Interval (ms)", "RR Interval Histogram",
                rule=ctx.config.histogram_rule,
            ),
            render_table=lambda ctx: tables.histogram_table(
                ctx.values, "RR Interval (ms)", rule=ctx.config.histogram_rule
            ),
            render_text=lambda ctx: texts.histogram_text("RR Interval"),
        ),
        AnalysisSpec(
            kind=AnalysisKind.HR_HISTOGRAM,
            title="Heart Rate Histogram",
            dependency=DataDependency.HRV,
            render_graph=lambda ctx: plots.histogram_figure(
                ctx.heart_rates, "Heart Rate (BPM)", "Heart Rate Histogram",
                rule=ctx.config.histogram_rule, color="red",
            ),
            render_table=lambda ctx: tables.histogram_table(
                ctx.heart_rates, "Heart Rate (BPM)", rule=ctx.config.histogram_rule
            ),
            render_text=lambda ctx: texts.histogram_text("Heart Rate"),
        ),
        AnalysisSpec(
            kind=AnalysisKind.TIME_SERIES,
            title="RR Interval Time Series",
            dependency=DataDependency.HRV,
            render_graph=lambda ctx: plots.time_series_figure(
                ctx.values, ctx.timestamps, "RR Interval (ms)", "RR Interval Time Series"
            ),
            render_table=lambda ctx: tables.time_series_table(
                ctx.values, ctx.timestamps, "RR Interval (ms)"
            ),
            render_text=lambda ctx: texts.time_series_text("RR Interval"),
        ),
        AnalysisSpec(
            kind=AnalysisKind.HR_TIME_SERIES,
            title="Heart Rate Time Series",
            dependency=DataDependency.HRV,
            render_graph=lambda ctx: plots.time_series_figure(
                ctx.heart_rates, ctx.timestamps, "Heart Rate (BPM)",
                "Heart Rate Time Series", color="r",
            ),
            render_table=lambda ctx: tables.time_series_table(
                ctx.heart_rates, ctx.timestamps, "Heart Rate (BPM)"
            ),
            render_text=lambda ctx: texts.time_series_text("Heart Rate"),
        ),
        AnalysisSpec(
            kind=AnalysisKind.SUCCESSIVE_DIFF_HISTOGRAM,
            title="Successive Differences Histogram",
            dependency=DataDependency.HRV,
            render_graph=lambda ctx: plots.histogram_figure(
                successive_differences(ctx.values),
                "RRn+1 - RRn (ms)",
                "Successive Differences Histogram",
                rule=ctx.config.histogram_rule,
                color="purple",
            ),
            render_table=lambda ctx: tables.successive_diff_table(
                ctx.values, rule=ctx.config.histogram_rule
            ),
            render_text=lambda ctx: texts.successive_diff_text(),
        ),
        AnalysisSpec(
            kind=AnalysisKind.GENERAL_SUMMARY,
            title="General Summary Statistics",
            dependency=DataDependency.HRV,
            render_graph=lambda ctx: plots.table_figure(
                _summary_frame(ctx), "General Summary Statistics"
            ),
            render_table=_summary_frame,
            render_text=lambda ctx: texts.general_summary_text(),
        ),
        AnalysisSpec(
            kind=AnalysisKind.ALL_RR_DATA_VIEW,
            title="All RR Data (Raw)",
            dependency=DataDependency.HRV_RAW,
            render_graph=lambda ctx: plots.table_figure(
                tables.raw_table(ctx.intervals), "All RR Data (Raw)"
            ),
            render_table=lambda ctx: tables.raw_table(ctx.intervals),
            render_text=lambda ctx: texts.raw_data_text(),
        ),
        AnalysisSpec(
            kind=AnalysisKind.COMPREHENSIVE_USER_REPORT,
            title="Comprehensive User Report",
            dependency=DataDependency.COMPREHENSIVE,
            render_graph=comprehensive_sections,
            render_table=comprehensive_sections,
            render_text=_text("comprehensive_user_report"),
            unique_global=True,
        ),
        AnalysisSpec(
            kind=AnalysisKind.ALL_USER_SETTINGS_REPORT,
            title="All User Settings",
            dependency=DataDependency.LIST,
            render_graph=_list_graph(tables.USER_PROFILE_COLUMNS, "All User Settings"),
            render_table=_list_table(tables.USER_PROFILE_COLUMNS),
            render_text=_text("all_user_settings_text"),
            unique_global=True,
            collection="userProfile",
        ),
        AnalysisSpec(
            kind=AnalysisKind.ALL_MEMBERS_REPORT,
            title="All Members",
            dependency=DataDependency.LIST,
            render_graph=_list_graph(tables.MEMBER_COLUMNS, "All Members"),
            render_table=_list_table(tables.MEMBER_COLUMNS),
            render_text=_text("all_members_text"),
            unique_global=True,
            collection="memberData",
        ),
        AnalysisSpec(
            kind=AnalysisKind.ALL_SUBSCRIPTIONS_REPORT,
            title="All Subscriptions",
            dependency=DataDependency.LIST,
            render_graph=_list_graph(tables.SUBSCRIPTION_COLUMNS, "All Subscriptions"),
            render_table=_list_table(tables.SUBSCRIPTION_COLUMNS),
            render_text=_text("all_subscriptions_text"),
            unique_global=True,
            collection="subscriptions",
        ),
        AnalysisSpec(
            kind=AnalysisKind.ALL_FINANCIALS_REPORT,
            title="All Financials",
            dependency=DataDependency.LIST,
            render_graph=_list_graph(tables.FINANCE_COLUMNS, "All Financials"),
            render_table=_list_table(tables.FINANCE_COLUMNS),
            render_text=_text("all_financials_text"),
            unique_global=True,
            collection="finance",
        ),
    )
}


def get_spec(kind: Union[AnalysisKind, str]) -> AnalysisSpec:
    """
    Look up a registry entry.

    Raises:
        KeyError: For names that are not registered analysis kinds
    """
    try:
        return ANALYSIS_REGISTRY[AnalysisKind(kind)]
    except ValueError:
        raise KeyError(f"Unknown analysis kind: {kind!r}") from None


def is_known_kind(kind: str) -> bool:
    try:
        AnalysisKind(kind)
    except ValueError:
        return False
    return True
