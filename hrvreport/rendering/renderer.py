"""
renderer.py - Per-instance rendering with contained failures

AnalysisRenderer gathers the inputs an analysis kind depends on (filtered
intervals or store collections), calls the kind's render function for the
instance's mode and keeps the latest result per instance id. Chart figures
are owned by the injected ChartRegistry.
"""

import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

import pandas as pd
import matplotlib.pyplot as plt
from matplotlib.figure import Figure

from hrvreport.analysis_registry import AnalysisSpec, DataDependency, RenderMode, get_spec
from hrvreport.config import ReportConfig
from hrvreport.data_handler import Interval
from hrvreport.errors import RenderError, RenderErrorReason
from hrvreport.rendering import tables
from hrvreport.rendering.charts import ChartRegistry
from hrvreport.rendering.context import RenderContext, ReportSection
from hrvreport.storage.interfaces import RecordStore

logger = logging.getLogger(__name__)

NO_INTERVALS_MESSAGE = "No valid RR data available after exclusions for this analysis."
NO_RECORDS_MESSAGE = "No records"


class RenderStatus(Enum):
    OK = "ok"
    NO_DATA = "no_data"
    ERROR = "error"
    SUPERSEDED = "superseded"


@dataclass
class RenderResult:
    unique_id: str
    kind: str
    mode: RenderMode
    status: RenderStatus
    figure: Optional[Figure] = None
    table: Optional[pd.DataFrame] = None
    text: Optional[str] = None
    sections: List[ReportSection] = field(default_factory=list)
    message: Optional[str] = None
    reason: Optional[RenderErrorReason] = None
    data_revision: int = 0

    @property
    def ok(self) -> bool:
        return self.status == RenderStatus.OK


class AnalysisRenderer:
    """
    Renders analysis instances.

    Each call to render() for a uid takes a new generation token. When an
    older call finishes after a newer one has started, its figure is closed
    and it reports SUPERSEDED instead of replacing the newer result.
    """

    def __init__(
        self,
        charts: ChartRegistry,
        store: Optional[RecordStore] = None,
        config: Optional[ReportConfig] = None,
    ):
        self.charts = charts
        self.store = store
        self.config = config or ReportConfig()
        # Tokens come from one counter so a released uid never sees an old token again
        self._tokens = itertools.count(1)
        self._generations: Dict[str, int] = {}
        self._results: Dict[str, RenderResult] = {}

    async def render(
        self,
        instance,
        intervals: Sequence[Interval],
        data_revision: int = 0,
    ) -> RenderResult:
        """
        Render one analysis instance in its active mode.

        Args:
            instance: AnalysisInstance (unique_id, kind, mode)
            intervals: Current filtered view of the dataset
            data_revision: Dataset revision the filtered view belongs to

        Returns:
            RenderResult; never raises for render failures
        """
        uid = instance.unique_id
        generation = next(self._tokens)
        self._generations[uid] = generation

        # Previous output for this target is released before anything new is built
        self.charts.release(uid)

        spec = get_spec(instance.kind)
        mode = RenderMode(instance.mode)
        result = RenderResult(
            unique_id=uid,
            kind=spec.kind.value,
            mode=mode,
            status=RenderStatus.OK,
            data_revision=data_revision,
        )

        try:
            ctx = await self._build_context(spec, mode, uid, tuple(intervals))
            output = spec.renderer_for(mode)(ctx)
            self._attach(result, output)
        except RenderError as e:
            result.status = (
                RenderStatus.NO_DATA
                if e.reason is RenderErrorReason.NO_DATA
                else RenderStatus.ERROR
            )
            result.reason = e.reason
            result.message = e.message
        except Exception as e:
            logger.exception("Error rendering %s (%s)", uid, mode.value)
            result.status = RenderStatus.ERROR
            result.message = f"Error rendering content: {e}"

        if self._generations.get(uid) != generation:
            if result.figure is not None:
                plt.close(result.figure)
            logger.debug("Discarded superseded render of %s", uid)
            return RenderResult(
                unique_id=uid,
                kind=result.kind,
                mode=mode,
                status=RenderStatus.SUPERSEDED,
                data_revision=data_revision,
            )

        if result.figure is not None:
            self.charts.register(uid, result.figure)
        self._results[uid] = result
        return result

    def cached(self, unique_id: str) -> Optional[RenderResult]:
        return self._results.get(unique_id)

    @staticmethod
    def is_current(result: Optional[RenderResult], revision: int) -> bool:
        """Whether a result was computed from the given dataset revision"""
        return result is not None and result.data_revision == revision

    def release(self, unique_id: str) -> None:
        """Drop cached output and chart of an instance; pending renders become stale"""
        self.charts.release(unique_id)
        self._results.pop(unique_id, None)
        self._generations.pop(unique_id, None)

    def release_all(self) -> None:
        for uid in list(self._generations):
            self.release(uid)
        self.charts.release_all()

    async def _build_context(
        self,
        spec: AnalysisSpec,
        mode: RenderMode,
        uid: str,
        intervals: tuple,
    ) -> RenderContext:
        ctx = RenderContext(target_id=uid, config=self.config)

        if spec.needs_intervals:
            if not intervals:
                raise RenderError(RenderErrorReason.NO_DATA, NO_INTERVALS_MESSAGE)
            ctx.intervals = intervals
            return ctx

        # Interpretation texts of store-backed kinds do not read the store
        if mode is RenderMode.TEXT:
            return ctx

        if self.store is None:
            raise RenderError(
                RenderErrorReason.SOURCE_UNAVAILABLE, "No record store configured"
            )

        try:
            if spec.dependency is DataDependency.LIST:
                ctx.records = await self.store.get_all(spec.collection)
            else:
                ctx.profile = await self._fetch_profile()
                ctx.sections = await self._fetch_sections()
        except Exception as e:
            logger.error("Record store read failed for %s: %s", uid, e)
            raise RenderError(
                RenderErrorReason.SOURCE_UNAVAILABLE, f"Record store unavailable: {e}"
            ) from e

        if spec.dependency is DataDependency.LIST:
            if not ctx.records:
                raise RenderError(RenderErrorReason.NO_DATA, NO_RECORDS_MESSAGE)
            return ctx

        if ctx.profile is None and not any(ctx.sections.values()):
            raise RenderError(RenderErrorReason.NO_DATA, NO_RECORDS_MESSAGE)
        return ctx

    async def _fetch_profile(self) -> Optional[dict]:
        if self.config.user_id is not None:
            return await self.store.get("userProfile", self.config.user_id)
        profiles = await self.store.get_all("userProfile")
        return profiles[0] if profiles else None

    async def _fetch_sections(self) -> Dict[str, List[dict]]:
        limit = self.config.comprehensive_recent_limit
        sections: Dict[str, List[dict]] = {}
        for spec in tables.COMPREHENSIVE_SECTIONS:
            records = await self.store.get_all(spec.collection)
            if spec.key == "nutrition":
                programs = await self.store.get_all(tables.NUTRITION_PROGRAMS_COLLECTION)
                records = tables.join_nutrition_programs(records, programs)
            if spec.sort_field:
                records = tables.most_recent(records, spec.sort_field, limit)
            sections[spec.key] = records
        return sections

    @staticmethod
    def _attach(result: RenderResult, output) -> None:
        if isinstance(output, Figure):
            result.figure = output
        elif isinstance(output, pd.DataFrame):
            result.table = output
        elif isinstance(output, str):
            result.text = output
        else:
            result.sections = list(output)
