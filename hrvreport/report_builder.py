"""
report_builder.py - Facade used by host applications

Wires the interval dataset, report composition, session loader and
renderer to a record store and a notification sink. Load and add failures
become notifications and leave the last-good state in place; every
successful mutation is persisted as one put of the full record.
"""

import asyncio
import logging
from datetime import datetime
from typing import List, Optional, Sequence, Union

from hrvreport.analysis_registry import AnalysisKind, RenderMode, get_spec
from hrvreport.config import ReportConfig
from hrvreport.data_handler import IntervalDataset, ParseOutcome
from hrvreport.errors import AddError, LoadError, LoadErrorReason
from hrvreport.notifications import LoggingNotifier, Notifier, Severity, safe_notify
from hrvreport.rendering.charts import ChartRegistry
from hrvreport.rendering.renderer import AnalysisRenderer, RenderResult
from hrvreport.report_model import AnalysisInstance, ReportComposition
from hrvreport.session_loader import HistoricalSessionLoader, SessionSummary
from hrvreport.storage.interfaces import KEY_FIELD, RecordKey, RecordStore

logger = logging.getLogger(__name__)

LAST_PAGE_WARNING = "Cannot remove the last page. A report must have at least one page."


class ReportBuilder:
    def __init__(
        self,
        store: RecordStore,
        notifier: Optional[Notifier] = None,
        config: Optional[ReportConfig] = None,
        charts: Optional[ChartRegistry] = None,
    ):
        self.store = store
        self.notifier = notifier or LoggingNotifier()
        self.config = config or ReportConfig()
        self.charts = charts or ChartRegistry()

        self.dataset = IntervalDataset(step_ms=self.config.synthetic_step_ms)
        self.report = ReportComposition(orientation=self.config.page_orientation)
        self.sessions = HistoricalSessionLoader(store, self.config)
        self.renderer = AnalysisRenderer(self.charts, store, self.config)

        self._load_lock = asyncio.Lock()

    # =========================
    # Notifications & persistence
    # =========================

    def _notify(self, message: str, severity: Severity = Severity.INFO) -> None:
        safe_notify(self.notifier, message, severity, self.config.notification_duration_ms)

    async def _put_state(self, key: str, record: dict, what: str) -> bool:
        try:
            await self.store.put(self.config.state_collection, {KEY_FIELD: key, **record})
            return True
        except Exception as e:
            logger.error("Failed to persist %s: %s", what, e)
            self._notify(f"Failed to save {what}.", Severity.ERROR)
            return False

    async def _persist_report(self) -> bool:
        return await self._put_state(self.config.report_key, self.report.to_record(), "report layout")

    async def _persist_dataset(self) -> bool:
        return await self._put_state(self.config.dataset_key, self.dataset.to_record(), "RR data")

    async def restore(self) -> None:
        """Restore the persisted report and interval state, each independently."""
        collection = self.config.state_collection
        try:
            record = await self.store.get(collection, self.config.report_key)
            self.report = ReportComposition.from_record(record, orientation=self.config.page_orientation)
        except Exception as e:
            logger.error("Could not restore report layout: %s", e)
            self.report = ReportComposition(orientation=self.config.page_orientation)
            self._notify("Saved report layout could not be restored.", Severity.WARNING)

        try:
            record = await self.store.get(collection, self.config.dataset_key)
            self.dataset = IntervalDataset.from_record(record, step_ms=self.config.synthetic_step_ms)
        except Exception as e:
            logger.error("Could not restore RR data: %s", e)
            self.dataset.clear()
            self._notify("Saved RR data could not be restored.", Severity.WARNING)

        logger.info(
            "Restored %d page(s) and %d RR intervals",
            self.report.page_count,
            len(self.dataset),
        )

    # =========================
    # Dataset
    # =========================

    async def load_text(self, raw_text: str, now: Optional[datetime] = None) -> Optional[int]:
        """
        Replace the dataset with an uploaded text.

        Returns:
            Number of intervals loaded, or None on failure (dataset unchanged)
        """
        async with self._load_lock:
            try:
                outcome = self.dataset.load(raw_text, now=now)
            except LoadError as e:
                self._notify(e.message, Severity.ERROR)
                return None
            return await self._after_load(outcome, f"Loaded {len(outcome.intervals)} RR intervals.")

    async def load_file(self, path: str, now: Optional[datetime] = None) -> Optional[int]:
        async with self._load_lock:
            try:
                outcome = self.dataset.load_file(path, now=now)
            except LoadError as e:
                self._notify(e.message, Severity.ERROR)
                return None
            return await self._after_load(outcome, f"Loaded {len(outcome.intervals)} RR intervals.")

    async def load_session(
        self, collection: str, session_id: RecordKey, now: Optional[datetime] = None
    ) -> Optional[int]:
        async with self._load_lock:
            try:
                values, timestamps = await self.sessions.fetch_session_intervals(collection, session_id)
                outcome = self.dataset.load_values(values, timestamps, now=now)
            except LoadError as e:
                severity = (
                    Severity.WARNING
                    if e.reason is LoadErrorReason.NO_INTERVAL_DATA
                    else Severity.ERROR
                )
                self._notify(e.message, severity)
                return None
            except Exception as e:
                logger.error("Error loading historical session %s|%s: %s", collection, session_id, e)
                self._notify("Failed to load historical session data.", Severity.ERROR)
                return None
            return await self._after_load(
                outcome,
                f"Loaded {len(outcome.intervals)} RR intervals from historical session.",
            )

    async def _after_load(self, outcome: ParseOutcome, message: str) -> int:
        if outcome.timestamps_synthesized:
            self._notify(
                "No timestamps found. Timestamps were synthesized at "
                f"{self.config.synthetic_step_ms / 1000:g} second intervals.",
                Severity.INFO,
            )
        if outcome.skipped_lines:
            self._notify(f"Skipped {outcome.skipped_lines} invalid entries.", Severity.INFO)
        await self._persist_dataset()
        self._notify(message, Severity.SUCCESS)
        return len(outcome.intervals)

    async def list_sessions(self) -> List[SessionSummary]:
        try:
            return await self.sessions.list_available_sessions()
        except Exception as e:
            logger.error("Error listing historical sessions: %s", e)
            self._notify("Failed to load historical measurement sessions.", Severity.ERROR)
            return []

    async def toggle_exclusion(self, original_index: int) -> bool:
        if not self.dataset.toggle_exclusion(original_index):
            logger.warning("Ignoring exclusion toggle for unknown index %s", original_index)
            return False
        await self._persist_dataset()
        return True

    async def reset_exclusions(self) -> None:
        self.dataset.reset_exclusions()
        await self._persist_dataset()

    async def clear_dataset(self) -> None:
        async with self._load_lock:
            self.dataset.clear()
            try:
                await self.store.delete(self.config.state_collection, self.config.dataset_key)
            except Exception as e:
                logger.error("Failed to delete persisted RR data: %s", e)
            self._notify("Cleared current RR data.", Severity.INFO)

    # =========================
    # Report composition
    # =========================

    async def add_analysis(self, kind: Union[AnalysisKind, str]) -> Optional[AnalysisInstance]:
        try:
            instance = self.report.add_analysis(kind, data_available=not self.dataset.is_empty)
        except AddError as e:
            self._notify(e.message, Severity.WARNING)
            return None
        except KeyError as e:
            self._notify(str(e.args[0]), Severity.ERROR)
            return None
        await self._persist_report()
        self._notify(
            f"Added '{get_spec(instance.kind).title}' to page {self.report.current_page + 1}.",
            Severity.SUCCESS,
        )
        return instance

    async def remove_analysis(self, unique_id: str) -> bool:
        location = self.report.find(unique_id)
        removed = self.report.remove_analysis(unique_id)
        if removed is None:
            return False
        self.renderer.release(unique_id)
        await self._persist_report()
        self._notify(
            f"Removed '{get_spec(removed.kind).title}' from page {location[0] + 1}.",
            Severity.INFO,
        )
        return True

    async def reorder_within_page(self, page_index: int, new_order: Sequence[str]) -> bool:
        if not self.report.reorder_within_page(page_index, new_order):
            logger.warning("Rejected reorder of page %s: %s", page_index, list(new_order))
            return False
        await self._persist_report()
        return True

    async def move_analysis(self, unique_id: str, target_page: int, position: Optional[int] = None) -> bool:
        if not self.report.move_analysis(unique_id, target_page, position):
            instance = self.report.get(unique_id)
            if instance is not None and 0 <= target_page < self.report.page_count:
                self._notify(
                    f"'{get_spec(instance.kind).title}' is already on page {target_page + 1}.",
                    Severity.WARNING,
                )
            return False
        await self._persist_report()
        return True

    async def add_page(self) -> int:
        index = self.report.add_page()
        await self._persist_report()
        return index

    async def remove_page(self, page_index: int) -> bool:
        if self.report.page_count <= 1:
            self._notify(LAST_PAGE_WARNING, Severity.WARNING)
            return False
        removed = self.report.remove_page(page_index)
        if removed is None:
            return False
        for instance in removed:
            self.renderer.release(instance.unique_id)
        await self._persist_report()
        return True

    async def navigate(self, delta: int) -> int:
        before = self.report.current_page
        after = self.report.navigate(delta)
        if after != before:
            await self._persist_report()
        return after

    async def set_render_mode(self, unique_id: str, mode: Union[RenderMode, str]) -> Optional[RenderResult]:
        """Switch an instance's mode, persist, and re-render that instance only."""
        if not self.report.set_render_mode(unique_id, mode):
            return None
        await self._persist_report()
        return await self.render_instance(unique_id)

    async def set_orientation(self, orientation: str) -> bool:
        if not self.report.set_orientation(orientation):
            self._notify(f"Unknown page orientation: {orientation}", Severity.ERROR)
            return False
        await self._persist_report()
        return True

    # =========================
    # Rendering
    # =========================

    async def render_instance(self, unique_id: str) -> Optional[RenderResult]:
        instance = self.report.get(unique_id)
        if instance is None:
            return None
        return await self.renderer.render(
            instance, self.dataset.filtered_view(), self.dataset.revision
        )

    async def render_page(self, page_index: int) -> List[RenderResult]:
        """Render every instance on a page; failures stay per instance."""
        filtered = self.dataset.filtered_view()
        revision = self.dataset.revision
        return [
            await self.renderer.render(instance, filtered, revision)
            for instance in self.report.page(page_index)
        ]

    async def render_current_page(self) -> List[RenderResult]:
        return await self.render_page(self.report.current_page)

    async def render_all_pages(self) -> List[List[RenderResult]]:
        return [await self.render_page(i) for i in range(self.report.page_count)]

    def is_stale(self, result: Optional[RenderResult]) -> bool:
        """Whether a result predates the latest dataset change"""
        return not self.renderer.is_current(result, self.dataset.revision)

    def close(self) -> None:
        """Release every live chart."""
        self.renderer.release_all()
