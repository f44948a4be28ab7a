"""
report_model.py - Multi-page report composition

Pages hold ordered AnalysisInstance objects. All operations mutate the
composition in place and leave it unchanged on failure; persistence and
chart release are left to the caller (ReportBuilder).
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from hrvreport.analysis_registry import (
    AnalysisKind,
    RenderMode,
    get_spec,
    is_known_kind,
)
from hrvreport.config import ORIENTATIONS
from hrvreport.errors import AddError, AddErrorReason

logger = logging.getLogger(__name__)

RECORD_VERSION = 2


@dataclass
class AnalysisInstance:
    unique_id: str
    kind: AnalysisKind
    mode: RenderMode

    def to_dict(self) -> Dict[str, str]:
        return {"uniqueId": self.unique_id, "kind": self.kind.value, "mode": self.mode.value}


def _split_unique_id(unique_id: str) -> Tuple[str, Optional[int]]:
    """'hr_histogram-12' -> ('hr_histogram', 12)"""
    kind, sep, suffix = unique_id.rpartition("-")
    if not sep:
        return unique_id, None
    try:
        return kind, int(suffix)
    except ValueError:
        return kind, None


class ReportComposition:
    """
    Ordered pages of analysis instances plus a current-page cursor.

    Invariants: at least one page exists; every unique id appears on
    exactly one page; the counter is never below any id suffix in use.
    """

    def __init__(self, orientation: str = "portrait"):
        self.pages: List[List[AnalysisInstance]] = [[]]
        self.current_page = 0
        self.counter = 0
        # Mode chosen per live instance id, dropped with the instance
        self.mode_preferences: Dict[str, RenderMode] = {}
        self.orientation = orientation

    # ---- queries ----

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def page(self, index: int) -> List[AnalysisInstance]:
        return list(self.pages[index])

    def instances(self) -> List[AnalysisInstance]:
        return [inst for page in self.pages for inst in page]

    def find(self, unique_id: str) -> Optional[Tuple[int, int]]:
        """(page_index, position) of an instance, or None"""
        for page_index, page in enumerate(self.pages):
            for position, inst in enumerate(page):
                if inst.unique_id == unique_id:
                    return page_index, position
        return None

    def get(self, unique_id: str) -> Optional[AnalysisInstance]:
        location = self.find(unique_id)
        if location is None:
            return None
        return self.pages[location[0]][location[1]]

    def contains_kind(self, kind: Union[AnalysisKind, str], page_index: Optional[int] = None) -> bool:
        kind = AnalysisKind(kind)
        pages = self.pages if page_index is None else [self.pages[page_index]]
        return any(inst.kind == kind for page in pages for inst in page)

    # ---- mutations ----

    def add_analysis(self, kind: Union[AnalysisKind, str], data_available: bool) -> AnalysisInstance:
        """
        Append a new instance of `kind` to the current page.

        Args:
            kind: Analysis kind
            data_available: Whether the interval dataset currently holds data

        Returns:
            The new AnalysisInstance

        Raises:
            AddError: DATA_UNAVAILABLE, ALREADY_PRESENT_GLOBALLY or
                ALREADY_PRESENT_ON_PAGE; the composition is unchanged
            KeyError: If kind is not a registered analysis kind
        """
        spec = get_spec(kind)

        if spec.needs_intervals and not data_available:
            raise AddError(
                AddErrorReason.DATA_UNAVAILABLE,
                f"Please load RR data before adding '{spec.title}'.",
            )
        if spec.unique_global and self.contains_kind(spec.kind):
            raise AddError(
                AddErrorReason.ALREADY_PRESENT_GLOBALLY,
                f"'{spec.title}' can only be added once to the report.",
            )
        if self.contains_kind(spec.kind, self.current_page):
            raise AddError(
                AddErrorReason.ALREADY_PRESENT_ON_PAGE,
                f"'{spec.title}' is already on this page.",
            )

        self.counter += 1
        unique_id = f"{spec.kind.value}-{self.counter}"
        mode = self.mode_preferences.get(unique_id, spec.default_mode)
        instance = AnalysisInstance(unique_id=unique_id, kind=spec.kind, mode=mode)
        self.pages[self.current_page].append(instance)
        return instance

    def remove_analysis(self, unique_id: str) -> Optional[AnalysisInstance]:
        location = self.find(unique_id)
        if location is None:
            return None
        page_index, position = location
        self.mode_preferences.pop(unique_id, None)
        return self.pages[page_index].pop(position)

    def reorder_within_page(self, page_index: int, new_order: Sequence[str]) -> bool:
        """
        Replace the order of one page.

        new_order must be a permutation of the unique ids currently on that
        page; anything else (including ids from other pages) is rejected.
        """
        if not 0 <= page_index < len(self.pages):
            return False
        page = self.pages[page_index]
        by_id = {inst.unique_id: inst for inst in page}
        if len(new_order) != len(page) or set(new_order) != set(by_id):
            return False
        self.pages[page_index] = [by_id[uid] for uid in new_order]
        return True

    def move_analysis(self, unique_id: str, target_page: int, position: Optional[int] = None) -> bool:
        """
        Move an instance to another page (or position on its own page).

        Fails when the target page already holds the same kind, since an
        instance belongs to exactly one page and kinds are unique per page.
        """
        location = self.find(unique_id)
        if location is None or not 0 <= target_page < len(self.pages):
            return False
        source_page, source_position = location
        instance = self.pages[source_page][source_position]

        if target_page != source_page and self.contains_kind(instance.kind, target_page):
            return False

        self.pages[source_page].pop(source_position)
        target = self.pages[target_page]
        if position is None or position > len(target):
            position = len(target)
        target.insert(max(position, 0), instance)
        return True

    def add_page(self) -> int:
        self.pages.append([])
        self.current_page = len(self.pages) - 1
        return self.current_page

    def remove_page(self, page_index: int) -> Optional[List[AnalysisInstance]]:
        """
        Remove a page and return the instances it held.

        Returns:
            None (no change) when only one page exists or the index is invalid
        """
        if len(self.pages) <= 1 or not 0 <= page_index < len(self.pages):
            return None
        removed = self.pages.pop(page_index)
        for instance in removed:
            self.mode_preferences.pop(instance.unique_id, None)
        if self.current_page > len(self.pages) - 1:
            self.current_page = len(self.pages) - 1
        elif self.current_page > page_index:
            self.current_page -= 1
        return removed

    def navigate(self, delta: int) -> int:
        self.current_page = min(max(self.current_page + delta, 0), len(self.pages) - 1)
        return self.current_page

    def set_render_mode(self, unique_id: str, mode: Union[RenderMode, str]) -> bool:
        instance = self.get(unique_id)
        if instance is None:
            return False
        instance.mode = RenderMode(mode)
        self.mode_preferences[unique_id] = instance.mode
        return True

    def set_orientation(self, orientation: str) -> bool:
        if orientation not in ORIENTATIONS:
            return False
        self.orientation = orientation
        return True

    # ---- persistence ----

    def to_record(self) -> Dict[str, Any]:
        return {
            "version": RECORD_VERSION,
            "pages": [[inst.to_dict() for inst in page] for page in self.pages],
            "currentPage": self.current_page,
            "counter": self.counter,
            "modePreferences": {uid: mode.value for uid, mode in self.mode_preferences.items()},
            "orientation": self.orientation,
        }

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]], orientation: str = "portrait") -> "ReportComposition":
        """
        Restore a composition.

        Accepts the current dict form and the legacy form (a list of pages,
        each a list of unique id strings). Ids of unknown kinds and duplicate
        ids are skipped; the counter is raised to the largest suffix seen.
        """
        composition = cls(orientation=orientation)
        if not record:
            return composition

        if isinstance(record, list):
            raw_pages = record
            record = {}
        else:
            raw_pages = record.get("pages") or []

        preferences = {}
        for uid, mode in (record.get("modePreferences") or {}).items():
            try:
                preferences[uid] = RenderMode(mode)
            except ValueError:
                continue

        pages: List[List[AnalysisInstance]] = []
        seen = set()
        max_suffix = 0
        for raw_page in raw_pages:
            page = []
            for entry in raw_page if isinstance(raw_page, list) else []:
                instance = cls._instance_from_entry(entry, preferences)
                if instance is None or instance.unique_id in seen:
                    continue
                seen.add(instance.unique_id)
                suffix = _split_unique_id(instance.unique_id)[1]
                if suffix is not None:
                    max_suffix = max(max_suffix, suffix)
                page.append(instance)
            pages.append(page)

        composition.pages = pages or [[]]
        composition.mode_preferences = {
            uid: mode for uid, mode in preferences.items() if uid in seen
        }
        stored_counter = record.get("counter")
        composition.counter = max(max_suffix, stored_counter if isinstance(stored_counter, int) else 0)
        current = record.get("currentPage", 0)
        composition.current_page = min(max(current if isinstance(current, int) else 0, 0), len(composition.pages) - 1)
        composition.orientation = record.get("orientation", orientation)
        if composition.orientation not in ORIENTATIONS:
            composition.orientation = orientation
        return composition

    @staticmethod
    def _instance_from_entry(entry: Any, preferences: Dict[str, RenderMode]) -> Optional[AnalysisInstance]:
        if isinstance(entry, str):
            unique_id = entry
            kind_name = _split_unique_id(entry)[0]
            mode_name = None
        elif isinstance(entry, dict) and isinstance(entry.get("uniqueId"), str):
            unique_id = entry["uniqueId"]
            kind_name = entry.get("kind") or _split_unique_id(unique_id)[0]
            mode_name = entry.get("mode")
        else:
            return None

        if not is_known_kind(kind_name):
            logger.warning("Skipping persisted analysis of unknown kind: %s", unique_id)
            return None

        kind = AnalysisKind(kind_name)
        try:
            mode = RenderMode(mode_name) if mode_name else preferences.get(unique_id, get_spec(kind).default_mode)
        except ValueError:
            mode = get_spec(kind).default_mode
        return AnalysisInstance(unique_id=unique_id, kind=kind, mode=mode)
