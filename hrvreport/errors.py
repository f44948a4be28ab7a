"""
errors.py - Error taxonomy for the report builder

Model objects raise these; the ReportBuilder facade turns them into
user-facing notifications and keeps its last-good state.
"""

from enum import Enum


class LoadErrorReason(Enum):
    EMPTY_DATASET = "empty_dataset"
    NO_INTERVAL_DATA = "no_interval_data"
    PARSE_FAILURE = "parse_failure"


class AddErrorReason(Enum):
    DATA_UNAVAILABLE = "data_unavailable"
    ALREADY_PRESENT_ON_PAGE = "already_present_on_page"
    ALREADY_PRESENT_GLOBALLY = "already_present_globally"


class RenderErrorReason(Enum):
    NO_DATA = "no_data"
    SOURCE_UNAVAILABLE = "source_unavailable"


class ReportError(Exception):
    """Base class carrying a machine-readable reason and a readable message"""

    def __init__(self, reason: Enum, message: str):
        super().__init__(message)
        self.reason = reason
        self.message = message


class LoadError(ReportError):
    pass


class AddError(ReportError):
    pass


class RenderError(ReportError):
    pass
