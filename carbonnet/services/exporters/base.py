"""
Base class for report format exporters.
"""
from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from carbonnet.pydantic_models.report import AggregatedReport
from carbonnet.services.deadline import Deadline
from carbonnet.utils.constants import ReportFormat

NO_CATEGORY_DATA = "No category data"
NO_TREND_DATA = "No trend data"


def to_plain_number(value: Decimal) -> int | float:
    """Integral decimals become ints, the rest floats."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def json_default(value):
    """``default`` hook for json.dumps over report payloads."""
    if isinstance(value, Decimal):
        return to_plain_number(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class FormatExporter(ABC):
    """
    Renders an AggregatedReport into one file format.

    Subclasses only depend on the report and the generation timestamp, so
    the same inputs always produce the same bytes.
    """

    export_format: ReportFormat
    extension: str
    media_type: str

    @abstractmethod
    def render(
        self, report: AggregatedReport, generated_at: datetime, deadline: Deadline
    ) -> bytes:
        """Return the artifact bytes."""
        ...
