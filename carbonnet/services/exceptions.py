"""
Exceptions raised by the emission and reporting services.
"""
from datetime import date


class CarbonNetError(Exception):
    """Base class for all engine errors."""
    pass


class FactorNotFound(CarbonNetError):
    """
    Raised when neither an institution nor a global factor matches a lookup.

    Callers recover by falling back to the default factor table.
    """

    def __init__(
        self,
        category: str,
        subcategory_key: str,
        institution_id=None,
        as_of: date | None = None,
    ):
        self.category = category
        self.subcategory_key = subcategory_key
        self.institution_id = institution_id
        self.as_of = as_of
        super().__init__(
            f"No active emission factor for {category}/{subcategory_key} "
            f"(institution={institution_id}, as_of={as_of})"
        )


class FactorLookupError(CarbonNetError):
    """Raised when the factor store itself fails and propagation is enabled."""

    def __init__(self, message: str, original_exception: Exception | None = None):
        self.original_exception = original_exception
        if original_exception:
            message += (
                f"\nCaused by: {type(original_exception).__name__}: "
                f"{original_exception}"
            )
        super().__init__(message)


class InvalidPeriod(CarbonNetError):
    """Raised when a report period does not end after it starts."""

    def __init__(self, start_date, end_date):
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            f"Invalid report period: end date {end_date} must be after "
            f"start date {start_date}"
        )


class AggregationInputError(CarbonNetError):
    """
    Raised for a single malformed activity record.

    The aggregator catches it, skips the record and lists it in the
    report's errors.
    """

    def __init__(self, record_id, message: str):
        self.record_id = record_id
        self.message = message
        super().__init__(f"Malformed activity record {record_id}: {message}")


class UnsupportedFormatError(CarbonNetError):
    """Raised when an export format is not one of json, csv, excel or pdf."""

    def __init__(self, export_format):
        self.export_format = export_format
        super().__init__(
            f"Unsupported format '{export_format}'. Use json, csv, excel (xlsx) or pdf."
        )


class ExportIOError(CarbonNetError):
    """Raised when an exported artifact cannot be rendered or written."""

    def __init__(self, message: str, original_exception: Exception | None = None):
        self.original_exception = original_exception
        if original_exception:
            message += (
                f"\nCaused by: {type(original_exception).__name__}: "
                f"{original_exception}"
            )
        super().__init__(message)


class DeadlineExceeded(CarbonNetError):
    """Raised when a report computation runs past its deadline or is cancelled."""

    def __init__(self, stage: str, message: str = "deadline exceeded"):
        self.stage = stage
        super().__init__(f"Report generation stopped during {stage}: {message}")
