"""
Application constants following kkb_fastapi pattern.
"""
from enum import Enum


class ConfigFile:
    """Configuration file names."""
    PRODUCTION = "production.toml"
    DEVELOPMENT = "development.toml"
    TEST = "test.toml"


class ActivityCategory(str, Enum):
    """Activity categories tracked by the platform."""
    TRANSPORTATION = "transportation"
    ELECTRICITY = "electricity"
    FOOD = "food"
    WASTE = "waste"
    WATER = "water"
    HEATING = "heating"
    COOLING = "cooling"
    PAPER = "paper"
    EVENTS = "events"
    OTHER = "other"


# Categories that use the generic quantity * constant formula
GENERIC_CATEGORIES = frozenset(
    {
        ActivityCategory.HEATING,
        ActivityCategory.COOLING,
        ActivityCategory.PAPER,
        ActivityCategory.EVENTS,
        ActivityCategory.OTHER,
    }
)


class Scope:
    """GHG Protocol Scope constants."""
    SCOPE_1 = 1
    SCOPE_2 = 2
    SCOPE_3 = 3


# Fixed category -> scope classification used by report aggregation.
# Anything not listed here is Scope 3.
CATEGORY_SCOPES = {
    ActivityCategory.TRANSPORTATION: Scope.SCOPE_1,
    ActivityCategory.HEATING: Scope.SCOPE_1,
    ActivityCategory.ELECTRICITY: Scope.SCOPE_2,
}


def scope_for_category(category: str) -> int:
    """Return the GHG scope a category is reported under."""
    try:
        return CATEGORY_SCOPES.get(ActivityCategory(category), Scope.SCOPE_3)
    except ValueError:
        return Scope.SCOPE_3


class DataSource(str, Enum):
    """Where an activity record came from."""
    MANUAL = "manual"
    FILE_UPLOAD = "file_upload"
    API = "api"
    ESTIMATION = "estimation"


class FactorSource(str, Enum):
    """Publisher of an emission factor."""
    DEFRA = "DEFRA"
    IPCC = "IPCC"
    GHG_PROTOCOL = "GHG_PROTOCOL"
    EPA = "EPA"
    CUSTOM = "CUSTOM"
    OTHER = "OTHER"


class ResolutionTier(str, Enum):
    """Which tier of the factor fallback chain produced a factor."""
    INSTITUTION = "institution"
    GLOBAL = "global"
    DEFAULT = "default"


class FallbackReason(str, Enum):
    """Why resolution fell through to the default table."""
    NOT_FOUND = "not_found"
    LOOKUP_ERROR = "lookup_error"


class ReportFormat(str, Enum):
    """Supported export formats."""
    JSON = "json"
    CSV = "csv"
    EXCEL = "excel"
    PDF = "pdf"


# Accepted spellings for each export format
REPORT_FORMAT_ALIASES = {
    "json": ReportFormat.JSON,
    "csv": ReportFormat.CSV,
    "excel": ReportFormat.EXCEL,
    "xlsx": ReportFormat.EXCEL,
    "pdf": ReportFormat.PDF,
}


class ReportStatus(str, Enum):
    """Lifecycle states of a generated report."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ReportType(str, Enum):
    """Kinds of report a user can request."""
    INDIVIDUAL = "individual"
    DEPARTMENTAL = "departmental"
    INSTITUTIONAL = "institutional"
    COMPARATIVE = "comparative"
    TREND = "trend"
    COMPLIANCE = "compliance"
    CUSTOM = "custom"


class ReportScope(str, Enum):
    """Whose activities a report covers."""
    INDIVIDUAL = "individual"
    INSTITUTION = "institution"


# Emission figures are kept to gram precision
EMISSION_DECIMAL_PLACES = 3
REPORT_EXPIRY_DAYS = 7
REPORTS_STORAGE_DIR = "reports"
