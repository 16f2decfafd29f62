"""Domain models for the spreadsheet -> Jira synchronizer."""

from .config_models import FieldMapping, JiraConfig, SyncConfig, TableConfig
from .error_record import ErrorRecord
from .processing_result import RowStat, SyncResult
from .row_data import RowData, cell_text

__all__ = [
    # Configuration models
    "FieldMapping",
    "JiraConfig",
    "SyncConfig",
    "TableConfig",
    # Processing models
    "ErrorRecord",
    "RowData",
    "RowStat",
    "SyncResult",
    "cell_text",
]
