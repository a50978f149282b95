"""Domain models for the compatibility-matrix pipeline."""

from .error_record import ErrorRecord
from .ingestion import BatchStatsAccumulator, IngestionMetadata, IngestionResult
from .records import CapabilityRecord, CatalogTable, CompatibilityRecord, RecordType
from .scan_state import ColumnHeader, RowAnomaly, ScanState
from .sheet_kind import PipelineVariant, SheetKind
from .workbook import Sheet, Workbook

__all__ = [
    # Workbook input
    "Sheet",
    "Workbook",
    # Classification
    "PipelineVariant",
    "SheetKind",
    # Scanning
    "ColumnHeader",
    "RowAnomaly",
    "ScanState",
    # Records
    "CapabilityRecord",
    "CatalogTable",
    "CompatibilityRecord",
    "RecordType",
    # Results
    "BatchStatsAccumulator",
    "ErrorRecord",
    "IngestionMetadata",
    "IngestionResult",
]
