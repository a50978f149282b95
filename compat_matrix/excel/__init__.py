from .reader import WorkbookReadError, read_workbook, sheet_to_frame

__all__ = [
    "WorkbookReadError",
    "read_workbook",
    "sheet_to_frame",
]
