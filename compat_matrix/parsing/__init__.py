from .classifier import classify, normalize_sheet_name
from .software import (
    SoftwareName,
    collection_software_name,
    parse_collection_plugin,
    parse_software,
    section_version,
)
from .status import normalize_status

__all__ = [
    "SoftwareName",
    "classify",
    "collection_software_name",
    "normalize_sheet_name",
    "normalize_status",
    "parse_collection_plugin",
    "parse_software",
    "section_version",
]
