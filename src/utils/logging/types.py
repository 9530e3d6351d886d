"""logging types and enums this module defines the core types used by the build event log: - logcategory (raw json directory per event kind)"""

from enum import Enum


class LogCategory(Enum):
    """log categories for organizing raw json files."""
    DISCOVERY = "discovery"
    BUILD = "builds"
    EXTRACTION = "extractions"
    ERROR = "errors"

