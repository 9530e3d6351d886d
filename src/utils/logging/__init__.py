"""logging package this package provides dual-layer logging (json + sqlite) of discovery, build and extraction events"""

# import types
from .types import LogCategory

# import core logger
from .core import PipelineLogger

# define public api
__all__ = [
    "LogCategory",
    "PipelineLogger",
]
