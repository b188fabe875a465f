"""Core types shared by every layer: results, exit codes, configuration."""

from .config import FlowConfig, FreezeConfig, load_config
from .errors import ErrorCode
from .result import Err, Ok, Result

__all__ = [
    "ErrorCode",
    "Err",
    "FlowConfig",
    "FreezeConfig",
    "Ok",
    "Result",
    "load_config",
]
