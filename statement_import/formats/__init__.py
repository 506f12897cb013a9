"""Declarative CSV format configurations and the built-in registry."""

from .mapping import ColumnMappingSelection, MappingError, build_format_config
from .models import FormatConfig
from .registry import REGISTRY, FormatNotFound, FormatRegistry, get_format_config

__all__ = [
    "REGISTRY",
    "ColumnMappingSelection",
    "FormatConfig",
    "FormatNotFound",
    "FormatRegistry",
    "MappingError",
    "build_format_config",
    "get_format_config",
]
