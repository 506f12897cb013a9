"""Public interface for the ``statement_import`` package.

Re-exports the stable import surface: the line parser, format configuration
and registry, the format-driven parser, the pending-import store and the
stage/confirm workflow.
"""

from .api import confirm_import, confirm_with_mapping, stage_import
from .csv_line import format_csv_line, parse_csv_line
from .ctv import StatementRow
from .formats import (
    REGISTRY,
    ColumnMappingSelection,
    FormatConfig,
    FormatNotFound,
    FormatRegistry,
    MappingError,
    build_format_config,
    get_format_config,
)
from .parsing import HeaderMismatch, ParseResult, parse_with_config
from .pending_imports import (
    HeaderPreview,
    PendingImport,
    PendingImportStore,
    parse_headers_and_preview,
)
from .preprocessors import run_preprocessing_pipeline

__all__ = [
    # Workflow
    "stage_import",
    "confirm_import",
    "confirm_with_mapping",
    # Parsing
    "parse_csv_line",
    "format_csv_line",
    "run_preprocessing_pipeline",
    "parse_with_config",
    "parse_headers_and_preview",
    # Formats
    "REGISTRY",
    "FormatConfig",
    "FormatRegistry",
    "FormatNotFound",
    "ColumnMappingSelection",
    "MappingError",
    "build_format_config",
    "get_format_config",
    # Models / results
    "StatementRow",
    "HeaderMismatch",
    "ParseResult",
    "HeaderPreview",
    "PendingImport",
    "PendingImportStore",
]
