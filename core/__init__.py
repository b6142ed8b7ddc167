"""Core shared configuration, logging and reporting utilities."""

from core.structured_logging import (
    configure_structured_logging,
    file_scope,
    get_run_id,
    set_run_id,
)
from core.scan_config import (
    ConfigValidationError,
    ScanConfig,
    load_scan_config,
    resolve_strict_config_validation,
)
from core.run_artifacts import build_run_report, write_run_report

__all__ = [
    "configure_structured_logging",
    "file_scope",
    "get_run_id",
    "set_run_id",
    "ConfigValidationError",
    "ScanConfig",
    "load_scan_config",
    "resolve_strict_config_validation",
    "build_run_report",
    "write_run_report",
]
