"""Scan configuration loading and validation helpers.

Provides strict/non-strict parsing of the optional YAML scan configuration
file plus environment overrides used by the command line entry point.

Example ``scan.yml``::

    include_nested: true
    continue_on_error: true
    output_format: jsonl
    extensions: [".ps1", ".psm1"]
    exclude_dirs: ["bin", "obj"]
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import Any, Optional

import yaml

from extraction.config import (
    DEFAULT_CONTINUE_ON_ERROR,
    DEFAULT_INCLUDE_NESTED,
    EXCLUDED_DIRECTORIES,
    SCRIPT_EXTENSIONS,
)

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("jsonl", "json", "table")

ENV_INCLUDE_NESTED = "PSFUNCSCAN_INCLUDE_NESTED"
ENV_CONTINUE_ON_ERROR = "PSFUNCSCAN_CONTINUE_ON_ERROR"


class ConfigValidationError(RuntimeError):
    """Raised when strict configuration validation fails."""


@dataclass(frozen=True)
class ScanConfig:
    """Effective settings for one scan run."""

    include_nested: bool = DEFAULT_INCLUDE_NESTED
    continue_on_error: bool = DEFAULT_CONTINUE_ON_ERROR
    output_format: str = "jsonl"
    extensions: frozenset[str] = frozenset(SCRIPT_EXTENSIONS)
    exclude_dirs: frozenset[str] = frozenset(EXCLUDED_DIRECTORIES)


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def resolve_strict_config_validation(default: bool = False) -> bool:
    """Resolve strict validation mode from ``STRICT_CONFIG_VALIDATION`` env."""
    return _env_flag("STRICT_CONFIG_VALIDATION", default=default)


def _fail(msg: str, strict: bool) -> None:
    if strict:
        raise ConfigValidationError(msg)
    logger.warning("%s; using default", msg)


def _read_bool(payload: dict[str, Any], key: str, default: bool, strict: bool) -> bool:
    value = payload.get(key, default)
    if isinstance(value, bool):
        return value
    _fail(f"Config key '{key}' must be a boolean, got {value!r}", strict)
    return default


def _read_str_set(
    payload: dict[str, Any],
    key: str,
    default: frozenset[str],
    strict: bool,
) -> frozenset[str]:
    value = payload.get(key)
    if value is None:
        return default
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        _fail(f"Config key '{key}' must be a list of strings", strict)
        return default
    return frozenset(value)


def _normalize_extensions(extensions: frozenset[str]) -> frozenset[str]:
    return frozenset(
        ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in extensions
    )


def load_config_file(config_path: str, strict: bool = False) -> dict[str, Any]:
    """Load and parse a YAML config file.

    In non-strict mode this returns an empty dict on parse/read failures.
    In strict mode this raises ``ConfigValidationError``.
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            payload = yaml.safe_load(f)
    except FileNotFoundError as exc:
        msg = f"Scan config file not found: {config_path}"
        if strict:
            raise ConfigValidationError(msg) from exc
        logger.warning("%s; continuing with defaults", msg)
        return {}
    except yaml.YAMLError as exc:
        msg = f"Failed to parse scan config YAML at {config_path}: {exc}"
        if strict:
            raise ConfigValidationError(msg) from exc
        logger.warning("%s; continuing with defaults", msg)
        return {}

    if payload is None:
        return {}

    if not isinstance(payload, dict):
        msg = f"Unexpected scan config payload type: {type(payload).__name__}"
        if strict:
            raise ConfigValidationError(msg)
        logger.warning("%s; continuing with defaults", msg)
        return {}

    return payload


def build_scan_config(payload: dict[str, Any], strict: bool = False) -> ScanConfig:
    """Validate a config mapping and build a ScanConfig."""
    defaults = ScanConfig()

    unknown = sorted(set(payload) - {
        "include_nested",
        "continue_on_error",
        "output_format",
        "extensions",
        "exclude_dirs",
    })
    if unknown:
        _fail(f"Unknown scan config keys: {', '.join(unknown)}", strict)

    output_format = payload.get("output_format", defaults.output_format)
    if output_format not in OUTPUT_FORMATS:
        _fail(
            f"Config key 'output_format' must be one of {', '.join(OUTPUT_FORMATS)}, "
            f"got {output_format!r}",
            strict,
        )
        output_format = defaults.output_format

    return ScanConfig(
        include_nested=_read_bool(payload, "include_nested", defaults.include_nested, strict),
        continue_on_error=_read_bool(
            payload, "continue_on_error", defaults.continue_on_error, strict
        ),
        output_format=output_format,
        extensions=_normalize_extensions(
            _read_str_set(payload, "extensions", defaults.extensions, strict)
        ),
        exclude_dirs=_read_str_set(payload, "exclude_dirs", defaults.exclude_dirs, strict),
    )


def apply_env_overrides(config: ScanConfig) -> ScanConfig:
    """Apply ``PSFUNCSCAN_*`` environment overrides."""
    return replace(
        config,
        include_nested=_env_flag(ENV_INCLUDE_NESTED, config.include_nested),
        continue_on_error=_env_flag(ENV_CONTINUE_ON_ERROR, config.continue_on_error),
    )


def load_scan_config(
    config_path: Optional[str] = None,
    strict: Optional[bool] = None,
) -> ScanConfig:
    """Resolve the effective scan configuration.

    Args:
        config_path: Optional YAML file. Defaults apply when omitted.
        strict: Strict validation; defaults to ``STRICT_CONFIG_VALIDATION``.

    Raises:
        ConfigValidationError: In strict mode, on any invalid setting.
    """
    if strict is None:
        strict = resolve_strict_config_validation()

    payload = load_config_file(config_path, strict=strict) if config_path else {}
    config = apply_env_overrides(build_scan_config(payload, strict=strict))
    logger.debug("Resolved scan config: %s", config)
    return config
