"""Run artifact helpers for scan reporting."""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from core.structured_logging import get_run_id


def build_run_report(results: Iterable[Any], stats: dict[str, int]) -> dict[str, Any]:
    """Summarize file results: failures and syntax diagnostics per file."""
    failed: list[dict[str, str]] = []
    syntax: list[dict[str, Any]] = []
    malformed: list[dict[str, Any]] = []
    for result in results:
        if not result.ok:
            failed.append({"file_path": result.file_path, "error": result.error})
            continue
        if result.syntax_errors:
            syntax.append({
                "file_path": result.file_path,
                "diagnostics": [d.to_dict() for d in result.syntax_errors],
            })
        if result.diagnostics:
            malformed.append({
                "file_path": result.file_path,
                "diagnostics": list(result.diagnostics),
            })
    return {
        "status": "failed" if failed else "success",
        "stats": dict(stats),
        "failed_files": failed,
        "syntax_errors": syntax,
        "malformed_definitions": malformed,
    }


def write_run_report(
    report: dict[str, Any],
    run_id: Optional[str] = None,
    output_dir: str = "output/run_reports",
) -> str:
    """Write a JSON run report and return its path.

    The report is named after ``run_id``, defaulting to the active run.
    """
    run_id = run_id or get_run_id()
    os.makedirs(output_dir, exist_ok=True)
    payload = dict(report)
    payload.setdefault("run_id", run_id)
    payload.setdefault("timestamp_utc", datetime.now(timezone.utc).isoformat())
    path = os.path.join(output_dir, f"{run_id}.json")
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True)
    return path
