"""JSON report output."""

from __future__ import annotations

import json
from pathlib import Path

from visualcheck.models.comparison import ComparisonRun


def generate_json_report(run: ComparisonRun, output_path: Path) -> None:
    """Write a machine-readable JSON report."""
    report = run.model_dump()
    report["summary"] = {
        "total": run.total,
        "passed": run.passed,
        "failed": run.failed,
        "baselines_created": run.created,
    }

    with open(output_path, "w") as f:
        json.dump(report, f, indent=2, default=str)
