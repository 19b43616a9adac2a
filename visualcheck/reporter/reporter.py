"""Report generation orchestration."""

from __future__ import annotations

import logging
from pathlib import Path

from visualcheck.models.comparison import ComparisonRun
from visualcheck.models.config import VisualConfig

from .html_report import generate_html_report
from .json_report import generate_json_report

logger = logging.getLogger(__name__)


class Reporter:
    """Generates reports from a comparison run."""

    def __init__(self, config: VisualConfig):
        self.config = config

    def generate_reports(self, run: ComparisonRun, output_dir: Path | None = None) -> dict[str, str]:
        """Generate all configured report formats. Returns format -> file path."""
        out_dir = output_dir or Path(self.config.report_output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        generated = {}
        logger.debug("Report output directory: %s", out_dir)

        if "html" in self.config.report_formats:
            path = out_dir / f"report_{run.run_id}.html"
            generate_html_report(run, path)
            generated["html"] = str(path)
            logger.info("HTML report: %s", path)

        if "json" in self.config.report_formats:
            path = out_dir / f"report_{run.run_id}.json"
            generate_json_report(run, path)
            generated["json"] = str(path)
            logger.info("JSON report: %s", path)

        return generated
