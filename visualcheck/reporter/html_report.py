"""HTML report generator — a self-contained page with baseline, actual and diff images."""

from __future__ import annotations

import base64
import html
import logging
from pathlib import Path

from visualcheck.models.comparison import ComparisonResult, ComparisonRun

logger = logging.getLogger(__name__)


def _embed_image(path: str | None) -> str:
    """Read an image file and return a base64 data URI, or empty string if unreadable."""
    if not path:
        return ""
    p = Path(path)
    try:
        if not p.exists() or p.stat().st_size == 0:
            return ""
        data = base64.b64encode(p.read_bytes()).decode()
    except OSError as e:
        logger.warning("Could not embed image %s: %s", p, e)
        return ""
    return f"data:image/png;base64,{data}"


def _image_cell(label: str, path: str | None) -> str:
    uri = _embed_image(path)
    if not uri:
        return f'<div class="shot empty"><div class="shot-label">{label}</div>&mdash;</div>'
    return (
        f'<div class="shot"><img src="{uri}" alt="{label}" onclick="this.classList.toggle(\'zoomed\')">'
        f'<div class="shot-label">{label}</div></div>'
    )


def _status(r: ComparisonResult) -> str:
    if r.baseline_created:
        return "new"
    return "pass" if r.passed else "fail"


def _build_result_card(r: ComparisonResult) -> str:
    status = _status(r)
    detail = f"{r.diff_percent:.2f}% diff &middot; threshold {r.threshold_percent:.2f}%"
    if r.total_pixels:
        detail += f" &middot; {r.diff_pixel_count}/{r.total_pixels} pixels"

    card = f'''
    <div class="result-card {status}">
      <div class="result-header">
        <span class="badge {status}">{status.upper()}</span>
        <strong>{html.escape(r.baseline_name)}</strong>
        <span class="result-meta">{detail}</span>
      </div>
      <div class="result-message">{html.escape(r.message)}</div>
      <div class="shots">'''
    card += _image_cell("Baseline", r.baseline_path)
    card += _image_cell("Actual", r.actual_path)
    if r.diff_path:
        card += _image_cell("Diff", r.diff_path)
    card += "</div></div>"
    return card


def generate_html_report(run: ComparisonRun, output_path: Path) -> None:
    """Generate a self-contained HTML report, failures first."""
    ordered = sorted(run.results, key=lambda r: (r.passed, r.baseline_name))
    cards = "".join(_build_result_card(r) for r in ordered)

    report_html = f'''<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Visual Report &mdash; {html.escape(run.run_id)}</title>
<style>
  :root {{ --pass: #22c55e; --fail: #ef4444; --new: #6366f1; --bg: #f8fafc; --card: white; --border: #e2e8f0; --text: #1e293b; --muted: #64748b; }}
  * {{ margin: 0; padding: 0; box-sizing: border-box; }}
  body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background: var(--bg); color: var(--text); line-height: 1.6; padding: 1.5rem; }}
  .container {{ max-width: 1400px; margin: 0 auto; }}
  h1 {{ font-size: 1.8rem; margin-bottom: 0.3rem; }}
  .meta {{ color: var(--muted); margin-bottom: 1.5rem; font-size: 0.9rem; }}
  .summary {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(130px, 1fr)); gap: 0.8rem; margin-bottom: 1.5rem; }}
  .stat {{ background: var(--card); border-radius: 8px; padding: 1rem; box-shadow: 0 1px 3px rgba(0,0,0,0.08); text-align: center; }}
  .stat .value {{ font-size: 1.8rem; font-weight: 700; }}
  .stat .label {{ font-size: 0.8rem; color: var(--muted); }}
  .stat.pass .value {{ color: var(--pass); }}
  .stat.fail .value {{ color: var(--fail); }}
  .stat.new .value {{ color: var(--new); }}
  .badge {{ display: inline-block; padding: 0.15rem 0.55rem; border-radius: 9999px; font-size: 0.7rem; font-weight: 600; white-space: nowrap; }}
  .badge.pass {{ background: #dcfce7; color: #166534; }}
  .badge.fail {{ background: #fecaca; color: #991b1b; }}
  .badge.new {{ background: #e0e7ff; color: #3730a3; }}
  .result-card {{ background: var(--card); border-radius: 8px; margin-bottom: 0.8rem; padding: 0.8rem 1rem; box-shadow: 0 1px 3px rgba(0,0,0,0.08); }}
  .result-card.fail {{ border-left: 4px solid var(--fail); }}
  .result-card.pass {{ border-left: 4px solid var(--pass); }}
  .result-card.new {{ border-left: 4px solid var(--new); }}
  .result-header {{ display: flex; align-items: center; gap: 0.5rem; flex-wrap: wrap; }}
  .result-meta {{ font-size: 0.78rem; color: var(--muted); }}
  .result-message {{ font-size: 0.85rem; color: var(--muted); margin: 0.3rem 0 0.6rem 0; }}
  .shots {{ display: grid; grid-template-columns: repeat(auto-fill, minmax(220px, 1fr)); gap: 0.6rem; }}
  .shot {{ text-align: center; }}
  .shot img {{ width: 100%; border-radius: 6px; border: 1px solid var(--border); cursor: pointer; image-rendering: pixelated; }}
  .shot img.zoomed {{ position: fixed; top: 5%; left: 5%; width: 90%; height: 90%; object-fit: contain; z-index: 1000; background: rgba(0,0,0,0.85); border: none; border-radius: 8px; padding: 1rem; }}
  .shot.empty {{ color: var(--muted); }}
  .shot-label {{ font-size: 0.75rem; color: var(--muted); margin-top: 0.2rem; }}
</style>
</head>
<body>
<div class="container">
  <h1>Visual Regression Report</h1>
  <p class="meta">Run: {html.escape(run.run_id)} &middot; {html.escape(run.started_at)} &middot; Pixel tolerance: {run.pixel_tolerance:.2f} &middot; Diff threshold: {run.diff_threshold * 100:.2f}%</p>

  <div class="summary">
    <div class="stat"><div class="value">{run.total}</div><div class="label">Comparisons</div></div>
    <div class="stat pass"><div class="value">{run.passed}</div><div class="label">Passed</div></div>
    <div class="stat fail"><div class="value">{run.failed}</div><div class="label">Failed</div></div>
    <div class="stat new"><div class="value">{run.created}</div><div class="label">New Baselines</div></div>
  </div>

  <div id="result-list">
    {cards}
  </div>
</div>
</body>
</html>'''

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(report_html)
