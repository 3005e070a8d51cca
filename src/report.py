"""Render analysis results as console text, JSON or HTML."""
from __future__ import annotations

import html
import json
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List

from src.detection.core.models import FileResult, Severity


TOOL_NAME = "vue-anti-pattern-detector"
REPORT_FORMATS = ("console", "json", "html")

SEVERITY_ICONS: Dict[str, str] = {
    Severity.CRITICAL.value: "🚨",
    Severity.HIGH.value: "⚠️",
    Severity.MEDIUM.value: "ℹ️",
    Severity.LOW.value: "✅",
}

_RECOMMENDATIONS = (
    (Severity.CRITICAL, "Address {count} CRITICAL issues immediately (runtime errors, security risks)"),
    (Severity.HIGH, "Fix {count} HIGH priority issues before merge (maintainability, performance)"),
    (Severity.MEDIUM, "Consider {count} MEDIUM issues in refactoring cycles"),
)


def severity_icon(severity: str) -> str:
    return SEVERITY_ICONS.get(severity, "❓")


def calculate_summary(results: Iterable[FileResult]) -> Dict[str, Any]:
    """Count files, issues per severity and issues per pattern."""
    summary: Dict[str, Any] = {
        "totalFiles": 0,
        "totalIssues": 0,
        "issuesBySeverity": {severity.value: 0 for severity in Severity},
        "issuesByPattern": {},
        "filesWithIssues": 0,
    }
    for result in results:
        summary["totalFiles"] += 1
        if not result.issues:
            continue
        summary["filesWithIssues"] += 1
        summary["totalIssues"] += len(result.issues)
        for issue in result.issues:
            pattern = str(getattr(issue.pattern, "value", issue.pattern))
            summary["issuesBySeverity"][issue.severity.value] += 1
            summary["issuesByPattern"][pattern] = summary["issuesByPattern"].get(pattern, 0) + 1
    return summary


def _top_patterns(summary: Dict[str, Any], limit: int = 10) -> List[tuple]:
    return sorted(summary["issuesByPattern"].items(), key=lambda item: item[1], reverse=True)[:limit]


def _recommendations(summary: Dict[str, Any]) -> List[tuple]:
    counts = summary["issuesBySeverity"]
    return [
        (severity, template.format(count=counts[severity.value]))
        for severity, template in _RECOMMENDATIONS
        if counts[severity.value] > 0
    ]


def render_console(results: List[FileResult], summary: Dict[str, Any], verbose: bool = False) -> str:
    lines: List[str] = ["🔍 Vue Anti-Pattern Detection Report", ""]
    lines.append("📊 Summary:")
    lines.append(f"  Files analyzed: {summary['totalFiles']}")
    lines.append(f"  Files with issues: {summary['filesWithIssues']}")
    lines.append(f"  Total issues: {summary['totalIssues']}")
    lines.append("")

    if summary["totalIssues"] > 0:
        lines.append("🚨 Issues by severity:")
        for severity, count in summary["issuesBySeverity"].items():
            if count > 0:
                lines.append(f"  {severity}: {count}")
        lines.append("")
        lines.append("🔧 Top issues by pattern:")
        for pattern, count in _top_patterns(summary):
            lines.append(f"  {pattern}: {count}")
        lines.append("")

    for result in results:
        if not result.issues:
            continue
        lines.append(f"📁 {result.file_path}")
        for issue in result.issues:
            data = issue.to_dict()
            lines.append(f"  {severity_icon(data['severity'])} {data['severity']}: {data['message']}")
            lines.append(f"    Pattern: {data['pattern']}")
            lines.append(f"    Location: Line {issue.location.line}, Column {issue.location.column}")
            if issue.refactoring and verbose:
                lines.append(f"    💡 Refactoring: {issue.refactoring}")
            lines.append("")

    for result in results:
        for error in result.errors:
            lines.append(f"⚠️ {result.file_path}: {error}")

    recommendations = _recommendations(summary)
    if recommendations:
        lines.append("💡 Recommendations:")
        for _, text in recommendations:
            lines.append(f"  • {text}")
        lines.append("")
    return "\n".join(lines) + "\n"


def render_json(results: List[FileResult], summary: Dict[str, Any]) -> str:
    payload = {
        "summary": summary,
        "results": [result.to_dict() for result in results],
        "generatedAt": datetime.now(timezone.utc).isoformat(),
        "tool": TOOL_NAME,
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


_HTML_STYLE = """
        body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; margin: 0; padding: 20px; background: #f5f5f5; }
        .container { max-width: 1200px; margin: 0 auto; background: white; padding: 30px; border-radius: 8px; }
        .header { text-align: center; margin-bottom: 30px; }
        .summary { display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 20px; margin-bottom: 30px; }
        .summary-card { background: #f8f9fa; padding: 20px; border-radius: 6px; text-align: center; }
        .summary-card .value { font-size: 2em; font-weight: bold; }
        .severity-critical { color: #dc3545; }
        .severity-high { color: #fd7e14; }
        .severity-medium { color: #ffc107; }
        .severity-low { color: #28a745; }
        .file-result { margin-bottom: 30px; border: 1px solid #e9ecef; border-radius: 6px; overflow: hidden; }
        .file-header { background: #f8f9fa; padding: 15px; font-weight: bold; border-bottom: 1px solid #e9ecef; }
        .issue { padding: 15px; border-bottom: 1px solid #f8f9fa; }
        .pattern { font-weight: bold; color: #495057; }
        .location { color: #6c757d; font-size: 0.9em; }
        .refactoring { background: #fff3cd; padding: 10px; border-radius: 4px; margin-top: 10px; border-left: 4px solid #ffc107; }
        .footer { margin-top: 30px; padding: 20px; background: #f8f9fa; border-radius: 6px; }
"""


def _html_issue(issue) -> str:
    data = issue.to_dict()
    css = f"severity-{data['severity'].lower()}"
    parts = [
        '<div class="issue">',
        f'<div class="pattern {css}">{severity_icon(data["severity"])} '
        f'{html.escape(data["severity"])}: {html.escape(data["pattern"])}</div>',
        f"<div>{html.escape(data['message'])}</div>",
        f'<div class="location">Line {issue.location.line}, Column {issue.location.column}</div>',
    ]
    if issue.refactoring:
        parts.append(
            f'<div class="refactoring"><strong>💡 Refactoring:</strong> {html.escape(issue.refactoring)}</div>'
        )
    parts.append("</div>")
    return "\n".join(parts)


def render_html(results: List[FileResult], summary: Dict[str, Any]) -> str:
    generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
    body: List[str] = [
        '<div class="header">',
        "<h1>🔍 Vue Anti-Pattern Detection Report</h1>",
        f"<p>Generated on {generated}</p>",
        "</div>",
        '<div class="summary">',
    ]
    for title, key in (
        ("Files Analyzed", "totalFiles"),
        ("Files with Issues", "filesWithIssues"),
        ("Total Issues", "totalIssues"),
    ):
        body.append(f'<div class="summary-card"><h3>{title}</h3><div class="value">{summary[key]}</div></div>')
    body.append("</div>")

    if summary["totalIssues"] > 0:
        body.append("<h2>Issues by Severity</h2>")
        body.append("<ul>")
        for severity, count in summary["issuesBySeverity"].items():
            if count > 0:
                body.append(f'<li class="severity-{severity.lower()}"><strong>{severity}:</strong> {count}</li>')
        body.append("</ul>")
    else:
        body.append("<p>🎉 No issues found!</p>")

    for result in results:
        if not result.issues:
            continue
        body.append('<div class="file-result">')
        body.append(f'<div class="file-header">📁 {html.escape(result.file_path)}</div>')
        body.extend(_html_issue(issue) for issue in result.issues)
        body.append("</div>")

    body.append('<div class="footer">')
    body.append("<h3>💡 Recommendations</h3>")
    body.append("<ul>")
    for severity, text in _recommendations(summary):
        body.append(f'<li class="severity-{severity.value.lower()}">{html.escape(text)}</li>')
    body.append("<li>Run this tool regularly to maintain code quality</li>")
    body.append("</ul>")
    body.append("</div>")

    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '<meta charset="UTF-8">\n'
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        "<title>Vue Anti-Pattern Detection Report</title>\n"
        f"<style>{_HTML_STYLE}</style>\n"
        "</head>\n"
        "<body>\n"
        '<div class="container">\n'
        + "\n".join(body)
        + "\n</div>\n</body>\n</html>\n"
    )


def generate_report(results: Iterable[FileResult], fmt: str = "console", verbose: bool = False) -> str:
    """Render ``results`` in one of ``REPORT_FORMATS``.

    Raises:
        ValueError: unknown format
    """
    if fmt not in REPORT_FORMATS:
        raise ValueError(f"Unknown report format: {fmt}. Valid: {list(REPORT_FORMATS)}")
    results = list(results)
    summary = calculate_summary(results)
    if fmt == "json":
        return render_json(results, summary)
    if fmt == "html":
        return render_html(results, summary)
    return render_console(results, summary, verbose)
