from datetime import datetime
from pathlib import PurePath

from lumindoc.schemas.documents import DetailedSummary
from lumindoc.utils.formatting import difficulty_label, importance_label


BANNER = "=" * 60
RULE = "-" * 40


def export_filename(file_name: str) -> str:
    stem = PurePath(file_name).stem or "document"
    return f"{stem}_summary.txt"


def format_summary_as_text(
    summary: DetailedSummary,
    file_name: str,
    generated_at: datetime | None = None,
) -> str:
    """Render a summary as a plain-text report for download."""
    generated_at = generated_at or datetime.now()
    lines: list[str] = [
        BANNER,
        f"AI Summary Report: {file_name}",
        f"Generated at: {generated_at.strftime('%Y-%m-%d %H:%M:%S')}",
        BANNER,
        "",
        "■ Overview",
        RULE,
        summary.overview,
        "",
    ]

    if summary.key_points:
        lines += ["■ Key Points", RULE]
        lines += [f"{index}. {point}" for index, point in enumerate(summary.key_points, 1)]
        lines.append("")

    if summary.sections:
        lines += ["■ Sections", RULE]
        for index, section in enumerate(summary.sections, 1):
            lines.append(f"[{index}] {section.title}")
            lines.append(f"Importance: {importance_label(section.importance)}")
            if section.page:
                lines.append(f"Page: {section.page}")
            lines += ["", section.content, ""]

    if summary.topics:
        lines += ["■ Related Topics", RULE, ", ".join(summary.topics), ""]

    lines += ["■ Statistics", RULE, f"Characters: approx. {summary.word_count:,}"]
    if summary.page_count:
        lines.append(f"Pages: {summary.page_count}")
    lines += [f"Difficulty: {difficulty_label(summary.difficulty)}", ""]

    lines += [BANNER, "This report was generated automatically by AI", BANNER]

    return "\n".join(lines)
