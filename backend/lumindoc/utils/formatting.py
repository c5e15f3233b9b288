"""Human-readable formatting shared by extraction headers and exports."""

from datetime import datetime


SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]
UNKNOWN_DATE = "Unknown date"

IMPORTANCE_LABELS = {"high": "High", "medium": "Medium", "low": "Low"}
DIFFICULTY_LABELS = {
    "beginner": "Beginner",
    "intermediate": "Intermediate",
    "advanced": "Advanced",
}
STATUS_LABELS = {
    "pending": "Waiting",
    "processing": "Summarizing",
    "completed": "Summary ready",
    "error": "Error",
}


def format_file_size(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    index = 0
    while size >= 1024 ** (index + 1) and index < len(SIZE_UNITS) - 1:
        index += 1
    value = round(size / (1024 ** index), 2)
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[index]}"


def format_kilobytes(size: int) -> str:
    return f"{size / 1024:.2f} KB"


def format_date(value: datetime | str | None) -> str:
    if not value:
        return UNKNOWN_DATE

    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return UNKNOWN_DATE

    if not isinstance(value, datetime):
        return UNKNOWN_DATE

    return value.strftime("%b %d, %Y %H:%M")


def importance_label(importance: str) -> str:
    return IMPORTANCE_LABELS.get(importance, "Unknown")


def difficulty_label(difficulty: str) -> str:
    return DIFFICULTY_LABELS.get(difficulty, "Unknown")


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, STATUS_LABELS["pending"])
