"""Status and update-type color maps."""

from partner_charts.models import ChartStatus

STATUS_COLORS: dict[ChartStatus, str] = {
    ChartStatus.UPDATED: "green",
    ChartStatus.PENDING: "yellow",
    ChartStatus.UP_TO_DATE: "dim",
    ChartStatus.SKIPPED: "red bold",
}

UPDATE_COLORS: dict[str, str] = {
    "major": "red bold",
    "minor": "yellow",
    "patch": "green",
    "new": "cyan",
    "up-to-date": "dim",
    "unknown": "dim",
}

COMPARISON_COLORS: dict[str, str] = {
    "unchanged": "dim",
    "modified": "yellow",
    "added": "cyan",
    "removed": "red",
}


def styled_status(status: ChartStatus) -> str:
    color = STATUS_COLORS.get(status, "white")
    return f"[{color}]{status.value}[/{color}]"


def styled_update(update_type: str) -> str:
    if not update_type:
        return "-"
    color = UPDATE_COLORS.get(update_type, "white")
    return f"[{color}]{update_type}[/{color}]"


def styled_change(kind: str) -> str:
    color = COMPARISON_COLORS.get(kind, "white")
    return f"[{color}]{kind}[/{color}]"
