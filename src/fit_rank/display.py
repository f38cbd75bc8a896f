"""Rich terminal display for fit-rank."""

from __future__ import annotations

from pathlib import Path

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()

# Streak length (exclusive upper bound) -> Rich color
_STREAK_COLORS: list[tuple[int, str]] = [
    (1, "grey50"),
    (3, "dark_cyan"),
    (7, "dark_orange3"),
    (14, "orange1"),
    (30, "gold3"),
    (50, "gold1"),
]
_TOP_STREAK_COLOR = "purple"

_MEDALS = {1: "\U0001f947", 2: "\U0001f948", 3: "\U0001f949"}


def streak_color(streak: int) -> str:
    for upper, color in _STREAK_COLORS:
        if streak < upper:
            return color
    return _TOP_STREAK_COLOR


def format_number(n: int) -> str:
    """Format large numbers: 421543 -> '421.5K', 1200 -> '1,200', 1234567 -> '1.2M'."""
    if n >= 1_000_000:
        value = n / 1_000_000
        if value >= 100:
            return f"{value:.0f}M"
        return f"{value:.1f}M"
    if n >= 10_000:
        return f"{n / 1_000:.1f}K"
    return f"{n:,}"


def rank_label(rank: int) -> str:
    """Medal for the podium, '#N' for everyone else."""
    return _MEDALS.get(rank, f"#{rank}")


def _progress_bar(current: int, total: int, width: int = 10) -> str:
    """Render a progress bar as text: [████░░░░░░]."""
    if total <= 0:
        return "[" + "█" * width + "]"
    ratio = min(current / total, 1.0)
    filled = int(ratio * width)
    return "[" + "█" * filled + "░" * (width - filled) + "]"


def print_streak(data: dict) -> None:
    """Print current and longest streak for a user."""
    current = data.get("current_streak", 0)
    color = streak_color(current)
    lines = [
        "",
        f"  [bold {color}]\U0001f525 {current} day streak[/]  {data.get('message', '')}",
        f"  Longest: {data.get('longest_streak', 0)} days",
        f"  Last workout: {data.get('last_active_date') or 'never'}",
        "",
    ]
    console.print(
        Panel(
            "\n".join(lines),
            title=f"[bold]{data.get('name', 'STREAK')}[/]",
            box=box.ROUNDED,
            border_style=color,
            width=50,
        )
    )


def print_badges(
    badges: list[dict], new_badges: list[str] | None = None, closest: list[dict] | None = None
) -> None:
    """Print all badges with progress.

    Each dict has: id, name, description, icon, progress (0.0-1.0),
    earned (bool), current (int), target (int).
    """
    earned = [b for b in badges if b.get("earned")]
    pending = [b for b in badges if not b.get("earned")]
    pending.sort(key=lambda b: b.get("progress", 0), reverse=True)

    table = Table(title="Badges", box=box.ROUNDED, show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Badge", min_width=20)
    table.add_column("Progress", min_width=18)

    for badge in earned + pending:
        icon = badge.get("icon", "") if badge.get("earned") else "⏳"
        name_text = f"[bold]{badge['name']}[/]\n{badge.get('description', '')}"
        pct = int(badge.get("progress", 0.0) * 100)
        bar = _progress_bar(badge.get("current", 0), badge.get("target", 0))
        table.add_row(icon, name_text, f"{bar} {pct}%")

    console.print(table)

    if new_badges:
        console.print(f"[bold green]New:[/] {', '.join(new_badges)}")

    if closest:
        console.print("[bold]Almost there:[/]")
        for badge in closest:
            pct = int(badge.get("progress", 0.0) * 100)
            console.print(
                f"  \u23f3 {badge['name']}: "
                f"{format_number(badge.get('current', 0))}/{format_number(badge.get('target', 0))} ({pct}%)"
            )


def print_leaderboard(entries: list[dict], mode: str, metric: str, your_id: str | None = None) -> None:
    """Print a team leaderboard table."""
    if not entries:
        console.print(
            Panel(
                "\n  No players on this team yet.\n",
                title="[bold]Leaderboard[/]",
                box=box.ROUNDED,
                border_style="grey50",
                width=50,
            )
        )
        return

    subtitle = "coach's order" if mode == "manual" else f"by {metric}"
    table = Table(
        title=f"Leaderboard ({subtitle})",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold",
    )
    table.add_column("Rank", justify="center", width=6)
    table.add_column("Player", min_width=16)
    table.add_column("workouts" if mode == "manual" else metric, justify="right")
    with_summary = any("weekly_score" in e for e in entries)
    if with_summary:
        table.add_column("This week", justify="right")
        table.add_column("Avg", justify="right")
        table.add_column("\U0001f525", justify="right")

    for entry in entries:
        name = entry["display_name"]
        if your_id and entry["member_id"] == your_id:
            name = f"[bold cyan]{name} (you)[/]"
        cells = [rank_label(entry["rank"]), name, format_number(entry["metric_value"])]
        if with_summary:
            cells += [
                format_number(entry.get("weekly_score", 0)),
                f"{entry.get('average_score', 0.0):.1f}",
                str(entry.get("streak", 0)),
            ]
        table.add_row(*cells)

    console.print(table)


def print_ranking_config(config: dict) -> None:
    lines = [
        "",
        f"  Mode:    {config['rankingMode']}",
        f"  Metric:  {config['automaticRankingBy']}",
        f"  Order:   {', '.join(config['manualRankings']) or '(none)'}",
        "",
    ]
    console.print(
        Panel("\n".join(lines), title="[bold]Ranking Settings[/]", box=box.ROUNDED, width=50)
    )


def print_logged_workout(data: dict) -> None:
    console.print(
        f"[green]✅ Logged[/] {data['type'] or 'workout'} "
        f"({data['duration_minutes']} min) for {data['user_id']}"
    )
    for name in data.get("new_badges", []):
        console.print(f"  \U0001f3c6 New badge: [bold]{name}[/]")


def print_error(message: str) -> None:
    console.print(f"[bold red]Error:[/] {message}")


def print_config(config: dict, path: Path) -> None:
    lines = [""]
    if config:
        lines += [f"  {key}: {value}" for key, value in sorted(config.items())]
    else:
        lines.append("  (defaults)")
    lines.append("")
    console.print(Panel("\n".join(lines), title=f"[bold]{path}[/]", box=box.ROUNDED, width=60))
