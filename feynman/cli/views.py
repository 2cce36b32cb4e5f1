"""
Rich renderables for each screen of the interactive session.

Rendering only; no store access.
"""

from __future__ import annotations

from datetime import datetime

from rich import box
from rich.console import Group
from rich.markdown import Markdown
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from feynman.core.models import Message, Problem, Sender, User
from feynman.core.topics import TOPICS
from feynman.study.progression import BADGES, Progression, format_previous_login

STYLES = {
    "primary": "bold cyan",
    "muted": "dim",
    "success": "green",
    "warning": "yellow",
    "error": "bold red",
}


def header(user: User | None) -> Panel:
    greeting = f"Hello, {user.name}" if user else "Not logged in"
    return Panel(
        Text.assemble(("FeynmanMath\n", STYLES["primary"]), (greeting, STYLES["muted"])),
        box=box.ROUNDED,
        border_style="cyan",
    )


def topic_menu(mistake_count: int) -> Table:
    table = Table(title="What will you tackle today?", box=box.SIMPLE_HEAVY)
    table.add_column("#", style=STYLES["muted"], justify="right")
    table.add_column("Topic", style=STYLES["primary"])
    for i, topic in enumerate(TOPICS, start=1):
        table.add_row(str(i), topic)
    table.caption = f"n = notebook ({mistake_count})   q = logout"
    return table


def problem_panel(problem: Problem, saved: bool) -> Panel:
    parts = [Markdown(problem.content)]
    if problem.source:
        parts.append(Text(problem.source, style=STYLES["muted"]))
    star = "★ saved" if saved else "☆ not saved"
    return Panel(
        Group(*parts),
        title=f"[bold]{problem.topic}[/] · {problem.difficulty.value}",
        subtitle=star,
        border_style="cyan",
    )


def chat_message(message: Message) -> Panel:
    is_user = message.sender == Sender.USER
    body = [Markdown(message.text)] if message.text else []
    if message.attachment:
        body.append(Text(f"📎 {message.attachment.name}", style=STYLES["muted"]))
    return Panel(
        Group(*body),
        title="You" if is_user else "Tutor",
        title_align="right" if is_user else "left",
        border_style="blue" if is_user else "magenta",
    )


def notebook_table(mistakes: list[Problem]) -> Table:
    table = Table(title="My Mistake Notebook", box=box.SIMPLE_HEAVY)
    table.add_column("#", justify="right", style=STYLES["muted"])
    table.add_column("Topic", style=STYLES["primary"])
    table.add_column("Problem")
    table.add_column("Saved", style=STYLES["muted"])
    for i, problem in enumerate(mistakes, start=1):
        saved_at = (
            datetime.fromtimestamp(problem.timestamp / 1000).strftime("%Y-%m-%d")
            if problem.timestamp
            else "-"
        )
        preview = problem.content.replace("\n", " ")[:60]
        table.add_row(str(i), problem.topic, preview, saved_at)
    if not mistakes:
        table.caption = "No saved problems yet."
    return table


def achievements_panel(user: User, progression: Progression, previous_login: int | None) -> Panel:
    unlocked = progression.unlocked_ids
    badges = Table.grid(padding=(0, 2))
    for badge in BADGES:
        style = STYLES["success"] if badge.id in unlocked else STYLES["muted"]
        badges.add_row(Text(f"{badge.icon} {badge.name}", style=style), Text(badge.description, style=STYLES["muted"]))

    bar = ProgressBar(total=100, completed=progression.progress_percent, width=40)
    lines = [
        Text(f"Last login: {format_previous_login(previous_login)}", style=STYLES["muted"]),
        Text(f"Level {progression.level}", style="bold yellow"),
        bar,
        Text(
            f"{progression.stats.problem_count}/{progression.next_level_threshold} problems to next level",
            style=STYLES["muted"],
        ),
        badges,
    ]
    if progression.next_badge:
        lines.append(Text(f"Next badge: {progression.next_badge.name}", style=STYLES["warning"]))
    return Panel(Group(*lines), title=f"Welcome back, {user.name}", border_style="yellow")


def students_table(students: list[User], open_problem_ids: set[str] | None = None) -> Table:
    open_problem_ids = open_problem_ids or set()
    table = Table(title="Students", box=box.SIMPLE_HEAVY)
    table.add_column("#", justify="right", style=STYLES["muted"])
    table.add_column("Name", style=STYLES["primary"])
    table.add_column("Username")
    table.add_column("Status")
    table.add_column("Logins", justify="right")
    table.add_column("Open problem", justify="center")
    for i, student in enumerate(students, start=1):
        status = "[yellow]inactive[/]" if student.is_first_login else "[green]active[/]"
        working = "✎" if student.id in open_problem_ids else ""
        table.add_row(str(i), student.name, student.username, status, str(student.login_count or 0), working)
    return table


def distribution_table(student: User, distribution: list[tuple[str, int]], total: int) -> Table:
    table = Table(title=f"Analysis: {student.name} ({total} mistakes)", box=box.SIMPLE_HEAVY)
    table.add_column("Topic", style=STYLES["primary"])
    table.add_column("Mistakes", justify="right")
    table.add_column("")
    peak = max((count for _, count in distribution), default=1)
    for topic, count in distribution:
        table.add_row(topic, str(count), "█" * max(1, round(count / peak * 20)))
    if not distribution:
        table.caption = "No mistakes recorded."
    return table
