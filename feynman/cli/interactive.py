"""
Interactive terminal session.

One loop iteration renders the screen for the current navigation state
and handles a single user action. Errors from the stores are printed and
the loop continues; nothing but an explicit exit ends the session.
"""

from __future__ import annotations

import asyncio
import base64
import csv
import mimetypes
from pathlib import Path

from loguru import logger
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Confirm, Prompt

from feynman.core.errors import FeynmanError, ValidationFailure
from feynman.core.models import Attachment
from feynman.core.topics import TOPICS
from feynman.navigation.app import TutorApp
from feynman.navigation.machine import (
    ChangePassword,
    CoachAnalytics,
    CoachDashboard,
    Login,
    MistakeNotebook,
    ProblemActive,
    TopicSelection,
)
from feynman.study.analytics import topic_distribution

from . import views

TEXT_SUFFIXES = {".tex", ".txt", ".md"}


class ExitSession(Exception):
    """Raised by a screen to end the interactive loop."""


def load_attachment(path: Path) -> Attachment:
    """
    Read a file from disk into a chat attachment.

    Raises:
        ValidationFailure: File missing, unreadable or not UTF-8 text
    """
    try:
        if path.suffix.lower() in TEXT_SUFFIXES:
            return Attachment(
                type="file",
                mime_type="text/x-tex" if path.suffix.lower() == ".tex" else "text/plain",
                data=path.read_text(encoding="utf-8"),
                name=path.name,
                is_text=True,
            )
        raw = path.read_bytes()
    except (OSError, UnicodeDecodeError) as e:
        raise ValidationFailure(f"Cannot read {path}: {e}") from e

    mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    encoded = base64.b64encode(raw).decode("ascii")
    return Attachment(
        type="image" if mime_type.startswith("image/") else "file",
        mime_type=mime_type,
        data=f"data:{mime_type};base64,{encoded}",
        name=path.name,
    )


class InteractiveSession:
    """Drives a TutorApp from keyboard input."""

    def __init__(self, app: TutorApp, console: Console | None = None):
        self.app = app
        self.console = console or Console()
        self._shown_messages = 0

    def run(self) -> None:
        self.app.start()
        while True:
            try:
                self.step()
            except ExitSession:
                break
            except FeynmanError as e:
                self.console.print(f"[bold red]✗ {e}[/]")
            except (KeyboardInterrupt, EOFError):
                break
        self.console.print("\n[dim]Goodbye! Keep learning.[/dim]\n")

    def step(self) -> None:
        state = self.app.state
        if isinstance(state, (TopicSelection, ProblemActive, MistakeNotebook)):
            self._show_achievements()
        if isinstance(state, Login):
            self._login_screen()
        elif isinstance(state, ChangePassword):
            self._change_password_screen()
        elif isinstance(state, TopicSelection):
            self._topic_screen()
        elif isinstance(state, ProblemActive):
            self._problem_screen()
        elif isinstance(state, MistakeNotebook):
            self._notebook_screen()
        elif isinstance(state, CoachDashboard):
            self._dashboard_screen()
        elif isinstance(state, CoachAnalytics):
            self._analytics_screen()

    # =========================================================================
    # Screens
    # =========================================================================

    def _show_achievements(self) -> None:
        """Draw the login overlay once, over whichever student view comes first."""
        app = self.app
        if app.achievements is None:
            return
        self.console.print(views.achievements_panel(app.user, app.achievements, app.previous_login))
        app.dismiss_achievements()

    def _login_screen(self) -> None:
        self.console.print(views.header(None))
        username = Prompt.ask("Username (blank to exit)", default="", console=self.console)
        if not username:
            raise ExitSession()
        password = Prompt.ask("Password", password=True, console=self.console)
        self.app.login(username, password)
        self.console.print(f"[green]✓ Logged in as {self.app.user.name}[/]")

    def _change_password_screen(self) -> None:
        self.console.print("[yellow]First login: please set a new password.[/]")
        new_password = Prompt.ask("New password", password=True, console=self.console)
        confirmation = Prompt.ask("Confirm password", password=True, console=self.console)
        self.app.change_password(new_password, confirmation)
        self.console.print("[green]✓ Password updated[/]")

    def _topic_screen(self) -> None:
        app = self.app
        self.console.print(views.header(app.user))
        self.console.print(views.topic_menu(len(app.active_mistakes)))
        choice = Prompt.ask("Choose", console=self.console).strip().lower()
        if choice == "q":
            app.logout()
        elif choice == "n":
            app.open_notebook()
        elif choice.isdigit() and 1 <= int(choice) <= len(TOPICS):
            with self.console.status("Generating problem..."):
                problem = asyncio.run(app.select_topic(TOPICS[int(choice) - 1]))
            if problem is not None:
                self._shown_messages = 0
        else:
            self.console.print("[yellow]Unknown choice[/]")

    def _problem_screen(self) -> None:
        app = self.app
        problem = app.current_problem
        if self._shown_messages == 0:
            self.console.print(views.problem_panel(problem, app.is_saved()))
        for message in (problem.chat_history or [])[self._shown_messages:]:
            self.console.print(views.chat_message(message))
        self._shown_messages = len(problem.chat_history or [])

        line = Prompt.ask(
            "[dim]/save  /attach <file> \\[text]  /back  /quit[/]\nYou",
            default="",
            console=self.console,
        )
        if line == "/back":
            app.back_to_topics()
            self._shown_messages = 0
        elif line == "/quit":
            raise ExitSession()
        elif line == "/save":
            saved = app.toggle_mistake()
            self.console.print("[green]★ Saved to notebook[/]" if saved else "[dim]☆ Removed from notebook[/]")
        elif line == "/attach" or line.startswith("/attach "):
            path_text, _, text = line[len("/attach"):].strip().partition(" ")
            if not path_text:
                self.console.print("[yellow]Usage: /attach <file> \\[text][/]")
                return
            attachment = load_attachment(Path(path_text).expanduser())
            self._send(text, attachment)
        elif line.strip():
            self._send(line, None)

    def _send(self, text: str, attachment: Attachment | None) -> None:
        with self.console.status("Tutor is thinking..."):
            asyncio.run(self.app.send_message(text, attachment))

    def _notebook_screen(self) -> None:
        app = self.app
        self.console.print(views.notebook_table(app.active_mistakes))
        choice = Prompt.ask("Open #, d<#> to delete, b to go back", console=self.console).strip().lower()
        if choice == "b":
            app.back_to_topics()
        elif choice.startswith("d") and choice[1:].isdigit():
            index = int(choice[1:]) - 1
            if 0 <= index < len(app.active_mistakes):
                app.delete_mistake(app.active_mistakes[index].id)
        elif choice.isdigit() and 1 <= int(choice) <= len(app.active_mistakes):
            app.open_archived_problem(app.active_mistakes[int(choice) - 1].id)
            self._shown_messages = 0

    def _dashboard_screen(self) -> None:
        app = self.app
        self.console.print(views.header(app.user))
        search = Prompt.ask("Search (blank for all)", default="", console=self.console)
        students = app.list_students(search)
        self.console.print(views.students_table(students, app.students_with_open_problem()))

        choice = Prompt.ask(
            "Open #, r<#> reset password, i import CSV, e export CSV, q logout",
            console=self.console,
        ).strip().lower()
        if choice == "q":
            app.logout()
        elif choice == "i":
            path = Path(Prompt.ask("Roster CSV path", console=self.console)).expanduser()
            self._import_roster(path)
        elif choice == "e":
            path = Path(Prompt.ask("Export path", default="feynman_export.csv", console=self.console))
            count = app.export_report(path)
            self.console.print(f"[green]✓ Exported {count} student(s) to {path}[/]")
        elif choice.startswith("r") and choice[1:].isdigit():
            index = int(choice[1:]) - 1
            if 0 <= index < len(students):
                student = students[index]
                if Confirm.ask(f"Reset password for {student.name} ({student.username})?", console=self.console):
                    app.reset_student_password(student.id)
                    self.console.print(f"[green]✓ Password reset to: {student.username}[/]")
        elif choice.isdigit() and 1 <= int(choice) <= len(students):
            app.select_student(students[int(choice) - 1].id)

    def _import_roster(self, path: Path) -> None:
        try:
            with open(path, "r", encoding="utf-8-sig", newline="") as f:
                rows = list(csv.reader(f))
        except (OSError, UnicodeDecodeError) as e:
            raise ValidationFailure(f"Cannot read {path}: {e}") from e
        count, parsed = self.app.import_roster(rows)
        for rejection in parsed.rejected:
            self.console.print(f"[yellow]Row {rejection.row_number} skipped: {rejection.reason}[/]")
        if not parsed.entries:
            self.console.print("[yellow]No valid student rows found.[/]")
        else:
            self.console.print(f"[green]✓ Imported {count} student(s). Initial password = username.[/]")
        logger.info(f"Roster import from {path}: {count} registered")

    def _analytics_screen(self) -> None:
        app = self.app
        student = app.selected_student
        self.console.print(
            views.distribution_table(student, topic_distribution(app.active_mistakes), len(app.active_mistakes))
        )
        choice = Prompt.ask("g generate report, b back", console=self.console).strip().lower()
        if choice == "b":
            app.return_to_dashboard()
        elif choice == "g":
            with self.console.status("Analyzing..."):
                report = asyncio.run(app.study_report())
            self.console.print(Panel(Markdown(report), title="Study Report", border_style="magenta"))
