"""Main dashboard application using Textual."""

import threading
from typing import Optional

from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Footer, Header, Input, RichLog

from agents.orchestrator import COMMANDS_HELP, Orchestrator, Outcome
from dashboard.widgets import ConfirmScreen, StatsWidget, TasksWidget


class DashboardApp(App):
    """Transcript, task table and prompt around one orchestrator."""

    CSS = """
    #main {
        height: 1fr;
    }

    #transcript {
        width: 2fr;
        border: round $primary;
    }

    #side {
        width: 1fr;
    }

    #task-table {
        height: 1fr;
        border: round $secondary;
    }

    #stats {
        height: auto;
        border: round $secondary;
        padding: 0 1;
    }

    ConfirmScreen {
        align: center middle;
    }

    #confirm-dialog {
        width: 70;
        height: auto;
        border: thick $warning;
        background: $surface;
        padding: 1 2;
    }

    #confirm-buttons {
        height: auto;
        margin-top: 1;
        align-horizontal: center;
    }
    """

    TITLE = "shellpilot dashboard"
    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, orchestrator: Optional[Orchestrator] = None, initial_request: Optional[str] = None):
        super().__init__()
        if orchestrator is None:
            from main import build_orchestrator
            orchestrator = build_orchestrator(
                confirm=self._confirm_from_thread,
                output=self._output_from_thread,
            )
        self.orchestrator = orchestrator
        self.initial_request = initial_request
        self.submission_thread: Optional[threading.Thread] = None

    def compose(self) -> ComposeResult:
        """Create child widgets for the app."""
        yield Header()
        with Horizontal(id="main"):
            yield RichLog(id="transcript", wrap=True, markup=False, max_lines=2000)
            with Vertical(id="side"):
                yield TasksWidget(self.orchestrator.ledger)
                yield StatsWidget(self.orchestrator.ledger, self.orchestrator.context)
        yield Input(placeholder=f"Request or command ({COMMANDS_HELP})", id="prompt")
        yield Footer()

    def on_mount(self) -> None:
        """Called when app starts."""
        self.set_interval(1.0, self.update_display)
        self.query_one("#prompt", Input).focus()
        if self.initial_request:
            self._start_submission(self.initial_request)

    @property
    def busy(self) -> bool:
        return self.submission_thread is not None and self.submission_thread.is_alive()

    def update_display(self) -> None:
        """Refresh the task table and stats from the orchestrator state."""
        self.query_one(TasksWidget).update_tasks()
        self.query_one(StatsWidget).update_content()

    def write_transcript(self, text: str) -> None:
        self.query_one("#transcript", RichLog).write(text)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        text = event.value.strip()
        event.input.value = ""
        if not text:
            return
        if self.busy:
            self.write_transcript("[Busy] Wait for the current request to finish.")
            return
        self._start_submission(text)

    def _start_submission(self, text: str) -> None:
        self.write_transcript(f"> {text}")
        # One submission at a time, on a background thread
        self.submission_thread = threading.Thread(
            target=self._run_submission,
            args=(text,),
            daemon=True,
            name="Submission",
        )
        self.submission_thread.start()

    def _run_submission(self, text: str) -> None:
        """Run a submission in the background thread."""
        try:
            result = self.orchestrator.submit(text)
        except Exception as e:
            self.orchestrator.logger.log_error_with_traceback("Dashboard", e, context={"request": text})
            self.call_from_thread(self.write_transcript, f"[Error] {e}")
            return
        if result.outcome == Outcome.EXIT:
            self.call_from_thread(self.exit)
            return
        self.call_from_thread(self.update_display)

    def _output_from_thread(self, text: str) -> None:
        self.call_from_thread(self.write_transcript, text)

    def _confirm_from_thread(self, prompt: str) -> bool:
        """Show the confirmation dialog and block the submission thread until answered."""
        answered = threading.Event()
        answer = {"approved": False}

        def _on_dismiss(approved: Optional[bool]) -> None:
            answer["approved"] = bool(approved)
            answered.set()

        self.call_from_thread(self.push_screen, ConfirmScreen(prompt), _on_dismiss)
        answered.wait()
        return answer["approved"]
