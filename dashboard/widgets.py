"""Dashboard widgets for the transcript side panels and confirmation gate."""

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, DataTable, Label, Static

from utils.context_store import ContextStore
from utils.task_ledger import TaskLedger

STATUS_STYLES = {
    "active": "cyan",
    "pending": "yellow",
    "completed": "green",
    "failed": "red",
}


class TasksWidget(DataTable):
    """Table of every task in the ledger."""

    def __init__(self, ledger: TaskLedger):
        super().__init__(id="task-table", zebra_stripes=True)
        self.ledger = ledger

    def on_mount(self) -> None:
        self.add_columns("ID", "Status", "Criteria", "Description")
        self.update_tasks()

    def update_tasks(self) -> None:
        """Rebuild the rows from the ledger."""
        self.clear()
        # The submission thread mutates tasks; render from copies
        for task in self.ledger.all_tasks():
            status = task.status.value
            style = STATUS_STYLES.get(status, "white")
            snapshot = list(task.criteria)
            verified = sum(1 for c in snapshot if c.verified)
            criteria = f"{verified}/{len(snapshot)}" if snapshot else "-"
            description = task.description
            if len(description) > 60:
                description = description[:57] + "..."
            self.add_row(task.id, Text(status, style=style), criteria, Text(description))


class StatsWidget(Static):
    """Task counts and context usage."""

    def __init__(self, ledger: TaskLedger, context: ContextStore):
        super().__init__(id="stats")
        self.ledger = ledger
        self.context = context

    def on_mount(self) -> None:
        self.update_content()

    def update_content(self) -> None:
        stats = self.ledger.get_statistics()
        message_count, token_count = self.context.usage()
        current = self.ledger.current_task
        current_text = f"{current.id} ({current.status.value})" if current else "none"
        self.update(
            f"[bold]Current task[/bold]: {current_text}\n"
            f"Active: [cyan]{stats.active}[/cyan]  Pending: [yellow]{stats.pending}[/yellow]  "
            f"Completed: [green]{stats.completed}[/green]  Failed: [red]{stats.failed}[/red]\n"
            f"[bold]Context[/bold]: {message_count}/{self.context.max_messages} messages, "
            f"{token_count}/{self.context.max_tokens} tokens"
        )


class ConfirmScreen(ModalScreen[bool]):
    """Yes/no dialog for actions that need approval."""

    BINDINGS = [
        ("y", "answer(True)", "Yes"),
        ("n", "answer(False)", "No"),
        ("escape", "answer(False)", "No"),
    ]

    def __init__(self, prompt: str):
        super().__init__()
        self.prompt = prompt

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-dialog"):
            yield Label(self.prompt, id="confirm-prompt", markup=False)
            with Horizontal(id="confirm-buttons"):
                yield Button("Yes", variant="warning", id="confirm-yes")
                yield Button("No", variant="primary", id="confirm-no")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "confirm-yes")

    def action_answer(self, approved: bool) -> None:
        self.dismiss(approved)
