"""Decoding of completions into structured actions."""

import json
import re
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

from .models import (
    Action,
    CommitAction,
    DefineCriteriaAction,
    PatchAction,
    ReadFileAction,
    RunAction,
    UnknownAction,
    VerifyCriterionAction,
)

FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")

COMPLETION_MARKERS = ("task complete", "finished", "done", "completed")
FAILURE_MARKERS = ("failed", "error", "cannot")


class CompletionSignal(str, Enum):
    """Conversational signal found in a non-action reply."""
    COMPLETE = "complete"
    FAILURE = "failure"


def _text(record: Dict[str, Any], *names: str) -> Optional[str]:
    for name in names:
        value = record.get(name)
        if isinstance(value, str):
            return value
    return None


def _index(record: Dict[str, Any], *names: str) -> Optional[int]:
    for name in names:
        value = record.get(name)
        # bool is an int subclass; reject it explicitly
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def _build_run(record: Dict[str, Any]) -> Optional[Action]:
    command = _text(record, "command")
    return RunAction(command) if command else None


def _build_read(record: Dict[str, Any]) -> Optional[Action]:
    path = _text(record, "path", "file")
    return ReadFileAction(path) if path else None


def _build_patch(record: Dict[str, Any]) -> Optional[Action]:
    path = _text(record, "path", "file")
    content = _text(record, "content")
    if not path or content is None:
        return None
    return PatchAction(path, content)


def _build_commit(record: Dict[str, Any]) -> Optional[Action]:
    message = _text(record, "message")
    return CommitAction(message) if message else None


def _build_define_criteria(record: Dict[str, Any]) -> Optional[Action]:
    task_id = _text(record, "task_id", "taskId")
    criteria = record.get("criteria")
    if not task_id or not isinstance(criteria, list):
        return None
    if not all(isinstance(c, str) and c.strip() for c in criteria):
        return None
    return DefineCriteriaAction(task_id, [c.strip() for c in criteria])


def _build_verify_criterion(record: Dict[str, Any]) -> Optional[Action]:
    task_id = _text(record, "task_id", "taskId")
    index = _index(record, "criterion_index", "criterionIndex")
    command = _text(record, "command")
    if not task_id or index is None or not command:
        return None
    return VerifyCriterionAction(task_id, index, command)


BUILDERS: Dict[str, Callable[[Dict[str, Any]], Optional[Action]]] = {
    RunAction.tag: _build_run,
    ReadFileAction.tag: _build_read,
    PatchAction.tag: _build_patch,
    CommitAction.tag: _build_commit,
    DefineCriteriaAction.tag: _build_define_criteria,
    VerifyCriterionAction.tag: _build_verify_criterion,
}


class ActionProtocol:
    """Turns completion text into actions."""

    @staticmethod
    def extract_record(text: str) -> Optional[Dict[str, Any]]:
        """
        Extract the JSON object carried by a completion.

        A fenced block wins over the raw text. Anything that is not a JSON
        object yields None.
        """
        if not text:
            return None
        match = FENCED_BLOCK.search(text)
        candidate = match.group(1) if match else text
        try:
            record = json.loads(candidate.strip())
        except ValueError:
            return None
        return record if isinstance(record, dict) else None

    @classmethod
    def decode(cls, text: str) -> Union[Action, UnknownAction, None]:
        """
        Decode a completion.

        Returns:
            An Action, an UnknownAction for a record with an unrecognized
            tag, or None for conversational replies and malformed records
        """
        record = cls.extract_record(text)
        if record is None:
            return None
        tag = record.get("action")
        if not isinstance(tag, str):
            return None
        builder = BUILDERS.get(tag)
        if builder is None:
            return UnknownAction(tag=tag, record=record)
        return builder(record)

    @classmethod
    def parse(cls, text: str) -> Optional[Action]:
        """Decode a completion, treating unrecognized tags as no action."""
        decoded = cls.decode(text)
        return decoded if isinstance(decoded, Action) else None


def detect_completion_signal(text: str) -> Optional[CompletionSignal]:
    """
    Best-effort scan of a prose reply for a completion or failure claim.

    Plain substring matching, so "done" also matches "abandoned". Only used
    for replies that carry no action.
    """
    lowered = (text or "").lower()
    if any(marker in lowered for marker in COMPLETION_MARKERS):
        return CompletionSignal.COMPLETE
    if any(marker in lowered for marker in FAILURE_MARKERS):
        return CompletionSignal.FAILURE
    return None
