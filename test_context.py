"""Tests for token estimation and context compression."""

import pytest

from conftest import word_encoder
from utils.context_store import ContextStore
from utils.models import Message, Role
from utils.token_budget import TokenBudget


def test_token_budget_is_deterministic_and_counts_role():
    budget = TokenBudget(encoder=word_encoder)

    assert budget.estimate("") == 0
    assert budget.estimate("one two three") == 3
    assert budget.estimate("one two three") == budget.estimate("one two three")
    # "user: hello world" -> 3 words
    assert budget.estimate_message(Message.user("hello world")) == 3


def test_message_count_ceiling_discards_oldest_first(budget):
    context = ContextStore("system prompt", budget=budget, max_tokens=10_000, max_messages=20)
    system = context.system_message

    for i in range(1, 22):
        context.append(Message.user(f"message {i}"))

    assert len(context) == 20
    assert context.messages[0] is system
    assert context.messages[0].role == Role.SYSTEM
    contents = [m.content for m in context.messages[1:]]
    assert contents[0] == "message 3"
    assert contents[-1] == "message 21"
    assert "message 1" not in contents
    assert "message 2" not in contents


def test_token_ceiling_drops_messages_after_system(budget):
    context = ContextStore("sys", budget=budget, max_tokens=12, max_messages=20)

    context.append(Message.user("a b c d"))         # 5 tokens with role
    context.append(Message.assistant("e f g h"))    # 5 tokens with role
    context.append(Message.user("i j k l"))         # 5 tokens with role

    assert context.total_tokens() <= 12
    assert context.messages[0].content == "sys"
    assert context.messages[-1].content == "i j k l"
    assert len(context) == 3


def test_token_ceiling_never_drops_below_two_messages(budget):
    context = ContextStore("sys", budget=budget, max_tokens=5, max_messages=20)

    context.append(Message.user(" ".join(["word"] * 50)))

    assert len(context) == 2
    assert context.total_tokens() > 5


def test_compression_invariants_hold_for_mixed_appends(budget):
    context = ContextStore("system", budget=budget, max_tokens=40, max_messages=6)

    for i in range(30):
        role = Role.USER if i % 2 else Role.ASSISTANT
        context.append(Message(role, " ".join(["x"] * (i % 7 + 1))))
        assert len(context) <= 6
        assert context.messages[0].role == Role.SYSTEM
        assert context.total_tokens() <= 40 or len(context) == 2


def test_reset_keeps_only_system_message(budget):
    context = ContextStore("system", budget=budget)
    context.append(Message.user("hi"))
    context.append(Message.assistant("hello"))

    context.reset()
    context.reset()

    assert len(context) == 1
    assert context.system_message.content == "system"


def test_replace_system_message_overwrites_in_place(budget):
    context = ContextStore("old", budget=budget)
    context.append(Message.user("hi"))

    context.replace_system_message("new")

    assert len(context) == 2
    assert context.messages[0].content == "new"
    assert context.to_payload()[0] == {"role": "system", "content": "new"}


def test_append_rejects_second_system_message(budget):
    context = ContextStore("system", budget=budget)
    with pytest.raises(ValueError):
        context.append(Message.system("another"))


def test_invalid_limits_raise(budget):
    with pytest.raises(ValueError):
        ContextStore("system", budget=budget, max_messages=1)
    with pytest.raises(ValueError):
        ContextStore("system", budget=budget, max_tokens=0)


def test_compression_is_logged(budget, logger, tmp_path):
    context = ContextStore("system", budget=budget, max_messages=2, logger=logger)
    context.append(Message.user("one"))
    context.append(Message.user("two"))

    log_files = list((tmp_path / "logs").glob("execution_*.log"))
    assert log_files
    assert "Context compressed" in log_files[0].read_text(encoding="utf-8")


def test_usage_reports_count_and_tokens_together(budget):
    context = ContextStore("system prompt", budget=budget)
    context.append(Message.user("hello world"))

    assert context.usage() == (len(context), context.total_tokens())
    assert context.usage() == (2, 6)
