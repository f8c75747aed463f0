"""Tests for the conversation turn loop."""

import asyncio

import pytest

from pulseguard.core.companion import APOLOGY, Companion
from pulseguard.llm.types import Role
from pulseguard.store.memory import InMemoryHealthStore
from pulseguard.store.protocols import StoreError
from tests.conftest import MockLLMProvider, tool_call


@pytest.fixture
def make_companion(store, config, clock):
    def _make(llm: MockLLMProvider) -> Companion:
        return Companion.create(store, llm, config, clock=clock)

    return _make


class TestCompanionTurn:
    async def test_plain_reply(self, make_companion, store):
        llm = MockLLMProvider(["Hi there! How are you feeling today?"])
        companion = make_companion(llm)

        reply = await companion.handle_message("u1", "hello")

        assert reply.text == "Hi there! How are you feeling today?"
        assert not reply.provider_failed
        assert reply.outcome.results == []

        messages = await store.list_recent_messages("u1", 10)
        assert [(m.role, m.content) for m in messages] == [
            ("user", "hello"),
            ("assistant", "Hi there! How are you feeling today?"),
        ]

    async def test_completion_request(self, make_companion):
        llm = MockLLMProvider()
        await make_companion(llm).handle_message("u1", "hello")

        call = llm.complete_calls[0]
        assert call["model"] == "gpt-4o-mini"
        assert call["max_tokens"] == 1024
        assert "CURRENT CONTEXT:" in call["system"]
        assert "2024-06-12" in call["system"]
        assert [(m.role, m.content) for m in call["messages"]] == [(Role.USER, "hello")]

    async def test_history_is_sent(self, make_companion):
        llm = MockLLMProvider(["First reply", "Second reply"])
        companion = make_companion(llm)

        await companion.handle_message("u1", "first")
        await companion.handle_message("u1", "second")

        contents = [m.content for m in llm.complete_calls[1]["messages"]]
        assert contents == ["first", "First reply", "second"]

    async def test_action_is_executed(self, make_companion, store):
        llm = MockLLMProvider(
            [
                "Logged it! "
                + tool_call("log_medication", {"medication_name": "Aspirin"}, confidence=0.95)
            ]
        )
        reply = await make_companion(llm).handle_message("u1", "I took my aspirin")

        assert reply.text == "Logged it!"
        assert reply.outcome.results[0].message == "Logged Aspirin"
        entries = await store.list_health_entries("u1", entry_type="medication")
        assert len(entries) == 1

        # Markers never reach stored history
        messages = await store.list_recent_messages("u1", 10)
        assert messages[-1].content == "Logged it!"

    async def test_pending_then_confirm(self, make_companion, store):
        llm = MockLLMProvider(
            [
                "Happy to. "
                + tool_call(
                    "create_reminder",
                    {"title": "Evening pills", "time": "20:00"},
                    call_id="rem-1",
                )
            ]
        )
        companion = make_companion(llm)

        reply = await companion.handle_message("u1", "remind me to take my evening pills")
        assert len(reply.pending) == 1
        assert reply.text.endswith("Is this correct?")
        assert await store.list_reminders("u1") == []

        result = await companion.confirm("u1", "rem-1")
        assert result.success
        assert len(await store.list_reminders("u1")) == 1

    async def test_reject(self, make_companion, store):
        llm = MockLLMProvider(
            [tool_call("create_reminder", {"title": "Stretch", "time": "07:00"}, call_id="r")]
        )
        companion = make_companion(llm)
        await companion.handle_message("u1", "remind me to stretch")

        rejected = await companion.reject("u1", "r")
        assert rejected.request_id == "r"
        assert await companion.engine.pending("u1") == []

    async def test_crisis(self, make_companion):
        llm = MockLLMProvider(
            ["I'm here with you. " + tool_call("update_mood", {"mood": "crisis"})]
        )
        reply = await make_companion(llm).handle_message("u1", "I can't go on")
        assert reply.crisis

    async def test_provider_failure(self, make_companion, store, failing_llm):
        reply = await make_companion(failing_llm).handle_message("u1", "hello")

        assert reply.text == APOLOGY
        assert reply.provider_failed
        assert reply.outcome is None
        messages = await store.list_recent_messages("u1", 10)
        assert [m.role for m in messages] == ["user"]

    async def test_emergency_prompt(self, make_companion):
        llm = MockLLMProvider()
        await make_companion(llm).handle_message("u1", "chest pain", emergency=True)
        assert "EMERGENCY MODE" in llm.complete_calls[0]["system"]

    async def test_summary_refreshes_at_interval(self, make_companion, store):
        llm = MockLLMProvider()
        companion = make_companion(llm)

        for i in range(5):
            await companion.handle_message("u1", f"hello {i}")

        # Five turns plus one summary request
        assert len(llm.complete_calls) == 6
        summary = await store.get_summary("u1")
        assert summary.message_count == 10

    async def test_history_failure_keeps_reply(self, config, clock):
        class BrokenHistoryStore(InMemoryHealthStore):
            async def count_messages(self, user_id: str) -> int:
                raise StoreError("database is locked")

        store = BrokenHistoryStore()
        llm = MockLLMProvider(
            [
                "Logged it! "
                + tool_call("log_medication", {"medication_name": "Aspirin"}, confidence=0.95)
            ]
        )
        companion = Companion.create(store, llm, config, clock=clock)

        reply = await companion.handle_message("u1", "I took my aspirin")

        assert reply.text == "Logged it!"
        assert reply.outcome.results[0].success
        assert len(await store.list_health_entries("u1", entry_type="medication")) == 1


class TestCompanionLocks:
    async def test_locks_are_released(self, make_companion):
        companion = make_companion(MockLLMProvider(["One", "Two", "Three"]))

        await asyncio.gather(
            companion.handle_message("u1", "first"),
            companion.handle_message("u2", "second"),
            companion.handle_message("u1", "third"),
        )

        assert len(companion._locks) == 0

    async def test_same_user_turns_do_not_overlap(self, make_companion, store):
        companion = make_companion(MockLLMProvider(["One", "Two"]))

        await asyncio.gather(
            companion.handle_message("u1", "first"),
            companion.handle_message("u1", "second"),
        )

        messages = await store.list_recent_messages("u1", 10)
        assert [m.role for m in messages] == ["user", "assistant", "user", "assistant"]
