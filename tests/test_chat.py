import pytest

from config import CHAT_ERROR_MESSAGE
from coach.chat import (
    build_chat_system_instruction,
    open_chat_session,
    stream_reply,
    greeting_message,
    ChatBusyError,
)
from services.llm_client import LLMError


def test_instruction_contains_score_and_gaps_verbatim(sample_analysis):
    instruction = build_chat_system_instruction(sample_analysis)
    assert "42" in instruction
    assert "Match Score: 42%" in instruction
    assert "System Design (Critical)" in instruction
    assert "1. Frontend System Design\n2. TypeScript Generics" in instruction
    assert sample_analysis["marketSummary"] in instruction
    assert '"Senior Frontend Engineer"' in instruction


def test_gaps_are_comma_joined(sample_analysis):
    sample_analysis["gaps"].append({"skillName": "Testing", "importance": "High"})
    instruction = build_chat_system_instruction(sample_analysis)
    assert "System Design (Critical), Testing (High)" in instruction


def test_session_is_seeded_with_instruction(fake_llm_factory, sample_analysis):
    llm = fake_llm_factory()
    session = open_chat_session(sample_analysis, llm)
    assert llm.chats[0].system_instruction == session.system_instruction
    assert "Match Score: 42%" in session.system_instruction


def test_send_yields_fragments_in_order(fake_llm_factory, sample_analysis):
    llm = fake_llm_factory(chat_fragments=["Focus ", "on ", "system design."])
    session = open_chat_session(sample_analysis, llm)

    assert "".join(session.send("Where do I start?")) == "Focus on system design."
    assert llm.chats[0].sent == ["Where do I start?"]
    assert not session.is_busy


def test_only_one_exchange_in_flight(fake_llm_factory, sample_analysis):
    llm = fake_llm_factory(chat_fragments=["a", "b"])
    session = open_chat_session(sample_analysis, llm)

    first = session.send("one")
    next(first)
    assert session.is_busy
    with pytest.raises(ChatBusyError):
        session.send("two")

    list(first)
    assert not session.is_busy
    assert "".join(session.send("two")) == "ab"


def test_stream_reply_emits_snapshots_then_final(fake_llm_factory, sample_analysis):
    llm = fake_llm_factory(chat_fragments=["Hel", "lo"])
    session = open_chat_session(sample_analysis, llm)

    snapshots = list(stream_reply(session, "hi", message_id="m1"))

    assert [s.text for s in snapshots] == ["Hel", "Hello", "Hello"]
    assert [s.is_streaming for s in snapshots] == [True, True, False]
    assert {s.id for s in snapshots} == {"m1"}
    assert all(s.role == "model" for s in snapshots)


def test_stream_reply_failure_substitutes_apology(fake_llm_factory, sample_analysis):
    llm = fake_llm_factory(chat_fragments=["partial ", LLMError("connection reset")])
    session = open_chat_session(sample_analysis, llm)

    snapshots = list(stream_reply(session, "hi", message_id="m1"))

    final = snapshots[-1]
    assert final.text == CHAT_ERROR_MESSAGE
    assert final.is_streaming is False
    assert final.id == "m1"
    assert not session.is_busy


def test_stream_reply_failure_before_any_fragment(fake_llm_factory, sample_analysis):
    llm = fake_llm_factory(chat_fragments=[LLMError("quota exceeded")])
    session = open_chat_session(sample_analysis, llm)

    snapshots = list(stream_reply(session, "hi"))
    assert len(snapshots) == 1
    assert snapshots[0].text == CHAT_ERROR_MESSAGE


def test_snapshots_are_immutable(fake_llm_factory, sample_analysis):
    llm = fake_llm_factory(chat_fragments=["x"])
    session = open_chat_session(sample_analysis, llm)
    snapshot = next(stream_reply(session, "hi"))
    with pytest.raises(AttributeError):
        snapshot.text = "changed"


def test_greeting_names_the_role(sample_analysis):
    message = greeting_message(sample_analysis)
    assert message.role == "model"
    assert "Senior Frontend Engineer" in message.text
