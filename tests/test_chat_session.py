"""
Tests for chat sessions and the kid-safe assistant.
"""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from funfactory.chat import (
    KID_SAFE_PERSONA,
    ChatHistoryStore,
    ChatMessage,
    ChatSession,
    KidChatAssistant,
)
from funfactory.common import (
    ChatResult,
    RemoteGenerationError,
    ValidationError,
    call_chat_completion,
)


@pytest.fixture
def store(tmp_path: Path) -> ChatHistoryStore:
    return ChatHistoryStore(tmp_path)


def test_hello_turn_is_recorded_and_persisted(store: ChatHistoryStore) -> None:
    client = MagicMock(return_value="Hi friend! What shall we imagine today?")
    session = ChatSession(client=client, store=store)

    reply = session.send_turn("hello")

    expected = [
        ChatMessage.user("hello"),
        ChatMessage.assistant("Hi friend! What shall we imagine today?"),
    ]
    assert reply == expected[1]
    assert list(session.messages) == expected
    assert store.load() == expected
    client.assert_called_once_with([], "hello")


def test_client_receives_prior_history_without_the_new_message(
    store: ChatHistoryStore,
) -> None:
    store.save([ChatMessage.user("hi"), ChatMessage.assistant("hello!")])
    client = MagicMock(return_value="Whales are huge!")
    session = ChatSession(client=client, store=store)

    session.send_turn("tell me about whales")

    history, new_message = client.call_args.args
    assert list(history) == [ChatMessage.user("hi"), ChatMessage.assistant("hello!")]
    assert new_message == "tell me about whales"
    assert len(session.messages) == 4


def test_failed_turn_keeps_the_user_message(store: ChatHistoryStore) -> None:
    client = MagicMock(side_effect=RemoteGenerationError("Failed to get chat response: quota"))
    session = ChatSession(client=client, store=store)

    with pytest.raises(RemoteGenerationError, match="quota"):
        session.send_turn("hello")

    assert list(session.messages) == [ChatMessage.user("hello")]
    assert store.load() == [ChatMessage.user("hello")]


def test_unexpected_client_error_is_reported_as_remote_failure(store: ChatHistoryStore) -> None:
    session = ChatSession(client=MagicMock(side_effect=ConnectionError("offline")), store=store)

    with pytest.raises(RemoteGenerationError, match="offline"):
        session.send_turn("hello")


def test_blank_message_is_rejected_before_any_call(store: ChatHistoryStore) -> None:
    client = MagicMock()
    session = ChatSession(client=client, store=store)

    with pytest.raises(ValidationError):
        session.send_turn("   ")

    client.assert_not_called()
    assert session.messages == ()


def test_clear_removes_the_persisted_record(store: ChatHistoryStore) -> None:
    session = ChatSession(client=MagicMock(return_value="hi"), store=store)
    session.send_turn("hello")

    session.clear()

    assert session.messages == ()
    assert not store.path.exists()


def test_assistant_sends_persona_history_and_new_message() -> None:
    completion_fn = MagicMock(return_value=ChatResult(text="Dinosaurs roar!", raw={}))
    assistant = KidChatAssistant(model="gemini/test-model", timeout=5, completion_fn=completion_fn)

    reply = assistant.converse([ChatMessage.user("hi"), ChatMessage.assistant("hello!")], "roar?")

    assert reply == "Dinosaurs roar!"
    kwargs = completion_fn.call_args.kwargs
    assert kwargs["model"] == "gemini/test-model"
    assert kwargs["timeout"] == 5
    assert kwargs["temperature"] == 0.7
    assert kwargs["top_p"] == 0.95
    assert kwargs["messages"] == [
        {"role": "system", "content": KID_SAFE_PERSONA},
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello!"},
        {"role": "user", "content": "roar?"},
    ]


def test_assistant_reports_empty_replies() -> None:
    assistant = KidChatAssistant(completion_fn=MagicMock(return_value=ChatResult(text="", raw={})))

    with pytest.raises(RemoteGenerationError, match="No text response"):
        assistant([], "hello")


def test_assistant_wraps_completion_errors() -> None:
    assistant = KidChatAssistant(completion_fn=MagicMock(side_effect=TimeoutError("timed out")))

    with pytest.raises(RemoteGenerationError, match="Failed to get chat response: timed out"):
        assistant([], "hello")


def test_assistant_model_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FUNFACTORY_CHAT_MODEL", "openai/gpt-4o-mini")

    assert KidChatAssistant(completion_fn=MagicMock()).model == "openai/gpt-4o-mini"


def test_call_chat_completion_builds_litellm_payload() -> None:
    response = {"choices": [{"message": {"content": "  Hello!  "}}]}
    with patch("funfactory.common.llm.completion", return_value=response) as completion:
        result = call_chat_completion(
            model="gemini/test",
            messages=[{"role": "user", "content": "hi"}],
            temperature=0.7,
            top_p=0.95,
            timeout=10,
        )

    assert result.text == "Hello!"
    completion.assert_called_once_with(
        model="gemini/test",
        messages=[{"role": "user", "content": "hi"}],
        temperature=0.7,
        top_p=0.95,
        timeout=10,
    )


def test_call_chat_completion_rejects_unexpected_response() -> None:
    with patch("funfactory.common.llm.completion", return_value={"choices": []}):
        with pytest.raises(RuntimeError, match="Unexpected LiteLLM response format"):
            call_chat_completion(model="gemini/test", messages=[])
