import json
import logging
from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from bed_commands.errors import LanguageModelError, TransportError
from command_parser.parser import (
    build_prompt,
    extract,
    parse_response,
    parse_user_command,
    request_commands,
)

CHAT_URL = "https://api.openai.com/v1/chat/completions"


def completion(content):
    """A chat completion document wrapping ``content`` the way the OpenAI API does."""
    return json.dumps({
        "id": "chatcmpl-123",
        "object": "chat.completion",
        "model": "gpt-4o-mini",
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}
        ],
    })


def fake_client(raw_response):
    client = MagicMock()
    client.chat.completions.create.return_value.model_dump_json.return_value = raw_response
    return client


PLANT = {"bedId": "b1", "rowPosition": 1, "cellPositionInRow": 2, "plantType": "tomato", "plantCultivar": "Brandywine"}
WATER = {"bedId": "b1", "started": "2024-05-15T12:00:00", "volume": 0.5}


# Test extract on well-formed responses
def test_extract_preserves_key_order():
    commands = extract(completion(json.dumps({"plant": PLANT, "water": WATER})))
    assert list(commands) == ["plant", "water"]
    assert commands["plant"] == PLANT
    assert commands["water"] == WATER

    reversed_commands = extract(completion(json.dumps({"water": WATER, "plant": PLANT})))
    assert list(reversed_commands) == ["water", "plant"]


def test_extract_strips_markdown_fence():
    content = "```json\n" + json.dumps({"water": WATER}) + "\n```"
    assert extract(completion(content)) == {"water": WATER}


def test_extract_uses_first_choice():
    raw = json.dumps({"choices": [
        {"message": {"content": json.dumps({"water": WATER})}},
        {"message": {"content": json.dumps({"plant": PLANT})}},
    ]})
    assert list(extract(raw)) == ["water"]


def test_extract_empty_object():
    result = parse_response(completion("{}"))
    assert result.ok
    assert result.commands == {}


# Test extract on malformed responses: empty mapping, no exception
@pytest.mark.parametrize("raw", [
    "",
    "not json at all",
    '{"choices": [',
    json.dumps({"error": {"message": "rate limited"}}),
    json.dumps({"choices": []}),
    json.dumps({"choices": [{"message": {"role": "assistant"}}]}),
    json.dumps({"choices": [{"message": {"content": None}}]}),
    json.dumps({"choices": ["oops"]}),
    json.dumps([1, 2, 3]),
    completion("Sure! Here are your commands: plant tomatoes"),
    completion('{"plant": {"bedId": "b1",'),
    completion(json.dumps([{"plant": PLANT}])),
])
def test_extract_malformed_returns_empty(raw):
    assert extract(raw) == {}
    result = parse_response(raw)
    assert not result.ok
    assert result.error


def test_extract_handles_non_string_input():
    assert extract(None) == {}


def test_extract_logs_parse_failure(caplog):
    with caplog.at_level(logging.ERROR):
        extract(completion("no commands here"))
    assert "Error parsing JSON response" in caplog.text


# Test the prompt
def test_build_prompt_lists_actions():
    prompt = build_prompt()
    for action in ("prepare", "plant", "fertilize", "water", "harvest"):
        assert f'"{action}"' in prompt
    assert "ISO 8601" in prompt
    assert "Brandywine" in prompt


# Test request_commands against a mocked OpenAI client
def test_request_commands_sends_instruction():
    raw = completion(json.dumps({"plant": PLANT}))
    client = fake_client(raw)

    assert request_commands("Plant tomatoes in row 1 cell 2", client=client, model="gpt-test") == raw

    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-test"
    assert kwargs["messages"][0] == {"role": "system", "content": build_prompt()}
    assert kwargs["messages"][1] == {"role": "user", "content": "Plant tomatoes in row 1 cell 2"}


def test_request_commands_without_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with patch("command_parser.parser.openai.OpenAI") as mock_openai:
        with pytest.raises(LanguageModelError):
            request_commands("Water the bed")
        mock_openai.assert_not_called()


def test_request_commands_uses_env_api_key(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    with patch("command_parser.parser.openai.OpenAI") as mock_openai:
        mock_openai.return_value = fake_client(completion("{}"))
        request_commands("Water the bed")
        mock_openai.assert_called_once_with(api_key="sk-test")


def test_request_commands_status_error_is_fatal():
    client = MagicMock()
    response = httpx.Response(401, request=httpx.Request("POST", CHAT_URL))
    client.chat.completions.create.side_effect = openai.APIStatusError("Incorrect API key", response=response, body=None)

    with pytest.raises(LanguageModelError) as exc:
        request_commands("Water the bed", client=client)
    assert exc.value.status_code == 401


def test_request_commands_connection_error():
    client = MagicMock()
    client.chat.completions.create.side_effect = openai.APIConnectionError(request=httpx.Request("POST", CHAT_URL))

    with pytest.raises(TransportError):
        request_commands("Water the bed", client=client)


def test_parse_user_command():
    client = fake_client(completion(json.dumps({"plant": PLANT, "water": WATER})))
    assert parse_user_command("Plant and water", client=client) == {"plant": PLANT, "water": WATER}
