import json
import os
import logging
from dataclasses import dataclass, field
from typing import Dict, Any, Optional

import openai

from bed_commands.errors import LanguageModelError, ParseError, TransportError
from bed_commands.schema import describe_actions

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"

EXAMPLE_COMMANDS = """{
    "plant": {"bedId": "someId", "rowPosition": 1, "cellPositionInRow": 2, "plantType": "tomato", "plantCultivar": "Brandywine"},
    "water": {"bedId": "someId", "started": "2024-05-15T12:00:00", "volume": 0.5}
}"""


def build_prompt() -> str:
    """Constructs the system prompt that lists every bed action and its parameters."""
    return (
        "You are a helpful assistant that generates a JSON object where keys represent actions for a garden bed "
        "(e.g., \"plant\", \"water\") and values are objects containing the details needed for those actions.\n"
        "The available actions and their expected parameters are:\n\n"
        f"{describe_actions()}\n"
        "The 'started' field should be in ISO 8601 format (e.g., \"2024-05-15T12:00:00\").\n"
        "Use each action at most once. Leave out actions the user did not ask for.\n\n"
        f"Example:\n{EXAMPLE_COMMANDS}\n\n"
        "Return ONLY the JSON object. Do NOT include explanations, markdown, or code blocks."
    )


@dataclass
class ExtractionResult:
    """Commands found in a language model response, or the reason none could be read."""
    commands: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _strip_markdown(content: str) -> str:
    content = content.strip()
    if content.startswith("```json"):
        content = content[7:]
    elif content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


def _commands_from_response(raw_response: str) -> Dict[str, Any]:
    try:
        document = json.loads(raw_response)
    except (TypeError, json.JSONDecodeError) as e:
        raise ParseError(f"response is not valid JSON: {e}") from e

    choices = document.get("choices") if isinstance(document, dict) else None
    if not isinstance(choices, list) or not choices:
        raise ParseError("response has no choices")

    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str):
        raise ParseError("first choice has no message content")

    try:
        commands = json.loads(_strip_markdown(content))
    except json.JSONDecodeError as e:
        raise ParseError(f"message content is not valid JSON: {e}") from e

    if not isinstance(commands, dict):
        raise ParseError(f"message content is a JSON {type(commands).__name__}, expected an object")
    return commands


def parse_response(raw_response: str) -> ExtractionResult:
    """Read the action -> payload object out of a chat completion response document."""
    try:
        return ExtractionResult(commands=_commands_from_response(raw_response))
    except ParseError as e:
        return ExtractionResult(error=str(e))


def extract(raw_response: str) -> Dict[str, Any]:
    """
    Fail-soft variant of parse_response: returns an empty mapping on any
    parse failure and logs the reason. Use parse_response to tell
    "no commands" apart from "unreadable response".
    """
    result = parse_response(raw_response)
    if not result.ok:
        logger.error(f"Error parsing JSON response: {result.error}")
    return result.commands


def request_commands(
    instruction: str,
    client: Optional[openai.OpenAI] = None,
    model: str = DEFAULT_MODEL,
    api_key: Optional[str] = None,
) -> str:
    """
    Ask the language model to turn an instruction into bed commands.

    Returns the raw chat completion document as a JSON string. Raises
    LanguageModelError when no API key is configured or the API answers
    with an error status, and TransportError when the API is unreachable.
    """
    if client is None:
        api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise LanguageModelError("OpenAI API key not set. Please set OPENAI_API_KEY environment variable.")
        client = openai.OpenAI(api_key=api_key)

    logger.debug("Sending prompt to OpenAI...")
    try:
        response = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": build_prompt()},
                {"role": "user", "content": instruction}
            ],
            temperature=0,
        )
    except openai.APIStatusError as e:
        raise LanguageModelError(f"ChatGPT API error: {e.status_code} - {e.message}", status_code=e.status_code) from e
    except openai.APIConnectionError as e:
        raise TransportError(f"OpenAI API call failed: {e}") from e

    raw_response = response.model_dump_json()
    logger.debug(f"Raw response: {raw_response}")
    return raw_response


def parse_user_command(instruction: str, **kwargs) -> Dict[str, Any]:
    """Parses a free-text gardening instruction into an action -> payload mapping."""
    return extract(request_commands(instruction, **kwargs))
