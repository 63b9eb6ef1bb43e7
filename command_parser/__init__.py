"""Command Parser - turns free-text gardening instructions into bed commands using OpenAI."""

from .parser import extract, parse_response, parse_user_command, request_commands

__all__ = ["extract", "parse_response", "parse_user_command", "request_commands"]
