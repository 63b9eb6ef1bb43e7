"""
Runtime settings, read from the environment.

A ``.env`` file in the working directory is loaded first, so secrets such
as OPENAI_API_KEY never need to live in the code.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from backend_client.client import DEFAULT_BASE_URL
from command_parser.parser import DEFAULT_MODEL

TRUTHY = {"1", "true", "yes", "on"}


def _float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}")


@dataclass(frozen=True)
class Settings:
    openai_api_key: Optional[str] = None
    openai_model: str = DEFAULT_MODEL
    garden_api_url: str = DEFAULT_BASE_URL
    default_bed_id: Optional[str] = None
    http_timeout: float = 30.0
    concurrent_dispatch: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_model=os.getenv("OPENAI_MODEL") or DEFAULT_MODEL,
            garden_api_url=os.getenv("GARDEN_API_URL") or DEFAULT_BASE_URL,
            default_bed_id=os.getenv("GARDEN_BED_ID") or None,
            http_timeout=_float_env("GARDEN_HTTP_TIMEOUT", 30.0),
            concurrent_dispatch=os.getenv("GARDEN_CONCURRENT_DISPATCH", "").strip().lower() in TRUTHY,
            log_level=(os.getenv("GARDEN_LOG_LEVEL") or "INFO").upper(),
        )
