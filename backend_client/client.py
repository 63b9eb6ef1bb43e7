import logging
from typing import Any, Dict
from urllib.parse import quote

import requests

from bed_commands.errors import BackendError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://starbornag-vevkduzweq-uc.a.run.app/api"


class HTTPBackendClient:
    """HTTP client for the garden backend: one POST per bed command"""

    def __init__(self, base_url=DEFAULT_BASE_URL, timeout: float = 30):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def bed_url(self, bed_id: str, action: str) -> str:
        # bed ids come from model output; keep them inside one path segment
        segment = quote(bed_id, safe='')
        if segment in (".", ".."):
            segment = segment.replace(".", "%2E")
        return f"{self.base_url}/beds/{segment}/{action}"

    def send_command(self, bed_id: str, action: str, body: Dict[str, Any]) -> str:
        """
        POST a validated command to the backend.

        Returns the response text on HTTP 200. Raises BackendError for any
        other status and TransportError when the backend cannot be reached.
        """
        url = self.bed_url(bed_id, action)
        logger.debug(f"POST {url}: {body}")
        try:
            response = requests.post(url, json=body, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Error sending {action} command: {e}") from e

        if response.status_code != 200:
            raise BackendError(action, response.status_code, response.text)
        return response.text
