"""
Command dispatcher.

Takes the (action, payload) pairs extracted from the language model,
validates each one and submits it to the backend as its own request.
Commands are independent: a failure is logged and recorded, and the next
command is still attempted. Nothing is retried.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from .constants import (
    SENT,
    SENT_MESSAGE,
    TRANSPORT_FAILED,
    TRANSPORT_FAILED_MESSAGE,
    VALIDATION_FAILED,
    VALIDATION_FAILED_MESSAGE,
)
from .errors import BackendError, SchemaError, TransportError
from .schema import serialize, validate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Sent:
    action: str
    response_body: Optional[str]

    status = SENT
    ok = True


@dataclass(frozen=True)
class ValidationFailed:
    action: str
    error: SchemaError

    status = VALIDATION_FAILED
    ok = False


@dataclass(frozen=True)
class TransportFailed:
    action: str
    reason: str

    status = TRANSPORT_FAILED
    ok = False


DispatchResult = Union[Sent, ValidationFailed, TransportFailed]

Commands = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]


class CommandDispatcher:
    """Validates extracted commands and sends each one to the backend client."""

    def __init__(self, client, default_bed_id: Optional[str] = None, concurrent: bool = False, max_workers: int = 4):
        self.client = client
        self.default_bed_id = default_bed_id
        self.concurrent = concurrent
        self.max_workers = max_workers

    def dispatch(self, commands: Commands) -> List[DispatchResult]:
        """Dispatch every command and return one result per command, in input order."""
        if isinstance(commands, Mapping):
            pairs = list(commands.items())
        else:
            pairs = list(commands)

        if not pairs:
            logger.info("No commands to dispatch")
            return []

        if self.concurrent and len(pairs) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                # map() yields in submission order regardless of completion order
                return list(pool.map(lambda pair: self.dispatch_one(*pair), pairs))

        return [self.dispatch_one(action, payload) for action, payload in pairs]

    def dispatch_one(self, action: str, payload: Any) -> DispatchResult:
        if self.default_bed_id and isinstance(payload, dict) and "bedId" not in payload and "bed_id" not in payload:
            payload = {"bedId": self.default_bed_id, **payload}

        try:
            command = validate(action, payload)
        except SchemaError as e:
            logger.warning(VALIDATION_FAILED_MESSAGE.format(action=action, error=e))
            return ValidationFailed(action, e)

        body = serialize(command, payload)
        try:
            response_body = self.client.send_command(command.bed_id, action, body)
        except (BackendError, TransportError) as e:
            logger.error(TRANSPORT_FAILED_MESSAGE.format(action=action, reason=e))
            return TransportFailed(action, str(e))

        logger.info(SENT_MESSAGE.format(action=action, bed_id=command.bed_id))
        return Sent(action, response_body)
