"""Bed commands - schema, validation and dispatch of garden bed actions."""

from .dispatcher import CommandDispatcher, DispatchResult, Sent, TransportFailed, ValidationFailed
from .schema import ACTIONS, BedCommand, serialize, validate

__all__ = [
    "ACTIONS",
    "BedCommand",
    "CommandDispatcher",
    "DispatchResult",
    "Sent",
    "TransportFailed",
    "ValidationFailed",
    "serialize",
    "validate",
]
