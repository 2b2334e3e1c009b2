"""
Data Models
===========

Models shared across Mini-Guard components.

Models:
    - AlertEvent: Motion score over threshold plus operator message
    - Credentials: Telegram bot token and chat id
"""

from miniguard.models.alert import AlertEvent
from miniguard.models.credentials import Credentials

__all__ = [
    "AlertEvent",
    "Credentials",
]
