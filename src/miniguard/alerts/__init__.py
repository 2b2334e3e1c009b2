"""
Alerts Module
=============

Outbound motion alerts.
"""

from miniguard.alerts.telegram import AlertDispatcher, TelegramDispatcher, build_url

__all__ = ["AlertDispatcher", "TelegramDispatcher", "build_url"]
