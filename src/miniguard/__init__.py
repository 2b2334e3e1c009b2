"""
Mini-Guard
==========

Minimal night-time motion alarm.

This package watches a live camera feed, compares successive frames and
sends a Telegram message whenever the number of changed pixels exceeds a
configurable threshold.

Components:
    - capture: Camera frame source and frame preprocessing
    - detection: Inter-frame difference and motion decision
    - alerts: Telegram alert dispatch
    - credentials: Bot token / chat id persistence
    - sentinel: The detection-and-alert loop

Example:
    from miniguard.main import main

    raise SystemExit(main(["--device", "0"]))
"""

__version__ = "0.1.0"
__author__ = "Mini-Guard Project"

__all__ = [
    "__version__",
]
