"""
Alert Models
============

Data model for motion alerts handed to the alert dispatcher.
"""

import time
from dataclasses import dataclass, field


ALERT_MESSAGE_TEMPLATE = "⚠️ Motion detected! ({score} px)"


@dataclass(frozen=True, slots=True)
class AlertEvent:
    """
    A motion score that exceeded the configured threshold.

    Fire-and-forget: no history of events is kept anywhere.

    Attributes:
        score: Changed-pixel count that triggered the alert
        message: Human-readable text sent to the operator
        timestamp: UNIX time the event was created
    """

    score: int
    message: str
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.score < 0:
            raise ValueError("score must be non-negative")

    @classmethod
    def from_score(cls, score: int) -> "AlertEvent":
        """Build an event whose message carries the literal score."""
        return cls(score=score, message=ALERT_MESSAGE_TEMPLATE.format(score=score))

    def to_dict(self) -> dict:
        """Export as dictionary for logging/serialization."""
        return {
            "score": self.score,
            "message": self.message,
            "timestamp": round(self.timestamp, 3),
        }
