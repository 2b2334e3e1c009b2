"""
Credential Models
=================

Secrets needed to reach the Telegram Bot API.

Example:
    from miniguard.models.credentials import Credentials

    creds = Credentials(bot_token="123:ABC", chat_id="42")
"""

from pydantic import BaseModel, ConfigDict, Field


class Credentials(BaseModel):
    """
    Telegram bot credentials.

    Loaded once at startup and shared read-only for the process
    lifetime. Frozen so no component can mutate them.

    Attributes:
        bot_token: Bot token issued by @BotFather
        chat_id: Destination chat identifier
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    bot_token: str = Field(
        ...,
        min_length=1,
        description="Telegram bot token",
    )

    chat_id: str = Field(
        ...,
        min_length=1,
        description="Destination chat identifier",
    )

    def __repr__(self) -> str:
        """Never print the token."""
        return f"Credentials(bot_token='***', chat_id={self.chat_id!r})"

    __str__ = __repr__
