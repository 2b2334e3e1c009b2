"""
Credential Store
================

Persists and supplies the Telegram bot token and chat id.

On first run the operator is prompted for both values, which are then
written to a properties file. Later runs read that file without
prompting.

File Format (Java-properties compatible):
    # Telegram credentials for Mini-Guard
    # <timestamp>
    token=123456\:ABC-DEF
    chatId=987654321

Design Rules:
    - Any read, parse or write failure is fatal (CredentialStoreError)
    - The token is never logged
    - load() runs once, before the sentinel loop starts
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Union

from pydantic import ValidationError

from miniguard.models.credentials import Credentials


logger = logging.getLogger(__name__)

DEFAULT_CREDENTIALS_PATH = "telegram.properties"
TOKEN_KEY = "token"
CHAT_ID_KEY = "chatId"
FILE_HEADER = "Telegram credentials for Mini-Guard"

TOKEN_PROMPT = "Enter TELEGRAM BOT TOKEN: "
CHAT_ID_PROMPT = "Enter TELEGRAM CHAT ID: "


class CredentialStoreError(Exception):
    """Raised when credentials cannot be read, parsed or written."""
    pass


def _escape(value: str) -> str:
    """Backslash-escape \\, = and : the way java.util.Properties does."""
    return "".join("\\" + ch if ch in "\\=:" else ch for ch in value)


def _unescape(value: str) -> str:
    out = []
    chars = iter(value)
    for ch in chars:
        if ch == "\\":
            out.append(next(chars, ""))
        else:
            out.append(ch)
    return "".join(out)


def parse_properties(text: str) -> Dict[str, str]:
    """
    Parse ``key=value`` lines.

    Blank lines and lines starting with ``#`` or ``!`` are ignored.
    ``=`` and ``:`` are both accepted as separators; the first one wins.

    Raises:
        ValueError: On a non-comment line without a separator
    """
    values: Dict[str, str] = {}
    for lineno, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line[0] in "#!":
            continue

        positions = [pos for pos in (line.find("="), line.find(":")) if pos >= 0]
        if not positions:
            raise ValueError(f"line {lineno}: expected key=value, got {line!r}")

        split_at = min(positions)
        key = line[:split_at].strip()
        value = _unescape(line[split_at + 1:].strip())
        if not key:
            raise ValueError(f"line {lineno}: empty key")
        values[key] = value
    return values


def format_properties(values: Dict[str, str], header: str = FILE_HEADER) -> str:
    """Render ``values`` as a properties file with a comment header."""
    lines = [f"# {header}", f"# {datetime.now().strftime('%a %b %d %H:%M:%S %Y')}"]
    lines.extend(f"{key}={_escape(value)}" for key, value in values.items())
    return "\n".join(lines) + "\n"


class CredentialStore:
    """
    File-backed credential store with interactive first-run setup.

    Attributes:
        path: Location of the properties file

    Example:
        store = CredentialStore("telegram.properties")
        creds = store.load()
    """

    def __init__(
        self,
        path: Union[str, Path] = DEFAULT_CREDENTIALS_PATH,
        prompt: Callable[[str], str] = input,
        output: Callable[[str], None] = print,
    ) -> None:
        """
        Initialize credential store.

        Args:
            path: Properties file location
            prompt: Line reader used on first run (defaults to input())
            output: Operator message sink (defaults to print())
        """
        self.path = Path(path)
        self._prompt = prompt
        self._output = output

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> Credentials:
        """
        Load credentials, prompting and persisting them on first run.

        Returns:
            Credentials

        Raises:
            CredentialStoreError: If the file cannot be read, parsed or
                written, or the prompt is aborted
        """
        if self.exists():
            return self._read()

        logger.info(f"No credential file at {self.path}, prompting operator")
        creds = self._collect()
        self.save(creds)
        self._output(f"{self.path} created.")
        return creds

    def save(self, creds: Credentials) -> None:
        """
        Write credentials to disk, readable by the owner only.

        Raises:
            CredentialStoreError: If the file cannot be written
        """
        text = format_properties({
            TOKEN_KEY: creds.bot_token,
            CHAT_ID_KEY: creds.chat_id,
        })
        try:
            self.path.write_text(text, encoding="utf-8")
            os.chmod(self.path, 0o600)
        except OSError as e:
            raise CredentialStoreError(f"Failed to write {self.path}: {e}") from e
        logger.info(f"Credentials saved to {self.path}")

    def _read(self) -> Credentials:
        try:
            text = self.path.read_text(encoding="utf-8")
            values = parse_properties(text)
        except (OSError, UnicodeDecodeError, ValueError) as e:
            raise CredentialStoreError(f"Failed to read {self.path}: {e}") from e

        missing = [key for key in (TOKEN_KEY, CHAT_ID_KEY) if not values.get(key)]
        if missing:
            raise CredentialStoreError(
                f"Failed to read {self.path}: missing {', '.join(missing)}. "
                f"Fix the file or delete it to be prompted again."
            )

        try:
            creds = Credentials(
                bot_token=values[TOKEN_KEY],
                chat_id=values[CHAT_ID_KEY],
            )
        except ValidationError as e:
            raise CredentialStoreError(f"Failed to read {self.path}: {e}") from e

        logger.info(f"Credentials loaded from {self.path}")
        return creds

    def _collect(self) -> Credentials:
        try:
            token = self._prompt(TOKEN_PROMPT).strip()
            chat_id = self._prompt(CHAT_ID_PROMPT).strip()
        except EOFError as e:
            raise CredentialStoreError(
                "Credential prompt aborted (no input available). "
                f"Create {self.path} with '{TOKEN_KEY}' and '{CHAT_ID_KEY}' entries."
            ) from e

        try:
            return Credentials(bot_token=token, chat_id=chat_id)
        except ValidationError as e:
            raise CredentialStoreError(
                f"Bot token and chat id must both be non-empty: {e}"
            ) from e
