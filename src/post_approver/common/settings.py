import logging
import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

REQUIRED_VARS = (
    "TELEGRAM_TOKEN",
    "TELEGRAM_WHITELIST",
    "AIRTABLE_API_KEY",
    "AIRTABLE_BASE_ID",
    "AIRTABLE_TABLE_NAME",
)

# Telegram accepts 1-256 characters A-Z, a-z, 0-9, _ and -
WEBHOOK_SECRET_RE = re.compile(r"[A-Za-z0-9_-]{1,256}")


class ConfigurationError(Exception):
    """Raised when the environment does not describe a runnable bot"""


@dataclass(frozen=True, slots=True)
class Settings:
    telegram_token: str
    allowed_ids: frozenset[int]
    airtable_api_key: str
    airtable_base_id: str
    airtable_table_name: str
    log_chat_id: Optional[int] = None
    webhook_url: Optional[str] = None
    webhook_secret: Optional[str] = None
    webhook_host: str = "0.0.0.0"
    webhook_port: int = 8080

    @property
    def operator_chat_id(self) -> int:
        """Chat receiving forwarded warnings: LOG_CHAT_ID or the smallest allowed id"""
        if self.log_chat_id is not None:
            return self.log_chat_id
        return min(self.allowed_ids)


def parse_id_list(raw: str) -> frozenset[int]:
    """Parse a comma-separated list of Telegram ids, ignoring blanks"""
    ids = set()
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        try:
            ids.add(int(chunk))
        except ValueError as e:
            raise ConfigurationError(f"Invalid Telegram id {chunk!r}") from e
    return frozenset(ids)


def _parse_int(name: str, value: Optional[str]) -> Optional[int]:
    if value is None or not value.strip():
        return None
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from e


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables.

    Raises ConfigurationError listing every missing variable at once.
    """
    env = os.environ if environ is None else environ

    missing = [name for name in REQUIRED_VARS if not env.get(name, "").strip()]
    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    allowed_ids = parse_id_list(env["TELEGRAM_WHITELIST"])
    if not allowed_ids:
        raise ConfigurationError("TELEGRAM_WHITELIST contains no ids")

    webhook_url = env.get("WEBHOOK_URL") or None
    webhook_secret = env.get("WEBHOOK_SECRET", "").strip() or None
    if webhook_url and webhook_secret is None:
        raise ConfigurationError("WEBHOOK_SECRET is required when WEBHOOK_URL is set")
    if webhook_secret is not None and not WEBHOOK_SECRET_RE.fullmatch(webhook_secret):
        raise ConfigurationError(
            "WEBHOOK_SECRET may only contain A-Z, a-z, 0-9, _ and - (up to 256 chars)"
        )

    settings = Settings(
        telegram_token=env["TELEGRAM_TOKEN"].strip(),
        allowed_ids=allowed_ids,
        airtable_api_key=env["AIRTABLE_API_KEY"].strip(),
        airtable_base_id=env["AIRTABLE_BASE_ID"].strip(),
        airtable_table_name=env["AIRTABLE_TABLE_NAME"].strip(),
        log_chat_id=_parse_int("LOG_CHAT_ID", env.get("LOG_CHAT_ID")),
        webhook_url=webhook_url,
        webhook_secret=webhook_secret,
        webhook_host=env.get("WEBHOOK_HOST") or "0.0.0.0",
        webhook_port=_parse_int("WEBHOOK_PORT", env.get("WEBHOOK_PORT")) or 8080,
    )
    logger.debug(f"Settings loaded, {len(allowed_ids)} allowed sender(s)")
    return settings
