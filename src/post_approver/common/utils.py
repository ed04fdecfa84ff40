import logging
import os
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)

DEFAULT_MESSAGES = {
    "start": "Hi!",
    "help": (
        "I understand /getpost, /status and /help.\n"
        "Use the keyboard under a post to approve, reject or skip it."
    ),
    "status": "I'm ok.",
    "unknown_command": "I don't know that command",
    "post": "Пост: {title}\n{identifier}",
    "no_post": "Нет постов для модерации",
    "approved": "Пост принят",
    "rejected": "Пост отклонен",
    "skipped": "Пост пропущен",
    "unsupported": "Кнопка не поддерживается",
    "error": "Произошла ошибка: {error}",
}


def load_config() -> Dict[str, Any]:
    """
    Загрузка конфигурации из YAML файла (CONFIG_PATH, по умолчанию config.yaml).
    Отсутствующий файл означает пустую конфигурацию.
    """
    path = os.getenv("CONFIG_PATH", "config.yaml")
    if not os.path.exists(path):
        logger.debug(f"Config file {path} not found, using defaults")
        return {}

    with open(path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}
    logger.debug("Configuration loaded successfully")
    return config


def get_section(name: str) -> Dict[str, Any]:
    """Return a top-level section of config.yaml, or an empty dict"""
    return load_config().get(name) or {}


def get_message(key: str, **kwargs: Any) -> str:
    """Operator-facing text by key, formatted with kwargs"""
    template = get_section("messages").get(key, DEFAULT_MESSAGES[key])
    return template.format(**kwargs) if kwargs else template


def remove_lines_to_fit_len(text: str, max_len: int) -> str:
    """
    Удаляет строки из середины текста, чтобы уместиться в максимальную длину

    Args:
        text (str): Входной текст
        max_len (int): Максимальная длина текста

    Returns:
        str: Обработанный текст
    """
    lines = text.split("\n")

    while len(text) > max_len and len(lines) > 2:
        half = len(lines) // 2
        lines = lines[:half] + lines[half + 1 :]
        text = "\n".join(lines[:half] + ["..."] + lines[half:])

    if len(text) > max_len:
        text = text[: max_len - len("...")] + "..."

    return text
