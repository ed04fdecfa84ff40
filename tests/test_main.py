from unittest.mock import patch

from aiogram import Dispatcher

from post_approver.common.settings import Settings
from post_approver.handlers.middlewares import (
    AllowedSendersMiddleware,
    UpdateTracingMiddleware,
)
from post_approver.main import build_session, setup_dispatcher
from post_approver.moderation.skip_cache import DEFAULT_TTL

SETTINGS = Settings(
    telegram_token="123:abc",
    allowed_ids=frozenset({111}),
    airtable_api_key="pat123",
    airtable_base_id="app123",
    airtable_table_name="Posts",
)


def test_build_session_with_default_config():
    with patch("post_approver.store.airtable_store.Api"):
        moderation = build_session(SETTINGS)

    assert moderation.current is None
    assert moderation.skip_cache.ttl == DEFAULT_TTL
    assert moderation.store.view == "view_1"


def test_build_session_reads_skip_cache_ttl():
    config = {"skip_cache": {"ttl_hours": 2}}
    with (
        patch("post_approver.common.utils.load_config", return_value=config),
        patch("post_approver.store.airtable_store.Api"),
    ):
        moderation = build_session(SETTINGS)

    assert moderation.skip_cache.ttl == 2 * 3600


def test_setup_dispatcher_registers_middlewares():
    dispatcher = setup_dispatcher(Dispatcher(), SETTINGS)

    message_middlewares = list(dispatcher.message.outer_middleware)
    update_middlewares = list(dispatcher.update.outer_middleware)

    assert any(
        isinstance(m, AllowedSendersMiddleware) and m.allowed_ids == {111}
        for m in message_middlewares
    )
    assert any(isinstance(m, UpdateTracingMiddleware) for m in update_middlewares)
