from grabh.adapters.local.bounded_queue import BoundedJobQueue
from grabh.adapters.local.json_user_store import JsonFileUserStore
from grabh.adapters.local.noop_user_store import NoOpUserStore
from grabh.adapters.ytdlp.extractor import YtDlpExtractorAdapter
from grabh.config import (
    BOT_TOKEN_PLACEHOLDER, create_dispatcher, create_extractor, create_user_store, get_config,
)


def test_config_is_a_singleton():
    assert get_config() is get_config()


def test_bot_enabled(cfg, monkeypatch):
    assert not cfg.bot_enabled
    monkeypatch.setattr(cfg, "bot_token", BOT_TOKEN_PLACEHOLDER)
    assert not cfg.bot_enabled
    assert cfg.get_bot_token() is None
    monkeypatch.setattr(cfg, "bot_token", "123:abc")
    assert cfg.bot_enabled
    assert cfg.as_dict()["bot_enabled"] is True


def test_create_dispatcher_uses_configured_capacity(cfg, monkeypatch):
    monkeypatch.setattr(cfg, "max_concurrent_downloads", 3)
    queue = create_dispatcher(cfg)
    assert isinstance(queue, BoundedJobQueue)
    assert queue.status().capacity == 3


def test_create_extractor(cfg, monkeypatch):
    monkeypatch.setattr(cfg, "ytdlp_binary", "/usr/local/bin/yt-dlp")
    monkeypatch.setattr(cfg, "cookies_file", "")
    monkeypatch.setattr(cfg, "cookies_browser", "firefox")
    extractor = create_extractor(cfg)
    assert isinstance(extractor, YtDlpExtractorAdapter)
    assert extractor.base_args()[0] == "/usr/local/bin/yt-dlp"
    assert extractor.base_args()[-1] == "firefox"


def test_create_user_store(cfg, monkeypatch):
    assert isinstance(create_user_store(cfg), JsonFileUserStore)
    monkeypatch.setattr(cfg, "user_store_file", "")
    assert isinstance(create_user_store(cfg), NoOpUserStore)
