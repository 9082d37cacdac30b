import os
import logging
from typing import Dict, Optional, Any

logger = logging.getLogger(__name__)

try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000
DEFAULT_DOWNLOAD_DIR = "./downloads"
DEFAULT_PUBLIC_DIR = "./public"
DEFAULT_MAX_FILE_SIZE_MB = 200
DEFAULT_MAX_CONCURRENT_DOWNLOADS = 2
BOT_TOKEN_PLACEHOLDER = "your_telegram_bot_token_here"

FIREBASE_WEB_KEYS = {
    "apiKey": "FIREBASE_API_KEY",
    "authDomain": "FIREBASE_AUTH_DOMAIN",
    "projectId": "FIREBASE_PROJECT_ID",
    "storageBucket": "FIREBASE_STORAGE_BUCKET",
    "messagingSenderId": "FIREBASE_MESSAGING_SENDER_ID",
    "appId": "FIREBASE_APP_ID",
}


class Config:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        self.host = os.environ.get("HOST", DEFAULT_HOST)
        self.port = int(os.environ.get("PORT", DEFAULT_PORT))
        self.debug = os.environ.get("DEBUG", "0") == "1"
        self.bot_token = os.environ.get("BOT_TOKEN", "").strip()
        self.download_dir = os.environ.get("DOWNLOAD_DIR", DEFAULT_DOWNLOAD_DIR)
        self.public_dir = os.environ.get("PUBLIC_DIR", DEFAULT_PUBLIC_DIR)
        self.max_file_size_mb = int(os.environ.get("MAX_FILE_SIZE_MB", DEFAULT_MAX_FILE_SIZE_MB))
        self.max_concurrent_downloads = int(
            os.environ.get("MAX_CONCURRENT_DOWNLOADS", DEFAULT_MAX_CONCURRENT_DOWNLOADS)
        )
        self.ytdlp_binary = os.environ.get("YTDLP_BINARY", "yt-dlp")
        self.cookies_file = os.environ.get("COOKIES_FILE", "")
        self.cookies_browser = os.environ.get("COOKIES_BROWSER", "")  # e.g. chrome, firefox, safari
        self.extract_timeout = float(os.environ.get("EXTRACT_TIMEOUT", "0"))
        self.user_store_file = os.environ.get("USER_STORE_FILE", "").strip()

    @property
    def bot_enabled(self) -> bool:
        return bool(self.bot_token) and self.bot_token != BOT_TOKEN_PLACEHOLDER

    def get_bot_token(self) -> Optional[str]:
        return self.bot_token if self.bot_enabled else None

    def firebase_web_config(self) -> Dict[str, str]:
        """Client-side Firebase settings, served as-is to the web page."""
        return {key: os.environ.get(env, "") for key, env in FIREBASE_WEB_KEYS.items()}

    def as_dict(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "download_dir": self.download_dir,
            "public_dir": self.public_dir,
            "max_file_size_mb": self.max_file_size_mb,
            "max_concurrent_downloads": self.max_concurrent_downloads,
            "ytdlp_binary": self.ytdlp_binary,
            "has_cookies": bool(self.cookies_file or self.cookies_browser),
            "extract_timeout": self.extract_timeout,
            "bot_enabled": self.bot_enabled,
            "user_store_file": self.user_store_file or None,
        }


config = Config()


def get_config() -> Config:
    return config


def create_dispatcher(cfg: Config):
    """Create the process-wide download queue."""
    from grabh.adapters.local.bounded_queue import BoundedJobQueue
    from grabh.adapters.local.log_progress import LogProgressAdapter

    queue = BoundedJobQueue(cfg.max_concurrent_downloads, progress=LogProgressAdapter())
    logger.info(f"Download queue: {cfg.max_concurrent_downloads} concurrent")
    return queue


def create_extractor(cfg: Config):
    """Create the media extractor adapter (always yt-dlp)."""
    from grabh.adapters.ytdlp.extractor import YtDlpExtractorAdapter

    return YtDlpExtractorAdapter(
        binary=cfg.ytdlp_binary,
        cookies_file=cfg.cookies_file,
        cookies_browser=cfg.cookies_browser,
        timeout=cfg.extract_timeout,
    )


def create_user_store(cfg: Config):
    """Create the user store: a JSON file when USER_STORE_FILE is set, otherwise a no-op."""
    if cfg.user_store_file:
        from grabh.adapters.local.json_user_store import JsonFileUserStore
        store = JsonFileUserStore(cfg.user_store_file)
    else:
        from grabh.adapters.local.noop_user_store import NoOpUserStore
        logger.warning("No USER_STORE_FILE set, user records disabled")
        store = NoOpUserStore()
    logger.info(f"User store: {type(store).__name__}")
    return store
