import os
import logging

import uvicorn

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

if os.environ.get("DEBUG", "0") == "1":
    logging.getLogger().setLevel(logging.DEBUG)

from grabh.api import create_app
from grabh.config import get_config

BANNER = """
  ╔═══════════════════════════════════════╗
  ║           ✨  G R A B H  ✨           ║
  ║      The Minimalist Downloader        ║
  ╚═══════════════════════════════════════╝
"""


def main() -> None:
    config = get_config()
    print(BANNER)
    if not config.bot_enabled:
        logger.warning("No BOT_TOKEN set — Telegram bot disabled. Set BOT_TOKEN in .env to enable it.")

    app = create_app(config)
    logger.info(
        f"Starting GRABH on {config.host}:{config.port} "
        f"(max file size {config.max_file_size_mb}MB, {config.max_concurrent_downloads} concurrent downloads)"
    )
    uvicorn.run(app, host=config.host, port=config.port, timeout_keep_alive=255)


if __name__ == "__main__":
    main()
