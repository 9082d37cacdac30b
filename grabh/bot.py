"""Telegram front end for GRABH.

Runs inside the web server's event loop (see grabh.api lifespan) so bot
downloads share the HTTP API's download queue.
"""

import asyncio
import logging
from typing import Optional

from telegram import BotCommand, Message, Update
from telegram.constants import ParseMode
from telegram.error import TelegramError
from telegram.ext import Application, CommandHandler, ContextTypes, MessageHandler, filters

from grabh.domain.models import ChatUser, DownloadedMedia, MediaInfo
from grabh.errors import FileTooLargeError
from grabh.formatting import escape_markdown, find_first_url, next_simulated_percent, progress_bar
from grabh.ports.job_queue import JobQueuePort
from grabh.ports.user_store import UserStorePort
from grabh.use_cases.fetch_media import FetchMediaUseCase

logger = logging.getLogger(__name__)

# Bot API upload limit
TELEGRAM_MAX_FILE_MB = 50
PROGRESS_INTERVAL_SECONDS = 3.0
MD = ParseMode.MARKDOWN_V2

BOT_COMMANDS = [
    BotCommand("start", "👋 START PROTOCOL"),
    BotCommand("help", "❓ PROTOCOL INFO"),
    BotCommand("supported", "📺 TARGET LIST"),
    BotCommand("status", "📊 SYSTEM LOAD"),
]

START_TEXT = (
    "🔮 *SAVE SYSTEM ONLINE*\n\n"
    "Send a link\\. I will acquire the media\\.\n\n"
    "_Compatible with YouTube, Instagram, TikTok, X, and others\\._\n\n"
    "cmds:\n"
    "/help \\- Protocol info\n"
    "/status \\- System load"
)

HELP_TEXT = (
    "📋 *PROTOCOL*\n\n"
    "1\\. Transmit URL\n"
    "2\\. Processing\\.\\.\\.\n"
    "3\\. Receive File\n\n"
    "*PARAMETERS:*\n"
    f"• Max Size: {TELEGRAM_MAX_FILE_MB}MB\n"
    "• Queue: Active\n\n"
    "_Execute\\._"
)

SUPPORTED_TEXT = (
    "📡 *TARGETS*\n\n"
    "\\[\\+\\] YouTube\n"
    "\\[\\+\\] Instagram\n"
    "\\[\\+\\] TikTok\n"
    "\\[\\+\\] X \\(Twitter\\)\n"
    "\\[\\+\\] Reddit\n"
    "\\[\\+\\] Threads\n\n"
    "_Universal extractor active\\._"
)

NO_LINK_TEXT = "⚡ *NO LINK DETECTED*\n\nTransmit a valid URL to begin operation\\."
RESOLVING_TEXT = "📡 _RESOLVING RESOURCE\\.\\.\\._"
SEND_FAILED_TEXT = "❌ TRANSMISSION ERROR\\. Format invalid or size limit reached\\."


def status_text(waiting: int, active: int, capacity: int) -> str:
    return (
        "⚙️ *SYSTEM STATUS*\n\n"
        f"Processing: {active}\n"
        f"Pending: {waiting}\n"
        f"Capacity: {capacity}\n\n"
        "_Online\\._"
    )


def media_header(info: MediaInfo) -> str:
    return (
        f"📼 *{escape_markdown(info.title)}*\n"
        f"👤 {escape_markdown(info.uploader)} • ⏱ {escape_markdown(info.duration_string)}"
    )


def media_caption(info: MediaInfo) -> str:
    return (
        f"📼 *{escape_markdown(info.title)}*\n"
        f"👤 {escape_markdown(info.uploader)}\n"
        f"⏱ {escape_markdown(info.duration_string)}"
    )


def acquiring_text(info: MediaInfo, percent: int, queue_position: int = 0) -> str:
    queue_line = f"\n⏳ _QUEUE POSITION: {queue_position}_" if queue_position > 1 else ""
    return f"{media_header(info)}\n\n⬇️ ACQUIRING\\.\\.\\.{queue_line}\n{escape_markdown(progress_bar(percent))}"


def too_large_text(info: MediaInfo, size_mb: float) -> str:
    return (
        f"⚠️ *FILE SIZE EXCEEDED* \\({escape_markdown(f'{size_mb:.1f}')}MB\\)\n\n"
        f"📼 _{escape_markdown(info.title)}_\n"
        f"⏱ {escape_markdown(info.duration_string)}\n\n"
        f"_System cannot transmit files over {TELEGRAM_MAX_FILE_MB}MB via Telegram protocol\\._"
    )


def failure_text(error: Exception) -> str:
    return (
        "❌ *ACQUISITION FAILED*\n\n"
        f"_{escape_markdown(str(error) or 'Unknown system error')}_\n\n"
        "💡 _Verify URL or check /supported_"
    )


async def safe_edit(message: Optional[Message], text: str) -> bool:
    """Edit a status message, tolerating Telegram refusing the edit."""
    if message is None:
        return False
    try:
        await message.edit_text(text, parse_mode=MD)
        return True
    except TelegramError as e:
        logger.info(f"Could not edit status message: {e}")
        return False


async def safe_delete(message: Optional[Message]) -> None:
    if message is None:
        return
    try:
        await message.delete()
    except TelegramError as e:
        logger.info(f"Could not delete status message: {e}")


class DownloadBot:
    """Command and link handlers, bound to the shared fetch use case and queue."""

    def __init__(
        self,
        fetcher: FetchMediaUseCase,
        queue: JobQueuePort,
        user_store: UserStorePort,
        progress_interval: float = PROGRESS_INTERVAL_SECONDS,
    ):
        self._fetcher = fetcher
        self._queue = queue
        self._user_store = user_store
        self._progress_interval = progress_interval

    async def start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await update.effective_message.reply_text(START_TEXT, parse_mode=MD)

    async def help_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await update.effective_message.reply_text(HELP_TEXT, parse_mode=MD)

    async def supported(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await update.effective_message.reply_text(SUPPORTED_TEXT, parse_mode=MD)

    async def status(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        q = self._queue.status()
        await update.effective_message.reply_text(
            status_text(q.waiting, q.active, q.capacity), parse_mode=MD
        )

    async def handle_text(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.effective_message
        if not message or not message.text:
            return

        url = find_first_url(message.text)
        if not url:
            await message.reply_text(NO_LINK_TEXT, parse_mode=MD)
            return

        user = update.effective_user
        if user:
            await self._remember_user(user.id, user.first_name, user.last_name, user.username)

        status_msg = await message.reply_text(RESOLVING_TEXT, parse_mode=MD)
        progress_task: Optional[asyncio.Task] = None
        media: Optional[DownloadedMedia] = None
        info: Optional[MediaInfo] = None

        try:
            info = await self._fetcher.describe(url)
            q = self._queue.status()
            await safe_edit(status_msg, acquiring_text(info, 0, queue_position=q.waiting + 1))

            progress_task = asyncio.create_task(self._animate(status_msg, info))
            media = await self._fetcher.fetch(url, max_size_mb=TELEGRAM_MAX_FILE_MB)
            progress_task.cancel()

            await safe_edit(
                status_msg,
                f"{media_header(info)}\n\n✅ ACQUISITION COMPLETE\n"
                f"{escape_markdown(progress_bar(100))}\n\n_Transmitting\\.\\.\\._",
            )
            if await self._send_video(message, media, info) and user:
                await self._count_download(user.id)
            await safe_delete(status_msg)

        except FileTooLargeError as e:
            logger.info(f"Refusing {url}: {e}")
            await safe_edit(status_msg, too_large_text(info, e.size_mb))
        except Exception as e:
            logger.error(f"[Bot Error] {url}: {e}")
            if not await safe_edit(status_msg, failure_text(e)):
                try:
                    await message.reply_text(failure_text(e), parse_mode=MD)
                except TelegramError as reply_err:
                    logger.error(f"Could not report failure: {reply_err}")
        finally:
            if progress_task is not None:
                progress_task.cancel()
            if media is not None:
                self._fetcher.discard(media)

    async def _animate(self, status_msg: Message, info: MediaInfo) -> None:
        percent = 0
        while True:
            await asyncio.sleep(self._progress_interval)
            percent = next_simulated_percent(percent)
            await safe_edit(status_msg, acquiring_text(info, percent))

    async def _send_video(self, message: Message, media: DownloadedMedia, info: MediaInfo) -> bool:
        try:
            with open(media.path, "rb") as f:
                await message.reply_video(
                    video=f,
                    caption=media_caption(info),
                    parse_mode=MD,
                    supports_streaming=True,
                )
            return True
        except TelegramError as e:
            logger.error(f"[Bot Reply Error] {e}")
            try:
                await message.reply_text(SEND_FAILED_TEXT, parse_mode=MD)
            except TelegramError as reply_err:
                logger.error(f"Could not report send failure: {reply_err}")
            return False

    async def _remember_user(self, user_id: int, first_name, last_name, username) -> None:
        user = ChatUser(id=user_id, first_name=first_name, last_name=last_name, username=username)
        try:
            await asyncio.to_thread(self._user_store.save_user, user)
        except Exception as e:
            logger.warning(f"Could not save user {user_id}: {e}")

    async def _count_download(self, user_id: int) -> None:
        try:
            await asyncio.to_thread(self._user_store.increment_user_downloads, user_id)
            await asyncio.to_thread(self._user_store.increment_global_downloads)
        except Exception as e:
            logger.warning(f"Could not record download for {user_id}: {e}")


def build_bot(
    token: str,
    fetcher: FetchMediaUseCase,
    queue: JobQueuePort,
    user_store: UserStorePort,
) -> Application:
    handlers = DownloadBot(fetcher, queue, user_store)
    application = (
        Application.builder()
        .token(token)
        .read_timeout(300)
        .write_timeout(300)
        .concurrent_updates(True)
        .build()
    )
    application.add_handler(CommandHandler("start", handlers.start))
    application.add_handler(CommandHandler("help", handlers.help_command))
    application.add_handler(CommandHandler("supported", handlers.supported))
    application.add_handler(CommandHandler("status", handlers.status))
    application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handlers.handle_text))
    return application


async def start_bot(application: Application) -> None:
    """Start polling on the current event loop (the web server's)."""
    await application.initialize()
    await application.bot.set_my_commands(BOT_COMMANDS)
    await application.start()
    await application.updater.start_polling(drop_pending_updates=True)
    logger.info("Telegram bot is live")


async def stop_bot(application: Application) -> None:
    await application.updater.stop()
    await application.stop()
    await application.shutdown()
    logger.info("Telegram bot stopped")
