"""Application entry point for the telewatch bot."""

from __future__ import annotations

import argparse
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from dotenv import load_dotenv
from telethon import events

import settings
from adapters.sqlite_storage import SQLiteStorage
from adapters.telegram_mapper import build_inbound_message
from adapters.telegram_replier import TelegramReplier
from adapters.w2g_client import W2GRoomService
from client import build_client, login_bot
from core.clock import SystemClock
from core.commands import CommandHandler
from core.config import EngineConfig, TimeoutConfig
from core.dispatcher import ChatDispatcher
from core.processor import LinkAttributionProcessor
from core.session import ChatSessionStore

NAME = "TELEWATCH"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/telewatch.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)
    # httpx logs every request URL at INFO, which would include the page being scraped.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting telewatch")

    load_dotenv()
    bot_token = os.getenv("TELEGRAM_BOT_TOKEN")
    w2g_api_key = os.getenv("W2G_API_KEY")
    # Fail fast before touching the network.
    if not bot_token or not w2g_api_key:
        raise RuntimeError("Missing required env vars: TELEGRAM_BOT_TOKEN, W2G_API_KEY")

    storage = SQLiteStorage(settings.DB_PATH)
    storage.init_db()

    engine_config = EngineConfig(
        prompt_grace_ms=int(settings.PROMPT_GRACE_SECONDS * 1000),
        recency_window_ms=int(settings.RECENCY_WINDOW_SECONDS * 1000),
        used_ids_capacity=settings.USED_IDS_CAPACITY,
    )
    timeouts = TimeoutConfig(
        call_seconds=settings.CALL_TIMEOUT_SECONDS,
        scrape_seconds=settings.SCRAPE_TIMEOUT_SECONDS,
        handler_seconds=settings.HANDLER_TIMEOUT_SECONDS,
    )

    client = build_client()
    bot = login_bot(client, bot_token)

    rooms = W2GRoomService(
        w2g_api_key,
        api_base=settings.W2G_API_BASE,
        room_url_base=settings.W2G_ROOM_URL_BASE,
        timeout_seconds=timeouts.call_seconds,
        scrape_timeout_seconds=timeouts.scrape_seconds,
    )
    sessions = ChatSessionStore(engine_config)
    clock = SystemClock()
    replier = TelegramReplier(client, timeout_seconds=timeouts.call_seconds)

    processor = LinkAttributionProcessor(
        bot=bot,
        sessions=sessions,
        storage=storage,
        rooms=rooms,
        replier=replier,
        clock=clock,
    )
    commands = CommandHandler(
        bot=bot,
        sessions=sessions,
        storage=storage,
        rooms=rooms,
        replier=replier,
        clock=clock,
    )
    dispatcher = ChatDispatcher(processor, commands, replier, handler_seconds=timeouts.handler_seconds)

    # Single handler keeps Telethon integration minimal. Mapping happens inside
    # the dispatcher's chat lock so a slow reply lookup keeps its place in line.
    @client.on(events.NewMessage(incoming=True))
    async def handler(event) -> None:
        def build():
            return build_inbound_message(event.message, timeout_seconds=timeouts.call_seconds)

        try:
            await dispatcher.dispatch(event.chat_id, build)
        except Exception:
            logger.exception("Error while processing message")

    logger.info("Bot connected. Listening for incoming messages...")
    try:
        client.run_until_disconnected()
    finally:
        client.loop.run_until_complete(rooms.close())


def _list_rooms() -> None:
    _print_banner()
    storage = SQLiteStorage(settings.DB_PATH)
    storage.init_db()
    records = storage.list_rooms()
    if not records:
        print("No rooms stored yet.")
        return

    for index, record in enumerate(records, start=1):
        link = f"{settings.W2G_ROOM_URL_BASE.rstrip('/')}/{record.streamkey}"
        print(f"{index}. chat_id:{record.chat_id} | {link} | {record.updated_at}")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="telewatch")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the bot")
    subparsers.add_parser("rooms", help="List stored chat -> room mappings")

    args = parser.parse_args(argv)
    if args.command == "rooms":
        _list_rooms()
        return
    _run()


if __name__ == "__main__":
    main()
