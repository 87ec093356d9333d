"""
Telegram bot entrypoint built with aiogram 3.

Пульт оператора:
- /watch <центр>, /stop, /status, /locations
- кнопки: Остановить, Статус
- мидлвара, которая пускает только админа по chat_id
"""

from __future__ import annotations

import asyncio
import html
import logging
from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware, Bot, Dispatcher, F
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.filters import Command, CommandObject
from aiogram.types import (
    CallbackQuery,
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    Message,
    TelegramObject,
)

from .browser import NexusBrowser
from .config import Settings, get_settings
from .locations import Location
from .models import WatchSession
from .notifier import FanOutNotifier, PageAudioNotifier, TextNotifier
from .utils import setup_logging
from .watcher import WatchAlreadyRunning, WatchController


logger = logging.getLogger(__name__)


class AdminOnlyMiddleware(BaseMiddleware):
    """Allow only admin user to interact with bot."""

    def __init__(self, admin_chat_id: int) -> None:
        super().__init__()
        self.admin_chat_id = admin_chat_id

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        # Личный чат: chat_id совпадает с id пользователя
        user = getattr(event, "from_user", None)
        if user is not None and user.id != self.admin_chat_id:
            if isinstance(event, (Message, CallbackQuery)):
                await event.answer("This bot only serves its owner.")
            return
        return await handler(event, data)


def main_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="⏹ Stop", callback_data="stop_watch")],
            [InlineKeyboardButton(text="ℹ️ Status", callback_data="status")],
        ]
    )


def locations_text() -> str:
    lines = ["<b>Enrollment centers</b>"]
    lines.extend(f"<code>{loc.code}</code> {loc.display_name}" for loc in Location)
    return "\n".join(lines)


def status_text(controller: WatchController) -> str:
    session: WatchSession | None = controller.session
    if session is None:
        return "📊 No watch started yet."
    text = (
        f"📊 <b>Watch status</b>\n"
        f"Location: {session.location.display_name} ({session.location.code})\n"
        f"State: {'watching' if controller.is_running else 'stopped'}\n"
        f"Probes: {session.probes_count}\n"
        f"Consecutive errors: {session.consecutive_error_count}\n"
    )
    if session.outcome:
        text += f"Outcome: {session.outcome.value}\n"
    if session.found_date:
        text += f"Found date: {session.found_date.isoformat()}\n"
    if session.last_error:
        text += f"Last error: <code>{html.escape(session.last_error)}</code>\n"
    return text


def build_dispatcher(controller: WatchController, admin_chat_id: int) -> Dispatcher:
    dp = Dispatcher()
    dp.message.middleware(AdminOnlyMiddleware(admin_chat_id))
    dp.callback_query.middleware(AdminOnlyMiddleware(admin_chat_id))

    @dp.message(Command("start"))
    async def cmd_start(message: Message) -> None:
        await message.answer(
            "👋 I watch the NEXUS / Global Entry scheduler for free interview slots.\n\n"
            "Open the location list in the browser, then send /watch &lt;center&gt;, "
            "for example <code>/watch BLAINE</code>. /locations lists the centers.",
            reply_markup=main_keyboard(),
        )

    @dp.message(Command("locations"))
    async def cmd_locations(message: Message) -> None:
        await message.answer(locations_text())

    @dp.message(Command("watch"))
    async def cmd_watch(message: Message, command: CommandObject) -> None:
        if not command.args:
            await message.answer("Usage: /watch &lt;center code or name&gt;")
            return
        try:
            location = Location.parse(command.args)
        except ValueError as e:
            await message.answer(f"{html.escape(str(e))}. See /locations.")
            return
        try:
            await controller.start(location)
        except WatchAlreadyRunning as e:
            await message.answer(f"{e}. Send /stop first.", reply_markup=main_keyboard())

    @dp.message(Command("stop"))
    async def cmd_stop(message: Message) -> None:
        if not controller.is_running:
            await message.answer("Nothing is being watched.")
            return
        await controller.stop()

    @dp.message(Command("status"))
    async def cmd_status(message: Message) -> None:
        await message.answer(status_text(controller), reply_markup=main_keyboard())

    @dp.callback_query(F.data == "stop_watch")
    async def on_stop(callback: CallbackQuery) -> None:
        await callback.answer()
        await controller.stop()

    @dp.callback_query(F.data == "status")
    async def on_status(callback: CallbackQuery) -> None:
        await callback.answer()
        await callback.message.edit_text(status_text(controller), reply_markup=main_keyboard())

    return dp


async def _notify_admin_text(bot: Bot, admin_chat_id: int, text: str) -> None:
    try:
        await bot.send_message(chat_id=admin_chat_id, text=text)
    except Exception as e:  # noqa: BLE001
        logger.warning("Failed to send text notification: %s", e)


async def run_bot(settings: Settings) -> None:
    if settings.bot is None:
        raise RuntimeError("BOT_TOKEN and ADMIN_CHAT_ID must be set to run the bot")
    admin_chat_id = settings.bot.admin_chat_id

    bot = Bot(
        settings.bot.token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )

    async def send(text: str) -> None:
        # Сообщения контроллера — обычный текст, а бот работает в HTML-режиме
        await _notify_admin_text(bot, admin_chat_id, html.escape(text))

    async with NexusBrowser(settings.browser).session() as browser:
        notifier = FanOutNotifier(
            [
                PageAudioNotifier(browser.play_sound, settings.watch.alert_audio_url),
                TextNotifier(send, "🔔 Appointment slot found! Go to the browser now."),
            ]
        )
        controller = WatchController(
            service=browser,
            actions=browser,
            notifier=notifier,
            config=settings.watch,
            on_text=send,
        )
        dp = build_dispatcher(controller, admin_chat_id)
        logger.info("Starting polling")
        try:
            await dp.start_polling(bot)
        finally:
            await controller.stop()
            await bot.session.close()


def main() -> None:
    """Entry point for running the bot."""
    setup_logging()
    asyncio.run(run_bot(get_settings()))


if __name__ == "__main__":
    main()
