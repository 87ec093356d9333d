"""
Playwright-based adapter for the Trusted Traveler Programs scheduler.

Browser-модуль на Playwright:
- подключение к уже открытому Chrome оператора по CDP (там выполнен вход)
- чтение спиннера, сводки и даты ближайшей записи
- клики по панели центра, календарю и кнопке выбора даты
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    async_playwright,
)

from .config import BrowserConfig, get_settings
from .locations import Location
from .models import CalendarCell
from .utils import async_retry

logger = logging.getLogger(__name__)


SCHEDULER_HOST = "ttp.cbp.dhs.gov"

LOADING_SELECTOR = ".spinner-mask"
SUMMARY_SELECTOR = ".nextAppointment"
NEXT_DATE_SELECTOR = ".date"
CHOOSE_DATE_SELECTOR = "#btnChooseDate"

CLICK_TIMEOUT_MS = 5000
CALENDAR_LOAD_TIMEOUT = 30.0


def panel_trigger_selector(location: Location) -> str:
    return f"#centerDetails{location.code}"


def panel_close_selector(location: Location) -> str:
    return f"#popover{location.code}BtnClosePopover"


def schedule_button_selector(location: Location) -> str:
    # Первая кнопка в строке действий поповера — "Schedule Appointment".
    # Прямой поиск по id отдаёт кнопку первого центра (Calais).
    return f"#popover{location.code} .actionRow > :first-child"


def calendar_cell_selector(cell: CalendarCell) -> str:
    # В id есть точки, поэтому не #id, а селектор по атрибуту
    return f'[id="{cell.element_id}"]'


class NexusBrowser:
    """
    High-level wrapper around Playwright for the scheduler page.

    Implements both the read side (SchedulingService) and the click side
    (SchedulingActions) against one tab.
    """

    def __init__(self, config: Optional[BrowserConfig] = None) -> None:
        self._config = config or get_settings().browser
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self._cdp_mode: bool = False  # True = подключены к уже запущенному Chrome

    @property
    def page(self) -> Page:
        if not self._page:
            raise RuntimeError("Browser not initialised")
        return self._page

    @async_retry(attempts=3, base_delay=2, max_delay=10, retry_on=(PlaywrightError,))
    async def _connect_over_cdp(self) -> Browser:
        if self._playwright is None:
            raise RuntimeError("Playwright is not started")
        return await self._playwright.chromium.connect_over_cdp(self._config.cdp_url)

    async def _ensure_browser(self) -> None:
        if self._page:
            return

        self._playwright = await async_playwright().start()
        cdp_url = self._config.cdp_url

        if cdp_url:
            logger.info("Connecting to Chrome at %s", cdp_url)
            try:
                self._browser = await self._connect_over_cdp()
            except Exception as e:
                raise RuntimeError(
                    f"Could not connect to Chrome at {cdp_url}. "
                    "Start Chrome with --remote-debugging-port=9222 and log in to the scheduler first."
                ) from e
            self._cdp_mode = True
            self._context = self._browser.contexts[0] if self._browser.contexts else await self._browser.new_context()
            self._page = self._find_scheduler_page(self._context)
            if self._page is None:
                self._page = await self._context.new_page()
                await self._page.goto(self._config.scheduler_url, wait_until="domcontentloaded")
        else:
            logger.info("Starting Playwright browser (headless=%s)", self._config.headless)
            self._browser = await self._playwright.chromium.launch(headless=self._config.headless)
            self._cdp_mode = False
            self._context = await self._browser.new_context(viewport={"width": 1280, "height": 900})
            self._page = await self._context.new_page()
            await self._page.goto(self._config.scheduler_url, wait_until="domcontentloaded")
            logger.warning("Fresh browser started: log in and open the location list before watching")

        logger.info("Using tab %s", self._page.url)

    @staticmethod
    def _find_scheduler_page(context: BrowserContext) -> Optional[Page]:
        for page in context.pages:
            if SCHEDULER_HOST in page.url:
                return page
        return None

    async def close(self) -> None:
        """Close browser and Playwright. В режиме CDP только отключаемся, окно Chrome не закрываем."""
        logger.info("Closing Playwright browser" + (" (disconnect)" if self._cdp_mode else ""))
        if not self._cdp_mode and self._context:
            await self._context.close()
        if self._browser:
            await self._browser.close()
        if self._playwright:
            await self._playwright.stop()

        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

    @asynccontextmanager
    async def session(self) -> AsyncIterator["NexusBrowser"]:
        """
        Async context manager for using browser.

        Пример:
            async with NexusBrowser().session() as nexus:
                await nexus.open_location_panel(Location.BLAINE)
        """
        try:
            await self._ensure_browser()
            yield self
        finally:
            await self.close()

    # region SchedulingService
    async def is_loading(self) -> bool:
        return await self.page.locator(LOADING_SELECTOR).count() > 0

    async def read_availability_summary(self) -> Optional[str]:
        summary = self.page.locator(SUMMARY_SELECTOR)
        if await summary.count() == 0:
            return None
        return await summary.first.inner_text()

    async def read_next_appointment_date(self) -> Optional[str]:
        label = self.page.locator(NEXT_DATE_SELECTOR)
        if await label.count() == 0:
            return None
        return (await label.first.inner_text()).strip()

    # endregion

    # region SchedulingActions
    async def open_location_panel(self, location: Location) -> None:
        await self.page.click(panel_trigger_selector(location), timeout=CLICK_TIMEOUT_MS)

    async def close_location_panel(self, location: Location) -> None:
        await self.page.click(panel_close_selector(location), timeout=CLICK_TIMEOUT_MS)

    async def schedule_appointment(self, location: Location) -> None:
        await self.page.click(schedule_button_selector(location), timeout=CLICK_TIMEOUT_MS)

    async def select_calendar_cell(self, cell: CalendarCell) -> None:
        await self._wait_for_calendar()
        logger.info("Clicking calendar cell %s", cell.element_id)
        await self.page.click(calendar_cell_selector(cell), timeout=CLICK_TIMEOUT_MS)

    async def confirm_selected_date(self) -> None:
        # Нужная дата всегда первая доступная, подтверждаем без поиска родителя
        await self.page.click(CHOOSE_DATE_SELECTOR, timeout=CLICK_TIMEOUT_MS)

    # endregion

    async def _wait_for_calendar(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + CALENDAR_LOAD_TIMEOUT
        while await self.is_loading():
            if loop.time() >= deadline:
                raise TimeoutError("Calendar did not finish loading")
            await asyncio.sleep(0.1)

    async def play_sound(self, url: str) -> None:
        """Play one alert sound in the scheduler tab (needs autoplay permission)."""
        await self.page.evaluate("url => new Audio(url).play()", url)

    async def screenshot(self, path: Path) -> Path:
        """Capture screenshot of current page."""
        path.parent.mkdir(parents=True, exist_ok=True)
        await self.page.screenshot(path=str(path), full_page=True)
        return path


__all__ = [
    "NexusBrowser",
    "panel_trigger_selector",
    "panel_close_selector",
    "schedule_button_selector",
    "calendar_cell_selector",
]
