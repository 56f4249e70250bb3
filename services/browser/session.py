# services/browser/session.py
"""
Process-wide authenticated browser session.

One persistent Chrome profile is shared by every scan and capture. The
first start (no saved profile) opens a visible window and blocks until a
human finishes the Google login; later starts reuse the profile headless.
"""

import asyncio
import logging
import os
from typing import Optional

from playwright.async_api import BrowserContext, Page, Playwright, async_playwright

from config import settings
from services.media.process_runner import AsyncProcessRunner, ProcessRunner

logger = logging.getLogger("transfer.session")

LOGIN_DOMAIN = "accounts.google.com"
DRIVE_DOMAIN = "drive.google.com"
LOGIN_FORM_SELECTOR = 'input[type="email"]'

LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--no-sandbox",
    "--start-maximized",
    "--disable-infobars",
]

HIDE_WEBDRIVER_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
"""


async def is_login_page(page: Page) -> bool:
    if LOGIN_DOMAIN in page.url:
        return True
    try:
        return await page.query_selector(LOGIN_FORM_SELECTOR) is not None
    except Exception:
        # page navigated while we were looking
        return False


class SessionManager:
    def __init__(self, profile_dir: str = settings.PROFILE_DIR,
                 channel: Optional[str] = settings.BROWSER_CHANNEL,
                 headless: Optional[bool] = None,
                 runner: Optional[ProcessRunner] = None,
                 login_poll_seconds: float = 1.0):
        self.profile_dir = os.path.abspath(profile_dir)
        self.channel = channel or None
        self.headless = headless
        self.runner = runner or AsyncProcessRunner()
        self.login_poll_seconds = login_poll_seconds

        self._playwright: Optional[Playwright] = None
        self._context: Optional[BrowserContext] = None
        self._lock = asyncio.Lock()

    # --------------------------
    # profile
    # --------------------------

    def has_valid_profile(self) -> bool:
        default_dir = os.path.join(self.profile_dir, "Default")
        return (
            os.path.isdir(default_dir)
            and os.path.exists(os.path.join(self.profile_dir, "Local State"))
            and os.path.exists(os.path.join(default_dir, "Cookies"))
        )

    async def clean_stale_lock(self):
        lock_file = os.path.join(self.profile_dir, "SingletonLock")
        if os.path.lexists(lock_file):
            try:
                os.remove(lock_file)
                logger.info("[Profile] Cleaned SingletonLock")
            except OSError as e:
                logger.warning(f"[Profile] Could not remove SingletonLock: {e}")

        result = await self.runner.run(
            ["pkill", "-f", f"user-data-dir={self.profile_dir}"],
            timeout=10,
        )
        if result.exit_code == 0:
            logger.info("[Profile] Killed lingering Chrome processes using this profile")
            await asyncio.sleep(1)

    # --------------------------
    # lifecycle
    # --------------------------

    @property
    def context(self) -> BrowserContext:
        if self._context is None:
            raise RuntimeError("[Browser] Browser not initialized. Call ensure_ready() first.")
        return self._context

    @property
    def is_running(self) -> bool:
        return self._context is not None

    async def ensure_ready(self):
        async with self._lock:
            if self._context is not None:
                return
            await self._launch()

    async def _launch(self):
        os.makedirs(self.profile_dir, exist_ok=True)
        await self.clean_stale_lock()

        has_profile = self.has_valid_profile()
        headless = self.headless if self.headless is not None else has_profile

        logger.info(
            "[Browser] Launching Chrome (headless, saved profile)..."
            if headless else
            "[Browser] Launching Chrome (UI mode for login)..."
        )

        self._playwright = await async_playwright().start()
        try:
            self._context = await self._playwright.chromium.launch_persistent_context(
                self.profile_dir,
                headless=headless,
                channel=self.channel,
                viewport=None if has_profile else {"width": 1280, "height": 720},
                args=LAUNCH_ARGS,
            )
            await self._context.add_init_script(HIDE_WEBDRIVER_SCRIPT)
        except Exception:
            await self._playwright.stop()
            self._playwright = None
            self._context = None
            raise

        logger.info(f"[Browser] Chrome is running. Profile: {self.profile_dir}")

        if not has_profile:
            await self.wait_for_login()

    async def wait_for_login(self):
        page = self._context.pages[0] if self._context.pages else await self._context.new_page()
        if DRIVE_DOMAIN not in page.url:
            await page.goto(settings.DRIVE_HOME_URL)

        logger.warning("===================================================")
        logger.warning("⚠️  ACTION REQUIRED: PLEASE LOG IN TO GOOGLE DRIVE")
        logger.warning("   The browser is open. Login is detected automatically.")
        logger.warning("===================================================")

        while True:
            try:
                url = page.url
                if LOGIN_DOMAIN not in url and DRIVE_DOMAIN in url:
                    await page.wait_for_timeout(2000)
                    if LOGIN_DOMAIN not in page.url:
                        break
            except Exception as e:
                logger.debug(f"[Browser] login poll: {e}")
            await asyncio.sleep(self.login_poll_seconds)

        logger.info("[Browser] Login detected! Profile saved.")

    async def shutdown(self):
        async with self._lock:
            if self._context is not None:
                logger.info("[Browser] Closing Chrome...")
                await self._context.close()
                self._context = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None
                logger.info("[Browser] Chrome closed.")

    # --------------------------
    # pages
    # --------------------------

    async def new_page(self) -> Page:
        return await self.context.new_page()

    async def is_authenticated(self) -> bool:
        try:
            # a fresh headless context only holds about:blank
            pages = [p for p in self.context.pages if p.url and p.url != "about:blank"]
            for page in pages:
                if await is_login_page(page):
                    return False
            return True
        except Exception as e:
            logger.warning(f"[Browser] session check failed: {e}")
            return False

    async def session_headers(self, page: Page) -> dict:
        cookies = await self.context.cookies()
        cookie_header = "; ".join(f"{c['name']}={c['value']}" for c in cookies)
        user_agent = await page.evaluate("() => navigator.userAgent")
        return {
            "cookie": cookie_header,
            "user-agent": user_agent,
            "referer": settings.DRIVE_REFERER,
        }
