"""
Browser session for the cPanel File Manager: browser discovery, launch,
login and opening the trash directory.
"""

import os
import re
import sys
import asyncio
import logging
from urllib.parse import quote
from typing import List, Dict, Optional

from playwright.async_api import async_playwright, Error as PlaywrightError
from playwright_stealth import Stealth

from config import CleanerConfig

logger = logging.getLogger("cptrash.session")

BROWSER_PATHS: Dict[str, List[Dict[str, str]]] = {
    "darwin": [
        {"name": "Google Chrome", "path": "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome"},
        {"name": "Brave Browser", "path": "/Applications/Brave Browser.app/Contents/MacOS/Brave Browser"},
        {"name": "Microsoft Edge", "path": "/Applications/Microsoft Edge.app/Contents/MacOS/Microsoft Edge"},
        {"name": "Chromium", "path": "/Applications/Chromium.app/Contents/MacOS/Chromium"},
        {"name": "Arc", "path": "/Applications/Arc.app/Contents/MacOS/Arc"},
        {"name": "Opera", "path": "/Applications/Opera.app/Contents/MacOS/Opera"},
        {"name": "Vivaldi", "path": "/Applications/Vivaldi.app/Contents/MacOS/Vivaldi"},
    ],
    "win32": [
        {"name": "Google Chrome", "path": "C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe"},
        {"name": "Google Chrome (x86)", "path": "C:\\Program Files (x86)\\Google\\Chrome\\Application\\chrome.exe"},
        {"name": "Brave Browser", "path": "C:\\Program Files\\BraveSoftware\\Brave-Browser\\Application\\brave.exe"},
        {"name": "Microsoft Edge", "path": "C:\\Program Files (x86)\\Microsoft\\Edge\\Application\\msedge.exe"},
    ],
    "linux": [
        {"name": "Google Chrome", "path": "/usr/bin/google-chrome"},
        {"name": "Google Chrome (Stable)", "path": "/usr/bin/google-chrome-stable"},
        {"name": "Chromium", "path": "/usr/bin/chromium"},
        {"name": "Chromium Browser", "path": "/usr/bin/chromium-browser"},
        {"name": "Brave Browser", "path": "/usr/bin/brave-browser"},
        {"name": "Microsoft Edge", "path": "/usr/bin/microsoft-edge"},
    ],
}

LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]
VIEWPORT = {"width": 1920, "height": 1080}

LOGIN_FORM_SELECTORS = [
    '#user',
    'input[name="user"]',
    'input[name="login"]',
    'input[name="username"]',
    'input[type="text"]',
    '#login-form input',
    'form input[type="text"]:first-of-type',
]
USER_INPUT_SELECTOR = '#user, input[name="user"], input[name="login"]'
PASS_INPUT_SELECTOR = '#pass, input[name="pass"], input[type="password"]'
LOGIN_BUTTON_SELECTORS = [
    '#login_submit',
    'button[type="submit"]',
    'input[type="submit"]',
    '#btnLogin',
    '.login-submit',
    'button#login_submit',
    'form button',
    '[id*="login"] button',
    '[class*="login"] button',
]

VERIFICATION_MARKERS = ("verified", "Checking", "Please wait")
VERIFICATION_DONE_JS = """() => {
    const text = (document.body && document.body.innerText) || '';
    return !text.includes('verified') && !text.includes('Checking') && !text.includes('Please wait');
}"""
BODY_TEXT_JS = "() => (document.body && document.body.innerText) || ''"
LOGGED_IN_JS = "() => window.location.href.includes('/cpsess') || window.location.href.includes('/frontend/')"

SESSION_RE = re.compile(r"(/cpsess\d+/)")
FILE_MANAGER_PATH = "frontend/jupiter/filemanager/index.html"
DEBUG_DIR = "debug"


class SessionError(Exception):
    """The remote session could not be established."""
    pass


def get_installed_browsers(platform: Optional[str] = None, exists=os.path.exists) -> List[Dict[str, str]]:
    platform = platform or sys.platform
    key = "linux" if platform.startswith("linux") else platform
    return [b for b in BROWSER_PATHS.get(key, []) if exists(b["path"])]


def choose_browser(installed: List[Dict[str, str]], input_fn=input) -> Dict[str, str]:
    """Prompt for one of several installed browsers."""
    print("\nSelect a browser to use:")
    for i, browser in enumerate(installed, 1):
        print(f"  {i}) {browser['name']}")
    while True:
        answer = input_fn("Answer: ").strip()
        if answer.isdigit() and 1 <= int(answer) <= len(installed):
            return installed[int(answer) - 1]
        print(f"Please enter a number between 1 and {len(installed)}")


def resolve_browser(config: CleanerConfig, input_fn=input) -> Dict[str, Optional[str]]:
    """
    Decide which executable to launch.
    An explicit path must exist. With no installed browser found, Playwright's
    own Chromium build is used (path None).
    """
    if config.browser_path:
        if not os.path.exists(config.browser_path):
            raise SessionError(f"Browser not found at path: {config.browser_path}")
        return {"name": "Custom browser", "path": config.browser_path}

    installed = get_installed_browsers()
    if not installed:
        logger.warning("No installed browser found, falling back to Playwright Chromium")
        return {"name": "Playwright Chromium", "path": None}
    if len(installed) == 1:
        return installed[0]
    return choose_browser(installed, input_fn)


def is_logged_in_url(url: str) -> bool:
    return "/cpsess" in url or "/frontend/" in url


def file_manager_url(base_url: str, current_url: str, trash_root: str) -> str:
    match = SESSION_RE.search(current_url)
    session_path = match.group(1) if match else "/"
    return f"{base_url.rstrip('/')}{session_path}{FILE_MANAGER_PATH}?dir={quote(trash_root, safe='')}"


class BrowserSession:
    """Owns the Playwright driver, the browser and the single working page."""

    def __init__(self, config: CleanerConfig):
        self.config = config
        self.timings = config.timings
        self._playwright = None
        self.browser = None
        self.page = None

    async def start(self, browser: Dict[str, Optional[str]]):
        logger.info(f"Launching {browser['name']}")
        self._playwright = await async_playwright().start()
        try:
            self.browser = await self._playwright.chromium.launch(
                executable_path=browser["path"],
                headless=bool(self.config.headless),
                args=LAUNCH_ARGS,
                timeout=self.timings.launch_timeout_ms,
            )
        except PlaywrightError as e:
            await self.close()
            raise SessionError(f"Failed to launch {browser['name']}: {e}") from e

        self.browser.on("disconnected", lambda _: logger.error("Browser was disconnected unexpectedly"))
        self.page = await self.browser.new_page(viewport=VIEWPORT)
        await Stealth().apply_stealth_async(self.page)
        self.page.set_default_timeout(self.config.timeout_ms)
        return self.page

    async def close(self):
        if self.browser is not None:
            try:
                await self.browser.close()
            except PlaywrightError as e:
                logger.debug(f"Browser already closed: {e}")
            self.browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def login(self):
        page = self.page
        t = self.timings
        try:
            await page.goto(self.config.cpanel_url, wait_until="networkidle")
        except PlaywrightError as e:
            raise SessionError(f"Could not reach {self.config.cpanel_url}: {e}") from e

        if is_logged_in_url(page.url):
            logger.info("Already logged in")
            return

        body = await page.evaluate(BODY_TEXT_JS)
        if any(marker in body for marker in VERIFICATION_MARKERS):
            logger.info("Waiting for bot verification to complete")
            try:
                await page.wait_for_function(VERIFICATION_DONE_JS, timeout=t.verification_timeout_ms)
            except PlaywrightError as e:
                raise SessionError(
                    "Bot verification did not complete. Try again or check if the site "
                    "is blocking automated access."
                ) from e
            await asyncio.sleep(t.after_verification_delay)

        if is_logged_in_url(page.url):
            logger.info("Already logged in")
            return

        await self._wait_for_login_form()
        await asyncio.sleep(0.5)

        user_input = await page.query_selector(USER_INPUT_SELECTOR)
        if user_input:
            await user_input.fill(self.config.username)
        await asyncio.sleep(0.3)

        pass_input = await page.query_selector(PASS_INPUT_SELECTOR)
        if pass_input:
            await pass_input.fill(self.config.password)
        await asyncio.sleep(0.3)

        await self._submit_login()

        try:
            await page.wait_for_function(LOGGED_IN_JS, timeout=t.login_timeout_ms)
        except PlaywrightError as e:
            raise SessionError(
                f"Login failed - still at: {page.url}. Check CPANEL_USERNAME and CPANEL_PASSWORD."
            ) from e
        logger.info("Logged in")

    async def _wait_for_login_form(self):
        for selector in LOGIN_FORM_SELECTORS:
            try:
                await self.page.wait_for_selector(selector, timeout=self.timings.login_form_timeout_ms)
                return
            except PlaywrightError:
                logger.debug(f"Login form selector not found: {selector}")

        os.makedirs(DEBUG_DIR, exist_ok=True)
        screenshot = os.path.join(DEBUG_DIR, "login-form-not-found.png")
        try:
            await self.page.screenshot(path=screenshot)
            logger.info(f"Screenshot saved to {screenshot}")
        except PlaywrightError as e:
            logger.debug(f"Could not save screenshot: {e}")
        raise SessionError(f"Could not find login form at {self.page.url}. Check {screenshot}")

    async def _submit_login(self):
        for selector in LOGIN_BUTTON_SELECTORS:
            button = await self.page.query_selector(selector)
            if button:
                await button.click()
                return
        await self.page.keyboard.press("Enter")

    async def open_file_manager(self):
        """Navigate from the logged-in dashboard to the trash directory."""
        url = file_manager_url(self.config.cpanel_url, self.page.url, self.config.trash_root)
        try:
            await self.page.goto(url, wait_until="domcontentloaded",
                                 timeout=self.timings.navigation_timeout_ms)
        except PlaywrightError as e:
            raise SessionError(f"Failed to navigate to File Manager: {e}") from e
        return url
