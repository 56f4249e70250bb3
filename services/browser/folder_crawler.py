# services/browser/folder_crawler.py
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from config import settings
from services.browser.session import SessionManager, is_login_page
from services.classify import (
    ItemKind,
    classify,
    clean_folder_name,
    clean_item_name,
    video_display_name,
)
from services.errors import SessionExpired, TransferError
from models.transfer_folder import DEFAULT_FOLDER_NAME

logger = logging.getLogger("transfer.crawl")

FILE_URL = "https://drive.google.com/file/d/{id}/view"
FOLDER_URL = "https://drive.google.com/drive/folders/{id}"

_TITLE_RE = re.compile(r"^(.+?)\s*-\s*Google Drive")

LIST_ENTRIES_SCRIPT = """() => {
    const items = [];
    document.querySelectorAll('[data-id]').forEach((el) => {
        const nameEl = el.querySelector('[data-tooltip]');
        items.push({
            id: el.getAttribute('data-id'),
            name: nameEl ? (nameEl.getAttribute('data-tooltip') || '') : '',
        });
    });
    return items;
}"""

META_TITLE_SCRIPT = """() => {
    const selectors = ['meta[property="og:title"]', 'title', '[data-folder-name]', 'h1'];
    const found = [];
    for (const selector of selectors) {
        const el = document.querySelector(selector);
        if (el) {
            const content = el.getAttribute('content') || el.textContent;
            if (content) found.push(content);
        }
    }
    return found;
}"""


class ScanValidationError(TransferError):
    retryable = False


@dataclass
class DiscoveredItem:
    id: str
    name: str
    url: str


@dataclass
class FolderListing:
    name: Optional[str] = None  # None: title not found on the page
    videos: List[DiscoveredItem] = field(default_factory=list)
    subfolders: List[DiscoveredItem] = field(default_factory=list)


def folder_title(page_title: str, meta_candidates: Iterable[str] = ()) -> Optional[str]:
    match = _TITLE_RE.match(page_title or "")
    if match and match.group(1).strip():
        return clean_folder_name(match.group(1))

    for candidate in meta_candidates:
        if candidate and "Google Drive" not in candidate and candidate.strip():
            return clean_folder_name(candidate)

    return None


def build_listing(entries: Iterable[dict], page_title: str = "",
                  meta_candidates: Iterable[str] = ()) -> FolderListing:
    """
    Turn raw ``[data-id]`` entries into a listing.

    Raises ``ScanValidationError`` when any video lost its name; a partial
    listing would create files that can never be named on the destination.
    """
    listing = FolderListing(name=folder_title(page_title, meta_candidates))
    seen = set()
    unnamed = 0

    for entry in entries:
        item_id = (entry.get("id") or "").strip()
        raw_name = entry.get("name") or ""
        if not item_id or item_id == "_gd" or item_id in seen:
            continue

        kind = classify(raw_name)
        if kind == ItemKind.VIDEO:
            seen.add(item_id)
            name = video_display_name(raw_name)
            if not name:
                unnamed += 1
                continue
            listing.videos.append(DiscoveredItem(item_id, name, FILE_URL.format(id=item_id)))

        elif kind == ItemKind.FOLDER:
            seen.add(item_id)
            name = clean_folder_name(clean_item_name(raw_name))
            listing.subfolders.append(DiscoveredItem(item_id, name, FOLDER_URL.format(id=item_id)))

    if unnamed:
        raise ScanValidationError(
            f"Failed to extract names for {unnamed} file(s). Cannot proceed without valid file names."
        )

    return listing


class FolderCrawler:
    def __init__(self, session: SessionManager,
                 scroll_rounds: int = settings.SCAN_SCROLL_ROUNDS,
                 screenshot_dir: Optional[str] = settings.SCAN_SCREENSHOT_DIR,
                 settle_ms: int = 5000):
        self.session = session
        self.scroll_rounds = scroll_rounds
        self.screenshot_dir = screenshot_dir
        self.settle_ms = settle_ms

    async def crawl(self, folder_url: str) -> FolderListing:
        logger.info(f"Scanning folder: {folder_url}")

        page = await self.session.new_page()
        try:
            if not await self.session.is_authenticated():
                raise SessionExpired("SESSION_EXPIRED: Google session expired. Please restart server and login again.")

            await page.goto(folder_url)
            await page.wait_for_timeout(self.settle_ms)

            if await is_login_page(page):
                raise SessionExpired(f"SESSION_EXPIRED: redirected to login while scanning ({page.url})")

            # grid view can hide file names
            try:
                await page.click('button[aria-label*="List"], button[aria-label*="list"]', timeout=2000)
                await page.wait_for_timeout(1000)
            except Exception as e:
                logger.debug(f"list layout switch skipped: {e}")

            for _ in range(self.scroll_rounds):
                await page.keyboard.press("End")
                await page.wait_for_timeout(1500)

            await page.wait_for_timeout(3000)

            if self.screenshot_dir:
                os.makedirs(self.screenshot_dir, exist_ok=True)
                shot = os.path.join(self.screenshot_dir, "scan-debug.png")
                await page.screenshot(path=shot, full_page=False)
                logger.info(f"Screenshot saved to: {shot}")

            page_title = await page.title()
            logger.info(f"Page title: {page_title}, URL: {page.url}")

            meta = await page.evaluate(META_TITLE_SCRIPT)
            entries = await page.evaluate(LIST_ENTRIES_SCRIPT)
        finally:
            await page.close()

        listing = build_listing(entries, page_title, meta)
        logger.info(
            f"Extracted folder name: {listing.name or DEFAULT_FOLDER_NAME} "
            f"({len(listing.videos)} videos, {len(listing.subfolders)} subfolders)"
        )
        return listing
