# services/browser/stream_locator.py
"""
Stream locator.

Drive never offers a download button for these items; the only reliable
signal is the player's own traffic. We open the viewer, listen to outgoing
requests and keep the first ``videoplayback`` request of each mime kind.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from config import settings
from services.browser.redirects import PlaywrightInspector, RedirectFollower
from services.browser.session import SessionManager, is_login_page
from services.errors import SessionExpired, StreamCaptureTimeout

logger = logging.getLogger("transfer.capture")

PLAYBACK_MARKER = "videoplayback"
LENGTH_MARKER = "clen="
VOLATILE_PARAMS = {"range", "rbuf", "ump", "srfvp"}

PLAY_SELECTORS = (
    'div[role="button"][aria-label="Play"]',
    "video",
    "#drive-viewer-video-player-object-0",
)

VIDEO = "video"
AUDIO = "audio"


@dataclass
class StreamLocation:
    video_url: str
    audio_url: str
    headers: Dict[str, str] = field(default_factory=dict)


def strip_volatile_params(url: str) -> str:
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True)
             if k not in VOLATILE_PARAMS]
    return urlunsplit(parts._replace(query=urlencode(query)))


def classify_request(url: str) -> Optional[str]:
    """``video`` / ``audio`` for a media playback request, else None."""
    if PLAYBACK_MARKER not in url or LENGTH_MARKER not in url:
        return None
    if "mime=video" in url:
        return VIDEO
    if "mime=audio" in url:
        return AUDIO
    return None


class StreamCapture:
    """Collects the first video and audio candidate seen on a page."""

    def __init__(self):
        self.video_url: Optional[str] = None
        self.audio_url: Optional[str] = None
        self.headers: Dict[str, str] = {}

    @property
    def complete(self) -> bool:
        return bool(self.video_url and self.audio_url)

    def observe(self, url: str, headers: Optional[Dict[str, str]] = None):
        kind = classify_request(url)
        if kind == VIDEO and not self.video_url:
            logger.info("-> Detected Video Stream!")
            self.video_url = strip_volatile_params(url)
            self.headers = dict(headers or {})
        elif kind == AUDIO and not self.audio_url:
            logger.info("-> Detected Audio Stream!")
            self.audio_url = strip_volatile_params(url)

    def on_request(self, request):
        self.observe(request.url, request.headers)


class StreamLocator:
    def __init__(self, session: SessionManager,
                 max_checks: int = settings.CAPTURE_MAX_CHECKS,
                 follower: Optional[RedirectFollower] = None,
                 follow_redirects: bool = settings.FOLLOW_REDIRECTS,
                 check_interval_ms: int = 1000):
        self.session = session
        self.max_checks = max_checks
        self.follower = follower or RedirectFollower()
        self.follow_redirects = follow_redirects
        self.check_interval_ms = check_interval_ms

    async def locate(self, viewer_url: str) -> StreamLocation:
        page = await self.session.new_page()
        try:
            capture = StreamCapture()
            page.on("request", capture.on_request)

            logger.info(f"[Capture] Navigating to {viewer_url}")
            await page.goto(viewer_url)
            await page.wait_for_timeout(2000)

            if await is_login_page(page):
                raise SessionExpired("Google session expired. Restart the server and log in again.")

            await self._trigger_playback(page)

            logger.info(f"[Capture] Waiting for streams... ({self.max_checks} checks)")
            checks = 0
            while not capture.complete and checks < self.max_checks:
                await page.wait_for_timeout(self.check_interval_ms)
                checks += 1
                if checks % 5 == 0 and not capture.video_url:
                    try:
                        await page.mouse.click(640, 360)
                    except Exception as e:
                        logger.debug(f"[Capture] nudge click failed: {e}")

            if not capture.complete:
                missing = [k for k, v in ((VIDEO, capture.video_url), (AUDIO, capture.audio_url)) if not v]
                raise StreamCaptureTimeout(
                    f"TIMEOUT: Failed to capture {' and '.join(missing)} stream(s) after {checks} checks."
                )

            # captured request headers are incomplete for an out-of-band fetch
            headers = await self.session.session_headers(page)

            video_url, audio_url = capture.video_url, capture.audio_url
            if self.follow_redirects:
                inspector = PlaywrightInspector(page)
                video_url = await self.follower.follow(inspector, video_url)
                audio_url = await self.follower.follow(inspector, audio_url)

            return StreamLocation(video_url=video_url, audio_url=audio_url, headers=headers)
        finally:
            await page.close()

    async def _trigger_playback(self, page):
        logger.info("[Auto-Play] Attempting to auto-play...")
        for selector in PLAY_SELECTORS:
            try:
                if await page.query_selector(selector):
                    await page.click(selector, force=True, timeout=2000)
                    await page.wait_for_timeout(500)
            except Exception as e:
                logger.debug(f"[Auto-Play] {selector}: {e}")
