# services/browser/redirects.py
"""
Redirect chain following for captured media locators.

A captured locator sometimes answers with a text body holding the next URL,
or with a page that has to be reloaded until a player element shows its
final ``src``. ``next_step`` is the policy; ``RedirectFollower`` is the
mechanism that feeds it observations of a live page.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from config import settings
from services.errors import StreamCaptureTimeout

logger = logging.getLogger("transfer.redirect")

_URL_RE = re.compile(r"^https?://\S+$")


class FollowState(str, Enum):
    FOLLOWING = "FOLLOWING"
    FOUND_VIDEO = "FOUND_VIDEO"
    FOUND_REDIRECT = "FOUND_REDIRECT"
    RETRY = "RETRY"
    EXHAUSTED = "EXHAUSTED"


@dataclass(frozen=True)
class Observation:
    video_src: Optional[str] = None
    body_text: Optional[str] = None


@dataclass(frozen=True)
class Step:
    state: FollowState
    url: Optional[str] = None


def _as_url(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    value = value.strip()
    return value if _URL_RE.match(value) else None


def next_step(observation: Observation, attempt: int, max_attempts: int) -> Step:
    """
    Decide what to do with one page observation.

    ``attempt`` counts observations made so far, starting at 1. A final
    player source always wins, even on the last attempt.
    """
    video = _as_url(observation.video_src)
    if video:
        return Step(FollowState.FOUND_VIDEO, video)

    if attempt >= max_attempts:
        return Step(FollowState.EXHAUSTED)

    redirect = _as_url(observation.body_text)
    if redirect:
        return Step(FollowState.FOUND_REDIRECT, redirect)

    return Step(FollowState.RETRY)


class PageInspector:
    """Capability the follower drives: navigate, reload and look at a page."""

    async def open(self, url: str):
        raise NotImplementedError

    async def reload(self):
        raise NotImplementedError

    async def observe(self) -> Observation:
        raise NotImplementedError


class PlaywrightInspector(PageInspector):
    def __init__(self, page, settle_ms: int = 1500):
        self.page = page
        self.settle_ms = settle_ms

    async def open(self, url: str):
        await self.page.goto(url, wait_until="domcontentloaded")
        await self.page.wait_for_timeout(self.settle_ms)

    async def reload(self):
        await self.page.reload(wait_until="domcontentloaded")
        await self.page.wait_for_timeout(self.settle_ms)

    async def observe(self) -> Observation:
        video_src = await self.page.evaluate(
            """() => {
                const v = document.querySelector('video');
                if (!v) return null;
                const s = v.currentSrc || v.src || (v.querySelector('source') || {}).src;
                return s || null;
            }"""
        )
        body_text = await self.page.evaluate(
            "() => document.body ? document.body.innerText.slice(0, 4096) : null"
        )
        return Observation(video_src=video_src, body_text=body_text)


class RedirectFollower:
    def __init__(self, max_attempts: int = settings.REDIRECT_MAX_ATTEMPTS):
        self.max_attempts = max_attempts

    async def follow(self, inspector: PageInspector, url: str) -> str:
        await inspector.open(url)
        current = url

        for attempt in range(1, self.max_attempts + 1):
            step = next_step(await inspector.observe(), attempt, self.max_attempts)

            if step.state == FollowState.FOUND_VIDEO:
                logger.info(f"[Redirect] resolved after {attempt} attempt(s)")
                return step.url

            if step.state == FollowState.FOUND_REDIRECT:
                logger.info(f"[Redirect] following text redirect (attempt {attempt})")
                current = step.url
                await inspector.open(current)
                continue

            if step.state == FollowState.RETRY:
                logger.info(f"[Redirect] nothing playable yet, reloading (attempt {attempt})")
                await inspector.reload()
                continue

            break

        raise StreamCaptureTimeout(
            f"Could not resolve media locator after {self.max_attempts} attempts: {current[:120]}"
        )
