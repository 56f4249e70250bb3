import asyncio

import pytest

from services.browser.redirects import (
    FollowState,
    Observation,
    PageInspector,
    RedirectFollower,
    next_step,
)
from services.errors import StreamCaptureTimeout


def test_player_source_is_final() -> None:
    step = next_step(Observation(video_src="https://cdn/x.mp4", body_text="https://other"), 1, 3)
    assert step.state == FollowState.FOUND_VIDEO
    assert step.url == "https://cdn/x.mp4"


def test_text_body_url_is_followed() -> None:
    step = next_step(Observation(body_text="  https://next/hop \n"), 1, 3)
    assert step.state == FollowState.FOUND_REDIRECT
    assert step.url == "https://next/hop"


def test_nothing_useful_means_retry_until_budget() -> None:
    assert next_step(Observation(body_text="loading..."), 2, 3).state == FollowState.RETRY
    assert next_step(Observation(body_text="loading..."), 3, 3).state == FollowState.EXHAUSTED
    assert next_step(Observation(body_text="https://next"), 3, 3).state == FollowState.EXHAUSTED


def test_player_source_wins_on_last_attempt() -> None:
    assert next_step(Observation(video_src="https://cdn/x"), 3, 3).state == FollowState.FOUND_VIDEO


class ScriptedInspector(PageInspector):
    def __init__(self, observations):
        self.observations = list(observations)
        self.actions = []

    async def open(self, url):
        self.actions.append(("open", url))

    async def reload(self):
        self.actions.append(("reload", None))

    async def observe(self):
        return self.observations.pop(0)


def test_follower_walks_redirect_then_reload_then_video() -> None:
    inspector = ScriptedInspector([
        Observation(body_text="https://hop/2"),
        Observation(body_text=""),
        Observation(video_src="https://final/media"),
    ])

    url = asyncio.run(RedirectFollower(max_attempts=5).follow(inspector, "https://start"))

    assert url == "https://final/media"
    assert inspector.actions == [("open", "https://start"), ("open", "https://hop/2"), ("reload", None)]


def test_follower_gives_up_after_budget() -> None:
    inspector = ScriptedInspector([Observation(body_text="")] * 3)

    with pytest.raises(StreamCaptureTimeout):
        asyncio.run(RedirectFollower(max_attempts=3).follow(inspector, "https://start"))
