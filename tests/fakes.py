"""Hand-written stand-ins for the browser, subprocesses and pipeline stages."""

from __future__ import annotations

import asyncio
import os
from typing import Callable, Dict, List, Optional

from services.browser.folder_crawler import FolderListing
from services.browser.stream_locator import StreamLocation
from services.media.process_runner import ProcessResult, ProcessRunner


def write_bytes(path: str, size: int):
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "wb") as f:
        f.write(b"\0" * size)


def arg_value(args, prefix: str) -> Optional[str]:
    for arg in args:
        if arg.startswith(prefix):
            return arg[len(prefix):]
    return None


class FakeRunner(ProcessRunner):
    """Records every command; ``script`` decides the result per call."""

    def __init__(self, script: Optional[Callable] = None):
        self.calls: List[list] = []
        self.script = script

    async def run(self, args, timeout=None) -> ProcessResult:
        self.calls.append(list(args))
        if self.script is None:
            return ProcessResult(exit_code=0)
        result = self.script(list(args))
        if asyncio.iscoroutine(result):
            result = await result
        return result


def aria2_output(args) -> str:
    return os.path.join(arg_value(args, "--dir="), arg_value(args, "--out="))


# --------------------------
# browser
# --------------------------

class FakeRequest:
    def __init__(self, url: str, headers: Optional[Dict[str, str]] = None):
        self.url = url
        self.headers = headers or {}


class FakeMouse:
    def __init__(self, page):
        self.page = page
        self.clicks = 0

    async def click(self, x, y):
        self.clicks += 1
        self.page._tick("mouse")


class FakeKeyboard:
    def __init__(self):
        self.presses: List[str] = []

    async def press(self, key):
        self.presses.append(key)


class FakePage:
    """
    Minimal page: ``requests_on_goto`` fire on navigation, ``requests_on_tick``
    fire on the n-th ``wait_for_timeout`` call (n -> list of urls).
    """

    def __init__(self, url_after_goto: Optional[str] = None, login_form: bool = False,
                 requests_on_goto=(), requests_on_tick: Optional[Dict[int, list]] = None,
                 selectors=(), title: str = "", evaluate_results: Optional[list] = None):
        self.url = "about:blank"
        self.url_after_goto = url_after_goto
        self.login_form = login_form
        self.requests_on_goto = list(requests_on_goto)
        self.requests_on_tick = dict(requests_on_tick or {})
        self.selectors = set(selectors)
        self._title = title
        self.evaluate_results = list(evaluate_results or [])
        self.handlers = []
        self.ticks = 0
        self.closed = False
        self.visited: List[str] = []
        self.clicked: List[str] = []
        self.mouse = FakeMouse(self)
        self.keyboard = FakeKeyboard()

    def on(self, event, handler):
        if event == "request":
            self.handlers.append(handler)

    def _emit(self, urls):
        for url in urls:
            for handler in self.handlers:
                handler(FakeRequest(url, {"x-captured": "1"}))

    def _tick(self, _source):
        pass

    async def goto(self, url, **kwargs):
        self.visited.append(url)
        self.url = self.url_after_goto or url
        self._emit(self.requests_on_goto)

    async def wait_for_timeout(self, ms):
        self.ticks += 1
        self._emit(self.requests_on_tick.pop(self.ticks, []))

    async def query_selector(self, selector):
        if selector == 'input[type="email"]':
            return object() if self.login_form else None
        return object() if selector in self.selectors else None

    async def click(self, selector, **kwargs):
        self.clicked.append(selector)

    async def title(self):
        return self._title

    async def evaluate(self, script, *args):
        if self.evaluate_results:
            return self.evaluate_results.pop(0)
        return None

    async def screenshot(self, **kwargs):
        pass

    async def close(self):
        self.closed = True


class FakeSession:
    def __init__(self, pages: List[FakePage], authenticated: bool = True):
        self.pages = list(pages)
        self.opened: List[FakePage] = []
        self.authenticated = authenticated

    async def new_page(self):
        page = self.pages.pop(0)
        self.opened.append(page)
        return page

    async def is_authenticated(self):
        return self.authenticated

    async def session_headers(self, page):
        return {"cookie": "SID=abc", "user-agent": "UA/1.0", "referer": "https://drive.google.com/"}


# --------------------------
# pipeline stages
# --------------------------

class FakeCrawler:
    def __init__(self, listing: Optional[FolderListing] = None, error: Optional[Exception] = None):
        self.listing = listing or FolderListing()
        self.error = error
        self.urls: List[str] = []

    async def crawl(self, folder_url):
        self.urls.append(folder_url)
        if self.error:
            raise self.error
        return self.listing


class FakeLocator:
    def __init__(self, error: Optional[Exception] = None, on_locate: Optional[Callable] = None):
        self.error = error
        self.on_locate = on_locate
        self.calls: List[str] = []

    async def locate(self, viewer_url):
        self.calls.append(viewer_url)
        if self.on_locate:
            await self.on_locate(viewer_url)
        if self.error:
            raise self.error
        return StreamLocation(
            video_url=f"{viewer_url}#video",
            audio_url=f"{viewer_url}#audio",
            headers={"cookie": "SID=abc"},
        )


class FakeDownloader:
    def __init__(self, size: int = 200_000, error: Optional[Exception] = None):
        self.size = size
        self.error = error
        self.calls = []

    async def fetch_pair(self, video_url, audio_url, headers, video_path, audio_path):
        self.calls.append((video_url, audio_url, video_path, audio_path))
        write_bytes(video_path, self.size)
        write_bytes(audio_path, self.size)
        if self.error:
            raise self.error
        return self.size, self.size


class FakeMerger:
    def __init__(self, error: Optional[Exception] = None):
        self.error = error

    async def merge(self, video_path, audio_path, output_path):
        write_bytes(output_path, 1024)
        if self.error:
            raise self.error
        return output_path


class FakeUploader:
    """Records uploads in ``store`` as {destination: [file names]}."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.store: Dict[str, List[str]] = {}

    async def upload(self, local_path, destination_folder_name, canonical_name):
        final = os.path.join(os.path.dirname(local_path), f"{canonical_name}.mp4")
        os.replace(local_path, final)
        if self.error:
            raise self.error
        self.store.setdefault(destination_folder_name, []).append(os.path.basename(final))
        return final


# --------------------------
# queue
# --------------------------

class InMemoryQueue:
    """Queue with the JobQueue surface, recording every state change."""

    def __init__(self):
        self.jobs = []
        self.events: List[tuple] = []
        self._next_id = 1

    def add(self, queue_name, name, data):
        from pipeline.job_queue import Job

        job = Job(id=self._next_id, queue_name=queue_name, name=name, data=dict(data))
        self._next_id += 1
        self.jobs.append([job, "queued"])
        self.events.append(("add", job.id))
        return job

    def claim(self, queue_name):
        for entry in self.jobs:
            job, state = entry
            if job.queue_name == queue_name and state == "queued":
                entry[1] = "active"
                job.attempts += 1
                self.events.append(("claim", job.id))
                return job
        return None

    def complete(self, job_id):
        self._set(job_id, "completed")

    def fail(self, job_id, error):
        self._set(job_id, "failed")

    def remove(self, job_id):
        before = len(self.jobs)
        self.jobs = [e for e in self.jobs if e[0].id != job_id]
        self.events.append(("remove", job_id))
        return len(self.jobs) < before

    def has_open(self, queue_name, name, data):
        return any(
            job.queue_name == queue_name and job.name == name and job.data == data
            and state in ("queued", "active")
            for job, state in self.jobs
        )

    def state_of(self, job_id):
        for job, state in self.jobs:
            if job.id == job_id:
                return state
        return None

    def named(self, name):
        return [job for job, _ in self.jobs if job.name == name]

    def _set(self, job_id, state):
        for entry in self.jobs:
            if entry[0].id == job_id:
                entry[1] = state
                self.events.append((state, job_id))
