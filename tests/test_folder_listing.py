import pytest

from services.browser.folder_crawler import (
    FILE_URL,
    FOLDER_URL,
    FolderCrawler,
    ScanValidationError,
    build_listing,
    folder_title,
)
from services.errors import SessionExpired

import asyncio

from fakes import FakePage, FakeSession


def test_folder_title_from_page_title() -> None:
    assert folder_title("Course 2024 - Google Drive") == "Course 2024"


def test_folder_title_falls_back_to_metadata_then_none() -> None:
    assert folder_title("Google Drive", ["Google Drive", "Archive"]) == "Archive"
    assert folder_title("", []) is None


def test_build_listing_splits_videos_and_folders() -> None:
    entries = [
        {"id": "v1", "name": "clip.mp4"},
        {"id": "v1", "name": "clip.mp4"},  # nested duplicate element
        {"id": "f1", "name": "Part 2 (Shared)"},
        {"id": "d1", "name": "readme.pdf"},
        {"id": "_gd", "name": "Drive"},
        {"id": "", "name": "ghost.mp4"},
    ]

    listing = build_listing(entries, "Course - Google Drive")

    assert listing.name == "Course"
    assert [(v.id, v.name, v.url) for v in listing.videos] == [("v1", "clip", FILE_URL.format(id="v1"))]
    assert [(f.id, f.name, f.url) for f in listing.subfolders] == [("f1", "Part 2", FOLDER_URL.format(id="f1"))]


def test_build_listing_rejects_unnamed_video() -> None:
    entries = [{"id": "v1", "name": "clip.mp4"}, {"id": "v2", "name": ".mp4"}]

    with pytest.raises(ScanValidationError, match="1 file"):
        build_listing(entries)


def test_crawl_reads_entries_and_closes_page() -> None:
    page = FakePage(
        title="Course - Google Drive",
        evaluate_results=[[], [{"id": "v1", "name": "clip.mp4"}]],
    )
    crawler = FolderCrawler(FakeSession([page]), scroll_rounds=3, screenshot_dir=None)

    listing = asyncio.run(crawler.crawl("https://drive.google.com/drive/folders/F1"))

    assert listing.name == "Course"
    assert [v.name for v in listing.videos] == ["clip"]
    assert page.keyboard.presses == ["End", "End", "End"]
    assert page.closed


def test_crawl_fails_fast_when_session_lost() -> None:
    page = FakePage()
    crawler = FolderCrawler(FakeSession([page], authenticated=False), screenshot_dir=None)

    with pytest.raises(SessionExpired):
        asyncio.run(crawler.crawl("https://drive.google.com/drive/folders/F1"))

    assert page.visited == []
    assert page.closed


def test_crawl_fails_when_folder_redirects_to_login() -> None:
    page = FakePage(
        url_after_goto="https://accounts.google.com/ServiceLogin",
        login_form=True,
        evaluate_results=[[], []],
    )
    crawler = FolderCrawler(FakeSession([page]), screenshot_dir=None)

    with pytest.raises(SessionExpired):
        asyncio.run(crawler.crawl("https://drive.google.com/drive/folders/F1"))

    assert page.keyboard.presses == []
    assert page.closed
