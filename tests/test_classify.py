import pytest

from services.classify import ItemKind, classify, clean_folder_name, video_display_name


@pytest.mark.parametrize(
    "name",
    ["clip.mp4", "Lecture 01.MKV", "a.b.avi", "intro.mov", "trailer.webm", "clip.mp4 Video"],
)
def test_video_extensions_are_videos(name: str) -> None:
    assert classify(name) == ItemKind.VIDEO


@pytest.mark.parametrize(
    "name",
    ["Season 1", "Lectures (Shared)", "2024 archive", "Week 1.5", "Shared folder Assets"],
)
def test_names_without_known_extension_are_folders(name: str) -> None:
    assert classify(name) == ItemKind.FOLDER


@pytest.mark.parametrize("name", ["notes.pdf", "cover.jpg", "track.mp3", "subs.srt", "", "   "])
def test_other_files_and_blanks_are_unknown(name: str) -> None:
    assert classify(name) == ItemKind.UNKNOWN


def test_shared_decoration_is_stripped() -> None:
    assert clean_folder_name("Lectures (Shared)") == "Lectures"
    assert clean_folder_name("Shared folder Assets") == "Assets"


def test_video_display_name_drops_extension_and_type_label() -> None:
    assert video_display_name("clip.mp4") == "clip"
    assert video_display_name("My Talk.mkv MKV") == "My Talk"
    assert video_display_name(".mp4") == ""
