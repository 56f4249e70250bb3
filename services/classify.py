import re
from enum import Enum

VIDEO_EXTENSIONS = {".mp4", ".mkv", ".avi", ".mov", ".webm"}

# anything carrying one of these is a file, never a folder
KNOWN_EXTENSIONS = VIDEO_EXTENSIONS | {
    ".m4v", ".wmv", ".flv", ".mpg", ".mpeg", ".3gp", ".ts",
    ".mp3", ".m4a", ".aac", ".wav", ".flac", ".ogg",
    ".jpg", ".jpeg", ".png", ".gif", ".webp", ".heic", ".bmp", ".svg",
    ".pdf", ".txt", ".csv", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".zip", ".rar", ".7z", ".tar", ".gz",
    ".srt", ".vtt", ".ass", ".json", ".xml", ".html", ".md",
}

# Drive appends the file kind to the tooltip text ("clip.mp4 Video")
_TYPE_LABEL_RE = re.compile(r"\s+(Video|MKV|AVI|MOV|WEBM|MP4)$", re.IGNORECASE)
_SHARED_RE = re.compile(r"\s*(\(Shared\)|Shared folder)\s*", re.IGNORECASE)


class ItemKind(str, Enum):
    VIDEO = "VIDEO"
    FOLDER = "FOLDER"
    UNKNOWN = "UNKNOWN"


def clean_item_name(name: str) -> str:
    return _TYPE_LABEL_RE.sub("", (name or "").strip()).strip()


def clean_folder_name(name: str) -> str:
    return _SHARED_RE.sub(" ", (name or "")).strip()


def extension(name: str) -> str:
    dot = name.rfind(".")
    if dot < 0:
        return ""
    return name[dot:].lower()


def classify(name: str) -> ItemKind:
    cleaned = clean_item_name(name)
    if not cleaned:
        return ItemKind.UNKNOWN

    ext = extension(cleaned)
    if ext in VIDEO_EXTENSIONS:
        return ItemKind.VIDEO
    if ext in KNOWN_EXTENSIONS:
        return ItemKind.UNKNOWN
    if clean_folder_name(cleaned):
        return ItemKind.FOLDER
    return ItemKind.UNKNOWN


def video_display_name(name: str) -> str:
    """Canonical name of a video item: cleaned name without its extension."""
    cleaned = clean_item_name(name)
    ext = extension(cleaned)
    if ext in VIDEO_EXTENSIONS:
        cleaned = cleaned[: -len(ext)]
    return cleaned.strip()
