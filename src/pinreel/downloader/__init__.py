"""
PinReel downloader module - streams videos to local files.
"""

from .file_utils import (
    DirectoryStats,
    claim_unique_path,
    directory_stats,
    extension_from_url,
    format_size_mb,
    generate_unique_filename,
    is_valid_video_file,
    partial_path,
    sanitize_filename,
)
from .progress import ProgressInfo, ProgressTracker
from .video_downloader import VideoDownloader

__all__ = [
    "DirectoryStats",
    "ProgressInfo",
    "ProgressTracker",
    "VideoDownloader",
    "claim_unique_path",
    "directory_stats",
    "extension_from_url",
    "format_size_mb",
    "generate_unique_filename",
    "is_valid_video_file",
    "partial_path",
    "sanitize_filename",
]
