"""Persistence backends for band and video records."""

from .video_store import SqliteVideoStore, StoreError, VideoStore

__all__ = ["SqliteVideoStore", "StoreError", "VideoStore"]
