"""SQLite-backed band and video store.

The matching engine reads bands and unassigned videos from the store and
writes back a band assignment per classified video. ``VideoStore`` describes
that boundary; ``SqliteVideoStore`` is the bundled implementation.
"""

from __future__ import annotations

import json
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Optional, Protocol

from ..models import Band, BandCategory, VideoAssignment, VideoText

if TYPE_CHECKING:
    from collections.abc import Iterator


class StoreError(RuntimeError):
    """Raised when the store cannot complete a read or write."""


class VideoStore(Protocol):
    def load_bands(self) -> list[Band]: ...

    def fetch_unassigned_videos(
        self,
        *,
        limit: Optional[int] = None,
        channel: Optional[str] = None,
        verified_only: bool = False,
    ) -> list[VideoText]: ...

    def apply_assignment(self, video_id: str, assignment: VideoAssignment) -> None: ...


def _adapt_datetime(value: datetime) -> str:
    return value.isoformat()


sqlite3.register_adapter(datetime, _adapt_datetime)


class SqliteVideoStore:
    """SQLite store holding band records and harvested video metadata.

    Example:
        store = SqliteVideoStore(Path("/data/bandmatch.db"))
        bands = store.load_bands()
        videos = store.fetch_unassigned_videos(limit=500)
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._local = threading.local()
        self._init_db()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection for the current thread."""
        if not hasattr(self._local, "connection") or self._local.connection is None:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._local.connection = sqlite3.connect(self._db_path)
            self._local.connection.execute("PRAGMA journal_mode=WAL")
            self._local.connection.row_factory = sqlite3.Row
        return self._local.connection

    def _init_db(self) -> None:
        conn = self._get_connection()
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            )
        """)
        row = conn.execute("SELECT version FROM schema_version LIMIT 1").fetchone()
        current_version = row["version"] if row else 0
        if current_version < self.SCHEMA_VERSION:
            self._migrate_schema(current_version)

    def _migrate_schema(self, from_version: int) -> None:
        conn = self._get_connection()

        if from_version < 1:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS bands (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    school_name TEXT NOT NULL,
                    category TEXT NOT NULL DEFAULT 'TRADITIONAL',
                    keywords TEXT NOT NULL DEFAULT '[]',
                    position INTEGER NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS videos (
                    id TEXT PRIMARY KEY,
                    title TEXT,
                    description TEXT,
                    channel_id TEXT,
                    channel_title TEXT,
                    verified_creator INTEGER NOT NULL DEFAULT 0,
                    band_id TEXT,
                    opponent_band_id TEXT,
                    quality_score INTEGER,
                    created_at TIMESTAMP NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_videos_band
                ON videos(band_id)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_videos_channel
                ON videos(channel_id)
            """)

        conn.execute("DELETE FROM schema_version")
        conn.execute("INSERT INTO schema_version (version) VALUES (?)", (self.SCHEMA_VERSION,))
        conn.commit()

    def close(self) -> None:
        """Close the database connection for the current thread."""
        if hasattr(self._local, "connection") and self._local.connection is not None:
            self._local.connection.close()
            self._local.connection = None

    def add_bands(self, bands: Iterable[Band]) -> int:
        """Insert or update band records, keeping their iteration order."""
        conn = self._get_connection()
        row = conn.execute("SELECT COALESCE(MAX(position), -1) AS last FROM bands").fetchone()
        position = row["last"] + 1
        count = 0
        for band in bands:
            conn.execute(
                """
                INSERT INTO bands (id, name, school_name, category, keywords, position)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    school_name = excluded.school_name,
                    keywords = excluded.keywords
                """,
                (band.id, band.name, band.school_name, band.category.value, json.dumps(list(band.keywords)), position),
            )
            position += 1
            count += 1
        conn.commit()
        return count

    def add_videos(self, videos: Iterable[VideoText]) -> int:
        conn = self._get_connection()
        count = 0
        for video in videos:
            conn.execute(
                """
                INSERT INTO videos (
                    id, title, description, channel_id, channel_title, verified_creator, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title = excluded.title,
                    description = excluded.description,
                    channel_id = excluded.channel_id,
                    channel_title = excluded.channel_title,
                    verified_creator = excluded.verified_creator
                """,
                (
                    video.video_id,
                    video.title,
                    video.description,
                    video.channel_id,
                    video.channel_title,
                    int(video.verified_creator),
                    datetime.now(),
                ),
            )
            count += 1
        conn.commit()
        return count

    def _row_to_band(self, row: sqlite3.Row) -> Band:
        try:
            keywords = tuple(json.loads(row["keywords"] or "[]"))
        except json.JSONDecodeError:
            keywords = ()
        return Band(
            id=row["id"],
            name=row["name"],
            school_name=row["school_name"],
            category=BandCategory.parse(row["category"]),
            keywords=keywords,
        )

    def _row_to_video(self, row: sqlite3.Row) -> VideoText:
        return VideoText(
            video_id=row["id"],
            title=row["title"],
            description=row["description"],
            channel_title=row["channel_title"],
            channel_id=row["channel_id"],
            verified_creator=bool(row["verified_creator"]),
        )

    def load_bands(self) -> list[Band]:
        conn = self._get_connection()
        cursor = conn.execute("SELECT * FROM bands ORDER BY position, id")
        return [self._row_to_band(row) for row in cursor]

    def fetch_unassigned_videos(
        self,
        *,
        limit: Optional[int] = None,
        channel: Optional[str] = None,
        verified_only: bool = False,
    ) -> list[VideoText]:
        """Return videos without a band assignment, newest first.

        Args:
            limit: Maximum number of videos to return
            channel: Channel id, or a case-insensitive fragment of the channel title
            verified_only: Only return videos from verified creator channels
        """
        clauses = ["band_id IS NULL"]
        params: list[object] = []
        if channel:
            clauses.append("(channel_id = ? OR LOWER(channel_title) LIKE ?)")
            params.extend([channel, f"%{channel.lower()}%"])
        if verified_only:
            clauses.append("verified_creator = 1")
        query = f"SELECT * FROM videos WHERE {' AND '.join(clauses)} ORDER BY created_at DESC, rowid DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        conn = self._get_connection()
        return [self._row_to_video(row) for row in conn.execute(query, params)]

    def apply_assignment(self, video_id: str, assignment: VideoAssignment) -> None:
        """Write the band assignment for a video.

        Writing the same assignment twice leaves the row unchanged.

        Raises:
            StoreError: when the write fails or the video does not exist
        """
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                """
                UPDATE videos
                SET band_id = ?, opponent_band_id = ?, quality_score = ?
                WHERE id = ?
                """,
                (assignment.band_id, assignment.opponent_band_id, assignment.quality_score, video_id),
            )
            conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"Unable to update video {video_id}: {exc}") from exc
        if cursor.rowcount == 0:
            raise StoreError(f"Video {video_id} not found")

    def get_assignment(self, video_id: str) -> Optional[VideoAssignment]:
        conn = self._get_connection()
        row = conn.execute(
            "SELECT band_id, opponent_band_id, quality_score FROM videos WHERE id = ?",
            (video_id,),
        ).fetchone()
        if row is None or row["band_id"] is None:
            return None
        return VideoAssignment(
            band_id=row["band_id"],
            opponent_band_id=row["opponent_band_id"],
            quality_score=row["quality_score"],
        )

    def iter_assignments(self) -> Iterator[tuple[str, Optional[VideoAssignment]]]:
        conn = self._get_connection()
        for row in conn.execute("SELECT id FROM videos ORDER BY id"):
            yield row["id"], self.get_assignment(row["id"])
