"""Notification preferences and the in-app notification feed.

Each store is an explicit object with a load()/save() (or append()) contract,
handed to whatever needs it. Tests pass a store over a temp database or a
temp file.
"""

from __future__ import annotations

import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Protocol

from churchhub.db import ChurchDB
from churchhub.models import NotificationPrefs, Notice, now_iso

DEFAULT_FEED_LIMIT = 50


class PrefsStore(Protocol):
    def load(self) -> NotificationPrefs: ...

    def save(self, prefs: NotificationPrefs) -> NotificationPrefs: ...


class FeedStore(Protocol):
    def load(self) -> list[Notice]: ...

    def append(self, title: str, message: str = "", ts: str | None = None) -> Notice: ...


class DbPrefsStore:
    """Per-user prefs in the notification_prefs table."""

    def __init__(self, db: ChurchDB, user_id: str):
        self.db = db
        self.user_id = user_id

    def load(self) -> NotificationPrefs:
        """Saved prefs, or the defaults for a user who never saved."""
        return self.db.get_notification_prefs(self.user_id) or NotificationPrefs()

    def save(self, prefs: NotificationPrefs) -> NotificationPrefs:
        self.db.save_notification_prefs(self.user_id, prefs)
        return prefs

    def update(self, **changes: bool) -> NotificationPrefs:
        """Flip individual switches, keeping the rest."""
        current = asdict(self.load())
        unknown = sorted(set(changes) - set(current))
        if unknown:
            raise ValueError(f"Unknown notification setting(s): {', '.join(unknown)}")
        current.update(changes)
        return self.save(NotificationPrefs(**current))


class DbFeedStore:
    """Notification feed in the notification_feed table."""

    def __init__(self, db: ChurchDB, limit: int = DEFAULT_FEED_LIMIT):
        self.db = db
        self.limit = limit

    def load(self) -> list[Notice]:
        return self.db.list_notices(limit=self.limit)

    def append(self, title: str, message: str = "", ts: str | None = None) -> Notice:
        return self.db.add_notice(Notice(title=title, message=message, ts=ts or now_iso()))


class JsonFeedStore:
    """Notification feed persisted to a local JSON file, newest first.

    Used when no database is configured. A missing or unreadable file is an
    empty feed.
    """

    def __init__(self, path: str | Path, limit: int = DEFAULT_FEED_LIMIT):
        self.path = Path(path)
        self.limit = limit

    def load(self) -> list[Notice]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            print(f"Warning: ignoring unreadable feed file {self.path}: {e}", file=sys.stderr)
            return []
        notices = []
        for item in raw if isinstance(raw, list) else []:
            if isinstance(item, dict) and item.get("title"):
                notices.append(
                    Notice(
                        id=str(item.get("id", "")),
                        title=item["title"],
                        message=item.get("message") or "",
                        ts=item.get("ts") or "",
                        read=bool(item.get("read", False)),
                    )
                )
        return notices[: self.limit]

    def save(self, notices: list[Notice]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps([asdict(n) for n in notices], indent=2), encoding="utf-8")

    def append(self, title: str, message: str = "", ts: str | None = None) -> Notice:
        notices = self.load()
        existing_ids = [int(n.id) for n in notices if n.id.isdigit()]
        notice = Notice(
            id=str(max(existing_ids, default=0) + 1),
            title=title,
            message=message,
            ts=ts or now_iso(),
        )
        self.save([notice] + notices)
        return notice


def visitor_added_notice(full_name: str, service: str) -> tuple[str, str]:
    """(title, message) for the "new visitor" alert."""
    return "New visitor added", f"{full_name} ({service})"


def notify_visitor_added(feed: FeedStore, prefs: PrefsStore, full_name: str, service: str) -> Notice | None:
    """Post the new-visitor notice when the user has visitor alerts on."""
    if not prefs.load().visitor_alerts:
        return None
    title, message = visitor_added_notice(full_name, service)
    return feed.append(title, message)
