#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 18:11:45 krylon>
#
# /data/code/python/postindex/src/postindex/database.py
# created on 05. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the postindex blog index tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
postindex.database

(c) 2026 Benjamin Walkenhorst
"""


import logging
import math
import sqlite3
from datetime import datetime
from enum import Enum, auto
from pathlib import Path
from threading import Lock
from typing import Final, Optional, Union

from postindex import common
from postindex.model import Entry, Feed, Link


class DatabaseError(common.PostIndexError):
    """Exception class for database-specific errors."""


qinit: Final[list[str]] = [
    """
CREATE TABLE feed (
    id INTEGER PRIMARY KEY,
    url TEXT UNIQUE NOT NULL,
    name TEXT UNIQUE NOT NULL,
    lang TEXT NOT NULL DEFAULT '',
    last_update INTEGER,
    active INTEGER NOT NULL DEFAULT 1,
    CHECK (last_update >= 0),
    CHECK (lang = '' OR length(lang) = 2)
) STRICT
    """,
    """
CREATE TABLE entry (
    id INTEGER PRIMARY KEY,
    date TEXT NOT NULL,
    title TEXT NOT NULL,
    time_added INTEGER NOT NULL,
    CHECK (date GLOB '[0-9][0-9][0-9][0-9]-[0-9][0-9]-[0-9][0-9]')
) STRICT
    """,
    "CREATE INDEX entry_date_idx ON entry (date)",
    """
CREATE TABLE link (
    id INTEGER PRIMARY KEY,
    entry_id INTEGER NOT NULL,
    lang TEXT NOT NULL,
    url TEXT UNIQUE NOT NULL,
    UNIQUE (entry_id, lang),
    FOREIGN KEY (entry_id) REFERENCES entry (id)
        ON UPDATE RESTRICT
        ON DELETE CASCADE
) STRICT
    """,
    "CREATE INDEX link_entry_idx ON link (entry_id)",
]


class Query(Enum):
    """Query identifies the various operations we perform on the database."""

    FeedAdd = auto()
    FeedGetAll = auto()
    FeedGetActive = auto()
    FeedGetByID = auto()
    FeedSetLastUpdate = auto()
    FeedSetActive = auto()
    FeedDelete = auto()

    EntryAdd = auto()
    EntryGetAll = auto()
    EntryGetByID = auto()
    EntryGetByURL = auto()
    EntryGetCount = auto()
    EntryDelete = auto()

    LinkAdd = auto()
    LinkGetByEntry = auto()
    LinkExists = auto()
    EntryExistsUnlinked = auto()


qdb: Final[dict[Query, str]] = {
    Query.FeedAdd: """
INSERT INTO feed (url, name, lang)
          VALUES (  ?,    ?,    ?)
RETURNING id
    """,
    Query.FeedGetAll: """
SELECT
    id,
    url,
    name,
    lang,
    last_update,
    active
FROM feed
ORDER BY name
    """,
    Query.FeedGetActive: """
SELECT
    id,
    url,
    name,
    lang,
    last_update,
    active
FROM feed
WHERE active
ORDER BY name
    """,
    Query.FeedGetByID: """
SELECT
    url,
    name,
    lang,
    last_update,
    active
FROM feed
WHERE id = ?
    """,
    Query.FeedSetLastUpdate: "UPDATE feed SET last_update = ? WHERE id = ?",
    Query.FeedSetActive: "UPDATE feed SET active = ? WHERE id = ?",
    Query.FeedDelete: "DELETE FROM feed WHERE id = ?",

    Query.EntryAdd: """
INSERT INTO entry (date, title, time_added)
           VALUES (   ?,     ?,          ?)
RETURNING id
    """,
    Query.EntryGetAll: """
SELECT
    id,
    date,
    title
FROM entry
ORDER BY date DESC, id
    """,
    Query.EntryGetByID: """
SELECT
    date,
    title
FROM entry
WHERE id = ?
    """,
    Query.EntryGetByURL: """
SELECT
    e.id,
    e.date,
    e.title
FROM link l
INNER JOIN entry e ON l.entry_id = e.id
WHERE l.url = ?
    """,
    Query.EntryGetCount: "SELECT COUNT(id) FROM entry",
    Query.EntryDelete: "DELETE FROM entry WHERE id = ?",

    Query.LinkAdd: "INSERT INTO link (entry_id, lang, url) VALUES (?, ?, ?)",
    Query.LinkGetByEntry: "SELECT lang, url FROM link WHERE entry_id = ? ORDER BY lang",
    Query.LinkExists: "SELECT COUNT(id) FROM link WHERE url = ?",
    Query.EntryExistsUnlinked: """
SELECT COUNT(e.id)
FROM entry e
WHERE e.date = ?
  AND e.title = ?
  AND NOT EXISTS (SELECT 1 FROM link l WHERE l.entry_id = e.id)
    """,
}


open_lock: Final[Lock] = Lock()


class Database:
    """Database wraps the database connection and the operations we perform on it."""

    __slots__ = [
        "db",
        "log",
        "path",
    ]

    log: logging.Logger
    db: sqlite3.Connection
    path: Path

    def __init__(self, path: Optional[Union[Path, str]] = None) -> None:
        if path is None:
            self.path = common.path.db
        else:
            match path:
                case x if isinstance(x, Path):
                    self.path = x
                case x if isinstance(x, str):
                    self.path = Path(x)
                case _:
                    raise TypeError("Invalid type for path (must be str or pathlib.Path)")

        self.log = common.get_logger("database")
        self.log.debug("Open database at %s", self.path)

        with open_lock:
            exist: Final[bool] = self.path.exists()
            self.db = sqlite3.connect(str(self.path), check_same_thread=False)
            self.db.isolation_level = None

            cur: Final[sqlite3.Cursor] = self.db.cursor()
            cur.execute("PRAGMA foreign_keys = true")
            cur.execute("PRAGMA journal_mode = WAL")

            if not exist:
                self.__create_db()

    def __create_db(self) -> None:
        """Initialize a freshly created database"""
        self.log.debug("Initialize fresh database at %s", self.path)
        with self.db:
            for query in qinit:
                try:
                    cur: sqlite3.Cursor = self.db.cursor()
                    cur.execute(query)
                except sqlite3.OperationalError as operr:
                    self.log.debug("%s executing init query: %s\n%s\n",
                                   operr.__class__.__name__,
                                   operr,
                                   query)
                    raise
        self.log.debug("Database initialized successfully.")

    def close(self) -> None:
        """Close the database connection."""
        self.db.close()
        del self.db

    def __enter__(self) -> None:
        self.db.execute("BEGIN")

    def __exit__(self, ex_type, ex_val, tb):
        if ex_type is None:
            self.db.execute("COMMIT")
        else:
            self.db.execute("ROLLBACK")
        return False

    def feed_add(self, feed: Feed) -> None:
        """Add a Feed to the database."""
        try:
            cur = self.db.cursor()
            cur.execute(qdb[Query.FeedAdd], (feed.url,
                                             feed.name,
                                             feed.lang))
            row = cur.fetchone()
            feed.fid = row[0]
        except sqlite3.Error as err:
            msg: Final[str] = f"Error adding Feed {feed.name} ({feed.url}): {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def _feed_from_row(self, row) -> Feed:
        stamp: Optional[datetime] = datetime.fromtimestamp(row[4]) \
            if row[4] is not None \
            else None
        return Feed(
            fid=row[0],
            url=row[1],
            name=row[2],
            lang=row[3],
            last_update=stamp,
            active=bool(row[5]),
        )

    def feed_get_all(self) -> list[Feed]:
        """Load all Feeds from the database."""
        try:
            cur = self.db.cursor()
            cur.execute(qdb[Query.FeedGetAll])
            return [self._feed_from_row(row) for row in cur]
        except sqlite3.Error as err:
            cname: Final[str] = err.__class__.__name__
            msg: Final[str] = f"{cname} trying to load all Feeds: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def feed_get_active(self) -> list[Feed]:
        """Load all Feeds that are marked as active."""
        try:
            cur = self.db.cursor()
            cur.execute(qdb[Query.FeedGetActive])
            return [self._feed_from_row(row) for row in cur]
        except sqlite3.Error as err:
            cname: Final[str] = err.__class__.__name__
            msg: Final[str] = f"{cname} trying to load active Feeds: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def feed_get_by_id(self, feed_id: int) -> Optional[Feed]:
        """Look up a Feed by its ID."""
        try:
            cur = self.db.cursor()
            cur.execute(qdb[Query.FeedGetByID], (feed_id, ))

            row = cur.fetchone()
            if row is None:
                return None

            return self._feed_from_row((feed_id, *row))
        except sqlite3.Error as err:
            cname: Final[str] = err.__class__.__name__
            msg: Final[str] = f"{cname} trying to load Feed {feed_id}: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def feed_set_active(self, feed: Feed, active: bool = True) -> None:
        """Set or clear a Feed's active flag."""
        assert feed.fid > 0

        try:
            cur = self.db.cursor()
            cur.execute(qdb[Query.FeedSetActive], (active, feed.fid))
            feed.active = active
        except sqlite3.Error as err:
            cname: Final[str] = err.__class__.__name__
            msg: Final[str] = f"{cname} trying to set Feed {feed.name}'s active flag: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def feed_set_last_update(self, feed: Feed, timestamp: datetime) -> None:
        """Update a Feed's last_update timestamp."""
        try:
            cur = self.db.cursor()
            cur.execute(qdb[Query.FeedSetLastUpdate],
                        (math.floor(timestamp.timestamp()), feed.fid))
            feed.last_update = timestamp
        except sqlite3.Error as err:
            cname: Final[str] = err.__class__.__name__
            msg: Final[str] = f"{cname} trying to set Feed {feed.name}'s Update timestamp: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def feed_delete(self, feed: Feed) -> None:
        """Remove a Feed from the database."""
        try:
            cur = self.db.cursor()
            cur.execute(qdb[Query.FeedDelete], (feed.fid, ))
        except sqlite3.Error as err:
            cname: Final[str] = err.__class__.__name__
            msg: Final[str] = f"{cname} trying to delete Feed {feed.name}: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def entry_add(self, entry: Entry) -> bool:
        """Add an Entry and its Links to the database.

        If any of the Entry's URLs is already known, nothing is added and
        False is returned. An Entry without Links counts as known if an
        Entry with the same date and title and no Links exists. Entries
        whose Links clash with each other (the same URL or language twice)
        are refused the same way.
        """
        if entry.date is None:
            raise ValueError(f"Entry '{entry.title}' has an invalid date: '{entry.raw_date}'")

        cur = self.db.cursor()
        try:
            for url in entry.urls:
                cur.execute(qdb[Query.LinkExists], (url, ))
                if cur.fetchone()[0] > 0:
                    self.log.debug("Entry %s is already in the database", url)
                    return False

            if len(entry.links) == 0:
                cur.execute(qdb[Query.EntryExistsUnlinked], (entry.date_str, entry.title))
                if cur.fetchone()[0] > 0:
                    self.log.debug("Entry '%s' from %s is already in the database",
                                   entry.title,
                                   entry.date_str)
                    return False

            cur.execute("SAVEPOINT entry_add")
            try:
                cur.execute(qdb[Query.EntryAdd],
                            (entry.date_str,
                             entry.title,
                             math.floor(datetime.now().timestamp())))
                eid: Final[int] = cur.fetchone()[0]
                for lnk in entry.links:
                    cur.execute(qdb[Query.LinkAdd], (eid, lnk.lang, lnk.url))
            except sqlite3.IntegrityError as ierr:
                cur.execute("ROLLBACK TO entry_add")
                cur.execute("RELEASE entry_add")
                self.log.error("Refusing Entry '%s' from %s: %s",
                               entry.title,
                               entry.date_str,
                               ierr)
                return False
            except sqlite3.Error:
                cur.execute("ROLLBACK TO entry_add")
                cur.execute("RELEASE entry_add")
                raise
            cur.execute("RELEASE entry_add")
            entry.eid = eid
            return True
        except sqlite3.Error as err:
            cname: Final[str] = err.__class__.__name__
            msg = f"{cname} trying to add Entry '{entry.title}': {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def _entry_links(self, eid: int) -> list[Link]:
        cur = self.db.cursor()
        cur.execute(qdb[Query.LinkGetByEntry], (eid, ))
        return [Link(lang=row[0], url=row[1]) for row in cur]

    def _entry_from_row(self, eid: int, date_str: str, title: str) -> Entry:
        return Entry(
            eid=eid,
            date=common.parse_iso_date(date_str),
            title=title,
            links=self._entry_links(eid),
        )

    def entry_get_all(self) -> list[Entry]:
        """Load all Entries, newest first."""
        try:
            cur = self.db.cursor()
            cur.execute(qdb[Query.EntryGetAll])
            rows = cur.fetchall()
            return [self._entry_from_row(*row) for row in rows]
        except sqlite3.Error as err:
            cname: Final[str] = err.__class__.__name__
            msg: Final[str] = f"{cname} trying to load all Entries: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def entry_get_by_id(self, eid: int) -> Optional[Entry]:
        """Look up an Entry by its ID."""
        try:
            cur = self.db.cursor()
            cur.execute(qdb[Query.EntryGetByID], (eid, ))
            row = cur.fetchone()
            if row is None:
                return None
            return self._entry_from_row(eid, row[0], row[1])
        except sqlite3.Error as err:
            cname: Final[str] = err.__class__.__name__
            msg: Final[str] = f"{cname} trying to load Entry {eid}: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def entry_get_by_url(self, url: str) -> Optional[Entry]:
        """Look up the Entry that links to the given URL."""
        try:
            cur = self.db.cursor()
            cur.execute(qdb[Query.EntryGetByURL], (url, ))
            row = cur.fetchone()
            if row is None:
                self.log.debug("Entry %s was not found in database", url)
                return None
            return self._entry_from_row(*row)
        except sqlite3.Error as err:
            cname: Final[str] = err.__class__.__name__
            msg: Final[str] = f"{cname} trying to look up Entry for {url}: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def entry_get_count(self) -> int:
        """Return the number of Entries in the database."""
        try:
            cur = self.db.cursor()
            cur.execute(qdb[Query.EntryGetCount])
            row = cur.fetchone()
            return row[0]
        except sqlite3.Error as err:
            cname: Final[str] = err.__class__.__name__
            msg: Final[str] = f"{cname} trying to count Entries: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def entry_delete(self, entry: Entry) -> None:
        """Remove an Entry and its Links from the database."""
        assert entry.eid > 0

        try:
            cur = self.db.cursor()
            cur.execute(qdb[Query.EntryDelete], (entry.eid, ))
            entry.eid = 0
        except sqlite3.Error as err:
            cname: Final[str] = err.__class__.__name__
            msg: Final[str] = f"{cname} trying to delete Entry {entry.eid}: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err


# Local Variables: #
# python-indent: 4 #
# End: #
