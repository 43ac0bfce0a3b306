#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 19:26:12 krylon>
#
# /data/code/python/postindex/src/postindex/engine.py
# created on 07. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the postindex blog index tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
postindex.engine

(c) 2026 Benjamin Walkenhorst

Importer fetches the blogs' RSS/Atom feeds and turns new articles into index entries.
"""


import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from queue import Empty, SimpleQueue
from threading import Thread
from typing import Final, Optional

import fastfeedparser as ffp  # type: ignore # pylint: disable-msg=E0401
import langdetect
from langdetect.lang_detect_exception import LangDetectException

from postindex import common
from postindex.cache import Cache, CacheDB, DBType
from postindex.model import Document, Entry, Feed, Lang, Post
from postindex.render import entry_sort_key
from postindex.scrub import Scrubber

timepat: Final[str] = "%Y-%m-%dT%H:%M:%S%z"
worker_count: int = 4
title_sep: Final[str] = " / "

# langdetect is non-deterministic unless seeded.
langdetect.DetectorFactory.seed = 0


class FeedError(common.PostIndexError):
    """FeedError indicates a Feed could not be fetched or processed."""


@dataclass(kw_only=True, slots=True)
class FetchResult:
    """FetchResult is what a fetch worker reports back for a single Feed."""

    feed: Feed
    posts: list[Post] = field(default_factory=list)
    stamp: datetime = field(default_factory=datetime.now)
    error: Optional[str] = None


def parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    """Parse the publication timestamp of a feed entry. Return None if it is missing or garbled."""
    if raw is None or raw == "":
        return None
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        pass
    try:
        return datetime.strptime(raw, timepat)
    except ValueError:
        return None


class Importer:
    """Importer downloads Feeds and extracts Posts from them."""

    __slots__ = [
        "log",
        "scrubber",
        "workers",
        "failed",
        "_lang_cache",
    ]

    log: logging.Logger
    scrubber: Scrubber
    workers: int
    failed: list[FetchResult]
    _lang_cache: Optional[CacheDB]

    def __init__(self, workers: int = worker_count, use_cache: bool = True) -> None:
        if workers < 1:
            raise ValueError(f"Invalid number of workers: {workers} (must be > 0)")
        self.log = common.get_logger("engine")
        self.scrubber = Scrubber()
        self.workers = workers
        self.failed = []
        self._lang_cache = Cache.open().get_db(DBType.Language, 86400 * 30) \
            if use_cache else None

    def fetch(self, feeds: list[Feed]) -> list[FetchResult]:
        """Fetch all active Feeds, using a pool of worker threads.

        Feeds that could not be fetched are logged and collected in self.failed.
        """
        feedq: SimpleQueue = SimpleQueue()
        resq: SimpleQueue = SimpleQueue()
        pending: int = 0

        for f in feeds:
            if f.active:
                feedq.put(f)
                pending += 1
            else:
                self.log.debug("Skip inactive Feed %s", f.name)

        if pending == 0:
            self.log.info("No active Feeds to fetch.")
            return []

        threads: list[Thread] = []
        for i in range(min(self.workers, pending)):
            idx: int = i+1
            w: Thread = Thread(name=f"Fetcher{idx:02d}",
                               target=self._fetch_loop,
                               args=(idx, feedq, resq),
                               daemon=True)
            w.start()
            threads.append(w)

        for w in threads:
            w.join()

        results: list[FetchResult] = []
        self.failed = []
        while True:
            try:
                res: FetchResult = resq.get_nowait()
            except Empty:
                break
            if res.error is not None:
                self.log.error("Failed to fetch Feed %s (%s): %s",
                               res.feed.name,
                               res.feed.url,
                               res.error)
                self.failed.append(res)
            else:
                results.append(res)

        if len(results) == 0:
            raise FeedError(f"None of the {pending} Feeds could be fetched")

        self.log.info("Fetched %d of %d Feeds, got %d posts",
                      len(results),
                      pending,
                      sum(len(r.posts) for r in results))
        return results

    def _fetch_loop(self, num: int, feedq: SimpleQueue, resq: SimpleQueue) -> None:
        """Fetch Feeds from the queue until it is empty."""
        self.log.debug("Fetch worker %02d is starting up.", num)
        while True:
            try:
                feed: Feed = feedq.get_nowait()
            except Empty:
                break

            self.log.debug("Fetch worker %02d is about to fetch Feed %s (%d / %s)",
                           num,
                           feed.name,
                           feed.fid,
                           feed.url)
            res: FetchResult = FetchResult(feed=feed)
            try:
                rss = ffp.parse(feed.url)
                res.posts = self.extract(feed, rss.entries)
            except Exception as err:  # pylint: disable-msg=W0718
                # fastfeedparser raises all sorts of things, the caller reports them.
                res.error = f"{err.__class__.__name__}: {err}"
            res.stamp = datetime.now()
            resq.put(res)
        self.log.debug("Fetch worker %02d is quitting.", num)

    def extract(self, feed: Feed, articles) -> list[Post]:
        """Turn the entries of a parsed feed into Posts. Skip entries that lack a link or date."""
        posts: list[Post] = []
        for art in articles:
            post: Optional[Post] = self.make_post(feed, art)
            if post is not None:
                posts.append(post)
        return posts

    def make_post(self, feed: Feed, art) -> Optional[Post]:
        """Create a Post from a single feed entry."""
        url: str = getattr(art, "link", "") or ""
        raw_title: str = getattr(art, "title", "") or ""

        if url == "":
            self.log.info("Entry '%s' in Feed %s has no link, skipping it.",
                          raw_title,
                          feed.name)
            return None

        stamp: Optional[datetime] = parse_timestamp(getattr(art, "published", None))
        if stamp is None:
            stamp = parse_timestamp(getattr(art, "updated", None))
        if stamp is None:
            self.log.info("Did not find a usable timestamp for %s in Feed %s, skipping it.",
                          url,
                          feed.name)
            return None

        title: Final[str] = self.scrubber.clean_title(raw_title)
        if title == "":
            self.log.info("Entry %s in Feed %s has no title, skipping it.",
                          url,
                          feed.name)
            return None

        lang: Final[str] = feed.lang if feed.lang != "" else self.guess_lang(title)

        return Post(date=stamp.date(), title=title, url=url, lang=lang)

    def guess_lang(self, title: str) -> str:
        """Attempt to guess which language the title is written in."""
        if self._lang_cache is not None:
            with self._lang_cache.tx() as tx:
                cached = tx[title]
            if cached is not None:
                return cached

        try:
            lng: str = langdetect.detect(title)[:2].upper()
        except LangDetectException as err:
            self.log.info("Cannot guess the language of '%s', assuming %s: %s",
                          title,
                          Lang.EN.name,
                          err)
            return Lang.EN.name

        if self._lang_cache is not None:
            with self._lang_cache.tx(True) as tx:
                tx[title] = lng
        return lng


def pair_posts(posts: list[Post]) -> list[Entry]:
    """Combine the Posts into Entries.

    When exactly one EN and one RU Post were published on the same day, they
    are taken to be two versions of the same article and end up in a single
    Entry. Everything else gets an Entry of its own.
    """
    by_day: dict[date, list[Post]] = {}
    for p in posts:
        by_day.setdefault(p.date, []).append(p)

    entries: list[Entry] = []
    for day in sorted(by_day, reverse=True):
        batch: list[Post] = by_day[day]
        en: list[Post] = [x for x in batch if x.lang == Lang.EN.name]
        ru: list[Post] = [x for x in batch if x.lang == Lang.RU.name]

        if len(en) == 1 and len(ru) == 1:
            entries.append(Entry(date=day,
                                 title=f"{en[0].title}{title_sep}{ru[0].title}",
                                 links=[en[0].link, ru[0].link]))
            batch = [x for x in batch if x is not en[0] and x is not ru[0]]

        for p in batch:
            entries.append(Entry(date=day, title=p.title, links=[p.link]))

    return entries


def merge(doc: Document, posts: list[Post]) -> list[Entry]:
    """Add the Posts that are not in the Document yet. Return the new Entries.

    The Document's Entries end up sorted by date, newest first; new Entries
    go before existing ones from the same day.
    """
    known: Final[set[str]] = doc.urls
    fresh: list[Post] = []
    for p in posts:
        if p.url in known:
            continue
        known.add(p.url)
        fresh.append(p)

    added: Final[list[Entry]] = pair_posts(fresh)
    doc.entries = sorted(added + doc.entries, key=entry_sort_key)
    return added


# Local Variables: #
# python-indent: 4 #
# End: #
