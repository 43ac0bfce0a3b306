#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 20:03:58 krylon>
#
# /data/code/python/postindex/src/postindex/main.py
# created on 08. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the postindex blog index tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
postindex.main

(c) 2026 Benjamin Walkenhorst
"""


import argparse
import logging
import pathlib
import sys
from datetime import date
from typing import Final, Optional

from postindex import common
from postindex.database import Database
from postindex.engine import FetchResult, Importer, merge
from postindex.lint import Issue, Linter, has_errors
from postindex.linkcheck import LinkChecker
from postindex.model import Document, Entry, Feed, normalize_lang
from postindex.parser import parse_file
from postindex.render import Renderer, refresh

ExitOK: Final[int] = 0
ExitLint: Final[int] = 1
ExitFail: Final[int] = 2


def lint(path: pathlib.Path, check_links: bool = False) -> int:
    """Check the index, print what is wrong with it."""
    doc: Final[Document] = parse_file(path)
    checker: Optional[LinkChecker] = LinkChecker() if check_links else None
    try:
        issues: list[Issue] = Linter(checker).check(doc)
    finally:
        if checker is not None:
            checker.close()

    for i in issues:
        print(f"{path}: {i}")

    if has_errors(issues):
        return ExitLint
    return ExitOK


def reformat(path: pathlib.Path, today: Optional[date] = None) -> int:
    """Sort the index, bring the summary lines up to date and write it back."""
    doc: Final[Document] = parse_file(path)
    refresh(doc, today)
    Renderer().write_file(doc, path)
    print(f"{path}: {len(doc.entries)} posts")
    return ExitOK


def update(path: pathlib.Path, db: Database, today: Optional[date] = None) -> int:
    """Fetch the Feeds, add new posts to the index, and write it back."""
    log: Final[logging.Logger] = common.get_logger("main")
    doc: Final[Document] = parse_file(path)
    imp: Final[Importer] = Importer()

    results: Final[list[FetchResult]] = imp.fetch(db.feed_get_active())
    posts = [p for r in results for p in r.posts]
    added: Final[list[Entry]] = merge(doc, posts)

    with db:
        for r in results:
            db.feed_set_last_update(r.feed, r.stamp)
        for e in added:
            db.entry_add(e)

    refresh(doc, today)
    Renderer().write_file(doc, path)

    log.info("Added %d entries to %s", len(added), path)
    print(f"{path}: {len(added)} new, {len(doc.entries)} posts")
    for r in imp.failed:
        print(f"Failed to fetch {r.feed.name} ({r.feed.url}): {r.error}", file=sys.stderr)

    return ExitFail if len(imp.failed) > 0 else ExitOK


def load(path: pathlib.Path, db: Database) -> int:
    """Store the entries of an existing index in the database."""
    log: Final[logging.Logger] = common.get_logger("main")
    doc: Final[Document] = parse_file(path)
    cnt: int = 0

    with db:
        for e in doc.entries:
            if e.date is None:
                log.error("Skipping entry in line %d with invalid date '%s'",
                          e.lineno,
                          e.raw_date)
                continue
            if db.entry_add(e):
                cnt += 1

    print(f"Loaded {cnt} of {len(doc.entries)} entries from {path}")
    return ExitOK


def export(path: pathlib.Path, db: Database, today: Optional[date] = None) -> int:
    """Write all entries in the database as a fresh index."""
    doc: Final[Document] = Document(preamble=["# Posts"],
                                    entries=db.entry_get_all())
    refresh(doc, today)
    Renderer().write_file(doc, path)
    print(f"Wrote {len(doc.entries)} posts to {path}")
    return ExitOK


def add_feed(db: Database, url: str, name: str, lang: str) -> int:
    """Subscribe to a Feed."""
    feed: Final[Feed] = Feed(url=url,
                             name=name or url,
                             lang=normalize_lang(lang) if lang != "" else "")
    db.feed_add(feed)
    print(f"Added Feed #{feed.fid}: {feed.name}")
    return ExitOK


def list_feeds(db: Database) -> int:
    """Print all Feeds."""
    for f in db.feed_get_all():
        flag: str = " " if f.active else "-"
        print(f"{flag} {f.fid:4d} {f.lang or '??':2s} {f.name:<24s} {f.url} {f.update_str}")
    return ExitOK


def main() -> None:
    """Run the postindex application."""
    argp: argparse.ArgumentParser = argparse.ArgumentParser(
        prog=common.AppName.lower(),
        description="Maintain a Markdown index of blog posts")
    argp.add_argument("-b", "--basedir",
                      type=pathlib.Path,
                      default=common.path.base(),
                      help="The directory to store application-specific files in")
    argp.add_argument("-d", "--debug",
                      action="store_true",
                      help="Emit debug messages")

    act = argp.add_mutually_exclusive_group(required=True)
    act.add_argument("-l", "--lint",
                     type=pathlib.Path,
                     metavar="FILE",
                     help="Check the index for mistakes")
    act.add_argument("-r", "--reformat",
                     type=pathlib.Path,
                     metavar="FILE",
                     help="Sort the index and update the summary lines")
    act.add_argument("-u", "--update",
                     type=pathlib.Path,
                     metavar="FILE",
                     help="Add new posts from the Feeds to the index")
    act.add_argument("--load",
                     type=pathlib.Path,
                     metavar="FILE",
                     help="Store the entries of an index in the database")
    act.add_argument("--export",
                     type=pathlib.Path,
                     metavar="FILE",
                     help="Write all entries from the database to a new index")
    act.add_argument("--add-feed",
                     metavar="URL",
                     help="Subscribe to an RSS/Atom feed")
    act.add_argument("--list-feeds",
                     action="store_true",
                     help="List all Feeds")

    argp.add_argument("--check-links",
                      action="store_true",
                      help="When linting, check that all links can be retrieved")
    argp.add_argument("--name",
                      default="",
                      help="The name of the Feed to add")
    argp.add_argument("--lang",
                      default="",
                      help="The language of the Feed's posts (EN, RU). Guessed if empty.")

    args = argp.parse_args()

    common.set_debug(args.debug)
    common.set_basedir(args.basedir)
    log: Final[logging.Logger] = common.get_logger("main")

    status: int = ExitOK
    db: Optional[Database] = None
    try:
        if args.lint is not None:
            status = lint(args.lint, args.check_links)
        elif args.reformat is not None:
            status = reformat(args.reformat)
        else:
            db = Database()
            if args.update is not None:
                status = update(args.update, db)
            elif args.load is not None:
                status = load(args.load, db)
            elif args.export is not None:
                status = export(args.export, db)
            elif args.add_feed is not None:
                status = add_feed(db, args.add_feed, args.name, args.lang)
            elif args.list_feeds:
                status = list_feeds(db)
    except (common.PostIndexError, OSError, ValueError) as err:
        log.error("%s: %s", err.__class__.__name__, err)
        print(f"Error: {err}", file=sys.stderr)
        status = ExitFail
    finally:
        if db is not None:
            db.close()

    sys.exit(status)


if __name__ == '__main__':
    main()


# Local Variables: #
# python-indent: 4 #
# End: #
