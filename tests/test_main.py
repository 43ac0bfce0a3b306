#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 11:58:02 krylon>
#
# /data/code/python/postindex/tests/test_main.py
# created on 08. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the postindex blog index tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
postindex.test_main

(c) 2026 Benjamin Walkenhorst
"""

import io
import os
import pathlib
import shutil
import unittest
from contextlib import redirect_stdout
from datetime import date, datetime
from types import SimpleNamespace
from typing import Final, Optional
from unittest import mock

from postindex import common, main
from postindex.database import Database
from postindex.model import Feed
from postindex.parser import parse_file

test_dir: Final[str] = os.path.join(
    "/tmp",
    datetime.now().strftime(f"{common.AppName.lower()}_test_main_%Y%m%d_%H%M%S"))

messy: Final[str] = """# Blog

[2024-04-20] - Only English - [[EN]](https://blog.example.org/en/only)
[2024-05-01] - Hello / Привет - [[EN]](https://blog.example.org/en/hello) [[RU]](https://blog.example.org/ru/privet)

Last updated: 2024-04-20
Total posts: 1
"""

tidy: Final[str] = """# Blog

[2024-05-01] - Hello / Привет - [[EN]](https://blog.example.org/en/hello) [[RU]](https://blog.example.org/ru/privet)  
[2024-04-20] - Only English - [[EN]](https://blog.example.org/en/only)  

Last updated: 2024-06-01  
Total posts: 2
"""


class TestMain(unittest.TestCase):
    """Test the operations behind the command line flags."""

    conn: Optional[Database] = None

    @classmethod
    def setUpClass(cls) -> None:
        """Prepare the testing environment."""
        common.set_basedir(test_dir)
        cls.conn = Database()

    @classmethod
    def tearDownClass(cls) -> None:
        """Clean up afterwards."""
        if cls.conn is not None:
            cls.conn.close()
        shutil.rmtree(test_dir, ignore_errors=True)

    @classmethod
    def db(cls) -> Database:
        """Return the Database."""
        assert cls.conn is not None
        return cls.conn

    def index(self, text: str) -> pathlib.Path:
        """Write an index to the test directory, return its path."""
        path = pathlib.Path(test_dir).joinpath("posts.md")
        path.write_text(text, encoding="utf-8")
        return path

    def test_01_lint(self) -> None:
        """Linting reports problems through the exit status."""
        path = self.index(messy)
        out = io.StringIO()
        with redirect_stdout(out):
            status: int = main.lint(path)
        self.assertEqual(status, main.ExitLint)
        self.assertIn("date-order", out.getvalue())
        self.assertIn("count-mismatch", out.getvalue())
        self.assertIn("stale-footer", out.getvalue())

        path = self.index(tidy)
        out = io.StringIO()
        with redirect_stdout(out):
            status = main.lint(path)
        self.assertEqual(status, main.ExitOK)
        self.assertEqual(out.getvalue(), "")

    def test_02_reformat(self) -> None:
        """Reformatting turns a messy index into a tidy one."""
        path = self.index(messy)
        with redirect_stdout(io.StringIO()):
            status: int = main.reformat(path, date(2024, 6, 1))
        self.assertEqual(status, main.ExitOK)
        self.assertEqual(path.read_text(encoding="utf-8"), tidy)

    def test_03_load_export(self) -> None:
        """Store an index in the database and write it back out."""
        path = self.index(tidy)
        with redirect_stdout(io.StringIO()):
            main.load(path, self.db())
            # Loading twice does not duplicate anything.
            main.load(path, self.db())
        self.assertEqual(self.db().entry_get_count(), 2)

        target = pathlib.Path(test_dir).joinpath("export.md")
        with redirect_stdout(io.StringIO()):
            main.export(target, self.db(), date(2024, 6, 1))
        doc = parse_file(target)
        self.assertEqual(doc.preamble, ["# Posts"])
        self.assertEqual([x.title for x in doc.entries], ["Hello / Привет", "Only English"])
        self.assertEqual(doc.footer.total, 2)

    def test_04_feeds(self) -> None:
        """Add Feeds and list them."""
        with redirect_stdout(io.StringIO()):
            main.add_feed(self.db(), "https://blog.example.org/en/feed.xml", "Blog (EN)", "en")
            main.add_feed(self.db(), "https://blog.example.org/ru/feed.xml", "Blog (RU)", "ru")

        feeds: list[Feed] = self.db().feed_get_all()
        self.assertEqual([(f.name, f.lang) for f in feeds],
                         [("Blog (EN)", "EN"), ("Blog (RU)", "RU")])

        out = io.StringIO()
        with redirect_stdout(out):
            main.list_feeds(self.db())
        self.assertIn("Blog (RU)", out.getvalue())

    def test_05_update(self) -> None:
        """New posts from the Feeds are added to the index."""
        path = self.index(tidy)
        feeds: Final[dict[str, list[SimpleNamespace]]] = {
            "https://blog.example.org/en/feed.xml": [
                SimpleNamespace(link="https://blog.example.org/en/hello",
                                title="Hello",
                                published="2024-05-01T10:00:00Z"),
                SimpleNamespace(link="https://blog.example.org/en/news",
                                title="News",
                                published="2024-05-20T10:00:00Z"),
            ],
            "https://blog.example.org/ru/feed.xml": [
                SimpleNamespace(link="https://blog.example.org/ru/novosti",
                                title="Новости",
                                published="2024-05-20T11:00:00Z"),
            ],
        }

        with mock.patch("postindex.engine.ffp.parse",
                        side_effect=lambda url: SimpleNamespace(entries=feeds[url])), \
                redirect_stdout(io.StringIO()):
            status: int = main.update(path, self.db(), date(2024, 6, 2))

        self.assertEqual(status, main.ExitOK)
        doc = parse_file(path)
        self.assertEqual(len(doc.entries), 3)
        self.assertEqual(doc.entries[0].title, "News / Новости")
        self.assertEqual(doc.footer.total, 3)
        self.assertEqual(doc.footer.last_updated, date(2024, 6, 2))
        self.assertIsNotNone(self.db().entry_get_by_url("https://blog.example.org/ru/novosti"))
        for f in self.db().feed_get_all():
            self.assertIsNotNone(f.last_update)

    def test_06_load_twice(self) -> None:
        """Loading is idempotent, and a broken entry does not spoil the rest."""
        path = self.index("""# Blog

[2024-07-03] - Twice the same link - [[EN]](https://blog.example.org/same) [[RU]](https://blog.example.org/same)
[2024-07-02] - A note without links
[2024-07-01] - Linked - [[EN]](https://blog.example.org/en/linked)

Last updated: 2024-07-03
Total posts: 3
""")
        cnt: Final[int] = self.db().entry_get_count()

        out = io.StringIO()
        with redirect_stdout(out):
            status: int = main.load(path, self.db())
        self.assertEqual(status, main.ExitOK)
        self.assertIn("Loaded 2 of 3", out.getvalue())
        self.assertEqual(self.db().entry_get_count(), cnt + 2)

        out = io.StringIO()
        with redirect_stdout(out):
            status = main.load(path, self.db())
        self.assertEqual(status, main.ExitOK)
        self.assertIn("Loaded 0 of 3", out.getvalue())
        self.assertEqual(self.db().entry_get_count(), cnt + 2)


# Local Variables: #
# python-indent: 4 #
# End: #
