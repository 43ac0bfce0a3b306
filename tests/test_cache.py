#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-16 22:51:07 krylon>
#
# /data/code/python/postindex/tests/test_cache.py
# created on 06. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the postindex blog index tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
postindex.test_cache

(c) 2026 Benjamin Walkenhorst
"""

import os
import shutil
import unittest
from datetime import datetime, timedelta
from typing import Final, Optional

from postindex import common
from postindex.cache import Cache, CacheDB, DBType, TxError

test_dir: Final[str] = os.path.join(
    "/tmp",
    datetime.now().strftime(f"{common.AppName.lower()}_test_cache_%Y%m%d_%H%M%S"))


class TestCache(unittest.TestCase):
    """Do some rudimentary tests on the Cache."""

    _cache: Optional[Cache] = None

    @classmethod
    def setUpClass(cls) -> None:
        """Prepare the testing environment."""
        common.set_basedir(test_dir)

    @classmethod
    def tearDownClass(cls) -> None:
        """Clean up afterwards."""
        shutil.rmtree(test_dir, ignore_errors=True)

    @classmethod
    def cache(cls) -> Cache:
        """Return the instance of the cache environment."""
        if cls._cache is None:
            cls._cache = Cache.open()

        return cls._cache

    def test_01_open_env(self) -> None:
        """Test opening the cache environment."""
        env = self.cache()
        self.assertIsNotNone(env)
        self.assertIsInstance(env, Cache)
        self.assertIs(env, Cache.open())

    def test_02_open_db(self) -> None:
        """Test opening a database within the cache environment."""
        env = self.cache()
        db = env.get_db(DBType.Language)
        self.assertIsNotNone(db)
        self.assertIsInstance(db, CacheDB)

    def test_03_transaction(self) -> None:
        """Test performing a transaction."""
        db = self.cache().get_db(DBType.Language)

        test_data: Final[list[tuple[str, str]]] = [
            ("Hello, world", "EN"),
            ("Привет, мир", "RU"),
            ("Hallo, Welt", "DE"),
        ]

        with db.tx(True) as tx:
            for title, lang in test_data:
                tx[title] = lang

        with db.tx() as tx:
            for title, lang in test_data:
                check = tx[title]
                self.assertIsNotNone(check)
                self.assertIsInstance(check, str)
                self.assertEqual(check, lang)
                self.assertIn(title, tx)

                self.assertIsNone(tx[title.upper()])
                self.assertNotIn(title.upper(), tx)

        with db.tx(True) as tx:
            del tx["Hallo, Welt"]
        with db.tx() as tx:
            self.assertIsNone(tx["Hallo, Welt"])

    def test_04_readonly(self) -> None:
        """Changes in a read-only transaction are refused."""
        db = self.cache().get_db(DBType.Language)
        with self.assertRaises(TxError):
            with db.tx() as tx:
                tx["key"] = "value"

    def test_05_expire(self) -> None:
        """Expired items are gone, and purge removes them for good."""
        db = self.cache().get_db(DBType.LinkCheck, timedelta(seconds=-1))

        with db.tx(True) as tx:
            tx["https://example.com/a"] = True
            tx["https://example.com/b"] = False

        with db.tx() as tx:
            self.assertIsNone(tx["https://example.com/a"])
            self.assertNotIn("https://example.com/b", tx)

        self.assertEqual(db.purge(), 2)
        self.assertEqual(db.purge(), 0)

        fresh = self.cache().get_db(DBType.LinkCheck, 3600)
        with fresh.tx(True) as tx:
            tx["https://example.com/c"] = True
        self.assertEqual(fresh.purge(), 0)
        self.assertEqual(fresh.purge(complete=True), 1)

    def test_06_long_keys(self) -> None:
        """Keys longer than LMDB's limit can be stored and found again."""
        title: Final[str] = "Я" * 300
        url: Final[str] = "https://blog.example.org/ru/" + "%D0%AF" * 200

        lang = self.cache().get_db(DBType.Language)
        with lang.tx(True) as tx:
            tx[title] = "RU"
        with lang.tx() as tx:
            self.assertEqual(tx[title], "RU")
            self.assertEqual(tx[f"  {title}\n"], "RU")

        links = self.cache().get_db(DBType.LinkCheck)
        with links.tx(True) as tx:
            tx[url] = True
        with links.tx() as tx:
            self.assertIn(url, tx)
            self.assertIn(url + "#comments", tx)
            self.assertNotIn(url + "/", tx)

    def test_07_make_key(self) -> None:
        """Database keys are fixed-size digests of the normalized URL or title."""
        k1: Final[bytes] = DBType.LinkCheck.make_key("https://a.example/x#top")
        k2: Final[bytes] = DBType.LinkCheck.make_key("https://a.example/x")
        self.assertEqual(k1, k2)
        self.assertLessEqual(len(k1), 511)
        self.assertNotEqual(DBType.Language.make_key("Hello   world"),
                            DBType.Language.make_key("Hello World"))


# Local Variables: #
# python-indent: 4 #
# End: #
