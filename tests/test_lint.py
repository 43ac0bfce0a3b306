#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-16 21:12:50 krylon>
#
# /data/code/python/postindex/tests/test_lint.py
# created on 05. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the postindex blog index tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
postindex.test_lint

(c) 2026 Benjamin Walkenhorst
"""

import os
import shutil
import unittest
from datetime import datetime
from typing import Final, NamedTuple

from postindex import common
from postindex.lint import Issue, Linter, Severity, has_errors, valid_url
from postindex.linkcheck import LinkStatus
from postindex.parser import parse

test_dir: Final[str] = os.path.join(
    "/tmp",
    datetime.now().strftime(f"{common.AppName.lower()}_test_lint_%Y%m%d_%H%M%S"))

footer: Final[str] = "\nLast updated: 2024-05-02\nTotal posts: {}\n"


class LintTestCase(NamedTuple):
    """A test case for the Linter: an index and the rule codes it should trigger."""

    text: str
    codes: list[str]


lint_cases: Final[list[LintTestCase]] = [
    LintTestCase("[2024-05-01] - A - [[EN]](https://a.example/1)\n" + footer.format(1), []),
    LintTestCase("[2024-05-01] - A - [[EN]](https://a.example/1)\n" + footer.format(2),
                 ["count-mismatch"]),
    LintTestCase("[2024-05-01] - A - [[EN]](https://a.example/1)\n",
                 ["missing-footer", "missing-footer"]),
    LintTestCase("[2024-05-01] - A\n[2024-05-02] - B\n" + footer.format(2),
                 ["date-order"]),
    LintTestCase("[2024-04-31] - A\n" + footer.format(1),
                 ["invalid-date"]),
    LintTestCase("[2024-05-01] - A - [[EN]](ftp://a.example/1) [[RU]](nowhere)\n"
                 + footer.format(1),
                 ["bad-url", "bad-url"]),
    LintTestCase("[2024-05-03] - A\n" + footer.format(1),
                 ["stale-footer"]),
    LintTestCase("[2024-05-01] - [[EN]](https://a.example/1)\n" + footer.format(1),
                 ["empty-title"]),
    LintTestCase("[2024-05-01] - A - [[EN]](https://a.example/1) [[EN]](https://a.example/2)\n"
                 + footer.format(1),
                 ["duplicate-lang"]),
    LintTestCase("[2024-05-01] - A - [[EN]](https://a.example/1)\n"
                 "[2024-04-01] - B - [[RU]](https://a.example/1)\n"
                 + footer.format(2),
                 ["duplicate-url"]),
    LintTestCase("[2024-05-01] - A\nwhat is this?\n" + footer.format(1),
                 ["stray-line"]),
]


class FakeChecker:
    """Stands in for the LinkChecker, declares every URL containing 'dead' unreachable."""

    def __init__(self) -> None:
        self.checked: list[str] = []

    def check(self, url: str) -> LinkStatus:
        """Pretend to check the URL."""
        self.checked.append(url)
        if "dead" in url:
            return LinkStatus(url=url, ok=False, status=404)
        return LinkStatus(url=url, ok=True, status=200)


class TestLint(unittest.TestCase):
    """Test the Linter."""

    @classmethod
    def setUpClass(cls) -> None:
        """Prepare the testing environment."""
        common.set_basedir(test_dir)

    @classmethod
    def tearDownClass(cls) -> None:
        """Clean up afterwards."""
        shutil.rmtree(test_dir, ignore_errors=True)

    def test_01_valid_url(self) -> None:
        """Test telling well-formed URLs from the rest."""
        good: Final[list[str]] = [
            "https://example.com",
            "http://example.com/blog/post?id=1#top",
            "https://user@sub.example.com:8443/x",
        ]
        bad: Final[list[str]] = [
            "",
            "example.com/post",
            "ftp://example.com/file",
            "https://",
            "https://example.com/a b",
            "https://example.com:99999/",
            "mailto:someone@example.com",
        ]
        for url in good:
            with self.subTest(url=url):
                self.assertTrue(valid_url(url))
        for url in bad:
            with self.subTest(url=url):
                self.assertFalse(valid_url(url))

    def test_02_rules(self) -> None:
        """Each broken index triggers the rules it should, and no others."""
        linter: Final[Linter] = Linter()
        for i, c in enumerate(lint_cases):
            with self.subTest(i=i):
                issues: list[Issue] = linter.check(parse(c.text))
                self.assertEqual(sorted(x.code for x in issues), sorted(c.codes))

    def test_03_severity(self) -> None:
        """Warnings alone do not make the index fail."""
        linter: Final[Linter] = Linter()
        issues = linter.check(parse(lint_cases[-1].text))
        self.assertEqual(len(issues), 1)
        self.assertEqual(issues[0].severity, Severity.Warning)
        self.assertEqual(issues[0].lineno, 2)
        self.assertFalse(has_errors(issues))

        issues = linter.check(parse(lint_cases[1].text))
        self.assertTrue(has_errors(issues))
        self.assertIn("count-mismatch", str(issues[0]))

    def test_04_positions(self) -> None:
        """Issues point at the offending Entry."""
        text: Final[str] = ("[2024-05-01] - A\n"
                            "[2024-04-01] - B\n"
                            "[2024-04-02] - C\n"
                            + footer.format(3))
        issues = Linter().check(parse(text))
        self.assertEqual(len(issues), 1)
        self.assertEqual(issues[0].code, "date-order")
        self.assertEqual(issues[0].pos, 3)
        self.assertEqual(issues[0].lineno, 3)

    def test_05_dead_links(self) -> None:
        """With a link checker, unreachable links are reported."""
        text: Final[str] = ("[2024-05-01] - A - [[EN]](https://a.example/alive) "
                            "[[RU]](https://a.example/dead)\n"
                            "[2024-04-01] - B - [[EN]](not-a-url)\n"
                            + footer.format(2))
        checker = FakeChecker()
        issues = Linter(checker).check(parse(text))  # type: ignore

        self.assertEqual(checker.checked, ["https://a.example/alive", "https://a.example/dead"])
        self.assertEqual(sorted(x.code for x in issues), ["bad-url", "dead-link"])
        dead = [x for x in issues if x.code == "dead-link"][0]
        self.assertIn("HTTP status 404", dead.message)


# Local Variables: #
# python-indent: 4 #
# End: #
