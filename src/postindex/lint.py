#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 17:02:19 krylon>
#
# /data/code/python/postindex/src/postindex/lint.py
# created on 05. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the postindex blog index tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
postindex.lint

(c) 2026 Benjamin Walkenhorst

Check the index for the mistakes that tend to creep in when editing it by hand:
a post count that does not match, dates out of order, malformed links, and the like.
"""


import logging
from dataclasses import dataclass
from datetime import date
from enum import IntEnum
from typing import Final, Optional
from urllib.parse import urlsplit

from postindex import common
from postindex.linkcheck import LinkChecker, LinkStatus
from postindex.model import Document, Entry


class Severity(IntEnum):
    """How bad is it?"""

    Warning = 0
    Error = 1

    @property
    def string(self) -> str:
        """Return the lowercase name of the Severity."""
        return self.name.lower()


@dataclass(kw_only=True, slots=True, frozen=True)
class Issue:
    """Issue is a single problem found in the index.

    pos is the 1-based position of the offending Entry, or 0 if the Issue
    concerns the Document as a whole. lineno is the line in the source
    text, if known.
    """

    severity: Severity
    code: str
    message: str
    pos: int = 0
    lineno: int = 0

    def __str__(self) -> str:
        where: str = f"line {self.lineno}" if self.lineno > 0 else "document"
        return f"{where}: {self.severity.string}: {self.message} [{self.code}]"


def valid_url(url: str) -> bool:
    """Return True if url is a well-formed absolute http(s) URL."""
    if url == "" or any(c.isspace() for c in url):
        return False
    try:
        parts = urlsplit(url)
        # Accessing port raises ValueError if it is out of range or not a number.
        _ = parts.port
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and parts.hostname is not None and \
        parts.hostname != ""


class Linter:
    """Linter checks a Document for inconsistencies."""

    __slots__ = [
        "log",
        "checker",
    ]

    log: logging.Logger
    checker: Optional[LinkChecker]

    def __init__(self, checker: Optional[LinkChecker] = None) -> None:
        self.log = common.get_logger("lint")
        self.checker = checker

    def check(self, doc: Document) -> list[Issue]:
        """Check the Document, return all Issues found, ordered by position."""
        issues: list[Issue] = []

        issues.extend(self._check_footer(doc))
        issues.extend(self._check_entries(doc))
        issues.extend(self._check_duplicates(doc))

        for lineno, line in doc.stray:
            issues.append(Issue(severity=Severity.Warning,
                                code="stray-line",
                                message=f"Unrecognized line: {line.strip()}",
                                lineno=lineno))

        if self.checker is not None:
            issues.extend(self._check_links(doc))

        issues.sort(key=lambda x: (x.pos, x.lineno))
        self.log.debug("Found %d issues in %d entries",
                       len(issues),
                       len(doc.entries))
        return issues

    def _check_footer(self, doc: Document) -> list[Issue]:
        issues: list[Issue] = []
        cnt: Final[int] = len(doc.entries)

        if doc.footer.total is None:
            issues.append(Issue(severity=Severity.Error,
                                code="missing-footer",
                                message="The 'Total posts' line is missing"))
        elif doc.footer.total != cnt:
            issues.append(Issue(severity=Severity.Error,
                                code="count-mismatch",
                                message=f"Total posts says {doc.footer.total}, "
                                f"but there are {cnt} entries"))

        if doc.footer.last_updated is None:
            issues.append(Issue(severity=Severity.Error,
                                code="missing-footer",
                                message="The 'Last updated' line is missing"))
        else:
            newest: Final[Optional[date]] = doc.newest
            if newest is not None and doc.footer.last_updated < newest:
                issues.append(Issue(
                    severity=Severity.Error,
                    code="stale-footer",
                    message=f"Last updated ({doc.footer.last_updated.strftime(common.DateFmt)}) "
                    f"is older than the newest entry ({newest.strftime(common.DateFmt)})"))

        return issues

    def _check_entries(self, doc: Document) -> list[Issue]:
        issues: list[Issue] = []
        prev: Optional[Entry] = None

        for idx, e in enumerate(doc.entries):
            pos: int = idx + 1

            if e.date is None:
                issues.append(Issue(severity=Severity.Error,
                                    code="invalid-date",
                                    message=f"'{e.raw_date}' is not a valid date",
                                    pos=pos,
                                    lineno=e.lineno))
            elif prev is not None and prev.date is not None and e.date > prev.date:
                issues.append(Issue(severity=Severity.Error,
                                    code="date-order",
                                    message=f"{e.date_str} is newer than the "
                                    f"previous entry ({prev.date_str})",
                                    pos=pos,
                                    lineno=e.lineno))

            if e.title.strip() == "":
                issues.append(Issue(severity=Severity.Error,
                                    code="empty-title",
                                    message="Entry has no title",
                                    pos=pos,
                                    lineno=e.lineno))

            langs: set[str] = set()
            for lnk in e.links:
                if lnk.lang in langs:
                    issues.append(Issue(severity=Severity.Error,
                                        code="duplicate-lang",
                                        message=f"More than one {lnk.lang} link",
                                        pos=pos,
                                        lineno=e.lineno))
                langs.add(lnk.lang)

                if not valid_url(lnk.url):
                    issues.append(Issue(severity=Severity.Error,
                                        code="bad-url",
                                        message=f"Malformed {lnk.lang} link: '{lnk.url}'",
                                        pos=pos,
                                        lineno=e.lineno))

            if e.date is not None:
                prev = e

        return issues

    def _check_duplicates(self, doc: Document) -> list[Issue]:
        issues: list[Issue] = []
        first_seen: dict[str, int] = {}

        for idx, e in enumerate(doc.entries):
            pos: int = idx + 1
            for url in set(e.urls):
                if url == "":
                    continue
                if url in first_seen:
                    issues.append(Issue(severity=Severity.Warning,
                                        code="duplicate-url",
                                        message=f"{url} was already linked "
                                        f"from entry #{first_seen[url]}",
                                        pos=pos,
                                        lineno=e.lineno))
                else:
                    first_seen[url] = pos

        return issues

    def _check_links(self, doc: Document) -> list[Issue]:
        assert self.checker is not None
        issues: list[Issue] = []

        for idx, e in enumerate(doc.entries):
            for lnk in e.links:
                if not valid_url(lnk.url):
                    continue
                status: LinkStatus = self.checker.check(lnk.url)
                if not status.ok:
                    issues.append(Issue(severity=Severity.Error,
                                        code="dead-link",
                                        message=f"{lnk.lang} link {lnk.url} "
                                        f"is unreachable: {status.reason}",
                                        pos=idx+1,
                                        lineno=e.lineno))

        return issues


def has_errors(issues: list[Issue]) -> bool:
    """Return True if any of the Issues is an Error."""
    return any(x.severity == Severity.Error for x in issues)


# Local Variables: #
# python-indent: 4 #
# End: #
