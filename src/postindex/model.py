#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 14:10:37 krylon>
#
# /data/code/python/postindex/src/postindex/model.py
# created on 03. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the postindex blog index tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
postindex.model

(c) 2026 Benjamin Walkenhorst
"""


import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import IntEnum
from typing import Final, Optional

from postindex import common

lang_pat: Final[re.Pattern] = re.compile("^[A-Za-z]{2}$")


class Lang(IntEnum):
    """Lang lists the language tags we know about, in the order they are rendered."""

    EN = 0
    RU = 1

    @classmethod
    def from_str(cls, name: Optional[str]) -> 'Lang':
        """Create a Lang from its tag, ignoring case."""
        if name is None:
            raise ValueError("Language tag must not be None")
        match name.strip().upper():
            case "EN":
                return cls.EN
            case "RU":
                return cls.RU
            case _:
                raise ValueError(f"Unknown language tag '{name}'")


def normalize_lang(tag: str) -> str:
    """Return the tag in upper case. Raise ValueError if it is not two letters."""
    tag = tag.strip()
    if lang_pat.match(tag) is None:
        raise ValueError(f"Invalid language tag '{tag}'")
    return tag.upper()


def lang_order(tag: str) -> tuple[int, str]:
    """Sort key for language tags: known tags first, the rest alphabetically."""
    try:
        return (Lang.from_str(tag).value, "")
    except ValueError:
        return (len(Lang), tag.upper())


@dataclass(kw_only=True, slots=True, eq=True)
class Link:
    """Link points to one language version of a post."""

    lang: str
    url: str

    def __post_init__(self) -> None:
        self.lang = normalize_lang(self.lang)


@dataclass(kw_only=True, slots=True)
class Entry:
    """Entry is one line in the index: a published post with its date, title, and links.

    raw_date holds the date as it appeared in the document, so an invalid
    date can be reported rather than rejected. If date is None, the raw
    date could not be parsed.
    """

    eid: int = 0
    date: Optional[date]
    title: str
    links: list[Link] = field(default_factory=list)
    raw_date: str = ""
    lineno: int = 0

    def __post_init__(self) -> None:
        if self.raw_date == "" and self.date is not None:
            self.raw_date = self.date.strftime(common.DateFmt)

    @property
    def valid_date(self) -> bool:
        """Return True if the Entry's date could be parsed."""
        return self.date is not None

    @property
    def date_str(self) -> str:
        """Return the Entry's date in YYYY-MM-DD notation, or the raw date if it is invalid."""
        if self.date is None:
            return self.raw_date
        return self.date.strftime(common.DateFmt)

    @property
    def urls(self) -> list[str]:
        """Return the URLs of all the Entry's Links."""
        return [x.url for x in self.links]

    @property
    def sorted_links(self) -> list[Link]:
        """Return the Entry's Links in rendering order."""
        return sorted(self.links, key=lambda x: lang_order(x.lang))

    def link(self, lang: str) -> Optional[Link]:
        """Return the Link for the given language, if there is one."""
        tag: Final[str] = lang.upper()
        for lnk in self.links:
            if lnk.lang == tag:
                return lnk
        return None


@dataclass(kw_only=True, slots=True)
class Footer:
    """Footer holds the trailing summary lines of the index."""

    last_updated: Optional[date] = None
    total: Optional[int] = None

    @property
    def complete(self) -> bool:
        """Return True if both summary lines are present."""
        return self.last_updated is not None and self.total is not None


@dataclass(kw_only=True, slots=True)
class Document:
    """Document is the index as a whole."""

    preamble: list[str] = field(default_factory=list)
    entries: list[Entry] = field(default_factory=list)
    footer: Footer = field(default_factory=Footer)
    stray: list[tuple[int, str]] = field(default_factory=list)

    @property
    def newest(self) -> Optional[date]:
        """Return the most recent valid date of all Entries, or None."""
        dates: Final[list[date]] = [x.date for x in self.entries if x.date is not None]
        if len(dates) == 0:
            return None
        return max(dates)

    @property
    def urls(self) -> set[str]:
        """Return the set of all URLs linked from the Document."""
        return {u for e in self.entries for u in e.urls}


@dataclass(kw_only=True, slots=True)
class Feed:
    """Feed is an RSS/Atom feed of a blog whose posts go into the index.

    An empty lang means the language is guessed for each post.
    """

    fid: int = 0
    url: str
    name: str
    lang: str = ""
    last_update: Optional[datetime] = None
    active: bool = True

    @property
    def update_str(self) -> str:
        """Return last_update as a human-readable string, or an empty string."""
        if self.last_update is None:
            return ""
        return self.last_update.strftime(common.TimeFmt)


@dataclass(kw_only=True, slots=True)
class Post:
    """Post is a single article, as found in a Feed."""

    date: date
    title: str
    url: str
    lang: str

    def __post_init__(self) -> None:
        self.lang = normalize_lang(self.lang)

    @property
    def link(self) -> Link:
        """Return a Link pointing to the Post."""
        return Link(lang=self.lang, url=self.url)


# Local Variables: #
# python-indent: 4 #
# End: #
