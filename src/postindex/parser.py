#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 15:21:04 krylon>
#
# /data/code/python/postindex/src/postindex/parser.py
# created on 04. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the postindex blog index tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
postindex.parser

(c) 2026 Benjamin Walkenhorst

Turn the Markdown text of the index into a Document. An entry line looks like this:

    [2024-05-01] - Some title - [[EN]](https://example.com/a) [[RU]](https://example.com/b)

Both links are optional. The index ends with two summary lines:

    Last updated: 2024-05-02
    Total posts: 42
"""


import logging
import re
from pathlib import Path
from typing import Final, Optional, Union

from postindex import common
from postindex.model import Document, Entry, Link

entry_pat: Final[re.Pattern] = re.compile(
    r"^\s*(?:[-*+]\s+)?\[([^\]\[]*)\]\s+-(?:\s+(.*?))?\s*$")
link_pat: Final[re.Pattern] = re.compile(
    r"\s*\[\[([A-Za-z]{2})\]\]\(((?:[^()\s]|\([^()\s]*\))*)\)\s*$")
trail_sep_pat: Final[re.Pattern] = re.compile(r"(?:^|\s+)-$")
hard_break_pat: Final[re.Pattern] = re.compile(r"(?:\s*<br\s*/?>|\\)\s*$", re.I)
updated_pat: Final[re.Pattern] = re.compile(
    r"^[\s*_>+-]*last\s+updated\s*:?\s*[*_]*\s*([^\s*_]+)[\s*_]*$", re.I)
total_pat: Final[re.Pattern] = re.compile(
    r"^[\s*_>+-]*total\s+posts\s*:?\s*[*_]*\s*([^\s*_]+)[\s*_]*$", re.I)


class ParseError(common.PostIndexError):
    """ParseError indicates a line of the index could not be understood."""

    lineno: int

    def __init__(self, msg: str, lineno: int = 0) -> None:
        super().__init__(f"Line {lineno}: {msg}" if lineno > 0 else msg)
        self.lineno = lineno


class Parser:
    """Parser reads the index. In strict mode, anything unexpected raises a ParseError."""

    __slots__ = [
        "log",
        "strict",
    ]

    log: logging.Logger
    strict: bool

    def __init__(self, strict: bool = False) -> None:
        self.log = common.get_logger("parser")
        self.strict = strict

    def parse(self, text: str) -> Document:
        """Parse the text of the index."""
        doc: Final[Document] = Document()
        seen_entry: bool = False

        for idx, raw in enumerate(text.splitlines()):
            lineno: int = idx + 1
            line: str = hard_break_pat.sub("", raw).rstrip()

            entry: Optional[Entry] = self.parse_entry(line, lineno)
            if entry is not None:
                if doc.footer.last_updated is not None or doc.footer.total is not None:
                    self._stray(doc, lineno, raw, "Entry after the summary lines")
                    continue
                seen_entry = True
                doc.entries.append(entry)
                continue

            if self._parse_footer(doc, line, lineno):
                continue

            if not seen_entry:
                doc.preamble.append(raw.rstrip())
            elif line.strip() != "":
                self._stray(doc, lineno, raw, "Unrecognized line")

        # Blank lines separate the preamble from the entries, we add them back when rendering.
        while len(doc.preamble) > 0 and doc.preamble[-1].strip() == "":
            doc.preamble.pop()

        self.log.debug("Parsed %d entries, %d stray lines",
                       len(doc.entries),
                       len(doc.stray))
        return doc

    def parse_entry(self, line: str, lineno: int = 0) -> Optional[Entry]:
        """Parse a single entry line. Return None if the line is not an entry at all."""
        m = entry_pat.match(line)
        if m is None:
            return None

        raw_date: Final[str] = m[1].strip()
        rest: str = m[2] or ""
        links: list[Link] = []

        while (lm := link_pat.search(rest)) is not None:
            links.insert(0, Link(lang=lm[1], url=lm[2]))
            rest = rest[:lm.start()]

        if len(links) > 0:
            rest = trail_sep_pat.sub("", rest.rstrip())
        title: Final[str] = rest.strip()

        try:
            stamp = common.parse_iso_date(raw_date)
        except ValueError as err:
            if self.strict:
                raise ParseError(f"Invalid date '{raw_date}'", lineno) from err
            self.log.debug("Line %d has an invalid date: %s", lineno, raw_date)
            stamp = None

        return Entry(date=stamp,
                     raw_date=raw_date,
                     title=title,
                     links=links,
                     lineno=lineno)

    def _parse_footer(self, doc: Document, line: str, lineno: int) -> bool:
        """Try to parse one of the summary lines. Return True if it was one."""
        if (m := updated_pat.match(line)) is not None:
            try:
                doc.footer.last_updated = common.parse_iso_date(m[1])
            except ValueError as err:
                if self.strict:
                    raise ParseError(f"Invalid date in summary: '{m[1]}'", lineno) from err
                self._stray(doc, lineno, line, "Invalid date in summary")
            return True

        if (m := total_pat.match(line)) is not None:
            try:
                doc.footer.total = int(m[1])
            except ValueError as err:
                if self.strict:
                    raise ParseError(f"Invalid post count in summary: '{m[1]}'", lineno) from err
                self._stray(doc, lineno, line, "Invalid post count in summary")
            return True

        return False

    def _stray(self, doc: Document, lineno: int, line: str, msg: str) -> None:
        if self.strict:
            raise ParseError(msg, lineno)
        self.log.debug("%s in line %d: %s", msg, lineno, line)
        doc.stray.append((lineno, line.rstrip()))


def parse(text: str, strict: bool = False) -> Document:
    """Parse the text of the index."""
    return Parser(strict).parse(text)


def parse_file(path: Union[str, Path], strict: bool = False) -> Document:
    """Read and parse the index from a file."""
    with open(path, "r", encoding="utf-8") as fh:
        return parse(fh.read(), strict)


# Local Variables: #
# python-indent: 4 #
# End: #
