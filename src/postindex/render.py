#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 15:48:22 krylon>
#
# /data/code/python/postindex/src/postindex/render.py
# created on 04. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the postindex blog index tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
postindex.render

(c) 2026 Benjamin Walkenhorst

Render a Document back into Markdown.
"""


import logging
import os
import pathlib
import tempfile
from datetime import date
from typing import Final, Optional, Union

from jinja2 import Environment, FileSystemLoader

from postindex import common
from postindex.model import Document, Entry

tmpl_root: Final[pathlib.Path] = pathlib.Path(__file__).parent.joinpath("templates")
tmpl_name: Final[str] = "index.md.j2"

# Markdown hard line break
hard_break: Final[str] = "  "


def entry_sort_key(e: Entry) -> tuple[bool, int]:
    """Sort key that puts newer Entries first, and Entries with invalid dates last."""
    if e.date is None:
        return (True, 0)
    return (False, -e.date.toordinal())


def refresh(doc: Document, today: Optional[date] = None) -> Document:
    """Sort the Entries by date, newest first, and bring the summary lines up to date.

    The sort is stable, so Entries from the same day keep their relative order.
    """
    if today is None:
        today = date.today()

    doc.entries.sort(key=entry_sort_key)
    doc.footer.total = len(doc.entries)

    newest: Final[Optional[date]] = doc.newest
    if newest is not None and newest > today:
        doc.footer.last_updated = newest
    else:
        doc.footer.last_updated = today

    return doc


class Renderer:
    """Renderer turns Documents into Markdown, using a jinja2 template."""

    __slots__ = [
        "log",
        "env",
    ]

    log: logging.Logger
    env: Environment

    def __init__(self, root: Union[str, pathlib.Path] = tmpl_root) -> None:
        self.log = common.get_logger("render")
        self.env = Environment(loader=FileSystemLoader(str(root)),
                               autoescape=False,
                               trim_blocks=True,
                               keep_trailing_newline=True)

    def render(self, doc: Document) -> str:
        """Render the Document as Markdown.

        Stray lines are not carried over. Missing summary values are
        derived from the Entries.
        """
        if len(doc.stray) > 0:
            self.log.info("Dropping %d unrecognized line(s): %s",
                          len(doc.stray),
                          ", ".join(str(x[0]) for x in doc.stray))

        updated: Optional[date] = doc.footer.last_updated
        if updated is None:
            updated = doc.newest or date.today()
        total: Final[int] = doc.footer.total \
            if doc.footer.total is not None \
            else len(doc.entries)

        tmpl = self.env.get_template(tmpl_name)
        return tmpl.render(preamble=doc.preamble,
                           entries=doc.entries,
                           updated=updated.strftime(common.DateFmt),
                           total=total,
                           brk=hard_break)

    def write_file(self, doc: Document, path: Union[str, pathlib.Path]) -> None:
        """Render the Document and replace the file at path with the result."""
        target: Final[pathlib.Path] = pathlib.Path(path)
        text: Final[str] = self.render(doc)

        fd, tmp = tempfile.mkstemp(prefix=f".{target.name}.",
                                   dir=str(target.parent.absolute()))
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as fh:
                fh.write(text)
            os.replace(tmp, target)
        except OSError:
            os.unlink(tmp)
            raise

        self.log.debug("Wrote %d entries to %s", len(doc.entries), target)


def render(doc: Document) -> str:
    """Render the Document as Markdown."""
    return Renderer().render(doc)


def write_file(doc: Document, path: Union[str, pathlib.Path]) -> None:
    """Render the Document and write it to path."""
    Renderer().write_file(doc, path)


# Local Variables: #
# python-indent: 4 #
# End: #
