#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 17:15:03 krylon>
#
# /data/code/python/postindex/src/postindex/scrub.py
# created on 07. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the postindex blog index tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
postindex.scrub

(c) 2026 Benjamin Walkenhorst

This module implements the sanitizing of post titles taken from feeds.
"""


import logging
from typing import Final

from bs4 import BeautifulSoup

from postindex import common


class Scrubber:
    """Scrubber turns the titles we get from feeds into something that fits on one line of the index:

    - Remove HTML markup and resolve entities
    - Collapse whitespace, including line breaks
    - Defuse sequences that would be mistaken for a language link
    """

    __slots__ = [
        "log",
    ]

    log: logging.Logger

    def __init__(self) -> None:
        self.log = common.get_logger("scrubber")

    def clean_title(self, raw: str) -> str:
        """Return a plain, single-line version of the title."""
        if raw is None or raw.strip() == "":
            return ""

        soup = BeautifulSoup(raw, "html.parser")
        for s in soup.find_all(["script", "style"]):
            s.decompose()

        txt: str = " ".join(soup.get_text().split())
        txt = txt.replace("[[", "[ [").replace("]]", "] ]")

        if txt != raw:
            self.log.debug("Scrubbed title '%s' -> '%s'", raw, txt)

        clean: Final[str] = txt
        return clean


# Local Variables: #
# python-indent: 4 #
# End: #
