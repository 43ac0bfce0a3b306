#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 16:31:40 krylon>
#
# /data/code/python/postindex/src/postindex/linkcheck.py
# created on 06. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the postindex blog index tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
postindex.linkcheck

(c) 2026 Benjamin Walkenhorst

Check whether the articles the index links to are still reachable.
"""


import logging
from dataclasses import dataclass
from typing import Final, Optional

import requests

from postindex import common
from postindex.cache import Cache, CacheDB, DBType

timeout: Final[float] = 10.0
user_agent: Final[str] = f"{common.AppName}/{common.AppVersion}"
# Some servers refuse HEAD requests, but answer GET just fine.
retry_with_get: Final[frozenset[int]] = frozenset((403, 405))


@dataclass(kw_only=True, slots=True)
class LinkStatus:
    """LinkStatus is the outcome of checking a single URL."""

    url: str
    ok: bool
    status: int = 0
    error: str = ""

    @property
    def reason(self) -> str:
        """Return a short description of what went wrong."""
        if self.ok:
            return ""
        if self.error != "":
            return self.error
        return f"HTTP status {self.status}"


class LinkChecker:
    """LinkChecker requests URLs and remembers the results for a while."""

    __slots__ = [
        "log",
        "session",
        "_cache",
    ]

    log: logging.Logger
    session: requests.Session
    _cache: Optional[CacheDB]

    def __init__(self, use_cache: bool = True) -> None:
        self.log = common.get_logger("linkcheck")
        self.session = requests.Session()
        self.session.headers["User-Agent"] = user_agent
        self._cache = Cache.open().get_db(DBType.LinkCheck) if use_cache else None

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    def check(self, url: str) -> LinkStatus:
        """Check if url can be retrieved."""
        if self._cache is not None:
            with self._cache.tx() as tx:
                cached = tx[url]
            if cached is not None:
                self.log.debug("Cache hit for %s", url)
                return cached

        status: Final[LinkStatus] = self._request(url)

        if self._cache is not None:
            with self._cache.tx(True) as tx:
                tx[url] = status

        return status

    def _request(self, url: str) -> LinkStatus:
        try:
            rsp = self.session.head(url, timeout=timeout, allow_redirects=True)
            if rsp.status_code in retry_with_get:
                self.log.debug("HEAD %s returned %d, trying GET",
                               url,
                               rsp.status_code)
                rsp = self.session.get(url, timeout=timeout, allow_redirects=True, stream=True)
                rsp.close()
        except requests.RequestException as err:
            cname: Final[str] = err.__class__.__name__
            self.log.info("%s checking %s: %s", cname, url, err)
            return LinkStatus(url=url, ok=False, error=f"{cname}: {err}")

        ok: Final[bool] = 200 <= rsp.status_code < 400
        if not ok:
            self.log.info("%s returned status %d", url, rsp.status_code)
        return LinkStatus(url=url, ok=ok, status=rsp.status_code)


# Local Variables: #
# python-indent: 4 #
# End: #
