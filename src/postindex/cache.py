#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 16:05:51 krylon>
#
# /data/code/python/postindex/src/postindex/cache.py
# created on 06. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the postindex blog index tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
postindex.cache

(c) 2026 Benjamin Walkenhorst

Persistent caching of link check results and language guesses, backed by LMDB.
"""


import hashlib
import logging
import pickle
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum, auto
from threading import Lock
from typing import Any, Final, Optional, Union
from urllib.parse import urldefrag

import lmdb

from postindex import common
from postindex.common import PostIndexError

key_size: Final[int] = 32


class CacheError(PostIndexError):
    """Exception class to indicate errors in the caching layer"""


class TxError(CacheError):
    """TxError indicates an error related to transaction-handling."""


@dataclass(kw_only=True, slots=True)
class CacheItem:
    """CacheItem is a piece of data we want to cache, plus an expiration timestamp."""

    item: Any
    expires: datetime

    @property
    def valid(self) -> bool:
        """Return True if the Item's expiration time has not passed, yet."""
        return self.expires > datetime.now()


class DBType(Enum):
    """DBType represents what kind of data we want to cache.

    LinkCheck is keyed by URL, Language by post title.
    """

    LinkCheck = auto()
    Language = auto()

    @property
    def string(self) -> str:
        """Return the lowercase name of the DBType constant."""
        return self.name.lower()

    def make_key(self, key: str) -> bytes:
        """Turn a URL or title into a database key.

        LMDB limits keys to 511 bytes, percent-encoded Cyrillic URLs easily
        exceed that, so keys are stored as digests.
        """
        match self:
            case DBType.LinkCheck:
                # The fragment never reaches the server.
                norm = urldefrag(key.strip()).url
            case DBType.Language:
                norm = " ".join(key.split())
        return hashlib.blake2b(norm.encode(), digest_size=key_size).digest()


@dataclass(kw_only=True, slots=True)
class Tx:
    """Tx wraps a database transaction. Keys are URLs or titles, depending on the database."""

    log: logging.Logger
    tx: lmdb.Transaction
    kind: DBType
    rw: bool
    ttl: timedelta

    def _lookup(self, key: str) -> Optional[CacheItem]:
        """Return the live CacheItem for key, or None. Expired items are removed if possible."""
        raw_key: Final[bytes] = self.kind.make_key(key)
        val = self.tx.get(raw_key)
        if val is None:
            return None

        item: CacheItem = pickle.loads(val)
        if item.valid:
            return item
        if self.rw:
            self.tx.delete(raw_key)
        return None

    def _check_rw(self) -> None:
        if not self.rw:
            raise TxError(f"Cannot change the {self.kind.string} cache in a readonly transaction!")

    def __getitem__(self, key: str) -> Optional[Any]:
        item: Final[Optional[CacheItem]] = self._lookup(key)
        return None if item is None else item.item

    def __contains__(self, key: str) -> bool:
        return self._lookup(key) is not None

    def __setitem__(self, key: str, val: Any) -> None:
        self._check_rw()
        item: Final[CacheItem] = CacheItem(item=val, expires=datetime.now()+self.ttl)
        self.tx.put(self.kind.make_key(key), pickle.dumps(item), overwrite=True)

    def __delitem__(self, key: str) -> None:
        self._check_rw()
        self.tx.delete(self.kind.make_key(key))


@dataclass(kw_only=True, slots=True)
class CacheDB:
    """CacheDB wraps a database with in the LMDB environment."""

    name: DBType
    env: lmdb.Environment
    db: Any = field(default=None)
    log: logging.Logger = field(init=False)
    ttl: timedelta = field(default_factory=lambda: timedelta(hours=24))

    def __post_init__(self) -> None:
        self.log = common.get_logger(f"cache.{self.name.string}")
        if self.db is None:
            self.log.debug("No database instance was provided, opening one now.")
            self.db = self.env.open_db(self.name.string.encode())

    @contextmanager
    def tx(self, rw: bool = False):
        """Perform a database transaction. Unless rw is True, no changes are permitted."""
        tx: lmdb.Transaction = self.env.begin(write=rw, db=self.db)
        try:
            yield Tx(log=self.log, tx=tx, kind=self.name, rw=rw, ttl=self.ttl)
        except Exception as err:
            cname: Final[str] = err.__class__.__name__
            self.log.error("Abort %s transaction due to %s: %s",
                           self.name.string,
                           cname,
                           err)
            tx.abort()
            if isinstance(err, lmdb.Error):
                raise CacheError(f"{cname} in {self.name.string} cache: {err}") from err
            raise
        else:
            try:
                tx.commit()
            except lmdb.Error as err:
                raise CacheError(f"Cannot commit to {self.name.string} cache: {err}") from err

    def purge(self, complete: bool = False) -> int:
        """Remove stale entries from the Cache. If <complete> is True, remove ALL entries.

        Return the number of entries removed.
        """
        self.log.debug("Purge %s cache", self.name)
        stale: list[bytes] = []
        with self.env.begin(write=True, db=self.db) as tx:
            cur: lmdb.Cursor = tx.cursor()

            for key, val in cur:
                try:
                    item: CacheItem = pickle.loads(val)
                except pickle.PickleError as err:
                    self.log.error("PickleError trying to de-serialize cache item %s: %s",
                                   key.hex(),
                                   err)
                    continue

                if complete or not item.valid:
                    stale.append(key)

            for key in stale:
                tx.delete(key)

        return len(stale)


_envs: dict[str, 'Cache'] = {}
_env_lock: Final[Lock] = Lock()


class Cache:
    """Cache provides persistent caching within the application.

    LMDB does not permit opening the same environment twice within one process,
    so use Cache.open() to get at the one instance per directory.
    """

    __slots__ = [
        "log",
        "env",
        "path",
    ]

    log: logging.Logger
    env: lmdb.Environment
    path: str

    def __init__(self, cache_root: str = "") -> None:
        self.log = common.get_logger("cache")
        if cache_root == "":
            cache_root = str(common.path.cache.joinpath("lmdb"))
        self.path = cache_root
        self.log.debug("Open Cache environment in %s", cache_root)
        self.env = lmdb.Environment(cache_root,
                                    subdir=True,
                                    map_size=(1 << 30),  # 1 GiB
                                    metasync=False,
                                    create=True,
                                    max_dbs=len(DBType)+2,
                                    )

    @classmethod
    def open(cls, cache_root: str = "") -> 'Cache':
        """Return the Cache for the given directory, opening it if necessary."""
        if cache_root == "":
            cache_root = str(common.path.cache.joinpath("lmdb"))
        with _env_lock:
            if cache_root not in _envs:
                _envs[cache_root] = cls(cache_root)
            return _envs[cache_root]

    def get_db(self, name: DBType, ttl: Union[int, float, timedelta] = 86400) -> CacheDB:
        """Return the specified database."""
        # LMDB caches databases already, so we don't need to duplicate that.
        self.log.debug("Open %s cache.", name)
        ettl: timedelta = ttl if isinstance(ttl, timedelta) else timedelta(seconds=ttl)
        db = self.env.open_db(name.string.encode())
        cdb = CacheDB(name=name, env=self.env, db=db, ttl=ettl)
        return cdb


# Local Variables: #
# python-indent: 4 #
# End: #
