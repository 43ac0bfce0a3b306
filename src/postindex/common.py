#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 14:02:11 krylon>
#
# /data/code/python/postindex/src/postindex/common.py
# created on 03. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the postindex blog index tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
postindex.common

(c) 2026 Benjamin Walkenhorst

Application-wide constants, paths and logging.
"""


import logging
import logging.handlers
import os
import pathlib
import re
import sys
from datetime import date, datetime
from threading import Lock
from typing import Final, Optional, Union

AppName: Final[str] = "PostIndex"
AppVersion: Final[str] = "0.1.0"
Debug: bool = False
TimeFmt: Final[str] = "%Y-%m-%d %H:%M:%S"
DateFmt: Final[str] = "%Y-%m-%d"
date_pat: Final[re.Pattern] = re.compile(r"\d{4}-\d{2}-\d{2}")


class PostIndexError(Exception):
    """Base class for application-specific exceptions."""


class Path:
    """Path provides the locations of the files the application keeps."""

    __slots__ = ["__base"]

    __base: pathlib.Path

    def __init__(self, root: Union[str, pathlib.Path]) -> None:
        self.__base = pathlib.Path(root)

    def base(self, path: Optional[Union[str, pathlib.Path]] = None) -> pathlib.Path:
        """Return the base directory. If path is given, set the base directory first."""
        if path is not None:
            self.__base = pathlib.Path(path)
        return self.__base

    @property
    def db(self) -> pathlib.Path:
        """Return the path of the database."""
        return self.__base.joinpath(f"{AppName.lower()}.db")

    @property
    def log(self) -> pathlib.Path:
        """Return the path of the log file."""
        return self.__base.joinpath(f"{AppName.lower()}.log")

    @property
    def cache(self) -> pathlib.Path:
        """Return the path of the cache directory."""
        return self.__base.joinpath("cache")


path: Path = Path(os.path.expanduser(f"~/.{AppName.lower()}.d"))

_lock: Final[Lock] = Lock()
_loggers: dict[str, logging.Logger] = {}
_log_fmt: Final[str] = \
    "%(asctime)s (%(name)-16s / line %(lineno)-4d) - %(levelname)-8s %(message)s"


def set_basedir(folder: Union[str, pathlib.Path]) -> None:
    """Set the base directory and make sure it exists."""
    with _lock:
        path.base(folder)
        # Loggers created earlier still write to the old log file.
        for lg in _loggers.values():
            for h in list(lg.handlers):
                lg.removeHandler(h)
                h.close()
        _loggers.clear()
    init_app()


def init_app() -> None:
    """Create the directories the application needs, if they don't exist yet."""
    for folder in (path.base(), path.cache):
        folder.mkdir(parents=True, exist_ok=True)


def get_logger(name: str, terminal: bool = True) -> logging.Logger:
    """Return a Logger with the given name, writing to the log file and, optionally, stderr."""
    with _lock:
        if name in _loggers:
            return _loggers[name]

        init_app()

        log: logging.Logger = logging.getLogger(f"{AppName.lower()}.{name}")
        log.setLevel(logging.DEBUG if Debug else logging.INFO)
        log.propagate = False

        fmt: Final[logging.Formatter] = logging.Formatter(_log_fmt)

        fh = logging.handlers.RotatingFileHandler(path.log,
                                                  maxBytes=(1 << 22),
                                                  backupCount=3,
                                                  encoding="utf-8")
        fh.setFormatter(fmt)
        log.addHandler(fh)

        if terminal:
            ch = logging.StreamHandler(sys.stderr)
            ch.setFormatter(fmt)
            ch.setLevel(logging.DEBUG if Debug else logging.WARNING)
            log.addHandler(ch)

        _loggers[name] = log
        return log


def set_debug(flag: bool) -> None:
    """Toggle debug mode. Affects Loggers created afterwards."""
    global Debug  # pylint: disable-msg=W0603
    Debug = flag


def parse_iso_date(txt: str) -> date:
    """Parse a date in YYYY-MM-DD notation. Raise ValueError if txt is not a valid date."""
    txt = txt.strip()
    if date_pat.fullmatch(txt) is None:
        raise ValueError(f"Not a YYYY-MM-DD date: '{txt}'")
    return datetime.strptime(txt, DateFmt).date()


# Local Variables: #
# python-indent: 4 #
# End: #
