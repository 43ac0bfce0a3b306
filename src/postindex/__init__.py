#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-03 12:40:17 krylon>
#
# /data/code/python/postindex/src/postindex/__init__.py
# created on 03. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the postindex blog index tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
postindex

(c) 2026 Benjamin Walkenhorst

Maintain a Markdown index of blog posts.
"""
