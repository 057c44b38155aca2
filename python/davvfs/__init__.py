# This file is part of davvfs.
#
# Developed for the LSST Data Management System.
# This product includes software developed by the LSST Project
# (https://www.lsst.org).
# See the COPYRIGHT file at the top-level directory of this distribution
# for details of code ownership.
#
# Use of this source code is governed by a 3-clause BSD-style
# license that can be found in the LICENSE file.

"""Filesystem view of the resources of webDAV servers."""

from .dav import FileEntry, FileStat, FileType, WatchHandle, WebDavFileSystem
from .davasync import AsyncWebDavFileSystem
from .davutils import (
    AuthType,
    DavClient,
    DavClientPool,
    DavConfig,
    DavConfigPool,
    DavEndpoint,
    DavError,
    DavLockError,
    DavNotFoundError,
    UnsupportedAuthTypeError,
    resolve_endpoint,
)
