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

from __future__ import annotations

__all__ = ("AsyncWebDavFileSystem",)

import asyncio
from collections.abc import Iterable

from .dav import FileEntry, FileStat, WatchHandle, WebDavFileSystem


class AsyncWebDavFileSystem:
    """Asynchronous facade of `WebDavFileSystem`.

    Each operation runs in a worker thread, so awaiting it never blocks
    the event loop and concurrent operations proceed in parallel.

    Parameters
    ----------
    filesystem : `WebDavFileSystem`, optional
        The filesystem to delegate to. If None, a filesystem using the
        process-wide client pool is created.
    """

    is_case_sensitive: bool = WebDavFileSystem.is_case_sensitive

    def __init__(self, filesystem: WebDavFileSystem | None = None) -> None:
        self._fs = WebDavFileSystem() if filesystem is None else filesystem

    @property
    def filesystem(self) -> WebDavFileSystem:
        return self._fs

    async def stat(self, uri: str) -> FileStat:
        return await asyncio.to_thread(self._fs.stat, uri)

    async def listdir(self, uri: str) -> list[FileEntry]:
        return await asyncio.to_thread(self._fs.listdir, uri)

    async def read_file(self, uri: str) -> bytes:
        return await asyncio.to_thread(self._fs.read_file, uri)

    async def write_file(
        self, uri: str, content: bytes, *, create: bool = True, overwrite: bool = True
    ) -> None:
        await asyncio.to_thread(self._fs.write_file, uri, content, create=create, overwrite=overwrite)

    async def rename(self, old_uri: str, new_uri: str, *, overwrite: bool = False) -> None:
        await asyncio.to_thread(self._fs.rename, old_uri, new_uri, overwrite=overwrite)

    async def copy(self, old_uri: str, new_uri: str, *, overwrite: bool = False) -> None:
        await asyncio.to_thread(self._fs.copy, old_uri, new_uri, overwrite=overwrite)

    async def delete(self, uri: str) -> None:
        await asyncio.to_thread(self._fs.delete, uri)

    async def create_directory(self, uri: str) -> None:
        await asyncio.to_thread(self._fs.create_directory, uri)

    def watch(self, uri: str, *, recursive: bool = False, excludes: Iterable[str] = ()) -> WatchHandle:
        # No I/O involved.
        return self._fs.watch(uri, recursive=recursive, excludes=excludes)

    async def close(self) -> None:
        await asyncio.to_thread(self._fs.close)
