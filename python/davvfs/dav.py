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

__all__ = ("FileEntry", "FileStat", "FileType", "WatchHandle", "WebDavFileSystem", "dav_globals")

import contextlib
import enum
import errno
import logging
import os
from collections.abc import Iterable, Iterator
from datetime import datetime
from typing import Any, NamedTuple

import requests

from .davutils import (
    DavClient,
    DavClientPool,
    DavConfigPool,
    DavError,
    DavFileMetadata,
    DavNotFoundError,
    path_from_uri,
    redact_url,
    resolve_endpoint,
)

log = logging.getLogger(__name__)


class FileType(enum.IntEnum):
    """Kind of a filesystem entry."""

    UNKNOWN = 0
    FILE = 1
    DIRECTORY = 2


class FileStat(NamedTuple):
    """Status of a file or directory.

    The server does not report creation times, so ``ctime`` is always
    equal to ``mtime``. The size of a directory is zero.
    """

    type: FileType
    size: int
    mtime: datetime
    ctime: datetime


class FileEntry(NamedTuple):
    """Entry of a directory listing."""

    name: str
    type: FileType


class WatchHandle:
    """Handle returned by `WebDavFileSystem.watch`.

    No change notification is ever delivered through it: closing the
    handle releases nothing.
    """

    def __init__(self, uri: str) -> None:
        self._uri = uri
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        log.debug("closing watch handle for %s", redact_url(self._uri))
        self._closed = True

    def __enter__(self) -> WatchHandle:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class DavGlobals:
    """Helper container to encapsulate all the global objects needed by this
    module.
    """

    def __init__(self) -> None:
        # Client pool used by default by all WebDavFileSystem instances.
        # Use Any as type annotation to keep mypy happy.
        self._client_pool: Any = None

        # (Re)Initialize the objects above.
        self._reset()

    def _reset(self) -> None:
        """
        Initialize all the globals.

        This method is a helper for reinitializing globals in tests.
        """
        # Initialize the webdav endpoint configuration pool from the file
        # named by environment variable DAVVFS_CONFIG, if any.
        config_pool: DavConfigPool = DavConfigPool("DAVVFS_CONFIG")

        # Initialize the process-wide webdav client pool. Release the
        # connections of the previous one, if any.
        if self._client_pool is not None:
            self._client_pool.close_all()

        self._client_pool = DavClientPool(config_pool)

    def client_pool(self) -> DavClientPool:
        """Return the pool of reusable webDAV clients."""
        return self._client_pool


# Convenience object to encapsulate all global objects needed by this module.
dav_globals: DavGlobals = DavGlobals()


def _to_file_type(metadata: DavFileMetadata) -> FileType:
    return FileType.DIRECTORY if metadata.is_dir else FileType.FILE


def _to_file_stat(metadata: DavFileMetadata) -> FileStat:
    return FileStat(
        type=_to_file_type(metadata),
        size=metadata.size,
        mtime=metadata.last_modified,
        ctime=metadata.last_modified,
    )


def _os_error(cls: type[OSError], code: int, uri: str, uri2: str | None = None) -> OSError:
    """Return an exception of class `cls` for `code` carrying the redacted
    URI(s) as file names.
    """
    if uri2 is None:
        return cls(code, os.strerror(code), redact_url(uri))

    return cls(code, os.strerror(code), redact_url(uri), None, redact_url(uri2))


class WebDavFileSystem:
    """Filesystem view of the resources of webDAV servers.

    Every method accepts URIs of the form::

        webdav[s]://[user[:password]@]host[:port][/path][?ssl=0|1][&authtype=basic|digest]

    Parameters
    ----------
    client_pool : `DavClientPool`, optional
        Pool of the clients used to talk to the servers. If None, the
        process-wide pool is used.

    Notes
    -----
    Instances of this class are thread-safe. Nothing is cached between
    calls: each method sends its requests to the server.

    A response with status 404 (Not Found) is reported as
    `FileNotFoundError`. Any other error reported by the server is raised
    as `~davvfs.davutils.DavError`.
    """

    # Paths on webDAV servers are case sensitive.
    is_case_sensitive: bool = True

    def __init__(self, client_pool: DavClientPool | None = None) -> None:
        self._client_pool: DavClientPool = dav_globals.client_pool() if client_pool is None else client_pool

    @property
    def client_pool(self) -> DavClientPool:
        return self._client_pool

    def close(self) -> None:
        """Release the network connections of all the clients of the pool
        this filesystem uses.
        """
        self._client_pool.close_all()

    def _client(self, uri: str) -> tuple[DavClient, str]:
        """Return the client of the endpoint hosting `uri` and the path
        of the resource within that endpoint.
        """
        return self._client_pool.get_client(resolve_endpoint(uri)), path_from_uri(uri)

    def _client_for_pair(self, old_uri: str, new_uri: str) -> tuple[DavClient, str, str]:
        """Return the client shared by `old_uri` and `new_uri` and the paths
        of both resources within the endpoint.

        Raises
        ------
        PermissionError
            Raised if both URIs are not hosted by the same endpoint.
        """
        endpoint = resolve_endpoint(old_uri)
        if endpoint != resolve_endpoint(new_uri):
            raise _os_error(PermissionError, errno.EXDEV, old_uri, new_uri)

        return self._client_pool.get_client(endpoint), path_from_uri(old_uri), path_from_uri(new_uri)

    @contextlib.contextmanager
    def _not_found(self, uri: str) -> Iterator[None]:
        """Report a missing resource at `uri` as a `FileNotFoundError`."""
        try:
            yield
        except DavNotFoundError as e:
            raise _os_error(FileNotFoundError, errno.ENOENT, uri) from e

    def stat(self, uri: str) -> FileStat:
        """Return the status of the file or directory at `uri`."""
        log.debug("stat %s", redact_url(uri))

        client, path = self._client(uri)
        with self._not_found(uri):
            metadata = client.stat(path)

        return _to_file_stat(metadata)

    def listdir(self, uri: str) -> list[FileEntry]:
        """Return the entries of the directory at `uri`.

        Only the immediate children are returned, in the order the server
        reports them.

        Raises
        ------
        FileNotFoundError
            Raised if there is no directory at `uri`.
        NotADirectoryError
            Raised if `uri` designates a file.
        """
        log.debug("listdir %s", redact_url(uri))

        client, path = self._client(uri)
        with self._not_found(uri):
            entries = client.read_dir(path)

        return [FileEntry(entry.name, _to_file_type(entry)) for entry in entries]

    def read_file(self, uri: str) -> bytes:
        """Return the contents of the file at `uri`."""
        log.debug("read_file %s", redact_url(uri))

        client, path = self._client(uri)
        with self._not_found(uri):
            return client.read(path)

    def write_file(self, uri: str, content: bytes, *, create: bool = True, overwrite: bool = True) -> None:
        """Write `content` to the file at `uri`.

        Parameters
        ----------
        uri : `str`
            URI of the file.
        content : `bytes`
            The new contents of the file.
        create : `bool`, optional
            Whether the file may be created if it does not exist.
        overwrite : `bool`, optional
            Whether an existing file may be overwritten when `create`
            is True.

        Raises
        ------
        FileNotFoundError
            Raised if the file does not exist and `create` is False.
        FileExistsError
            Raised if the file exists, `create` is True and `overwrite` is
            False.
        IsADirectoryError
            Raised if `uri` designates a directory.
        DavLockError
            Raised if the file could not be locked for writing.

        Notes
        -----
        The file is locked while its contents are uploaded. The lock is
        released even if the upload fails. A failure to release the lock
        is logged but does not change the outcome of the write.
        """
        log.debug("write_file %s create=%s overwrite=%s", redact_url(uri), create, overwrite)

        client, path = self._client(uri)
        try:
            metadata: DavFileMetadata | None = client.stat(path)
        except DavNotFoundError:
            metadata = None

        if metadata is None and not create:
            raise _os_error(FileNotFoundError, errno.ENOENT, uri)

        if metadata is not None:
            if create and not overwrite:
                raise _os_error(FileExistsError, errno.EEXIST, uri)

            # A PUT request against a directory fails in server-specific
            # ways, so check explicitly.
            if metadata.is_dir:
                raise _os_error(IsADirectoryError, errno.EISDIR, uri)

        token = client.lock(path)
        try:
            with self._not_found(uri):
                client.write(path, content, lock_token=token)
        finally:
            self._release_lock(client, path, token, uri)

    def _release_lock(self, client: DavClient, path: str, token: str, uri: str) -> None:
        try:
            client.unlock(path, token)
        except (DavError, requests.RequestException) as e:
            log.warning("could not release lock %s on %s: %s", token, redact_url(uri), e)

    def rename(self, old_uri: str, new_uri: str, *, overwrite: bool = False) -> None:
        """Move the file or directory at `old_uri` to `new_uri`.

        Raises
        ------
        PermissionError
            Raised if both URIs are not hosted by the same endpoint.
        FileExistsError
            Raised if a resource exists at `new_uri` and `overwrite` is
            False.
        FileNotFoundError
            Raised if there is no resource at `old_uri`.
        """
        log.debug("rename %s -> %s overwrite=%s", redact_url(old_uri), redact_url(new_uri), overwrite)

        client, old_path, new_path = self._client_for_pair(old_uri, new_uri)
        if not overwrite and client.exists(new_path):
            raise _os_error(FileExistsError, errno.EEXIST, new_uri)

        with self._not_found(old_uri):
            client.move(old_path, new_path, overwrite=overwrite)

    def copy(self, old_uri: str, new_uri: str, *, overwrite: bool = False) -> None:
        """Copy the file or directory at `old_uri` to `new_uri`.

        Raises
        ------
        PermissionError
            Raised if both URIs are not hosted by the same endpoint.
        FileExistsError
            Raised if a resource exists at `new_uri` and `overwrite` is
            False.
        FileNotFoundError
            Raised if there is no resource at `old_uri`.
        """
        log.debug("copy %s -> %s overwrite=%s", redact_url(old_uri), redact_url(new_uri), overwrite)

        client, old_path, new_path = self._client_for_pair(old_uri, new_uri)
        if not overwrite and client.exists(new_path):
            raise _os_error(FileExistsError, errno.EEXIST, new_uri)

        with self._not_found(old_uri):
            client.copy(old_path, new_path, overwrite=overwrite)

    def delete(self, uri: str) -> None:
        """Delete the file or directory at `uri`, with its contents."""
        log.debug("delete %s", redact_url(uri))

        client, path = self._client(uri)
        with self._not_found(uri):
            client.delete(path)

    def create_directory(self, uri: str) -> None:
        """Create the directory at `uri` and its missing ancestors.

        Raises
        ------
        FileExistsError
            Raised if a file or directory already exists at `uri`.
        """
        log.debug("create_directory %s", redact_url(uri))

        client, path = self._client(uri)
        if client.exists(path):
            raise _os_error(FileExistsError, errno.EEXIST, uri)

        with self._not_found(uri):
            client.mkcol(path, recursive=True)

    def watch(self, uri: str, *, recursive: bool = False, excludes: Iterable[str] = ()) -> WatchHandle:
        """Return a handle for watching changes under `uri`.

        webDAV offers no way to be notified of changes, so no notification
        is ever emitted. Callers interested in changes must poll `stat` or
        `listdir`.
        """
        log.debug("watch %s recursive=%s", redact_url(uri), recursive)
        return WatchHandle(uri)
