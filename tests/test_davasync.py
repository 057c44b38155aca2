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

import asyncio
import unittest

import requests
import responses

from davvfs import AsyncWebDavFileSystem, DavClientPool, FileEntry, FileType, WebDavFileSystem

BASE_URL = "http://dav.example.org"


def propfind_body(*entries: tuple[str, int | None]) -> str:
    """Return a PROPFIND response body for `entries`, a sequence of
    (href, size) tuples where a size of None means a directory.
    """
    body = ["""<?xml version="1.0" encoding="UTF-8"?><D:multistatus xmlns:D="DAV:">"""]
    for href, size in entries:
        if size is None:
            props = "<D:resourcetype><D:collection/></D:resourcetype>"
        else:
            props = f"<D:resourcetype/><D:getcontentlength>{size}</D:getcontentlength>"

        body.append(
            f"<D:response><D:href>{href}</D:href><D:propstat><D:prop>{props}"
            "<D:getlastmodified>Fri, 27 Jan 2023 13:05:16 GMT</D:getlastmodified>"
            "</D:prop><D:status>HTTP/1.1 200 OK</D:status></D:propstat></D:response>"
        )

    body.append("</D:multistatus>")
    return "".join(body)


class AsyncWebDavFileSystemTestCase(unittest.IsolatedAsyncioTestCase):
    """Test the asynchronous facade of the filesystem."""

    def setUp(self):
        self.fs = AsyncWebDavFileSystem(WebDavFileSystem(DavClientPool()))

    async def asyncTearDown(self):
        await self.fs.close()

    def test_default_filesystem(self):
        fs = AsyncWebDavFileSystem()
        self.assertIsInstance(fs.filesystem, WebDavFileSystem)
        self.assertTrue(fs.is_case_sensitive)

    async def test_stat_and_listdir(self):
        with responses.RequestsMock() as rsps:
            rsps.add(
                "PROPFIND",
                f"{BASE_URL}/notes.txt",
                body=propfind_body(("/notes.txt", 2)),
                status=requests.codes.multi_status,
            )
            rsps.add(
                "PROPFIND",
                f"{BASE_URL}/data",
                body=propfind_body(("/data/", None), ("/data/a.txt", 4), ("/data/sub/", None)),
                status=requests.codes.multi_status,
            )

            stat, entries = await asyncio.gather(
                self.fs.stat("webdav://dav.example.org/notes.txt"),
                self.fs.listdir("webdav://dav.example.org/data"),
            )

        self.assertEqual(stat.type, FileType.FILE)
        self.assertEqual(stat.size, 2)
        self.assertEqual(entries, [FileEntry("a.txt", FileType.FILE), FileEntry("sub", FileType.DIRECTORY)])

    async def test_read_and_write(self):
        with responses.RequestsMock() as rsps:
            rsps.add("PROPFIND", f"{BASE_URL}/notes.txt", status=requests.codes.not_found)
            rsps.add(
                "LOCK",
                f"{BASE_URL}/notes.txt",
                status=requests.codes.ok,
                headers={"Lock-Token": "<opaquelocktoken:1>"},
            )
            rsps.add(responses.PUT, f"{BASE_URL}/notes.txt", status=requests.codes.created)
            rsps.add("UNLOCK", f"{BASE_URL}/notes.txt", status=requests.codes.no_content)
            rsps.add(responses.GET, f"{BASE_URL}/notes.txt", body=b"hi", status=requests.codes.ok)

            await self.fs.write_file("webdav://dav.example.org/notes.txt", b"hi")
            self.assertEqual(await self.fs.read_file("webdav://dav.example.org/notes.txt"), b"hi")

    async def test_errors(self):
        with responses.RequestsMock() as rsps:
            rsps.add("PROPFIND", f"{BASE_URL}/notes.txt", status=requests.codes.not_found)

            with self.assertRaises(FileNotFoundError):
                await self.fs.stat("webdav://dav.example.org/notes.txt")

            with self.assertRaises(FileNotFoundError):
                await self.fs.write_file("webdav://dav.example.org/notes.txt", b"hi", create=False)

        with self.assertRaises(PermissionError):
            await self.fs.rename("webdav://a.example.org/x", "webdav://b.example.org/x")

        with self.assertRaises(PermissionError):
            await self.fs.copy("webdav://a.example.org/x", "webdav://b.example.org/x")

    async def test_mutations(self):
        with responses.RequestsMock() as rsps:
            rsps.add("MOVE", f"{BASE_URL}/a.txt", status=requests.codes.created)
            rsps.add("COPY", f"{BASE_URL}/b.txt", status=requests.codes.created)
            rsps.add(responses.DELETE, f"{BASE_URL}/c.txt", status=requests.codes.no_content)
            rsps.add("PROPFIND", f"{BASE_URL}/dir", status=requests.codes.not_found)
            rsps.add("MKCOL", f"{BASE_URL}/dir", status=requests.codes.created)

            await self.fs.rename(
                "webdav://dav.example.org/a.txt", "webdav://dav.example.org/x.txt", overwrite=True
            )
            await self.fs.copy(
                "webdav://dav.example.org/b.txt", "webdav://dav.example.org/y.txt", overwrite=True
            )
            await self.fs.delete("webdav://dav.example.org/c.txt")
            await self.fs.create_directory("webdav://dav.example.org/dir")

            self.assertEqual(
                [call.request.method for call in rsps.calls], ["MOVE", "COPY", "DELETE", "PROPFIND", "MKCOL"]
            )

    async def test_watch(self):
        with self.fs.watch("webdav://dav.example.org/dir", recursive=True) as handle:
            self.assertFalse(handle.closed)

        self.assertTrue(handle.closed)


if __name__ == "__main__":
    unittest.main()
