#!/usr/bin/env python3
"""
Tests for the HTTP front end, run in-process with FastAPI's TestClient.
"""

import sys
import tempfile
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import unittest

from fastapi.testclient import TestClient

from ytdlweb.core.config import AppConfig
from ytdlweb.core.credentials import Realm
from ytdlweb.core.job_queue import JobQueueManager
from ytdlweb.web.server import create_app, parse_addr

MP4_PAYLOAD = b"\x00\x00\x00\x18ftypmp42\x00\x00\x00\x00mp42isom" + b"\x00" * 100


class ServerTestCase(unittest.TestCase):
    """Builds the app around an idle (not processing) queue."""

    realm = None

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        root = Path(self._tmp.name)
        self.results = root / "ready"
        self.results.mkdir()
        config = AppConfig(None, results_dir=str(self.results),
                           work_dir=str(root / ".temp"), queue_capacity=2)
        self.manager = JobQueueManager(config)
        self.client = TestClient(create_app(self.manager, self.realm))

    def tearDown(self):
        self.client.close()
        self._tmp.cleanup()

    def submit(self, url: str, **kwargs):
        return self.client.post("/", data={"url": url}, **kwargs)


class TestSubmit(ServerTestCase):

    def test_form_page(self):
        resp = self.client.get("/")
        self.assertEqual(resp.status_code, 200)
        self.assertIn("<form method=post", resp.text)
        self.assertTrue(resp.headers["content-type"].startswith("text/html"))

    def test_invalid_url(self):
        self.assertEqual(self.submit("https://www.google.com").status_code, 400)
        self.assertEqual(self.submit("").status_code, 400)
        self.assertEqual(self.client.post("/").status_code, 400)
        self.assertEqual(self.manager.queue_depth(), 0)

    def test_accepted(self):
        resp = self.submit("https://youtu.be/abc123")
        self.assertEqual(resp.status_code, 202)
        self.assertIn('href="/abc123"', resp.text)
        self.assertEqual(self.manager.queue_depth(), 1)

    def test_queue_full(self):
        self.assertEqual(self.submit("https://youtu.be/abc123").status_code, 202)
        self.assertEqual(self.submit("https://youtu.be/def456").status_code, 202)
        resp = self.submit("https://www.youtube.com/watch?v=ghi789")
        self.assertEqual(resp.status_code, 503)
        self.assertIn("Queue is full", resp.text)
        self.assertEqual(self.manager.queue_depth(), 2)


class TestJobPages(ServerTestCase):

    def test_unknown_job_idle(self):
        self.assertEqual(self.client.get("/abc123").status_code, 404)

    def test_bad_path(self):
        self.assertEqual(self.client.get("/a/b").status_code, 404)

    def test_name_outside_charset(self):
        self.assertEqual(self.client.get("/abc_123").status_code, 422)

    def test_waiting_page(self):
        self.manager.submit("abc123")
        resp = self.client.get("/abc123")
        self.assertEqual(resp.status_code, 200)
        self.assertIn("1 job(s) in queue", resp.text)

    def test_serves_video(self):
        (self.results / "abc123").write_bytes(MP4_PAYLOAD)
        resp = self.client.get("/abc123")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.content, MP4_PAYLOAD)
        self.assertEqual(resp.headers["content-type"], "video/mp4")
        self.assertEqual(resp.headers["content-disposition"],
                         'attachment; filename="abc123.mp4"')

    def test_serves_error_output(self):
        (self.results / "abc123").write_bytes(b"ERROR: Video unavailable\n")
        resp = self.client.get("/abc123")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.text, "ERROR: Video unavailable\n")
        self.assertTrue(resp.headers["content-type"].startswith("text/plain"))
        self.assertNotIn("content-disposition", resp.headers)


class TestAuth(ServerTestCase):

    realm = Realm(users={"alice": "secret"})

    def test_requires_credentials(self):
        resp = self.client.get("/")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.headers["www-authenticate"], 'Basic realm="Restricted"')

    def test_with_credentials(self):
        resp = self.client.get("/", auth=("alice", "secret"))
        self.assertEqual(resp.status_code, 200)
        resp = self.submit("https://youtu.be/abc123", auth=("alice", "secret"))
        self.assertEqual(resp.status_code, 202)

    def test_wrong_password(self):
        resp = self.submit("https://youtu.be/abc123", auth=("alice", "nope"))
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.headers["www-authenticate"], 'Basic realm="Restricted"')
        self.assertEqual(self.manager.queue_depth(), 0)

    def test_job_page_gated(self):
        (self.results / "abc123").write_bytes(MP4_PAYLOAD)
        self.assertEqual(self.client.get("/abc123").status_code, 401)
        resp = self.client.get("/abc123", auth=("alice", "secret"))
        self.assertEqual(resp.content, MP4_PAYLOAD)


class TestParseAddr(unittest.TestCase):

    def test_parse_addr(self):
        self.assertEqual(parse_addr("localhost:8080"), ("localhost", 8080))
        self.assertEqual(parse_addr(":9000"), ("0.0.0.0", 9000))
        self.assertEqual(parse_addr("[::1]:8080"), ("::1", 8080))
        with self.assertRaises(ValueError):
            parse_addr("localhost")


if __name__ == "__main__":
    unittest.main()
