"""
Tests for the HTTP API

Tests server.py endpoints with FastAPI's TestClient over a bridge
backed by an in-memory serial port
"""

import os
import tempfile
import unittest

from fastapi.testclient import TestClient

from votebridge.bridge import VoteBridge
from votebridge.config import BridgeConfig
from votebridge.server import config_from_args, create_app, parse_args
from tests.fakes import FakeSerialFactory, wait_for

FRAME = b'{"buttonPressed": %d, "address": %d}>\n'


class ServerTestCase(unittest.TestCase):
    """Starts the app with its lifespan so the link is opened and closed"""

    def setUp(self):
        """Set up test fixtures"""
        self.tmp = tempfile.TemporaryDirectory()
        self.uploads_dir = os.path.join(self.tmp.name, "uploads")
        self.factory = FakeSerialFactory()
        config = BridgeConfig(
            device_path="/dev/ttyFAKE0",
            device_count=10,
            reconnect_backoff=0.01,
            read_timeout=0.02,
            uploads_dir=self.uploads_dir,
        )
        self.bridge = VoteBridge(config, serial_factory=self.factory)
        self.app = create_app(self.bridge)
        self.client = TestClient(self.app)
        self.client.__enter__()

    def tearDown(self):
        self.client.__exit__(None, None, None)
        self.tmp.cleanup()

    @property
    def written(self) -> bytes:
        return bytes(self.factory.latest.written)


class TestQuestionEndpoints(ServerTestCase):
    """Test start/stop endpoints"""

    def test_start_two(self):
        response = self.client.post("/questions/start/two")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "started", "questionMode": 2})
        self.assertEqual(self.written, b"Q0>Q1 TWO>")

    def test_start_multiple(self):
        response = self.client.post("/questions/start/multiple")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["questionMode"], 3)

    def test_start_bad_mode(self):
        """Test that an unknown mode gives 422 and sends nothing"""
        response = self.client.post("/questions/start/bogus")

        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json(), {"status": "error", "msg": "Bad mode: bogus"})
        self.assertEqual(self.written, b"")

    def test_stop_two_choice(self):
        """Test yes/no round with one silent device"""
        self.client.post("/questions/start/two")
        port = self.factory.latest
        for address, value in enumerate([0, 1, 1]):
            port.push(FRAME % (value, address))
        self.assertTrue(wait_for(lambda: self.bridge.registry.answered_count() == 3))

        response = self.client.post("/questions/stop")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"yes": 2, "no": 1})

    def test_stop_without_question(self):
        response = self.client.post("/questions/stop")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {})
        self.assertEqual(self.written, b"Q0>")

    def test_status(self):
        response = self.client.get("/")

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "running")
        self.assertEqual(body["link"], "connected")
        self.assertEqual(body["device"], "/dev/ttyFAKE0")

    def test_cors(self):
        """Test that any origin is allowed"""
        response = self.client.get("/", headers={"Origin": "http://example.com"})
        self.assertEqual(response.headers.get("access-control-allow-origin"), "*")


class TestInjectEndpoint(ServerTestCase):
    """Test the /test debug endpoint"""

    def test_created_then_updated(self):
        response = self.client.post("/test/3/1")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"value": 1, "from": 3, "status": "created"})

        response = self.client.post("/test/3/0")
        self.assertEqual(response.json(), {"value": 0, "from": 3, "status": "updated"})

    def test_injected_answers_in_tally(self):
        self.client.post("/questions/start/multiple")
        for index, val in [(0, 0), (1, 2), (2, 2), (3, 3)]:
            self.client.post(f"/test/{index}/{val}")

        response = self.client.post("/questions/stop")

        self.assertEqual(response.json(), {"a": 1, "b": 0, "c": 2, "d": 1})

    def test_bad_index(self):
        response = self.client.post("/test/10/1")
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["status"], "error")

    def test_bad_value(self):
        response = self.client.post("/test/1/7")
        self.assertEqual(response.status_code, 422)

    def test_non_numeric(self):
        response = self.client.post("/test/one/1")
        self.assertEqual(response.status_code, 422)


class TestUploadEndpoints(ServerTestCase):
    """Test file upload and listing"""

    def test_upload_and_list(self):
        response = self.client.post(
            "/upload",
            files={"file": ("quiz.pdf", b"%PDF-1.4 test", "application/pdf")},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.text, "File quiz.pdf uploaded successfully.")

        self.client.post("/upload", files={"file": ("notes.txt", b"hello", "text/plain")})

        response = self.client.get("/uploads")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"files": ["quiz.pdf"]})

    def test_uploaded_file_served(self):
        self.client.post(
            "/upload",
            files={"file": ("quiz.pdf", b"%PDF-1.4 test", "application/pdf")},
        )

        response = self.client.get("/uploads/quiz.pdf")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.content, b"%PDF-1.4 test")

    def test_upload_without_file(self):
        response = self.client.post("/upload")
        self.assertEqual(response.status_code, 400)

    def test_empty_listing(self):
        response = self.client.get("/uploads")
        self.assertEqual(response.json(), {"files": []})


class TestArgs(unittest.TestCase):
    """Test command line parsing"""

    def test_defaults(self):
        config = config_from_args(parse_args([]))
        self.assertEqual(config, BridgeConfig())

    def test_overrides(self):
        args = parse_args([
            "--device", "/dev/ttyACM1",
            "--baud", "115200",
            "--devices", "24",
            "--backoff", "0.5",
            "--port", "8080",
        ])
        config = config_from_args(args)

        self.assertEqual(config.device_path, "/dev/ttyACM1")
        self.assertEqual(config.baud_rate, 115200)
        self.assertEqual(config.device_count, 24)
        self.assertEqual(config.reconnect_backoff, 0.5)
        self.assertEqual(config.port, 8080)


if __name__ == '__main__':
    unittest.main()
