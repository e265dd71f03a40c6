"""Tests for the GitHub mirror with a mocked HTTP session."""
import base64
import unittest
from unittest.mock import Mock

import requests

from pawnledger.config import GitHubConfig
from pawnledger.exceptions import ConfigurationError, RemoteSyncError
from pawnledger.remote import GitHubMirror

CONFIG = GitHubConfig(owner="shop", repo="ledger-data", token="t0ken", branch="records")
URL = "https://api.github.com/repos/shop/ledger-data/contents/data/loans.json"


def _response(status_code, payload=None, reason="OK"):
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.reason = reason
    response.json.return_value = payload or {}
    return response


def _encoded(text):
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class TestGitHubMirror(unittest.TestCase):

    def setUp(self):
        self.session = Mock()
        self.mirror = GitHubMirror(CONFIG, timeout=5, session=self.session)

    def test_incomplete_config_rejected(self):
        with self.assertRaises(ConfigurationError) as context:
            GitHubMirror(GitHubConfig(owner="shop", repo="ledger-data"))
        self.assertIn("token", str(context.exception))

    def test_read_missing_file(self):
        self.session.request.return_value = _response(404, reason="Not Found")
        self.assertIsNone(self.mirror.read_remote_file("data/loans.json"))

    def test_read_file(self):
        # GitHub returns base64 content split across lines
        encoded = _encoded('[{"id": "1", "name": "Ravi"}]')
        wrapped = "\n".join(encoded[i:i + 10] for i in range(0, len(encoded), 10))
        self.session.request.return_value = _response(200, {'content': wrapped, 'sha': "abc123"})

        remote = self.mirror.read_remote_file("data/loans.json")

        self.assertEqual(remote.content, '[{"id": "1", "name": "Ravi"}]')
        self.assertEqual(remote.sha, "abc123")
        method, url = self.session.request.call_args[0]
        kwargs = self.session.request.call_args[1]
        self.assertEqual((method, url), ("GET", URL))
        self.assertEqual(kwargs['params'], {'ref': "records"})
        self.assertEqual(kwargs['headers']['Authorization'], "Bearer t0ken")
        self.assertEqual(kwargs['timeout'], 5)

    def test_write_uses_current_sha(self):
        self.session.request.side_effect = [
            _response(200, {'content': _encoded("[]"), 'sha': "old"}),
            _response(200, {'content': {'sha': "new"}}),
        ]

        sha = self.mirror.write_remote_file("data/loans.json", '[{"id": "1"}]')

        self.assertEqual(sha, "new")
        put_call = self.session.request.call_args_list[1]
        self.assertEqual(put_call[0], ("PUT", URL))
        body = put_call[1]['json']
        self.assertEqual(body['sha'], "old")
        self.assertEqual(body['branch'], "records")
        self.assertEqual(body['message'], "Update data/loans.json")
        self.assertEqual(base64.b64decode(body['content']).decode("utf-8"), '[{"id": "1"}]')

    def test_write_new_file_has_no_sha(self):
        self.session.request.side_effect = [
            _response(404, reason="Not Found"),
            _response(201, {'content': {'sha': "first"}}),
        ]

        self.assertEqual(self.mirror.write_remote_file("data/loans.json", "[]"), "first")
        self.assertNotIn('sha', self.session.request.call_args_list[1][1]['json'])

    def test_write_with_known_sha_skips_lookup(self):
        self.session.request.return_value = _response(200, {'content': {'sha': "next"}})
        self.mirror.write_remote_file("data/loans.json", "[]", sha="given")
        self.assertEqual(self.session.request.call_count, 1)

    def test_auth_rejected(self):
        self.session.request.return_value = _response(401, reason="Unauthorized")
        with self.assertRaises(RemoteSyncError) as context:
            self.mirror.read_remote_file("data/loans.json")
        self.assertEqual(context.exception.details['status_code'], 401)

    def test_server_error(self):
        self.session.request.return_value = _response(500, reason="Server Error")
        with self.assertRaises(RemoteSyncError):
            self.mirror.write_remote_file("data/loans.json", "[]", sha="s")

    def test_read_body_not_json(self):
        response = _response(200)
        response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
        self.session.request.return_value = response
        with self.assertRaises(RemoteSyncError) as context:
            self.mirror.read_remote_file("data/loans.json")
        self.assertEqual(context.exception.details['path'], "data/loans.json")

    def test_read_content_not_utf8(self):
        content = base64.b64encode(b"\xff\xfe\xfa").decode("ascii")
        self.session.request.return_value = _response(200, {'content': content, 'sha': "s"})
        with self.assertRaises(RemoteSyncError):
            self.mirror.read_remote_file("data/loans.json")

    def test_write_reply_not_json(self):
        response = _response(200)
        response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
        self.session.request.return_value = response
        with self.assertRaises(RemoteSyncError):
            self.mirror.write_remote_file("data/loans.json", "[]", sha="s")

    def test_write_reply_without_sha(self):
        self.session.request.return_value = _response(200, {'commit': {}})
        with self.assertRaises(RemoteSyncError):
            self.mirror.write_remote_file("data/loans.json", "[]", sha="s")

    def test_network_failure(self):
        self.session.request.side_effect = requests.ConnectionError("unreachable")
        with self.assertRaises(RemoteSyncError) as context:
            self.mirror.read_remote_file("data/loans.json")
        self.assertEqual(context.exception.details['path'], "data/loans.json")

    def test_default_session_retries(self):
        mirror = GitHubMirror(CONFIG, retries=2)
        adapter = mirror.session.get_adapter("https://api.github.com")
        self.assertEqual(adapter.max_retries.total, 2)


if __name__ == "__main__":
    unittest.main(verbosity=2)
