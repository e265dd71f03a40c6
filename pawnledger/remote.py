"""GitHub-backed mirror for PawnLedger collections.

Each collection is stored as a JSON file in a repository through the
contents API. Writes are read-modify-write with the file's blob sha as an
optimistic version token; the sha is re-read right before each write, so
concurrent writers are not detected and the last one wins.
"""
import base64
from dataclasses import dataclass
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from pawnledger.config import (
    DEFAULT_REMOTE_RETRIES,
    DEFAULT_REMOTE_TIMEOUT,
    GITHUB_API_URL,
    GitHubConfig,
)
from pawnledger.exceptions import ConfigurationError, RemoteSyncError
from pawnledger.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RemoteFile:
    """Content of a remote file and the version token it was read at."""
    path: str
    content: str
    sha: str


class GitHubMirror:
    """Reads and writes collection files in a GitHub repository."""

    def __init__(self, config: GitHubConfig, timeout=DEFAULT_REMOTE_TIMEOUT,
                 retries=DEFAULT_REMOTE_RETRIES, session=None):
        """Initialize GitHubMirror.

        Args:
            config: Repository owner, name, token and branch.
            timeout: Per-request timeout in seconds.
            retries: Retries for connection errors and 5xx/429 responses.
            session: Optional pre-built requests.Session (used by tests).

        Raises:
            ConfigurationError: If any repository setting is missing.
        """
        missing = config.missing_fields()
        if missing:
            raise ConfigurationError(
                "GitHub mirror is not configured",
                {'missing': missing},
            )
        self.config = config
        self.timeout = timeout
        self.session = session or self._build_session(retries)

    @staticmethod
    def _build_session(retries):
        session = requests.Session()
        retry = Retry(
            total=retries,
            backoff_factor=0.5,
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=("GET", "PUT"),
        )
        session.mount("https://", HTTPAdapter(max_retries=retry))
        return session

    def _url(self, path):
        return f"{GITHUB_API_URL}/repos/{self.config.owner}/{self.config.repo}/contents/{path}"

    @property
    def _headers(self):
        return {
            'Authorization': f"Bearer {self.config.token}",
            'Accept': 'application/vnd.github.v3+json',
        }

    def _request(self, method, path, **kwargs):
        try:
            return self.session.request(
                method, self._url(path), headers=self._headers, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            raise RemoteSyncError(f"GitHub request failed: {e}", path=path)

    @staticmethod
    def _raise_for_status(response, path):
        if response.status_code in (401, 403):
            raise RemoteSyncError("GitHub rejected the access token", path=path,
                                  status_code=response.status_code)
        if not response.ok:
            raise RemoteSyncError(f"GitHub API error: {response.reason}", path=path,
                                  status_code=response.status_code)

    def read_remote_file(self, path) -> Optional[RemoteFile]:
        """Fetch a file from the repository.

        Args:
            path: File path inside the repository.

        Returns:
            RemoteFile, or None if the file does not exist yet.

        Raises:
            RemoteSyncError: On network failure, any non-404 error status, or a body
                that is not the expected JSON.
        """
        response = self._request("GET", path, params={'ref': self.config.branch})
        if response.status_code == 404:
            return None
        self._raise_for_status(response, path)

        try:
            data = response.json()
            content = base64.b64decode(data.get('content', '').replace("\n", "")).decode("utf-8")
        except (ValueError, AttributeError) as e:
            raise RemoteSyncError(f"Unreadable GitHub response: {e}", path=path,
                                  status_code=response.status_code)
        return RemoteFile(path=path, content=content, sha=data.get('sha'))

    def write_remote_file(self, path, content, sha=None) -> str:
        """Create or replace a file in the repository.

        Args:
            path: File path inside the repository.
            content: UTF-8 text to store.
            sha: Version token of the file being replaced; looked up when omitted.

        Returns:
            The new version token (blob sha).

        Raises:
            RemoteSyncError: On network failure, error status, or an unreadable reply.
        """
        if sha is None:
            existing = self.read_remote_file(path)
            if existing:
                sha = existing.sha

        body = {
            'message': f"Update {path}",
            'content': base64.b64encode(content.encode("utf-8")).decode("ascii"),
            'branch': self.config.branch,
        }
        if sha:
            body['sha'] = sha

        response = self._request("PUT", path, json=body)
        self._raise_for_status(response, path)
        try:
            new_sha = response.json()['content']['sha']
        except (ValueError, KeyError, TypeError) as e:
            raise RemoteSyncError(f"Unreadable GitHub response: {e}", path=path,
                                  status_code=response.status_code)
        logger.info("Mirrored %s to %s/%s@%s", path, self.config.owner, self.config.repo,
                    self.config.branch)
        return new_sha
