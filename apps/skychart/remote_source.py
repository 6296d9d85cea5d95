from __future__ import annotations

import logging
import urllib.error
import urllib.parse
import urllib.request
from datetime import datetime, timezone

from .config import Settings
from .documents import DirectoryEntry, parse_commit_list, parse_directory_listing

LOGGER = logging.getLogger('skychart.remote_source')

USER_AGENT = 'skychart-registry-mirror'


class TransportError(Exception):
    def __init__(self, url: str, detail: str, status_code: int | None = None) -> None:
        super().__init__(f'{detail} ({url})')
        self.url = url
        self.detail = detail
        self.status_code = status_code


def format_since(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


class RemoteSourceClient:
    def __init__(
        self,
        *,
        repo: str,
        branch: str = 'master',
        api_url: str = 'https://api.github.com',
        raw_url: str = 'https://raw.githubusercontent.com',
        timeout_seconds: float = 10.0
    ) -> None:
        self.repo = repo.strip('/')
        self.branch = branch
        self.api_url = api_url.rstrip('/')
        self.raw_url = raw_url.rstrip('/')
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> RemoteSourceClient:
        return cls(
            repo=settings.registry_repo,
            branch=settings.registry_branch,
            api_url=settings.registry_api_url,
            raw_url=settings.registry_raw_url,
            timeout_seconds=settings.request_timeout_seconds
        )

    def list_directory(self, path: str = '') -> list[DirectoryEntry]:
        url = f'{self.api_url}/repos/{self.repo}/contents'
        if path.strip('/'):
            url = f"{url}/{urllib.parse.quote(path.strip('/'))}"
        return parse_directory_listing(self._get(url, accept='application/vnd.github+json'))

    def fetch_file(self, path: str) -> bytes | None:
        url = f"{self.raw_url}/{self.repo}/{self.branch}/{urllib.parse.quote(path.strip('/'))}"
        try:
            return self._get(url)
        except TransportError as exc:
            if exc.status_code != 404:
                raise
            LOGGER.debug('not found url=%s', url)
            return None

    def has_commits_since(self, since: datetime) -> bool:
        query = urllib.parse.urlencode({'since': format_since(since)})
        url = f'{self.api_url}/repos/{self.repo}/commits?{query}'
        return len(parse_commit_list(self._get(url, accept='application/vnd.github+json'))) > 0

    def _get(self, url: str, *, accept: str = '*/*') -> bytes:
        req = urllib.request.Request(
            url=url,
            method='GET',
            headers={'Accept': accept, 'User-Agent': USER_AGENT}
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_seconds) as resp:
                return resp.read()
        except urllib.error.HTTPError as exc:
            raise TransportError(url, f'unexpected status code {exc.code}', status_code=exc.code) from exc
        except urllib.error.URLError as exc:
            raise TransportError(url, f'request failed: {exc.reason}') from exc
        except (TimeoutError, OSError) as exc:
            raise TransportError(url, f'request failed: {exc}') from exc
