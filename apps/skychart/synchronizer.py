from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from enum import Enum
from typing import Protocol, TypeVar

from prometheus_client import Counter, Gauge

from .chain_registry import RegistryStore, build_snapshot
from .documents import (
    AssetList,
    Chain,
    DirectoryEntry,
    EntryKind,
    ParseError,
    Path,
    parse_asset_list,
    parse_chain,
    parse_path
)
from .indexes import canonical_path_name
from .remote_source import format_since

LOGGER = logging.getLogger('skychart.synchronizer')

IBC_DIRECTORY = '_IBC'
CHAIN_DOCUMENT = 'chain.json'
ASSETLIST_DOCUMENT = 'assetlist.json'
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

SYNC_PASSES_TOTAL = Counter(
    'skychart_sync_passes_total',
    'Registry synchronization passes by outcome',
    ['outcome']
)
DOCUMENTS_FETCHED_TOTAL = Counter(
    'skychart_documents_fetched_total',
    'Registry documents requested during synchronization',
    ['kind', 'result']
)
SNAPSHOT_ENTRIES = Gauge(
    'skychart_snapshot_entries',
    'Entries in the published registry snapshot',
    ['kind']
)
SNAPSHOT_VERSION = Gauge(
    'skychart_snapshot_version',
    'Version of the published registry snapshot'
)

_DocumentT = TypeVar('_DocumentT')


class RegistrySource(Protocol):
    def list_directory(self, path: str = '') -> list[DirectoryEntry]: ...

    def fetch_file(self, path: str) -> bytes | None: ...

    def has_commits_since(self, since: datetime) -> bool: ...


class SyncState(str, Enum):
    IDLE = 'idle'
    SYNCING = 'syncing'


class SyncOutcome(str, Enum):
    PUBLISHED = 'published'
    UNCHANGED = 'unchanged'
    SKIPPED = 'skipped'


def discover_chain_names(entries: Iterable[DirectoryEntry]) -> list[str]:
    names: list[str] = []
    for entry in entries:
        if entry.kind is not EntryKind.DIR:
            continue
        if '.' in entry.name or 'testnets' in entry.name:
            continue
        names.append(entry.name)
    return names


def discover_path_names(entries: Iterable[DirectoryEntry]) -> list[str]:
    names: list[str] = []
    for entry in entries:
        if entry.kind is not EntryKind.FILE:
            continue
        if '.' not in entry.name or '-' not in entry.name:
            continue
        names.append(entry.name.split('.', 1)[0])
    return names


def split_path_name(name: str) -> tuple[str, str] | None:
    tokens = name.split('-')
    if len(tokens) != 2 or not all(tokens):
        return None
    return tokens[0], tokens[1]


class RegistrySynchronizer:
    def __init__(
        self,
        source: RegistrySource,
        store: RegistryStore,
        *,
        clock: Callable[[], datetime] | None = None
    ) -> None:
        self.source = source
        self.store = store
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.Lock()
        self._state = SyncState.IDLE
        self._last_synced_at = EPOCH

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def last_synced_at(self) -> datetime:
        return self._last_synced_at

    def run_pass(self) -> SyncOutcome:
        # non-reentrant
        if not self._lock.acquire(blocking=False):
            LOGGER.info('sync pass already in progress; ignoring trigger')
            SYNC_PASSES_TOTAL.labels(outcome=SyncOutcome.SKIPPED.value).inc()
            return SyncOutcome.SKIPPED

        self._state = SyncState.SYNCING
        try:
            outcome = self._run_pass_locked()
        except Exception:
            SYNC_PASSES_TOTAL.labels(outcome='failed').inc()
            raise
        finally:
            self._state = SyncState.IDLE
            self._lock.release()

        SYNC_PASSES_TOTAL.labels(outcome=outcome.value).inc()
        return outcome

    def _run_pass_locked(self) -> SyncOutcome:
        started_at = self._clock()
        if not self.source.has_commits_since(self._last_synced_at):
            LOGGER.info('no new commits since %s', format_since(self._last_synced_at))
            self._last_synced_at = started_at
            return SyncOutcome.UNCHANGED

        chain_names = discover_chain_names(self.source.list_directory(''))
        path_names = discover_path_names(self.source.list_directory(IBC_DIRECTORY))
        LOGGER.info('discovered chains=%s paths=%s', len(chain_names), len(path_names))

        chains: dict[str, Chain] = {}
        asset_lists: dict[str, AssetList] = {}
        for name in chain_names:
            chain = self._fetch_document(f'{name}/{CHAIN_DOCUMENT}', parse_chain, 'chain')
            asset_list = self._fetch_document(f'{name}/{ASSETLIST_DOCUMENT}', parse_asset_list, 'assetlist')
            if chain is not None:
                chains[name] = chain
            if asset_list is not None:
                asset_lists[name] = asset_list

        paths: dict[str, Path] = {}
        for path_name in path_names:
            tokens = split_path_name(path_name)
            if tokens is None:
                LOGGER.warning('skipping path document with unexpected name=%s', path_name)
                continue
            canonical = canonical_path_name(*tokens)
            path = self._fetch_document(f'{IBC_DIRECTORY}/{canonical}.json', parse_path, 'path')
            if path is not None:
                paths[canonical] = path

        snapshot = build_snapshot(
            version=self.store.current().version + 1,
            published_at=started_at,
            chain_names=chain_names,
            path_names=path_names,
            chains=chains,
            asset_lists=asset_lists,
            paths=paths
        )
        self.store.publish(snapshot)
        self._last_synced_at = started_at

        SNAPSHOT_VERSION.set(snapshot.version)
        SNAPSHOT_ENTRIES.labels(kind='chains').set(len(snapshot.chains))
        SNAPSHOT_ENTRIES.labels(kind='assetlists').set(len(snapshot.asset_lists))
        SNAPSHOT_ENTRIES.labels(kind='paths').set(len(snapshot.paths))
        LOGGER.info(
            'successfully updated registry version=%s chains=%s assetlists=%s paths=%s',
            snapshot.version,
            len(snapshot.chains),
            len(snapshot.asset_lists),
            len(snapshot.paths)
        )
        return SyncOutcome.PUBLISHED

    def _fetch_document(
        self,
        path: str,
        parser: Callable[[bytes], _DocumentT],
        kind: str
    ) -> _DocumentT | None:
        raw = self.source.fetch_file(path)
        if raw is None:
            DOCUMENTS_FETCHED_TOTAL.labels(kind=kind, result='missing').inc()
            LOGGER.debug('%s document missing path=%s', kind, path)
            return None

        DOCUMENTS_FETCHED_TOTAL.labels(kind=kind, result='ok').inc()
        try:
            return parser(raw)
        except ParseError as exc:
            raise ParseError(exc.kind, f'{path}: {exc.detail}') from exc
