from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime

from .documents import AssetList, Chain, Path
from .indexes import RegistryIndexes, build_indexes


@dataclass(frozen=True)
class RegistrySnapshot:
    """One pass's published data; never mutated."""

    version: int
    published_at: datetime | None
    chain_names: tuple[str, ...]
    path_names: tuple[str, ...]
    chains: Mapping[str, Chain]
    asset_lists: Mapping[str, AssetList]
    indexes: RegistryIndexes = field(repr=False)

    @property
    def paths(self) -> Mapping[str, Path]:
        return self.indexes.path_by_name


def build_snapshot(
    *,
    version: int,
    published_at: datetime | None,
    chain_names: list[str] | tuple[str, ...],
    path_names: list[str] | tuple[str, ...],
    chains: Mapping[str, Chain],
    asset_lists: Mapping[str, AssetList],
    paths: Mapping[str, Path]
) -> RegistrySnapshot:
    return RegistrySnapshot(
        version=version,
        published_at=published_at,
        chain_names=tuple(chain_names),
        path_names=tuple(path_names),
        chains=dict(chains),
        asset_lists=dict(asset_lists),
        indexes=build_indexes(chains, asset_lists, paths)
    )


def empty_snapshot() -> RegistrySnapshot:
    return build_snapshot(
        version=0,
        published_at=None,
        chain_names=(),
        path_names=(),
        chains={},
        asset_lists={},
        paths={}
    )


class RegistryStore:
    def __init__(self, snapshot: RegistrySnapshot | None = None) -> None:
        self._snapshot = snapshot if snapshot is not None else empty_snapshot()

    def current(self) -> RegistrySnapshot:
        return self._snapshot

    def publish(self, snapshot: RegistrySnapshot) -> None:
        self._snapshot = snapshot

    @property
    def ready(self) -> bool:
        return self._snapshot.version > 0
