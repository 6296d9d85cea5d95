from __future__ import annotations

from enum import Enum
from typing import Any

from .chain_registry import RegistrySnapshot, RegistryStore
from .documents import Asset, AssetList, Chain, Path
from .indexes import TagDimension, canonical_path_name


class QueryError(Exception):
    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class QueryNotFound(QueryError):
    def __init__(self, detail: str) -> None:
        super().__init__(404, detail)


class BadRequest(QueryError):
    def __init__(self, detail: str) -> None:
        super().__init__(400, detail)


class ConfigurationError(RuntimeError):
    pass


class EndpointKind(str, Enum):
    RPC = 'rpc'
    GRPC = 'grpc'
    REST = 'rest'
    PEERS = 'peers'
    SEEDS = 'seeds'


def _resolve_chain_name(snapshot: RegistrySnapshot, key: str) -> str | None:
    if key in snapshot.chains:
        return key
    return snapshot.indexes.chain_by_id.get(key)


class RegistryQueryService:
    """Read-only lookups over the latest published snapshot."""

    def __init__(self, store: RegistryStore) -> None:
        self.store = store

    def list_chain_names(self) -> list[str]:
        return list(self.store.current().chain_names)

    def get_chain(self, key: str) -> Chain:
        snapshot = self.store.current()
        name = _resolve_chain_name(snapshot, key)
        chain = snapshot.chains.get(name) if name is not None else None
        if chain is None:
            raise QueryNotFound(f'chain {key} not found in registry')
        return chain

    def get_endpoints(self, chain_key: str, kind: str) -> list[Any]:
        try:
            endpoint_kind = EndpointKind(kind)
        except ValueError as exc:
            raise BadRequest(f'unknown endpoint kind {kind}') from exc

        chain = self.get_chain(chain_key)
        if endpoint_kind is EndpointKind.RPC:
            return list(chain.apis.rpc)
        if endpoint_kind is EndpointKind.GRPC:
            return list(chain.apis.grpc)
        if endpoint_kind is EndpointKind.REST:
            return list(chain.apis.rest)
        if endpoint_kind is EndpointKind.PEERS:
            return list(chain.peers.persistent_peers)
        return list(chain.peers.seeds)

    def get_asset_list(self, chain_key: str) -> AssetList:
        snapshot = self.store.current()
        if chain_key in snapshot.asset_lists:
            return snapshot.asset_lists[chain_key]
        name = snapshot.indexes.chain_by_id.get(chain_key)
        asset_list = snapshot.asset_lists.get(name) if name is not None else None
        if asset_list is None:
            raise QueryNotFound(f'asset list for chain {chain_key} not found in registry')
        return asset_list

    def list_asset_names(self) -> list[str]:
        return sorted(self.store.current().indexes.chain_by_asset)

    def get_asset(self, display: str) -> Asset:
        snapshot = self.store.current()
        chain_name = snapshot.indexes.chain_by_asset.get(display)
        asset_list = snapshot.asset_lists.get(chain_name) if chain_name is not None else None
        if asset_list is not None:
            for asset in asset_list.assets:
                if asset.display == display:
                    return asset
        raise QueryNotFound(f'asset {display} not found in registry')

    def list_path_names(self) -> list[str]:
        return list(self.store.current().path_names)

    def list_paths(self) -> list[Path]:
        return list(self.store.current().paths.values())

    def get_path(self, chain1: str, chain2: str) -> Path:
        name = canonical_path_name(chain1, chain2)
        path = self.store.current().paths.get(name)
        if path is None:
            raise QueryNotFound(f'path {name} not found in registry')
        return path

    def get_paths_by_tag(self, dimension: TagDimension | str, value: str) -> list[Path]:
        if not isinstance(dimension, TagDimension):
            try:
                dimension = TagDimension(dimension)
            except ValueError as exc:
                raise ConfigurationError(f'paths are not indexed by tag {dimension!r}') from exc

        snapshot = self.store.current()
        if not value:
            return list(snapshot.paths.values())

        # a path with several matching channels is listed once
        names = dict.fromkeys(snapshot.indexes.paths_by_tag.get((dimension, value), ()))
        return [snapshot.paths[name] for name in names]
