from __future__ import annotations

import json
from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator


class ParseError(ValueError):
    def __init__(self, kind: str, detail: str) -> None:
        super().__init__(f'{kind}: {detail}')
        self.kind = kind
        self.detail = detail


class _Document(BaseModel):
    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    @model_validator(mode='before')
    @classmethod
    def _null_as_missing(cls, data: Any) -> Any:
        # null fields take their defaults
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


# chain.json

class ApiEndpoint(_Document):
    address: str = ''
    provider: str = ''


class Peer(_Document):
    id: str = ''
    address: str = ''
    provider: str = ''


class Apis(_Document):
    rpc: list[ApiEndpoint] = Field(default_factory=list)
    grpc: list[ApiEndpoint] = Field(default_factory=list)
    rest: list[ApiEndpoint] = Field(default_factory=list)


class Peers(_Document):
    seeds: list[Peer] = Field(default_factory=list)
    persistent_peers: list[Peer] = Field(default_factory=list)


class Chain(_Document):
    chain_name: str = ''
    chain_id: str = ''
    pretty_name: str = ''
    status: str = ''
    network_type: str = ''
    bech32_prefix: str = ''
    apis: Apis = Field(default_factory=Apis)
    peers: Peers = Field(default_factory=Peers)


# assetlist.json

class DenomUnit(_Document):
    denom: str = ''
    exponent: int = 0
    aliases: list[str] = Field(default_factory=list)


class Asset(_Document):
    description: str = ''
    denom_units: list[DenomUnit] = Field(default_factory=list)
    base: str = ''
    name: str = ''
    display: str = ''
    symbol: str = ''
    coingecko_id: str = ''


class AssetList(_Document):
    chain_id: str = ''
    chain_name: str = ''
    assets: list[Asset] = Field(default_factory=list)


# _IBC/{chain1}-{chain2}.json

class PathEndpoint(_Document):
    chain_name: str = Field(default='', alias='chain-name')
    client_id: str = Field(default='', alias='client-id')
    connection_id: str = Field(default='', alias='connection-id')


class ChannelEnd(_Document):
    channel_id: str = Field(default='', alias='channel-id')
    port_id: str = Field(default='', alias='port-id')


class ChannelTags(_Document):
    status: str = ''
    preferred: bool = False
    dex: str = ''
    properties: str = ''


class Channel(_Document):
    chain_1: ChannelEnd = Field(default_factory=ChannelEnd, alias='chain-1')
    chain_2: ChannelEnd = Field(default_factory=ChannelEnd, alias='chain-2')
    ordering: str = ''
    version: str = ''
    tags: ChannelTags = Field(default_factory=ChannelTags)


class Path(_Document):
    chain_1: PathEndpoint = Field(default_factory=PathEndpoint, alias='chain-1')
    chain_2: PathEndpoint = Field(default_factory=PathEndpoint, alias='chain-2')
    channels: list[Channel] = Field(default_factory=list)


# GitHub contents listing

class EntryKind(str, Enum):
    FILE = 'file'
    DIR = 'dir'
    SYMLINK = 'symlink'
    SUBMODULE = 'submodule'


class DirectoryEntry(_Document):
    name: str
    kind: EntryKind = Field(alias='type')


_DocumentT = TypeVar('_DocumentT', bound=_Document)

_LISTING_ADAPTER = TypeAdapter(list[DirectoryEntry])
_COMMITS_ADAPTER = TypeAdapter(list[dict[str, Any]])


def _load_json(raw: bytes, kind: str) -> Any:
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ParseError(kind, f'invalid json: {exc}') from exc


def _validation_detail(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = '.'.join(str(part) for part in first.get('loc', ())) or '<root>'
    return f"{location}: {first.get('msg', 'invalid value')}"


def _parse_document(raw: bytes, model: type[_DocumentT], kind: str) -> _DocumentT:
    payload = _load_json(raw, kind)
    if not isinstance(payload, dict):
        raise ParseError(kind, 'document is not a json object')
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ParseError(kind, _validation_detail(exc)) from exc


def parse_chain(raw: bytes) -> Chain:
    return _parse_document(raw, Chain, 'chain')


def parse_asset_list(raw: bytes) -> AssetList:
    return _parse_document(raw, AssetList, 'assetlist')


def parse_path(raw: bytes) -> Path:
    return _parse_document(raw, Path, 'path')


def parse_directory_listing(raw: bytes) -> list[DirectoryEntry]:
    payload = _load_json(raw, 'listing')
    try:
        return _LISTING_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        raise ParseError('listing', _validation_detail(exc)) from exc


def parse_commit_list(raw: bytes) -> list[dict[str, Any]]:
    payload = _load_json(raw, 'commits')
    try:
        return _COMMITS_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        raise ParseError('commits', _validation_detail(exc)) from exc
