from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from .documents import AssetList, Chain, Channel, Path

LOGGER = logging.getLogger('skychart.indexes')


class TagDimension(str, Enum):
    STATUS = 'status'
    PREFERRED = 'preferred'
    DEX = 'dex'
    PROPERTIES = 'properties'


TagKey = tuple[TagDimension, str]


def canonical_path_name(chain1: str, chain2: str) -> str:
    if chain1 > chain2:
        chain1, chain2 = chain2, chain1
    return f'{chain1}-{chain2}'


def channel_tags(channel: Channel) -> list[TagKey]:
    tags = channel.tags
    keys: list[TagKey] = []
    if tags.status:
        keys.append((TagDimension.STATUS, tags.status))
    # preferred has no absent state
    keys.append((TagDimension.PREFERRED, 'true' if tags.preferred else 'false'))
    if tags.dex:
        keys.append((TagDimension.DEX, tags.dex))
    if tags.properties:
        keys.append((TagDimension.PROPERTIES, tags.properties))
    return keys


@dataclass(frozen=True)
class RegistryIndexes:
    chain_by_id: Mapping[str, str]
    chain_by_asset: Mapping[str, str]
    path_by_name: Mapping[str, Path]
    paths_by_tag: Mapping[TagKey, tuple[str, ...]]


def build_indexes(
    chains: Mapping[str, Chain],
    asset_lists: Mapping[str, AssetList],
    paths: Mapping[str, Path]
) -> RegistryIndexes:
    chain_by_id: dict[str, str] = {}
    for name, chain in chains.items():
        if chain.chain_id:
            chain_by_id[chain.chain_id] = name

    chain_by_asset: dict[str, str] = {}
    for listed_under, asset_list in asset_lists.items():
        owner = listed_under
        if asset_list.chain_id:
            owner = chain_by_id.get(asset_list.chain_id, listed_under)
        for asset in asset_list.assets:
            if not asset.display:
                continue
            previous = chain_by_asset.get(asset.display)
            if previous is not None and previous != owner:
                LOGGER.warning(
                    'asset display name collision display=%s previous=%s replacement=%s',
                    asset.display,
                    previous,
                    owner
                )
            chain_by_asset[asset.display] = owner

    path_by_name: dict[str, Path] = {}
    for name, path in paths.items():
        path_by_name[name] = path

    paths_by_tag: dict[TagKey, list[str]] = {}
    for name, path in path_by_name.items():
        for channel in path.channels:
            for key in channel_tags(channel):
                paths_by_tag.setdefault(key, []).append(name)

    return RegistryIndexes(
        chain_by_id=chain_by_id,
        chain_by_asset=chain_by_asset,
        path_by_name=path_by_name,
        paths_by_tag={key: tuple(names) for key, names in paths_by_tag.items()}
    )
