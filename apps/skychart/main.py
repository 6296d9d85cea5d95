from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from prometheus_client import make_asgi_app
from pydantic import BaseModel

from .chain_registry import RegistryStore
from .config import get_settings
from .indexes import TagDimension
from .poller import RegistryPoller
from .query_service import QueryError, RegistryQueryService
from .remote_source import RemoteSourceClient
from .synchronizer import RegistrySynchronizer

settings = get_settings()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, default_response_class=ORJSONResponse)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[x.strip() for x in settings.cors_origins.split(',') if x.strip()],
    allow_credentials=False,
    allow_methods=['GET'],
    allow_headers=['*']
)
app.mount('/metrics', make_asgi_app())

_store = RegistryStore()
_query = RegistryQueryService(_store)
_synchronizer = RegistrySynchronizer(RemoteSourceClient.from_settings(settings), _store)
_poller: RegistryPoller | None = None

# checked in this order when several filters are supplied
PATH_FILTER_ORDER = (
    TagDimension.DEX,
    TagDimension.PREFERRED,
    TagDimension.PROPERTIES,
    TagDimension.STATUS
)


def _dump(model: BaseModel) -> dict:
    return model.model_dump(by_alias=True)


def _http_error(exc: QueryError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.detail)


@app.on_event('startup')
async def startup() -> None:
    global _poller
    logging.basicConfig(
        level=settings.log_level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )
    if not settings.poll_enabled:
        logger.info('registry polling disabled; serving empty registry until a pass is triggered')
        return
    _poller = RegistryPoller(_synchronizer, settings.poll_interval_seconds)
    _poller.start()


@app.on_event('shutdown')
async def shutdown() -> None:
    global _poller
    if _poller is not None:
        _poller.stop()
        _poller = None


@app.get('/health')
async def health() -> dict[str, str]:
    return {'status': 'ok'}


@app.get('/health/ready')
async def ready() -> dict:
    snapshot = _query.store.current()
    if snapshot.version == 0:
        raise HTTPException(status_code=503, detail='registry has not been synchronized yet')
    return {
        'status': 'ready',
        'version': snapshot.version,
        'published_at': snapshot.published_at.isoformat() if snapshot.published_at else None
    }


@app.get('/v1/chains')
async def chains() -> list[str]:
    return _query.list_chain_names()


@app.get('/v1/chain/{chain}')
async def chain(chain: str) -> dict:
    try:
        return _dump(_query.get_chain(chain))
    except QueryError as exc:
        raise _http_error(exc) from exc


@app.get('/v1/chain/{chain}/endpoints/{kind}')
async def endpoints(chain: str, kind: str) -> list[dict]:
    try:
        return [_dump(item) for item in _query.get_endpoints(chain, kind)]
    except QueryError as exc:
        raise _http_error(exc) from exc


@app.get('/v1/chain/{chain}/assets')
async def chain_assets(chain: str) -> dict:
    try:
        return _dump(_query.get_asset_list(chain))
    except QueryError as exc:
        raise _http_error(exc) from exc


@app.get('/v1/assets')
async def assets() -> list[str]:
    return _query.list_asset_names()


@app.get('/v1/asset/{display}')
async def asset(display: str) -> dict:
    try:
        return _dump(_query.get_asset(display))
    except QueryError as exc:
        raise _http_error(exc) from exc


@app.get('/v1/paths/names')
async def path_names() -> list[str]:
    return _query.list_path_names()


@app.get('/v1/paths')
async def paths(
    dex: str | None = Query(default=None),
    preferred: str | None = Query(default=None),
    properties: str | None = Query(default=None),
    status: str | None = Query(default=None)
) -> list[dict]:
    supplied = {
        TagDimension.DEX: dex,
        TagDimension.PREFERRED: preferred,
        TagDimension.PROPERTIES: properties,
        TagDimension.STATUS: status
    }
    for dimension in PATH_FILTER_ORDER:
        value = supplied[dimension]
        if value is not None:
            return [_dump(item) for item in _query.get_paths_by_tag(dimension, value)]
    return [_dump(item) for item in _query.list_paths()]


@app.get('/v1/path/{path_name}')
async def path(path_name: str) -> dict:
    chain_names = path_name.split('-')
    if len(chain_names) != 2 or not all(chain_names):
        raise HTTPException(status_code=400, detail=f'path must be of the form chain1-chain2, got {path_name}')
    try:
        return _dump(_query.get_path(chain_names[0], chain_names[1]))
    except QueryError as exc:
        raise _http_error(exc) from exc


@app.get('/')
async def root() -> dict:
    return {'service': settings.app_name, 'status': 'ok', 'registry': settings.registry_repo}
