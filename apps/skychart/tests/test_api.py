import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from apps.skychart import main
from apps.skychart.chain_registry import RegistryStore
from apps.skychart.query_service import RegistryQueryService
from apps.skychart.synchronizer import RegistrySynchronizer
from apps.skychart.tests.fakes import atom_osmo_source


class RegistryApiTests(unittest.TestCase):
    def setUp(self) -> None:
        store = RegistryStore()
        RegistrySynchronizer(atom_osmo_source(), store).run_pass()
        patcher = patch.object(main, '_query', RegistryQueryService(store))
        patcher.start()
        self.addCleanup(patcher.stop)
        self.client = TestClient(main.app)

    def test_chains(self) -> None:
        self.assertEqual(self.client.get('/v1/chains').json(), ['atom', 'osmo'])

        by_id = self.client.get('/v1/chain/osmosis-1')
        self.assertEqual(by_id.status_code, 200)
        self.assertEqual(by_id.json()['chain_name'], 'osmo')
        self.assertEqual(self.client.get('/v1/chain/juno').status_code, 404)

    def test_endpoints(self) -> None:
        rpc = self.client.get('/v1/chain/atom/endpoints/rpc')
        self.assertEqual(rpc.json(), [{'address': 'https://rpc.atom.example', 'provider': 'test'}])
        self.assertEqual(self.client.get('/v1/chain/atom/endpoints/websocket').status_code, 400)
        self.assertEqual(self.client.get('/v1/chain/juno/endpoints/rpc').status_code, 404)

    def test_assets(self) -> None:
        self.assertEqual(self.client.get('/v1/assets').json(), ['atom', 'ion', 'osmo'])
        self.assertEqual(self.client.get('/v1/asset/ion').json()['symbol'], 'ION')
        self.assertEqual(self.client.get('/v1/asset/uatom').status_code, 404)
        self.assertEqual(len(self.client.get('/v1/chain/osmosis-1/assets').json()['assets']), 2)

    def test_paths(self) -> None:
        path = self.client.get('/v1/path/osmo-atom')
        self.assertEqual(path.status_code, 200)
        self.assertEqual(path.json()['chain-1']['chain-name'], 'atom')
        self.assertEqual(path.json(), self.client.get('/v1/path/atom-osmo').json())
        self.assertEqual(self.client.get('/v1/path/atom').status_code, 400)
        self.assertEqual(self.client.get('/v1/path/atom-juno').status_code, 404)
        self.assertEqual(self.client.get('/v1/paths/names').json(), ['atom-osmo'])

    def test_path_filters(self) -> None:
        self.assertEqual(len(self.client.get('/v1/paths').json()), 1)
        self.assertEqual(len(self.client.get('/v1/paths', params={'dex': 'osmosis'}).json()), 1)
        self.assertEqual(self.client.get('/v1/paths', params={'dex': 'other'}).json(), [])
        self.assertEqual(len(self.client.get('/v1/paths', params={'preferred': 'true'}).json()), 1)
        self.assertEqual(self.client.get('/v1/paths', params={'status': 'killed'}).json(), [])
        # dex is checked before status
        self.assertEqual(len(self.client.get('/v1/paths', params={'status': 'killed', 'dex': 'osmosis'}).json()), 1)

    def test_readiness(self) -> None:
        ready = self.client.get('/health/ready')
        self.assertEqual(ready.status_code, 200)
        self.assertEqual(ready.json()['version'], 1)

        with patch.object(main, '_query', RegistryQueryService(RegistryStore())):
            self.assertEqual(self.client.get('/health/ready').status_code, 503)
        self.assertEqual(self.client.get('/health').json(), {'status': 'ok'})
