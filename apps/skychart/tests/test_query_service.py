import unittest

from apps.skychart.chain_registry import RegistryStore
from apps.skychart.indexes import TagDimension
from apps.skychart.query_service import (
    BadRequest,
    ConfigurationError,
    QueryNotFound,
    RegistryQueryService
)
from apps.skychart.synchronizer import RegistrySynchronizer
from apps.skychart.tests.fakes import atom_osmo_source, dir_entry, encode, file_entry, path_doc


class QueryServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.source = atom_osmo_source()
        self.source.directories['_IBC'].append(file_entry('atom-juno.json'))
        self.source.files['_IBC/atom-juno.json'] = encode(path_doc('atom', 'juno', [
            {'status': 'live', 'preferred': True},
            {'status': 'live', 'preferred': False, 'dex': 'junoswap'}
        ]))
        self.store = RegistryStore()
        RegistrySynchronizer(self.source, self.store).run_pass()
        self.query = RegistryQueryService(self.store)

    def test_get_chain_by_name_or_chain_id(self) -> None:
        by_name = self.query.get_chain('osmo')
        by_id = self.query.get_chain('osmosis-1')

        self.assertIs(by_name, by_id)
        self.assertEqual(by_name.chain_id, 'osmosis-1')
        with self.assertRaises(QueryNotFound) as ctx:
            self.query.get_chain('unknown-1')
        self.assertEqual(ctx.exception.status_code, 404)

    def test_get_asset_list_by_name_or_chain_id(self) -> None:
        self.assertIs(self.query.get_asset_list('atom'), self.query.get_asset_list('cosmoshub-4'))
        with self.assertRaises(QueryNotFound):
            self.query.get_asset_list('juno')

    def test_get_endpoints(self) -> None:
        rpc = self.query.get_endpoints('cosmoshub-4', 'rpc')
        self.assertEqual([item.address for item in rpc], ['https://rpc.atom.example'])
        self.assertEqual(self.query.get_endpoints('atom', 'grpc'), [])
        self.assertEqual([peer.id for peer in self.query.get_endpoints('atom', 'peers')], ['peer1'])
        self.assertEqual([peer.id for peer in self.query.get_endpoints('atom', 'seeds')], ['seed1'])

    def test_get_endpoints_rejects_unknown_kind_before_lookup(self) -> None:
        with self.assertRaises(BadRequest) as ctx:
            self.query.get_endpoints('unknown', 'websocket')
        self.assertEqual(ctx.exception.status_code, 400)

        with self.assertRaises(QueryNotFound):
            self.query.get_endpoints('unknown', 'rpc')

    def test_assets(self) -> None:
        self.assertEqual(self.query.list_asset_names(), ['atom', 'ion', 'osmo'])
        self.assertEqual(self.query.get_asset('ion').symbol, 'ION')
        with self.assertRaises(QueryNotFound):
            self.query.get_asset('uatom')

    def test_paths(self) -> None:
        self.assertEqual(self.query.list_path_names(), ['atom-osmo', 'atom-juno'])
        self.assertEqual(len(self.query.list_paths()), 2)
        self.assertEqual(self.query.get_path('juno', 'atom'), self.query.get_path('atom', 'juno'))
        with self.assertRaises(QueryNotFound):
            self.query.get_path('osmo', 'juno')

    def test_paths_by_tag(self) -> None:
        juno = self.query.get_path('atom', 'juno')
        osmo = self.query.get_path('atom', 'osmo')

        self.assertEqual(self.query.get_paths_by_tag(TagDimension.STATUS, 'live'), [juno])
        self.assertEqual(self.query.get_paths_by_tag('preferred', 'true'), [osmo, juno])
        self.assertEqual(self.query.get_paths_by_tag('preferred', 'false'), [juno])
        self.assertEqual(self.query.get_paths_by_tag('dex', 'junoswap'), [juno])
        self.assertEqual(self.query.get_paths_by_tag('dex', 'unknown'), [])
        self.assertEqual(self.query.get_paths_by_tag('properties', ''), self.query.list_paths())

    def test_unknown_tag_dimension_is_a_configuration_error(self) -> None:
        with self.assertRaises(ConfigurationError):
            self.query.get_paths_by_tag('color', 'blue')
        with self.assertRaises(ConfigurationError):
            self.query.get_paths_by_tag('color', '')

    def test_tag_buckets_only_reference_indexed_paths(self) -> None:
        indexes = self.store.current().indexes
        for names in indexes.paths_by_tag.values():
            for name in names:
                self.assertIn(name, indexes.path_by_name)

    def test_get_asset_when_another_chain_has_no_chain_id(self) -> None:
        source = atom_osmo_source()
        source.directories[''].append(dir_entry('noid'))
        source.files['noid/chain.json'] = encode({'chain_name': 'noid'})
        source.files['osmo/assetlist.json'] = encode({'chain_name': 'osmo', 'assets': [{'display': 'osmo', 'symbol': 'OSMO'}]})
        store = RegistryStore()
        RegistrySynchronizer(source, store).run_pass()

        self.assertEqual(RegistryQueryService(store).get_asset('osmo').symbol, 'OSMO')

    def test_empty_store(self) -> None:
        query = RegistryQueryService(RegistryStore())

        self.assertEqual(query.list_chain_names(), [])
        self.assertEqual(query.list_paths(), [])
        self.assertEqual(query.get_paths_by_tag('dex', ''), [])
        with self.assertRaises(QueryNotFound):
            query.get_chain('osmo')
