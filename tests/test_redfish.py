import unittest

from bmcfish.redfish.defaultfish import DefaultFish
from bmcfish.redfish.dellfish import DellFish
from bmcfish.redfish.errors import (
    CapabilityError,
    ConfigurationError,
    DriverNotImplementedError,
    TransportError,
    UnsupportedVendorError,
    ValidationError,
)
from bmcfish.redfish.huaweifish import HuaweiFish
from bmcfish.redfish.redfish import Redfish, detect, detect_driver
from tests.fakebmc import (
    CHASSIS,
    MANAGER,
    SESSIONS,
    SYSTEM,
    Reply,
    collection,
    service_root,
    standard_bmc,
    system_document,
)

RESET = f'{SYSTEM}/Actions/ComputerSystem.Reset'


class DetectDriverTests(unittest.TestCase):
    def test_dell(self):
        self.assertIs(detect_driver(service_root({'Dell': {'ServiceTag': 'ABC1234'}})), DellFish)

    def test_huawei(self):
        self.assertIs(detect_driver(service_root({'Huawei': {}})), HuaweiFish)

    def test_dell_wins_over_huawei(self):
        self.assertIs(detect_driver(service_root({'Huawei': {}, 'Dell': {}})), DellFish)

    def test_unknown_vendor_falls_back_with_warning(self):
        with self.assertLogs('bmcfish.redfish.redfish', level='WARNING') as logs:
            self.assertIs(detect_driver(service_root({'Lenovo': {}})), DefaultFish)
        self.assertIn('Lenovo', logs.output[0])

    def test_missing_oem(self):
        with self.assertRaises(UnsupportedVendorError):
            detect_driver(service_root())


class RedfishTestCase(unittest.TestCase):
    oem = {'Contoso': {}}

    def setUp(self):
        self.bmc = standard_bmc(oem=self.oem)
        patcher = self.bmc.patch()
        patcher.start()
        self.addCleanup(patcher.stop)

    def client(self, **kwargs):
        return Redfish('10.0.0.1', 'admin', 'secret', **kwargs)


class ClientTests(RedfishTestCase):
    oem = {'Huawei': {}}

    def test_detect_builds_client_from_service_root(self):
        rf = detect('10.0.0.1', 'admin', 'secret')
        self.assertEqual(rf.vendor, 'huawei')
        self.assertIsInstance(rf.driver, HuaweiFish)
        # Detection does not log in
        self.assertEqual(self.bmc.requests_to('POST', SESSIONS), [])

    def test_vendor_override_skips_detection(self):
        rf = self.client(vendor='Dell')
        self.assertIsInstance(rf.driver, DellFish)
        self.assertEqual(self.bmc.requests_to('GET', '/redfish/v1'), [])

    def test_unknown_vendor_override(self):
        with self.assertRaises(ValidationError):
            self.client(vendor='acme')

    def test_context_manager_releases_session(self):
        with self.client() as rf:
            rf.get_system_ids()
        self.assertEqual(len(self.bmc.requests_to('DELETE', f'{SESSIONS}/sess1')), 1)
        self.assertIsNone(rf.api.token)

    def test_context_manager_without_session_does_nothing(self):
        with self.client():
            pass
        self.assertEqual(self.bmc.requests_to('DELETE'), [])

    def test_release_failure_does_not_hide_body_error(self):
        self.bmc.add('DELETE', f'{SESSIONS}/sess1', Reply(status=500))

        with self.assertLogs('bmcfish.redfish.redfish', 'WARNING') as logs:
            with self.assertRaises(ConfigurationError):
                with self.client() as rf:
                    rf.get_system_ids()
                    raise ConfigurationError('boom')

        self.assertIn('Could not release session', logs.output[0])
        self.assertIsNone(rf.api.token)

    def test_release_failure_raised_after_clean_body(self):
        self.bmc.add('DELETE', f'{SESSIONS}/sess1', Reply(status=500))

        with self.assertRaises(TransportError) as ctx:
            with self.client() as rf:
                rf.get_system_ids()

        self.assertEqual(ctx.exception.status_code, 500)

    def test_system_ids(self):
        self.bmc.add('GET', '/redfish/v1/Systems', collection(SYSTEM, '/redfish/v1/Systems/2/'))
        rf = self.client()
        self.assertEqual(rf.get_system_ids(), ['1', '2'])
        self.assertEqual(rf.get_default_system_id(), '1')

    def test_no_systems(self):
        self.bmc.add('GET', '/redfish/v1/Systems', collection())
        with self.assertRaises(ConfigurationError):
            self.client().get_system_ids()

    def test_system_info_is_cached_with_etag(self):
        rf = self.client()
        first = rf.get_system_info()
        second = rf.get_system_info('1')

        self.assertIs(first, second)
        self.assertEqual(first['ETag'], 'W/"1"')
        self.assertEqual(len(self.bmc.requests_to('GET', SYSTEM)), 1)

    def test_refresh_refetches(self):
        rf = self.client()
        first = rf.get_system_info()
        fresh = rf.get_system_info(refresh=True)

        self.assertIsNot(first, fresh)
        self.assertEqual(len(self.bmc.requests_to('GET', SYSTEM)), 2)

    def test_manager_and_chassis_follow_system_links(self):
        rf = self.client()
        self.assertEqual(rf.get_manager_info()['@odata.id'], MANAGER)
        self.assertEqual(rf.get_chassis_info()['@odata.id'], CHASSIS)

    def test_missing_manager_link(self):
        self.bmc.add('GET', SYSTEM, system_document(Links={}))
        with self.assertRaises(ConfigurationError):
            self.client().get_manager_info()

    def test_kvm_not_implemented_for_huawei(self):
        with self.assertRaises(DriverNotImplementedError) as ctx:
            self.client().get_kvm_url()
        self.assertIsInstance(ctx.exception, NotImplementedError)
        self.assertEqual(ctx.exception.vendor, 'huawei')


class PowerTests(RedfishTestCase):
    def test_named_operations_post_reset_type(self):
        rf = self.client()
        rf.power_on()
        rf.shutdown()
        rf.force_off()
        rf.force_restart()

        posted = [c.json for c in self.bmc.requests_to('POST', RESET)]
        self.assertEqual(posted, [{'ResetType': 'On'}, {'ResetType': 'GracefulShutdown'},
                                  {'ResetType': 'ForceOff'}, {'ResetType': 'ForceRestart'}])

    def test_reset_type_not_allowed(self):
        with self.assertRaises(ValidationError):
            self.client().set_power_state('Nmi')
        self.assertEqual(self.bmc.requests_to('POST', RESET), [])

    def test_reset_type_unchecked_without_allow_list(self):
        system = system_document()
        system['Actions']['#ComputerSystem.Reset'] = {'target': RESET}
        self.bmc.add('GET', SYSTEM, system)
        self.assertTrue(self.client().set_power_state('Nmi'))
        self.assertEqual(self.bmc.requests_to('POST', RESET)[0].json, {'ResetType': 'Nmi'})

    def test_no_reset_action(self):
        self.bmc.add('GET', SYSTEM, system_document(Actions={}))
        with self.assertRaises(CapabilityError):
            self.client().power_on()

    def test_power_state(self):
        self.bmc.add('GET', SYSTEM, system_document(power_state='Off'))
        self.assertEqual(self.client().get_power_state(), 'Off')

    def test_supported_reset_types(self):
        supported = self.client().get_supported_reset_types()
        self.assertEqual(supported['target'], RESET)
        self.assertIn('ForceRestart', supported['types'])


class BootDeviceTests(RedfishTestCase):
    def test_disallowed_target_writes_nothing(self):
        self.bmc.add('GET', SYSTEM, Reply(system_document(allowed_targets=['Pxe', 'Hdd']),
                                          headers={'ETag': 'W/"1"'}))
        with self.assertRaises(ValidationError):
            self.client().set_next_boot_device(target='Cd')
        self.assertEqual(self.bmc.requests_to('PATCH'), [])

    def test_single_patch_with_if_match(self):
        self.assertTrue(self.client().set_next_boot_device(target='Cd'))

        patches = self.bmc.requests_to('PATCH')
        self.assertEqual(len(patches), 1)
        self.assertEqual(patches[0].path, SYSTEM)
        self.assertEqual(patches[0].headers['If-Match'], 'W/"1"')
        self.assertEqual(patches[0].json, {'Boot': {
            'BootSourceOverrideEnabled': 'Once',
            'BootSourceOverrideTarget': 'Cd',
            'BootSourceOverrideMode': 'UEFI',
        }})

    def test_continuous_legacy(self):
        self.client().set_next_boot_device(target='Pxe', once=False, mode='Legacy')
        boot = self.bmc.requests_to('PATCH')[0].json['Boot']
        self.assertEqual(boot['BootSourceOverrideEnabled'], 'Continuous')
        self.assertEqual(boot['BootSourceOverrideMode'], 'Legacy')

    def test_etag_from_body(self):
        self.bmc.add('GET', SYSTEM, system_document(**{'@odata.etag': 'W/"body"'}))
        self.client().set_next_boot_device(target='Pxe')
        self.assertEqual(self.bmc.requests_to('PATCH')[0].headers['If-Match'], 'W/"body"')

    def test_no_etag_no_if_match(self):
        self.bmc.add('GET', SYSTEM, system_document())
        self.client().set_next_boot_device(target='Hdd')
        self.assertNotIn('If-Match', self.bmc.requests_to('PATCH')[0].headers)

    def test_no_override_support(self):
        self.bmc.add('GET', SYSTEM, system_document(Boot={}))
        with self.assertRaises(CapabilityError):
            self.client().set_next_boot_device()


if __name__ == '__main__':
    unittest.main()
