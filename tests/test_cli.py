import io
import json
import os
import unittest
from unittest import mock

from bmcfish.cli.formatters import format_output
from bmcfish.cli.formatters.table import format_table
from bmcfish.cli.formatters.text import format_text
from bmcfish.cli.main import create_parser, main
from bmcfish.cli.utils import (
    EXIT_AUTH_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_INVALID_ARGUMENTS,
    EXIT_NOT_IMPLEMENTED,
    EXIT_TIMEOUT,
    apply_env_vars,
    get_exit_code,
)
from bmcfish.redfish.errors import (
    AuthError,
    CapabilityError,
    DriverNotImplementedError,
    NoCompatibleDeviceError,
    TaskTimeoutError,
    TransportError,
    ValidationError,
)
from tests.fakebmc import SESSIONS, SYSTEM, Reply, standard_bmc, system_document

CONNECTION = ['-i', '10.0.0.1', '-u', 'admin', '-p', 'secret']


class ParserTests(unittest.TestCase):
    def setUp(self):
        self.parser = create_parser()

    def test_global_options(self):
        args = self.parser.parse_args(['-i', 'bmc1', '-m', 'huawei', '-s', 'System.Embedded.1',
                                       '--verify-ssl', '-o', 'table', 'power', 'status'])
        self.assertEqual(args.ip, 'bmc1')
        self.assertEqual(args.vendor, 'huawei')
        self.assertEqual(args.system_id, 'System.Embedded.1')
        self.assertTrue(args.verify_ssl)
        self.assertEqual(args.output, 'table')
        self.assertEqual(args.command, 'power')
        self.assertEqual(args.power_action, 'status')

    def test_boot_next_defaults(self):
        args = self.parser.parse_args(['boot', 'next'])
        self.assertEqual(args.target, 'Cd')
        self.assertFalse(args.continuous)
        self.assertEqual(args.mode, 'UEFI')

    def test_media_boot_requires_image(self):
        with mock.patch('sys.stderr', new_callable=io.StringIO):
            with self.assertRaises(SystemExit):
                self.parser.parse_args(['media', 'boot'])

    def test_unknown_vendor_rejected(self):
        with mock.patch('sys.stderr', new_callable=io.StringIO):
            with self.assertRaises(SystemExit):
                self.parser.parse_args(['-m', 'acme', 'check'])


class EnvironmentTests(unittest.TestCase):
    def test_env_fills_missing_arguments(self):
        args = create_parser().parse_args(['check'])
        env = {
            'BMC_HOST': '10.1.1.1',
            'BMC_USERNAME': 'root',
            'BMC_PASSWORD': 'calvin',
            'BMC_VENDOR': 'Dell',
            'BMC_SYSTEM_ID': 'System.Embedded.1',
            'BMC_VERIFY_SSL': 'true',
        }
        with mock.patch.dict(os.environ, env, clear=True):
            args = apply_env_vars(args)

        self.assertEqual(args.ip, '10.1.1.1')
        self.assertEqual(args.username, 'root')
        self.assertEqual(args.password, 'calvin')
        self.assertEqual(args.vendor, 'dell')
        self.assertEqual(args.system_id, 'System.Embedded.1')
        self.assertTrue(args.verify_ssl)

    def test_arguments_win_over_env(self):
        args = create_parser().parse_args(['-i', '10.2.2.2', 'check'])
        with mock.patch.dict(os.environ, {'BMC_HOST': '10.1.1.1'}, clear=True):
            args = apply_env_vars(args)
        self.assertEqual(args.ip, '10.2.2.2')


class ExitCodeTests(unittest.TestCase):
    def test_mapping(self):
        self.assertEqual(get_exit_code(TransportError('down')), EXIT_CONNECTION_ERROR)
        self.assertEqual(get_exit_code(AuthError('denied')), EXIT_AUTH_ERROR)
        self.assertEqual(get_exit_code(CapabilityError('no action')), EXIT_NOT_IMPLEMENTED)
        self.assertEqual(get_exit_code(DriverNotImplementedError('KVM console access', 'huawei')),
                         EXIT_NOT_IMPLEMENTED)
        self.assertEqual(get_exit_code(TaskTimeoutError('slow')), EXIT_TIMEOUT)
        self.assertEqual(get_exit_code(ValidationError('bad')), EXIT_INVALID_ARGUMENTS)
        self.assertEqual(get_exit_code(NoCompatibleDeviceError('none')), EXIT_INVALID_ARGUMENTS)
        self.assertEqual(get_exit_code(RuntimeError('other')), 1)


class FormatterTests(unittest.TestCase):
    def test_table_uses_every_key(self):
        table = format_table([{'id': '1', 'model': 'A'}, {'id': '2', 'speed': 10}])
        lines = table.split('\n')
        self.assertEqual(lines[0].split(' | ')[0].strip(), 'id')
        self.assertIn('speed', lines[0])
        self.assertEqual(len(lines), 4)
        self.assertIn('-', lines[2])

    def test_table_sections_for_grouped_lists(self):
        table = format_table({'cpu': [{'id': '1'}], 'memory': [{'id': 'DIMM0'}]})
        self.assertIn('[cpu]', table)
        self.assertIn('[memory]', table)
        self.assertIn('DIMM0', table)

    def test_table_key_value(self):
        table = format_table({'power_state': 'On', 'reset_types': ['On', 'ForceOff']})
        self.assertIn('On, ForceOff', table)

    def test_table_empty(self):
        self.assertEqual(format_table([]), 'No data')

    def test_text_nesting(self):
        text = format_text({'id': 'NIC.Slot.1', 'ports': [{'mac_address': 'aa', 'link_status': 'Up'}]})
        self.assertEqual(text.split('\n'), [
            'id: NIC.Slot.1',
            'ports:',
            '  - mac_address: aa',
            '    link_status: Up',
        ])

    def test_json_output(self):
        self.assertEqual(json.loads(format_output({'a': 1}, 'json')), {'a': 1})
        self.assertIn('\n', format_output({'a': 1}, 'json-pretty'))
        self.assertEqual(json.loads(format_output({'a': 1}, 'unknown')), {'a': 1})


class MainTests(unittest.TestCase):
    def setUp(self):
        self.bmc = standard_bmc()
        patcher = self.bmc.patch()
        patcher.start()
        self.addCleanup(patcher.stop)
        env = mock.patch.dict(os.environ, {}, clear=True)
        env.start()
        self.addCleanup(env.stop)

    def run_main(self, *argv):
        with mock.patch('sys.stdout', new_callable=io.StringIO) as stdout, \
                mock.patch('sys.stderr', new_callable=io.StringIO) as stderr:
            code = main(list(argv))
        return code, stdout.getvalue(), stderr.getvalue()

    def test_system_ids_releases_session(self):
        code, out, _ = self.run_main(*CONNECTION, 'system', 'ids')

        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out), {'system_ids': ['1'], 'count': 1})
        self.assertEqual(len(self.bmc.requests_to('DELETE', f'{SESSIONS}/sess1')), 1)

    def test_failed_command_still_releases_session(self):
        self.bmc.add('GET', SYSTEM, Reply(system_document(allowed_targets=['Pxe']), headers={'ETag': 'W/"1"'}))

        code, out, err = self.run_main(*CONNECTION, 'boot', 'next', '--target', 'Cd')

        self.assertEqual(code, EXIT_INVALID_ARGUMENTS)
        self.assertEqual(out, '')
        self.assertIn("Boot target 'Cd' not allowed", err)
        self.assertEqual(self.bmc.requests_to('PATCH'), [])
        self.assertEqual(len(self.bmc.requests_to('DELETE', f'{SESSIONS}/sess1')), 1)

    def test_release_failure_keeps_command_error(self):
        self.bmc.add('GET', SYSTEM, Reply(system_document(allowed_targets=['Pxe']), headers={'ETag': 'W/"1"'}))
        self.bmc.add('DELETE', f'{SESSIONS}/sess1', Reply(status=500))

        code, out, err = self.run_main(*CONNECTION, 'boot', 'next', '--target', 'Cd')

        self.assertEqual(code, EXIT_INVALID_ARGUMENTS)
        self.assertEqual(out, '')
        self.assertIn('not allowed', err)
        self.assertEqual(len(self.bmc.requests_to('DELETE', f'{SESSIONS}/sess1')), 1)

    def test_power_force_off(self):
        code, out, _ = self.run_main(*CONNECTION, 'power', 'force-off', '--yes')

        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out)['reset_type'], 'ForceOff')
        reset = self.bmc.requests_to('POST', f'{SYSTEM}/Actions/ComputerSystem.Reset')
        self.assertEqual(reset[0].json, {'ResetType': 'ForceOff'})

    def test_declined_confirmation_sends_nothing(self):
        with mock.patch('builtins.input', return_value='n'):
            code, out, _ = self.run_main(*CONNECTION, 'power', 'shutdown')

        self.assertEqual(code, 0)
        self.assertEqual(out, '')
        self.assertEqual(self.bmc.requests_to('POST', f'{SYSTEM}/Actions/ComputerSystem.Reset'), [])

    def test_dell_command_on_other_vendor(self):
        code, _, err = self.run_main(*CONNECTION, 'dell', 'clear-jobs', '--yes')
        self.assertEqual(code, EXIT_NOT_IMPLEMENTED)
        self.assertIn('not supported', err)

    def test_missing_credentials(self):
        code, _, err = self.run_main('-i', '10.0.0.1', 'system', 'ids')
        self.assertEqual(code, EXIT_INVALID_ARGUMENTS)
        self.assertIn('--username', err)
        self.assertEqual(self.bmc.calls, [])

    def test_check_reports_unreachable(self):
        self.bmc.add('POST', SESSIONS, Reply(status=401))
        code, out, _ = self.run_main(*CONNECTION, 'check')
        self.assertEqual(code, 0)
        self.assertFalse(json.loads(out)['reachable'])

    def test_check_reports_unreadable_service_root(self):
        self.bmc.add('GET', '/redfish/v1', Reply(status=503))
        code, out, err = self.run_main(*CONNECTION, 'check')

        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out), {'host': '10.0.0.1', 'vendor': None, 'reachable': False})
        self.assertEqual(err, '')
        self.assertEqual(self.bmc.requests_to('POST', SESSIONS), [])

    def test_check_still_rejects_missing_credentials(self):
        code, _, err = self.run_main('-i', '10.0.0.1', 'check')
        self.assertEqual(code, EXIT_INVALID_ARGUMENTS)
        self.assertIn('--username', err)

    def test_no_command(self):
        code, out, _ = self.run_main()
        self.assertEqual(code, EXIT_INVALID_ARGUMENTS)
        self.assertIn('usage', out)


if __name__ == '__main__':
    unittest.main()
