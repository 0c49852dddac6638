"""Redfish command handlers."""

import sys
from bmcfish.cli.formatters import format_output
from bmcfish.cli.utils import (
    establish_redfish_connection,
    get_exit_code,
    handle_error,
    print_verbose,
    print_warning,
)
from bmcfish.cli.commands.common import (
    confirm_action,
    dispatch_action,
    wrap_command,
)
from bmcfish.redfish.constants import BootTarget
from bmcfish.redfish.errors import CapabilityError, RedfishProtocolError, TransportError


def setup_commands(subparsers):
    """Setup the command groups on the main parser.

    Args:
        subparsers: Subparsers object from main parser
    """
    system_parser = subparsers.add_parser('system', help='System discovery')
    setup_system_commands(system_parser)

    inventory_parser = subparsers.add_parser('inventory', help='Hardware inventory')
    setup_inventory_commands(inventory_parser)

    power_parser = subparsers.add_parser('power', help='Power control')
    setup_power_commands(power_parser)

    boot_parser = subparsers.add_parser('boot', help='Boot source override')
    setup_boot_commands(boot_parser)

    media_parser = subparsers.add_parser('media', help='Virtual media')
    setup_media_commands(media_parser)

    kvm_parser = subparsers.add_parser('kvm', help='Remote console')
    setup_kvm_commands(kvm_parser)

    dell_parser = subparsers.add_parser('dell', help='Dell-specific commands')
    setup_dell_commands(dell_parser)

    subparsers.add_parser('check', help='Check that the BMC accepts the credentials')


def setup_system_commands(parser):
    """Setup system discovery subcommands."""
    subparsers = parser.add_subparsers(dest='system_action', help='System action')

    subparsers.add_parser('ids', help='List system IDs')

    p = subparsers.add_parser('info', help='Get system information')
    p.add_argument('--refresh', action='store_true',
                  help='Re-read the system instead of using the cached document')


def setup_inventory_commands(parser):
    """Setup inventory subcommands."""
    subparsers = parser.add_subparsers(dest='inventory_action', help='Inventory kind')

    subparsers.add_parser('cpu', help='List processors')
    subparsers.add_parser('memory', help='List memory modules')
    subparsers.add_parser('pcie', help='List PCIe devices')
    subparsers.add_parser('network', help='List network adapters and their ports')
    subparsers.add_parser('all', help='Collect every inventory kind')


def setup_power_commands(parser):
    """Setup power control subcommands."""
    subparsers = parser.add_subparsers(dest='power_action', help='Power action')

    subparsers.add_parser('status', help='Get the current power state')
    subparsers.add_parser('reset-types', help='List supported reset types')

    for name, help_text in (('on', 'Power on the system'),
                            ('shutdown', 'Request a graceful shutdown'),
                            ('force-off', 'Cut power immediately'),
                            ('force-restart', 'Restart immediately')):
        p = subparsers.add_parser(name, help=help_text)
        if name != 'on':
            p.add_argument('-y', '--yes', action='store_true',
                          help='Do not ask for confirmation')


def setup_boot_commands(parser):
    """Setup boot override subcommands."""
    subparsers = parser.add_subparsers(dest='boot_action', help='Boot action')

    p = subparsers.add_parser('next', help='Set the next boot device')
    p.add_argument('-t', '--target', default=BootTarget.CD,
                  help='Boot source override target (e.g., Cd, Pxe, Hdd, Usb)')
    p.add_argument('--continuous', action='store_true',
                  help='Keep the override for every boot instead of the next one only')
    p.add_argument('--mode', default='UEFI', choices=['UEFI', 'Legacy'],
                  help='Boot source override mode (default: UEFI)')


def setup_media_commands(parser):
    """Setup virtual media subcommands."""
    subparsers = parser.add_subparsers(dest='media_action', help='Virtual media action')

    p = subparsers.add_parser('boot', help='Mount an image and boot the system from it')
    p.add_argument('--image', required=True,
                  help='URI of an .iso or .img image reachable by the BMC')
    p.add_argument('--clear-jobs', action='store_true',
                  help='Dell only: clear the iDRAC job queue before the configuration import')


def setup_kvm_commands(parser):
    """Setup remote console subcommands."""
    subparsers = parser.add_subparsers(dest='kvm_action', help='KVM action')

    subparsers.add_parser('url', help='Get a remote console URL')


def setup_dell_commands(parser):
    """Setup Dell-specific subcommands."""
    subparsers = parser.add_subparsers(dest='dell_action', help='Dell action')

    p = subparsers.add_parser('clear-jobs', help='Clear the iDRAC job queue')
    p.add_argument('--force', action='store_true',
                  help='Also delete running jobs (JID_CLEARALL_FORCE)')
    p.add_argument('-y', '--yes', action='store_true',
                  help='Do not ask for confirmation')


# System Handlers

def handle_system_ids(rf, args):
    """Handle 'system ids' command."""
    system_ids = rf.get_system_ids()
    return {
        'system_ids': system_ids,
        'count': len(system_ids)
    }


def handle_system_info(rf, args):
    """Handle 'system info' command."""
    system = rf.get_system_info(args.system_id, refresh=getattr(args, 'refresh', False))
    boot = system.get('Boot') or {}
    return {
        'id': system.get('Id'),
        'vendor': rf.vendor,
        'manufacturer': system.get('Manufacturer'),
        'model': system.get('Model'),
        'serial_number': system.get('SerialNumber'),
        'bios_version': system.get('BiosVersion'),
        'power_state': system.get('PowerState'),
        'boot_override': boot.get('BootSourceOverrideEnabled'),
        'boot_target': boot.get('BootSourceOverrideTarget'),
    }


# Inventory Handlers

def handle_inventory_cpu(rf, args):
    return rf.get_cpu_info(args.system_id)


def handle_inventory_memory(rf, args):
    return rf.get_memory_info(args.system_id)


def handle_inventory_pcie(rf, args):
    return rf.get_pcie_devices_info(args.system_id)


def handle_inventory_network(rf, args):
    """Handle 'inventory network' command.

    Table output gets one row per port, the other formats keep the adapters nested.
    """
    adapters = rf.get_network_interface_info(args.system_id)
    if args.output != 'table':
        return adapters
    rows = []
    for adapter in adapters:
        for port in adapter['ports']:
            rows.append({'adapter': adapter['id'], 'model': adapter['model'], **port})
    return rows


def handle_inventory_all(rf, args):
    """Handle 'inventory all' command."""
    print_verbose("Collecting cpu, memory, pcie and network inventory", args)
    return {
        'cpu': rf.get_cpu_info(args.system_id),
        'memory': rf.get_memory_info(args.system_id),
        'pcie': rf.get_pcie_devices_info(args.system_id),
        'network': rf.get_network_interface_info(args.system_id),
    }


# Power Handlers

def handle_power_status(rf, args):
    """Handle 'power status' command."""
    return {
        'system_id': args.system_id or rf.get_default_system_id(),
        'power_state': rf.get_power_state(args.system_id, refresh=True),
    }


def handle_power_reset_types(rf, args):
    """Handle 'power reset-types' command."""
    supported = rf.get_supported_reset_types(args.system_id)
    return {
        'reset_types': supported['types'],
        'count': len(supported['types'])
    }


def _power_action(rf, args, method, reset_type, destructive=True):
    if destructive and not confirm_action(f"Send {reset_type} to {args.ip}?", force=getattr(args, 'yes', False)):
        print_warning("Aborted", args)
        return None

    method(args.system_id)
    return {
        'message': f'{reset_type} request accepted',
        'reset_type': reset_type
    }


def handle_power_on(rf, args):
    return _power_action(rf, args, rf.power_on, 'On', destructive=False)


def handle_power_shutdown(rf, args):
    return _power_action(rf, args, rf.shutdown, 'GracefulShutdown')


def handle_power_force_off(rf, args):
    return _power_action(rf, args, rf.force_off, 'ForceOff')


def handle_power_force_restart(rf, args):
    return _power_action(rf, args, rf.force_restart, 'ForceRestart')


# Boot Handlers

def handle_boot_next(rf, args):
    """Handle 'boot next' command."""
    once = not args.continuous
    print_verbose(f"Setting next boot device to {args.target} ({'once' if once else 'continuous'}, {args.mode})", args)

    rf.set_next_boot_device(args.system_id, target=args.target, once=once, mode=args.mode)

    # Re-read to confirm what the BMC stored
    boot = rf.get_system_info(args.system_id, refresh=True).get('Boot') or {}
    return {
        'message': 'Boot source override updated successfully',
        'enabled': boot.get('BootSourceOverrideEnabled'),
        'target': boot.get('BootSourceOverrideTarget'),
        'mode': boot.get('BootSourceOverrideMode'),
    }


# Virtual Media Handlers

def handle_media_boot(rf, args):
    """Handle 'media boot' command."""
    print_verbose(f"Booting {args.image} through {rf.vendor} virtual media", args)
    result = rf.boot_virtual_media(args.image, args.system_id)
    media = result['media']
    return {
        'status': result['status'],
        'device': media.get('@odata.id'),
        'media_type': result['media_type'],
        'power_action': result['power_action'],
    }


# KVM Handlers

def handle_kvm_url(rf, args):
    """Handle 'kvm url' command."""
    return {
        'vendor': rf.vendor,
        'url': rf.get_kvm_url(args.system_id),
    }


# Dell Handlers

def handle_dell_clear_jobs(rf, args):
    """Handle 'dell clear-jobs' command."""
    if not hasattr(rf.driver, 'clear_job_queue'):
        raise CapabilityError(f"Job queue management not supported for vendor: {rf.vendor}",
                              operation='clear_job_queue')

    if not confirm_action(f"Delete all jobs on {args.ip}?", force=args.yes):
        print_warning("Aborted", args)
        return None

    rf.driver.clear_job_queue(args.system_id or rf.get_default_system_id(), force=args.force)
    return {
        'message': 'Job queue cleared',
        'force': args.force
    }


def handle_check(rf, args):
    """Handle 'check' command."""
    reachable = rf.is_available()
    return {
        'host': args.ip,
        'vendor': rf.vendor,
        'reachable': reachable
    }


def run_check(args):
    """Run the 'check' command.

    A BMC whose service root cannot be read is reported as unreachable
    instead of failing the command.
    """
    try:
        rf = establish_redfish_connection(args)
    except (TransportError, RedfishProtocolError) as e:
        print_verbose(f"Could not read the service root of {args.ip}: {e}", args)
        print(format_output({'host': args.ip, 'vendor': None, 'reachable': False}, args.output))
        return 0
    except Exception as e:
        handle_error(e, args)
        return get_exit_code(e)
    return wrap_command(handle_check, args, rf=rf)


HANDLERS = {
    'system': ('system_action', {
        'ids': handle_system_ids,
        'info': handle_system_info,
    }),
    'inventory': ('inventory_action', {
        'cpu': handle_inventory_cpu,
        'memory': handle_inventory_memory,
        'pcie': handle_inventory_pcie,
        'network': handle_inventory_network,
        'all': handle_inventory_all,
    }),
    'power': ('power_action', {
        'status': handle_power_status,
        'reset-types': handle_power_reset_types,
        'on': handle_power_on,
        'shutdown': handle_power_shutdown,
        'force-off': handle_power_force_off,
        'force-restart': handle_power_force_restart,
    }),
    'boot': ('boot_action', {
        'next': handle_boot_next,
    }),
    'media': ('media_action', {
        'boot': handle_media_boot,
    }),
    'kvm': ('kvm_action', {
        'url': handle_kvm_url,
    }),
    'dell': ('dell_action', {
        'clear-jobs': handle_dell_clear_jobs,
    }),
}


def dispatch(args):
    """Dispatch a command to its handler.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    group = args.command

    if group == 'check':
        return run_check(args)

    if group not in HANDLERS:
        print(f"Error: Unknown command: {group}", file=sys.stderr)
        return 1

    dest, handlers = HANDLERS[group]
    return dispatch_action(handlers, getattr(args, dest, None), group, args)
