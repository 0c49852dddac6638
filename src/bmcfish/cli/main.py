"""bmcfish CLI main entry point."""

import argparse
import sys
from bmcfish.cli import __version__
from bmcfish.cli.utils import (
    apply_env_vars,
    configure_logging,
    EXIT_INVALID_ARGUMENTS,
)


def create_parser():
    """Create the main argument parser with all subcommands.

    Returns:
        ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog='bmcfish',
        description='Vendor-neutral Redfish client for BMC inventory, power control and virtual media boot',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
  BMC_HOST          BMC IP address or hostname
  BMC_USERNAME      BMC username
  BMC_PASSWORD      BMC password
  BMC_VENDOR        Force vendor driver (dell, huawei, default)
  BMC_SYSTEM_ID     System to operate on (default: first system)
  BMC_VERIFY_SSL    Verify the BMC certificate (1, true, yes)
  NO_COLOR          Disable colored output

Examples:
  # List CPUs using command-line args
  bmcfish inventory cpu -i 10.10.10.10 -u admin -p password

  # Same, using environment variables and table output
  export BMC_HOST=10.10.10.10
  export BMC_USERNAME=admin
  export BMC_PASSWORD=password
  bmcfish -o table inventory cpu

  # Boot the system from an ISO served over HTTP
  bmcfish media boot --image http://10.0.0.5/images/installer.iso

  # Boot from PXE on the next boot only
  bmcfish boot next --target Pxe
"""
    )

    # Global options
    parser.add_argument('--version', action='version', version=f'bmcfish {__version__}')

    parser.add_argument('-i', '--ip', '--host', dest='ip',
                       help='BMC IP address or hostname (env: BMC_HOST)')
    parser.add_argument('-u', '--username',
                       help='BMC username (env: BMC_USERNAME)')
    parser.add_argument('-p', '--password',
                       help='BMC password (env: BMC_PASSWORD)')
    parser.add_argument('--verify-ssl', action='store_true',
                       help='Verify the BMC TLS certificate (env: BMC_VERIFY_SSL)')
    parser.add_argument('-m', '--vendor',
                       choices=['dell', 'huawei', 'default'],
                       help='Force vendor driver instead of detecting it (env: BMC_VENDOR)')
    parser.add_argument('-s', '--system-id',
                       help='System ID to operate on (env: BMC_SYSTEM_ID)')

    parser.add_argument('-v', '--verbose', action='store_true',
                       help='Enable verbose output')
    parser.add_argument('-d', '--debug', action='store_true',
                       help='Enable debug mode (request logging and stack traces)')

    parser.add_argument('-o', '--output',
                       choices=['json', 'json-pretty', 'table', 'text'],
                       default='json',
                       help='Output format (default: json)')
    parser.add_argument('--no-color', action='store_true',
                       help='Disable colored output')

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    from bmcfish.cli.commands import redfish as redfish_cmd
    redfish_cmd.setup_commands(subparsers)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Apply environment variables
    args = apply_env_vars(args)

    # Check if a command was provided
    if not args.command:
        parser.print_help()
        return EXIT_INVALID_ARGUMENTS

    configure_logging(args)

    from bmcfish.cli.commands import redfish as redfish_cmd
    return redfish_cmd.dispatch(args)


if __name__ == '__main__':
    sys.exit(main())
