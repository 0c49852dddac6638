"""CLI utilities for bmcfish."""

import logging
import os
import sys

from bmcfish.redfish.errors import (
    AuthError,
    ConfigurationError,
    CapabilityError,
    DriverNotImplementedError,
    NoCompatibleDeviceError,
    TaskTimeoutError,
    TransportError,
    UnsupportedVendorError,
    ValidationError,
)


# Exit codes
EXIT_SUCCESS = 0
EXIT_GENERAL_ERROR = 1
EXIT_CONNECTION_ERROR = 2
EXIT_NOT_IMPLEMENTED = 3
EXIT_INVALID_ARGUMENTS = 4
EXIT_AUTH_ERROR = 5
EXIT_TIMEOUT = 6


# ANSI color codes
class Colors:
    """ANSI color codes for terminal output."""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    RED = '\033[91m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    GRAY = '\033[90m'
    CYAN = '\033[96m'


def is_tty():
    """Check if stdout is a TTY (supports colors)."""
    return sys.stdout.isatty()


def should_use_color(args):
    """Determine if color output should be used.

    Args:
        args: Parsed arguments with no_color attribute

    Returns:
        True if colors should be used, False otherwise
    """
    if os.environ.get('NO_COLOR'):
        return False

    if hasattr(args, 'no_color') and args.no_color:
        return False

    return is_tty()


def colorize(text, color, args=None):
    """Colorize text if color output is enabled."""
    if args and not should_use_color(args):
        return text

    if not is_tty():
        return text

    return f"{color}{text}{Colors.RESET}"


def print_error(message, args=None):
    colored_msg = colorize(f"Error: {message}", Colors.RED, args)
    print(colored_msg, file=sys.stderr)


def print_warning(message, args=None):
    colored_msg = colorize(f"Warning: {message}", Colors.YELLOW, args)
    print(colored_msg, file=sys.stderr)


def print_verbose(message, args):
    """Print verbose message if verbose mode is enabled.

    Args:
        message: Message to print
        args: Parsed arguments with verbose attribute
    """
    if hasattr(args, 'verbose') and args.verbose:
        colored_msg = colorize(f"[VERBOSE] {message}", Colors.GRAY, args)
        print(colored_msg, file=sys.stderr)


def print_debug(message, args):
    if hasattr(args, 'debug') and args.debug:
        colored_msg = colorize(f"[DEBUG] {message}", Colors.CYAN, args)
        print(colored_msg, file=sys.stderr)


def configure_logging(args):
    """Route library logging to stderr at a level chosen by -v / -d."""
    if getattr(args, 'debug', False):
        level = logging.DEBUG
    elif getattr(args, 'verbose', False):
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format='%(asctime)s %(levelname)s %(name)s: %(message)s')


def get_exit_code(exception):
    """Map exception type to exit code.

    Args:
        exception: Exception instance

    Returns:
        Exit code integer
    """
    if isinstance(exception, (TransportError, ConnectionError)):
        return EXIT_CONNECTION_ERROR
    elif isinstance(exception, (DriverNotImplementedError, CapabilityError, UnsupportedVendorError)):
        return EXIT_NOT_IMPLEMENTED
    elif isinstance(exception, AuthError):
        return EXIT_AUTH_ERROR
    elif isinstance(exception, TaskTimeoutError):
        return EXIT_TIMEOUT
    elif isinstance(exception, (ValidationError, NoCompatibleDeviceError, ConfigurationError, ValueError)):
        return EXIT_INVALID_ARGUMENTS
    else:
        return EXIT_GENERAL_ERROR


def handle_error(exception, args):
    """Handle and display error to user.

    Args:
        exception: Exception that occurred
        args: Parsed arguments
    """
    print_error(str(exception), args)

    if hasattr(args, 'verbose') and args.verbose:
        print_verbose(f"Exception type: {type(exception).__name__}", args)

    if hasattr(args, 'debug') and args.debug:
        import traceback
        print_debug("Stack trace:", args)
        traceback.print_exc(file=sys.stderr)


def apply_env_vars(args):
    """Apply environment variables to arguments if not already set.

    Args:
        args: Parsed arguments namespace

    Returns:
        Modified args namespace
    """
    if not args.ip and os.environ.get('BMC_HOST'):
        args.ip = os.environ.get('BMC_HOST')

    if not args.username and os.environ.get('BMC_USERNAME'):
        args.username = os.environ.get('BMC_USERNAME')

    if not args.password and os.environ.get('BMC_PASSWORD'):
        args.password = os.environ.get('BMC_PASSWORD')

    if hasattr(args, 'vendor') and not args.vendor and os.environ.get('BMC_VENDOR'):
        args.vendor = os.environ.get('BMC_VENDOR').lower()

    if hasattr(args, 'system_id') and not args.system_id and os.environ.get('BMC_SYSTEM_ID'):
        args.system_id = os.environ.get('BMC_SYSTEM_ID')

    if hasattr(args, 'verify_ssl') and not args.verify_ssl and os.environ.get('BMC_VERIFY_SSL'):
        args.verify_ssl = os.environ.get('BMC_VERIFY_SSL').lower() in ('1', 'true', 'yes')

    return args


def validate_connection_args(args, required_fields=None):
    """Validate that required connection arguments are present.

    Raises:
        ValueError: If required fields are missing
    """
    if required_fields is None:
        required_fields = ['ip', 'username', 'password']

    missing = []
    for field in required_fields:
        if not hasattr(args, field) or not getattr(args, field):
            missing.append(field)

    if missing:
        missing_str = ', '.join(f'--{f}' for f in missing)
        raise ValueError(f"Missing required arguments: {missing_str}. "
                        f"Provide via command line or environment variables "
                        f"(BMC_HOST, BMC_USERNAME, BMC_PASSWORD)")


def establish_redfish_connection(args):
    """Create a Redfish client for the BMC named by the arguments.

    The client is a context manager; leaving it releases the Redfish session.

    Args:
        args: Parsed arguments with connection parameters

    Returns:
        Redfish instance
    """
    from bmcfish.redfish.redfish import Redfish

    validate_connection_args(args)

    print_verbose(f"Connecting to {args.ip}...", args)

    rf = Redfish(
        ip=args.ip,
        username=args.username,
        password=args.password,
        verify_ssl=getattr(args, 'verify_ssl', False),
        vendor=getattr(args, 'vendor', None),
        clear_job_queue=getattr(args, 'clear_jobs', False),
    )

    print_verbose(f"SSL verification {'enabled' if rf.api.verify_ssl else 'disabled'}", args)
    print_verbose(f"Vendor driver: {rf.vendor}", args)

    return rf
