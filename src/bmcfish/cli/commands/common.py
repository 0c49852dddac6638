"""Common command utilities shared across all commands."""

from bmcfish.cli.formatters import format_output
from bmcfish.cli.utils import (
    handle_error,
    get_exit_code,
    establish_redfish_connection,
    print_warning,
)


def wrap_command(func, args, rf=None):
    """Run a command handler against a Redfish client.

    The handler receives (rf, args); the client's session is released
    afterwards whether or not the handler succeeded.

    Args:
        func: Command function to execute
        args: Parsed arguments
        rf: Already connected client, a fresh one is created when omitted

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    try:
        if rf is None:
            rf = establish_redfish_connection(args)
        with rf:
            result = func(rf, args)
        if result is not None:
            output = format_output(result, args.output)
            print(output)
        return 0
    except Exception as e:
        handle_error(e, args)
        return get_exit_code(e)


def confirm_action(prompt, force=False):
    """Prompt user for confirmation on destructive operations.

    Args:
        prompt: Confirmation prompt message
        force: If True, skip confirmation and return True

    Returns:
        True if confirmed, False otherwise
    """
    if force:
        return True

    try:
        response = input(f"{prompt} [y/N]: ").strip().lower()
        return response in ('y', 'yes')
    except (KeyboardInterrupt, EOFError):
        print()  # New line after interrupt
        return False


def dispatch_action(handlers, action, group, args):
    """Look up and run the handler for a subcommand action."""
    if action in handlers:
        return wrap_command(handlers[action], args)
    print_warning(f"Unknown {group} action: {action}", args)
    return 1
