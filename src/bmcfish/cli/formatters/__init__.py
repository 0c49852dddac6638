"""Output formatters for CLI."""

from .json import format_json
from .table import format_table
from .text import format_text


FORMATTERS = {
    'json': lambda data: format_json(data, pretty=False),
    'json-pretty': lambda data: format_json(data, pretty=True),
    'table': format_table,
    'text': format_text,
}


def format_output(data, format_type='json'):
    """Format command output according to the selected format type.

    Args:
        data: Handler result (dict, list of dicts, or scalar)
        format_type: Output format ('json', 'json-pretty', 'table', 'text');
            anything else falls back to compact JSON

    Returns:
        Formatted string
    """
    formatter = FORMATTERS.get(format_type, FORMATTERS['json'])
    return formatter(data)


__all__ = ['format_output', 'format_json', 'format_table', 'format_text']
