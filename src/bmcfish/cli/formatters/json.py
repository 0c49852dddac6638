"""JSON output formatter."""

import json


def format_json(data, pretty=False):
    """Format data as JSON.

    Values JSON cannot encode (e.g. response header mappings) are written
    with str().

    Args:
        data: Data to format
        pretty: If True, indent and sort keys

    Returns:
        JSON string
    """
    if pretty:
        return json.dumps(data, indent=4, sort_keys=True, default=str)
    return json.dumps(data, default=str)
