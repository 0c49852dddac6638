"""Text output formatter."""


def format_text(data, indent=0):
    """Format data as indented plain text.

    Nested dicts and lists are written below their key, one level deeper.

    Args:
        data: Data to format
        indent: Current nesting level

    Returns:
        Text string
    """
    pad = '  ' * indent
    if isinstance(data, dict):
        lines = []
        for key, value in data.items():
            if isinstance(value, (dict, list)) and value:
                lines.append(f"{pad}{key}:")
                lines.append(format_text(value, indent + 1))
            else:
                lines.append(f"{pad}{key}: {value}")
        return '\n'.join(lines)
    elif isinstance(data, list):
        lines = []
        for item in data:
            if isinstance(item, dict):
                # Each mapping in a list is its own block, introduced by a dash
                block = format_text(item, indent + 1).split('\n')
                block[0] = f"{pad}- {block[0].lstrip()}"
                lines.extend(block)
            else:
                lines.append(f"{pad}- {item}")
        return '\n'.join(lines)
    else:
        return f"{pad}{data}"
