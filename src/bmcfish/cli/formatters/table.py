"""Table output formatter."""


def format_cell(value):
    """Render one value on a single line."""
    if value is None:
        return '-'
    if isinstance(value, list):
        return ', '.join(format_cell(v) for v in value)
    if isinstance(value, dict):
        return ' '.join(f"{k}={format_cell(v)}" for k, v in value.items())
    return str(value)


def collect_headers(rows):
    """Union of the keys of a list of dicts, in first-seen order."""
    headers = []
    for row in rows:
        for key in row:
            if key not in headers:
                headers.append(key)
    return headers


def render_rows(headers, rows):
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    line_format = " | ".join(f"{{:<{w}}}" for w in widths)
    lines = [
        line_format.format(*headers),
        "-+-".join("-" * w for w in widths),
    ]
    lines.extend(line_format.format(*row) for row in rows)
    return '\n'.join(lines)


def format_table(data, headers=None):
    """Format data as an ASCII table.

    A list of dicts becomes one row per item. A dict whose values are all
    lists of dicts (e.g. a full inventory) becomes one titled table per key.
    Any other dict becomes a Key/Value table.

    Args:
        data: List of dicts, or dict
        headers: Optional column list (default: every key seen in the rows)

    Returns:
        ASCII table string
    """
    if not data:
        return "No data"

    if isinstance(data, dict):
        if all(isinstance(v, list) and all(isinstance(i, dict) for i in v) for v in data.values()):
            sections = [f"[{name}]\n{format_table(rows)}" for name, rows in data.items()]
            return '\n\n'.join(sections)
        rows = [[str(k), format_cell(v)] for k, v in data.items()]
        return render_rows(headers or ['Key', 'Value'], rows)

    if isinstance(data, list) and all(isinstance(item, dict) for item in data):
        headers = headers or collect_headers(data)
        rows = [[format_cell(item.get(h)) for h in headers] for item in data]
        return render_rows(headers, rows)

    if isinstance(data, list):
        return '\n'.join(format_cell(item) for item in data)

    return format_cell(data)
