from typing import Any, Optional


def normalize_extension(token: Any) -> str:
    """Lowercases an extension token and strips surrounding space and all dots."""
    if not isinstance(token, str):
        return ''
    return token.strip().lower().replace('.', '')


def file_extension(filename: str) -> Optional[str]:
    """Returns the normalized text after the last '.', or None if there is none."""
    if '.' not in filename:
        return None
    extension = normalize_extension(filename.rsplit('.', 1)[1])
    return extension or None


def format_file_size(size: int) -> str:
    """Formats a byte count for display ('0 Bytes', '1.5 KB', ...)."""
    if size <= 0:
        return '0 Bytes'

    units = ['Bytes', 'KB', 'MB', 'GB', 'TB']
    i = 0
    while size >= 1024 ** (i + 1) and i < len(units) - 1:
        i += 1
    value = round(size / (1024 ** i), 2)
    return f"{value:g} {units[i]}"
