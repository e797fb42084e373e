"""Small helpers shared by the adapters."""


def sanitize_path(source: str) -> str:
    """Turn a slash-separated path into a single path component."""
    return source.replace("/", "-")