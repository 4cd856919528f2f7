"""Helpers for keeping credentials out of log output."""


def mask_sensitive(value: str | None, keep_chars: int = 4) -> str:
    """Mask a secret, keeping only the last ``keep_chars`` characters.

    >>> mask_sensitive("abcdefghij")
    '******ghij'
    """
    if not value:
        return "Not Provided"
    if len(value) <= keep_chars * 2:
        return "*" * len(value)
    return "*" * (len(value) - keep_chars) + value[-keep_chars:]
