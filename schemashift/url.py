"""Helpers for inspecting driver URLs."""


class UrlError(ValueError):
    """Raised when a driver URL cannot be interpreted."""


def scheme_from_url(url: str) -> str:
    """Return the scheme of ``url``: everything before the first colon."""
    if not url:
        raise UrlError("URL cannot be empty")

    index = url.find(":")
    # No colon at all, or the colon is the first character.
    if index < 1:
        raise UrlError("no scheme")

    return url[:index]