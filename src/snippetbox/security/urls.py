"""Redirect target validation.

The login handler sends the user back to the page they were refused.
That path comes from the session, but it is still checked before use so
a redirect can never leave the site.
"""


def is_safe_url(url: str) -> bool:
    """``True`` if *url* is a same-origin absolute path.

    Examples::

        >>> is_safe_url("/snippet/create")
        True
        >>> is_safe_url("//evil.example")
        False
        >>> is_safe_url("https://evil.example")
        False
        >>> is_safe_url("")
        False
    """
    if not url or not isinstance(url, str):
        return False
    if not url.startswith("/") or url.startswith(("//", "/\\")):
        return False
    return "://" not in url
