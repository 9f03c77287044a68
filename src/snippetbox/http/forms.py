"""URL-encoded form parsing.

``FormData`` is an immutable ``Mapping[str, str]`` over the submitted
fields; a repeated field reads as its first value. Every form the application
renders posts ``application/x-www-form-urlencoded``.
"""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qs

from snippetbox.errors import UnsupportedMediaType


class FormData(Mapping[str, str]):
    """Immutable parsed form data.

    Usage::

        form = await request.form()
        title = form.get("title", "")
    """

    __slots__ = ("_data",)

    def __init__(self, data: dict[str, list[str]] | None = None) -> None:
        object.__setattr__(self, "_data", data or {})

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        # Never echo secrets into logs
        keys = ", ".join(repr(k) for k in self._data)
        return f"FormData(fields=[{keys}])"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        values = self._data.get(key)
        if values:
            return values[0]
        return default


def parse_form_data(body: bytes, content_type: str) -> FormData:
    """Parse a request body into ``FormData``.

    Raises:
        UnsupportedMediaType: *content_type* is not URL-encoded form data.
    """
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type != "application/x-www-form-urlencoded":
        msg = f"Unsupported form content type: {media_type!r}"
        raise UnsupportedMediaType(msg)
    parsed = parse_qs(body.decode("utf-8", errors="replace"), keep_blank_values=True)
    return FormData(parsed)
