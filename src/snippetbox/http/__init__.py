"""HTTP primitives: Request, Response, headers, cookies, forms."""

from snippetbox.http.forms import FormData
from snippetbox.http.headers import Headers
from snippetbox.http.request import Request, RequestState
from snippetbox.http.response import Redirect, Response

__all__ = ["FormData", "Headers", "Redirect", "Request", "RequestState", "Response"]
