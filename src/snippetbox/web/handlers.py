"""Route handlers.

Every handler takes the request and returns something ``negotiate()``
understands: a ``Template`` (optionally with a status), a ``Redirect``
or a ``Response``. Facts established by the middleware chain are read
from ``request.state``; the session is ``request.session``.

Form posts follow post/redirect/get: a failed submission re-renders the
form with 422, a successful one stores a flash message and answers 303.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from snippetbox.errors import NotFound
from snippetbox.http.request import Request
from snippetbox.http.response import Redirect, Response
from snippetbox.middleware.auth import AUTH_SESSION_KEY, REDIRECT_SESSION_KEY
from snippetbox.models.errors import DuplicateEmailError, InvalidCredentialsError, NoRecordError
from snippetbox.models.snippets import Snippets
from snippetbox.models.users import Users
from snippetbox.security.urls import is_safe_url
from snippetbox.templating.returns import Template
from snippetbox.validation import ValidationResult, validate
from snippetbox.web.forms import (
    LOGIN_RULES,
    SIGNUP_RULES,
    SNIPPET_CREATE_RULES,
    LoginForm,
    SignupForm,
    SnippetCreateForm,
    password_update_rules,
)

logger = logging.getLogger("snippetbox.security")

# Session key for one-shot messages shown on the next page
FLASH_SESSION_KEY = "flash"

# Where a successful login goes when no page was remembered
DEFAULT_LOGIN_REDIRECT = "/snippet/create"


def ping(request: Request) -> Response:
    return Response(body="OK", content_type="text/plain; charset=utf-8")


def parse_id(raw: str) -> int:
    """A positive integer id from a path segment.

    Raises:
        NotFound: Anything other than plain ASCII digits, or zero.
    """
    if not (raw.isascii() and raw.isdigit()):
        raise NotFound(f"invalid id {raw!r}")
    value = int(raw)
    if value < 1:
        raise NotFound(f"invalid id {raw!r}")
    return value


class Handlers:
    """Handlers bound to the snippet and user models."""

    __slots__ = ("_snippets", "_users")

    def __init__(self, snippets: Snippets, users: Users) -> None:
        self._snippets = snippets
        self._users = users

    def template_data(self, request: Request, **extra: Any) -> dict[str, Any]:
        """The context every page needs, plus *extra*.

        Reading the flash message removes it from the session.
        """
        session = request.state.session
        data: dict[str, Any] = {
            "current_year": datetime.now(UTC).year,
            "flash": session.pop_string(FLASH_SESSION_KEY) if session is not None else "",
            "is_authenticated": request.state.authenticated,
            "csrf_token": request.state.csrf_token or "",
            "errors": {},
            "non_field_errors": (),
        }
        data.update(extra)
        return data

    def _page(self, name: str, request: Request, **extra: Any) -> Template:
        return Template(f"pages/{name}", **self.template_data(request, **extra))

    def _invalid(self, name: str, request: Request, form: Any, result: ValidationResult) -> tuple[Template, int]:
        page = self._page(
            name,
            request,
            form=form,
            errors=result.errors,
            non_field_errors=result.non_field_errors,
        )
        return page, 422

    # -- Pages --

    async def home(self, request: Request) -> Template:
        snippets = await self._snippets.latest()
        return self._page("home.html", request, snippets=snippets)

    def about(self, request: Request) -> Template:
        return self._page("about.html", request)

    # -- Snippets --

    async def snippet_view(self, request: Request) -> Template:
        snippet_id = parse_id(request.path_params.get("id", ""))
        try:
            snippet = await self._snippets.get(snippet_id)
        except NoRecordError:
            raise NotFound(f"no snippet {snippet_id}") from None
        return self._page("view.html", request, snippet=snippet)

    def snippet_create(self, request: Request) -> Template:
        return self._page("create.html", request, form=SnippetCreateForm())

    async def snippet_create_post(self, request: Request) -> Template | tuple[Template, int] | Redirect:
        values = await request.form()
        result = validate(values, SNIPPET_CREATE_RULES)
        form = SnippetCreateForm.from_values(result.values)
        if not result:
            return self._invalid("create.html", request, form, result)

        snippet_id = await self._snippets.insert(form.title, form.content, int(form.expires))
        request.session[FLASH_SESSION_KEY] = "Snippet successfully created!"
        return Redirect(f"/snippet/view/{snippet_id}")

    # -- Users --

    def user_signup(self, request: Request) -> Template:
        return self._page("signup.html", request, form=SignupForm())

    async def user_signup_post(self, request: Request) -> tuple[Template, int] | Redirect:
        values = await request.form()
        result = validate(values, SIGNUP_RULES)
        form = SignupForm.from_values(result.values)
        if not result:
            return self._invalid("signup.html", request, form, result)

        try:
            await self._users.insert(form.name, form.email, result.data["password"])
        except DuplicateEmailError:
            result = result.with_field_error("email", "Email address is already in use")
            return self._invalid("signup.html", request, form, result)

        request.session[FLASH_SESSION_KEY] = "Your signup was successful. Please log in."
        return Redirect("/user/login")

    def user_login(self, request: Request) -> Template:
        return self._page("login.html", request, form=LoginForm())

    async def user_login_post(self, request: Request) -> tuple[Template, int] | Redirect:
        values = await request.form()
        result = validate(values, LOGIN_RULES)
        form = LoginForm.from_values(result.values)
        if not result:
            return self._invalid("login.html", request, form, result)

        try:
            user_id = await self._users.authenticate(form.email, result.data["password"])
        except InvalidCredentialsError:
            logger.info("failed login from %s", request.remote_addr)
            result = result.with_non_field_error("Email or password is incorrect")
            return self._invalid("login.html", request, form, result)

        session = request.session
        session.renew_token()
        session[AUTH_SESSION_KEY] = user_id
        logger.info("user %d logged in from %s", user_id, request.remote_addr)

        target = session.pop(REDIRECT_SESSION_KEY, None)
        if isinstance(target, str) and is_safe_url(target):
            return Redirect(target)
        return Redirect(DEFAULT_LOGIN_REDIRECT)

    def user_logout_post(self, request: Request) -> Redirect:
        session = request.session
        session.renew_token()
        session.pop(AUTH_SESSION_KEY, None)
        session[FLASH_SESSION_KEY] = "You've been logged out successfully!"
        logger.info("user %s logged out", request.state.user_id)
        return Redirect("/")

    # -- Account --

    async def account_view(self, request: Request) -> Template | Redirect:
        user_id = request.state.user_id
        if user_id is None:
            return Redirect("/user/login")
        try:
            user = await self._users.get(user_id)
        except NoRecordError:
            return Redirect("/user/login")
        return self._page("account.html", request, user=user)

    def account_password_update(self, request: Request) -> Template:
        return self._page("password.html", request)

    async def account_password_update_post(self, request: Request) -> tuple[Template, int] | Redirect:
        values = await request.form()
        result = validate(values, password_update_rules(values.get("newPassword") or ""))
        if not result:
            return self._invalid("password.html", request, None, result)

        user_id = request.state.user_id
        assert user_id is not None
        try:
            await self._users.password_update(
                user_id, result.data["currentPassword"], result.data["newPassword"]
            )
        except InvalidCredentialsError:
            result = result.with_field_error("currentPassword", "Current password is incorrect")
            return self._invalid("password.html", request, None, result)

        request.session[FLASH_SESSION_KEY] = "Your password has been updated!"
        return Redirect("/account/view")
