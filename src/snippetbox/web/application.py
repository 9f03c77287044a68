"""Application wiring: chains, routes and the database lifecycle.

Three chains decide what runs around each handler::

    standard  = recover_panic → log_request → security headers   (every request)
    dynamic   = sessions → CSRF guard → authenticator              (pages)
    protected = dynamic + require_authentication                  (logged-in pages)

The standard chain wraps routing itself, so a 404 or 405 still passes
through recovery, logging and the common headers.
"""

import logging

from snippetbox.app import App
from snippetbox.config import AppConfig
from snippetbox.data.database import Database
from snippetbox.data.migrate import migrate
from snippetbox.errors import ConfigurationError
from snippetbox.middleware.auth import Authenticator, require_authentication
from snippetbox.middleware.csrf import CSRFMiddleware
from snippetbox.middleware.recovery import recover_panic
from snippetbox.middleware.request_log import log_request
from snippetbox.middleware.security_headers import SecurityHeadersConfig, SecurityHeadersMiddleware
from snippetbox.middleware.session_stores import DatabaseStore, SessionStore
from snippetbox.middleware.sessions import SessionConfig, SessionMiddleware
from snippetbox.middleware.static import StaticFiles
from snippetbox.models.snippets import SnippetModel, Snippets
from snippetbox.models.users import UserModel, Users
from snippetbox.routing.chain import Chain
from snippetbox.web.handlers import Handlers, ping

logger = logging.getLogger("snippetbox.data")

# One year, sent only when serving over TLS
_HSTS = "max-age=31536000; includeSubDomains"


def build_app(
    config: AppConfig,
    *,
    snippets: Snippets,
    users: Users,
    session_store: SessionStore,
) -> App:
    """Assemble the route table over the given collaborators.

    Raises:
        ConfigurationError: ``config.secret_key`` is empty.
    """
    if not config.secret_key:
        msg = "A secret key is required to sign session cookies (--secret-key or SNIPPETBOX_SECRET_KEY)."
        raise ConfigurationError(msg)

    app = App(config)
    app.add_middleware(recover_panic)
    app.add_middleware(log_request)
    app.add_middleware(
        SecurityHeadersMiddleware(
            SecurityHeadersConfig(strict_transport_security=_HSTS if config.tls else None)
        )
    )

    sessions = SessionMiddleware(
        SessionConfig(
            secret_key=config.secret_key,
            cookie_name=config.session_cookie,
            lifetime=config.session_lifetime,
            secure=config.tls,
        ),
        session_store,
    )
    dynamic = Chain(sessions, CSRFMiddleware(), Authenticator(users.exists))
    protected = dynamic.append(require_authentication)

    h = Handlers(snippets, users)

    app.add_route("/ping", ping)
    app.add_route("/static/{filepath:path}", StaticFiles(config.static_dir))

    app.add_route("/", h.home, chain=dynamic, name="home")
    app.add_route("/about", h.about, chain=dynamic, name="about")
    app.add_route("/snippet/view/{id}", h.snippet_view, chain=dynamic, name="snippet_view")
    app.add_route("/user/signup", h.user_signup, chain=dynamic, name="signup")
    app.add_route("/user/signup", h.user_signup_post, methods=["POST"], chain=dynamic)
    app.add_route("/user/login", h.user_login, chain=dynamic, name="login")
    app.add_route("/user/login", h.user_login_post, methods=["POST"], chain=dynamic)

    app.add_route("/snippet/create", h.snippet_create, chain=protected, name="snippet_create")
    app.add_route("/snippet/create", h.snippet_create_post, methods=["POST"], chain=protected)
    app.add_route("/account/view", h.account_view, chain=protected, name="account")
    app.add_route(
        "/account/password/update", h.account_password_update, chain=protected, name="password_update"
    )
    app.add_route(
        "/account/password/update", h.account_password_update_post, methods=["POST"], chain=protected
    )
    app.add_route("/user/logout", h.user_logout_post, methods=["POST"], chain=protected, name="logout")

    return app


def create_app(config: AppConfig) -> App:
    """The production app: SQLite models and sessions, migrated at startup."""
    db = Database(config.dsn, echo=config.debug)
    session_store = DatabaseStore(db)
    app = build_app(
        config,
        snippets=SnippetModel(db),
        users=UserModel(db),
        session_store=session_store,
    )

    @app.on_startup
    async def open_database() -> None:
        await db.connect()
        result = await migrate(db)
        logger.info("database ready: %s", result.summary)
        expired = await session_store.delete_expired()
        if expired:
            logger.info("removed %d expired sessions", expired)

    @app.on_shutdown
    async def close_database() -> None:
        await db.disconnect()

    return app
