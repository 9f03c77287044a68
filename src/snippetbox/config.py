"""Application configuration.

AppConfig is a frozen dataclass, immutable after creation.
"""

from dataclasses import dataclass
from pathlib import Path

_WEB_DIR = Path(__file__).parent / "web"


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have working defaults except ``secret_key``, which signs
    session cookies and must be set::

        config = AppConfig(secret_key="s3cr3t", dsn="sqlite:///snippetbox.db")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 4000
    debug: bool = False
    log_level: str = "info"

    # TLS (optional; when set, cookies are marked Secure)
    tls_certfile: str | None = None
    tls_keyfile: str | None = None

    # Security
    secret_key: str = ""

    # Data
    dsn: str = "sqlite:///snippetbox.db"

    # Sessions
    session_cookie: str = "session"
    session_lifetime: int = 12 * 60 * 60  # 12 hours

    # Templates and static assets
    template_dir: str | Path = _WEB_DIR / "templates"
    static_dir: str | Path = _WEB_DIR / "static"
    autoescape: bool = True

    @property
    def tls(self) -> bool:
        return bool(self.tls_certfile and self.tls_keyfile)
