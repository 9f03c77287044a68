"""Command line entry point.

Registered as ``snippetbox`` in ``pyproject.toml`` and runnable as
``python -m snippetbox``::

    snippetbox --addr 127.0.0.1:4000 --dsn sqlite:///snippetbox.db --secret-key ...

The secret key may come from ``SNIPPETBOX_SECRET_KEY`` instead of the
command line, which keeps it out of ``ps`` output.
"""

import argparse
import logging
import os
import sys
from collections.abc import Mapping

from snippetbox.config import AppConfig
from snippetbox.errors import ConfigurationError

SECRET_KEY_ENV = "SNIPPETBOX_SECRET_KEY"

_LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


def _addr(value: str) -> tuple[str, int]:
    host, sep, port = value.rpartition(":")
    if not sep:
        msg = f"expected HOST:PORT or :PORT, got {value!r}"
        raise argparse.ArgumentTypeError(msg)
    try:
        port_number = int(port)
    except ValueError:
        msg = f"invalid port in {value!r}"
        raise argparse.ArgumentTypeError(msg) from None
    if not 0 < port_number < 65536:
        msg = f"port out of range in {value!r}"
        raise argparse.ArgumentTypeError(msg)
    return host or "0.0.0.0", port_number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snippetbox",
        description="Snippetbox: create, view and share short text snippets.",
    )
    parser.add_argument("--addr", type=_addr, default=None, help="HTTP network address (default 127.0.0.1:4000)")
    parser.add_argument("--dsn", default=None, help="Database URL (default sqlite:///snippetbox.db)")
    parser.add_argument("--secret-key", default=None, help=f"Session signing key (or ${SECRET_KEY_ENV})")
    parser.add_argument("--debug", action="store_true", help="Reload templates on change, verbose logging")
    parser.add_argument("--log-level", choices=_LOG_LEVELS, default=None, help="Log level (default info)")
    parser.add_argument("--tls-cert", default=None, help="TLS certificate file")
    parser.add_argument("--tls-key", default=None, help="TLS private key file")
    return parser


def config_from_args(args: argparse.Namespace, environ: Mapping[str, str]) -> AppConfig:
    """Map parsed arguments and the environment onto ``AppConfig``.

    Raises:
        ConfigurationError: Missing secret key, or only half a TLS pair.
    """
    defaults = AppConfig()
    host, port = args.addr or (defaults.host, defaults.port)

    secret_key = args.secret_key or environ.get(SECRET_KEY_ENV, "")
    if not secret_key:
        msg = f"A secret key is required: pass --secret-key or set {SECRET_KEY_ENV}."
        raise ConfigurationError(msg)

    if bool(args.tls_cert) != bool(args.tls_key):
        msg = "--tls-cert and --tls-key must be given together."
        raise ConfigurationError(msg)

    log_level = args.log_level or ("debug" if args.debug else defaults.log_level)
    return AppConfig(
        host=host,
        port=port,
        debug=args.debug,
        log_level=log_level,
        tls_certfile=args.tls_cert,
        tls_keyfile=args.tls_key,
        secret_key=secret_key,
        dsn=args.dsn or defaults.dsn,
    )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``snippetbox`` command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args, os.environ)
    except ConfigurationError as exc:
        parser.error(str(exc))

    configure_logging(config.log_level)

    from snippetbox.web.application import create_app

    app = create_app(config)
    try:
        app.run()
    except KeyboardInterrupt:
        sys.exit(0)
