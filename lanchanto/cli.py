"""
lanchanto command line.

Usage:
    lanchanto serve [--config PATH] [--host HOST] [--port PORT] [--log-level L]
    lanchanto check-config [--config PATH]
    lanchanto sign --secret SECRET FILE

Config path: --config, else $LANCHANTO_CONFIG, else ./lanchanto.toml.
Port: --port, else [server] port, else $PORT, else 8080.
"""

import argparse
import json
import logging
import os
import sys

import uvicorn

from lanchanto import __version__
from lanchanto.api import create_app
from lanchanto.config import DEFAULT_CONFIG_PATH, load_config, resolve_port
from lanchanto.errors import ConfigError
from lanchanto.logging import configure_logging
from lanchanto.signature import sign

logger = logging.getLogger("lanchanto")


def _config_path(args) -> str:
    return args.config or os.environ.get("LANCHANTO_CONFIG", DEFAULT_CONFIG_PATH)


def reply(data):
    print(json.dumps(data))


# ── Command handlers ──

def cmd_serve(args) -> int:
    configure_logging(args.log_level or os.environ.get("LANCHANTO_LOG_LEVEL"))
    path = _config_path(args)
    try:
        config = load_config(path)
    except ConfigError as e:
        logger.error("%s", e)
        return 1

    if not config.credential.github_webhook_secret:
        logger.warning("no webhook secret configured; every delivery "
                       "will be rejected")
    if not config.credential.github_token:
        logger.warning("no GitHub token configured; deploys will fail")

    host = args.host or config.server.host
    port = resolve_port(config, args.port)
    logger.info("loaded %d deploys from %s", len(config.deploy), path)
    logger.info("listening on %s:%d", host, port)
    uvicorn.run(create_app(config), host=host, port=port, log_config=None)
    return 0


def cmd_check_config(args) -> int:
    try:
        config = load_config(_config_path(args))
    except ConfigError as e:
        reply({"ok": False, "error": str(e)})
        return 1
    reply({
        "ok": True,
        "webhook_secret": bool(config.credential.github_webhook_secret),
        "github_token": bool(config.credential.github_token),
        "deploys": [
            {"repository": d.repository,
             "artifacts": [{"name": a.name, "target": a.target}
                           for a in d.artifact]}
            for d in config.deploy
        ],
    })
    return 0


def cmd_sign(args) -> int:
    try:
        with open(args.file, "rb") as f:
            body = f.read()
    except OSError as e:
        print(f"Error: cannot read {args.file}: {e}", file=sys.stderr)
        return 1
    print(sign(args.secret.encode(), body))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="lanchanto",
        description="Deploy GitHub Actions artifacts on workflow_run webhooks",
    )
    parser.add_argument("--version", action="version",
                        version=f"lanchanto {__version__}")
    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("serve", help="Run the webhook server")
    p.add_argument("--config", default=None, help="Path to TOML config")
    p.add_argument("--host", default=None)
    p.add_argument("--port", type=int, default=None)
    p.add_argument("--log-level", default=None)

    p = sub.add_parser("check-config", help="Validate a config file")
    p.add_argument("--config", default=None, help="Path to TOML config")

    p = sub.add_parser("sign", help="Print the signature header for a payload")
    p.add_argument("--secret", required=True)
    p.add_argument("file")

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    commands = {
        "serve": cmd_serve,
        "check-config": cmd_check_config,
        "sign": cmd_sign,
    }
    return commands[args.command](args)


if __name__ == "__main__":
    raise SystemExit(main())
