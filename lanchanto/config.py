"""
Configuration. Loaded once from TOML at startup, then read-only.

    [credential]
    github_webhook_secret = "..."
    github_token = "..."

    [[deploy]]
    repository = "owner/name"
      [[deploy.artifact]]
      name = "site"
      target = "/srv/www/site"

Empty credentials fall back to GITHUB_WEBHOOK_SECRET / GITHUB_TOKEN.
The resulting Config is passed explicitly to the app and the deploy
workers; nothing here is a module-level singleton.
"""

import math
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from lanchanto.errors import ConfigError


DEFAULT_CONFIG_PATH = "lanchanto.toml"
DEFAULT_PORT = 8080


@dataclass(frozen=True)
class Artifact:
    name: str
    target: str


@dataclass(frozen=True)
class Deploy:
    repository: str
    artifact: tuple[Artifact, ...] = ()


@dataclass(frozen=True)
class Credential:
    github_webhook_secret: str = ""
    github_token: str = ""


@dataclass(frozen=True)
class ServerSettings:
    host: str = "0.0.0.0"
    port: int | None = None
    workers: int = 2
    queue_size: int = 64
    http_timeout: float = 30.0


@dataclass(frozen=True)
class Config:
    credential: Credential = field(default_factory=Credential)
    deploy: tuple[Deploy, ...] = ()
    server: ServerSettings = field(default_factory=ServerSettings)

    def find_deploy(self, repository: str) -> Deploy | None:
        """Exact-match lookup by `owner/name`."""
        for d in self.deploy:
            if d.repository == repository:
                return d
        return None


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _str(table: Mapping, key: str, where: str, *, required: bool) -> str:
    value = table.get(key)
    if value is None:
        if required:
            raise ConfigError(f"{where}: missing '{key}'")
        return ""
    if not isinstance(value, str):
        raise ConfigError(f"{where}: '{key}' must be a string")
    return value


def _table(data: Mapping, key: str, where: str) -> Mapping:
    value = data.get(key, {})
    if not isinstance(value, dict):
        raise ConfigError(f"{where}: '{key}' must be a table")
    return value


def _array(data: Mapping, key: str, where: str) -> list:
    value = data.get(key, [])
    if not isinstance(value, list):
        raise ConfigError(f"{where}: '{key}' must be an array of tables")
    return value


def _parse_artifact(raw, where: str) -> Artifact:
    if not isinstance(raw, dict):
        raise ConfigError(f"{where} must be a table")
    name = _str(raw, "name", where, required=True)
    target = _str(raw, "target", where, required=True)
    if not name or not target:
        raise ConfigError(f"{where}: 'name' and 'target' must be non-empty")
    return Artifact(name=name, target=target)


def _parse_deploy(raw, index: int) -> Deploy:
    where = f"deploy[{index}]"
    if not isinstance(raw, dict):
        raise ConfigError(f"{where} must be a table")
    repository = _str(raw, "repository", where, required=True)
    if not repository:
        raise ConfigError(f"{where}: 'repository' must be non-empty")
    artifacts = tuple(
        _parse_artifact(a, f"{where}.artifact[{i}]")
        for i, a in enumerate(_array(raw, "artifact", where))
    )
    return Deploy(repository=repository, artifact=artifacts)


def _parse_server(raw: Mapping) -> ServerSettings:
    defaults = ServerSettings()
    try:
        port = raw.get("port")
        return ServerSettings(
            host=str(raw.get("host", defaults.host)),
            port=int(port) if port is not None else None,
            workers=int(raw.get("workers", defaults.workers)),
            queue_size=int(raw.get("queue_size", defaults.queue_size)),
            http_timeout=float(raw.get("http_timeout", defaults.http_timeout)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"server: {e}")


def parse_config(data: Mapping, env: Mapping[str, str] | None = None) -> Config:
    """Build a Config from an already-decoded TOML document."""
    if env is None:
        env = os.environ

    cred_raw = _table(data, "credential", "config")
    credential = Credential(
        github_webhook_secret=(
            _str(cred_raw, "github_webhook_secret", "credential", required=False)
            or env.get("GITHUB_WEBHOOK_SECRET", "")
        ),
        github_token=(
            _str(cred_raw, "github_token", "credential", required=False)
            or env.get("GITHUB_TOKEN", "")
        ),
    )

    deploys = tuple(
        _parse_deploy(d, i) for i, d in enumerate(_array(data, "deploy", "config"))
    )
    seen: set[str] = set()
    for d in deploys:
        if d.repository in seen:
            raise ConfigError(f"duplicate deploy repository: {d.repository}")
        seen.add(d.repository)

    server = _parse_server(_table(data, "server", "config"))
    if server.workers < 1:
        raise ConfigError("server: 'workers' must be at least 1")
    if server.queue_size < 1:
        raise ConfigError("server: 'queue_size' must be at least 1")
    if not math.isfinite(server.http_timeout) or server.http_timeout <= 0:
        raise ConfigError("server: 'http_timeout' must be a positive finite number")

    return Config(credential=credential, deploy=deploys, server=server)


def load_config(path: str | os.PathLike,
                env: Mapping[str, str] | None = None) -> Config:
    """Read and validate a TOML config file. Raises ConfigError."""
    p = Path(path)
    try:
        data = tomllib.loads(p.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ConfigError(f"config file not found: {p}")
    except OSError as e:
        raise ConfigError(f"cannot read {p}: {e}")
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"invalid TOML in {p}: {e}")
    return parse_config(data, env)


def resolve_port(config: Config, cli_port: int | None = None,
                 env: Mapping[str, str] | None = None) -> int:
    """CLI flag, then [server] port, then $PORT, then 8080."""
    if env is None:
        env = os.environ
    if cli_port is not None:
        return cli_port
    if config.server.port is not None:
        return config.server.port
    try:
        return int(env.get("PORT", DEFAULT_PORT))
    except ValueError:
        return DEFAULT_PORT
