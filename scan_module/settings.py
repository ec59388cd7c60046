"""
scan_module/settings.py

Loads the audit configuration from a YAML file.

The file may contain the placeholder `{{ .SlackToken }}`, which is replaced with
the OPSBOT_SLACK_TOKEN environment variable before parsing, so the chat token
never has to live in the file itself. The entry point loads a `.env` into the
environment (python-dotenv) before this module reads it.

Recognised keys:
    customer, username, password   provider credentials (required)
    minTTL                         policy minimum TTL in seconds (required)
    verbose                        debug logging + per-record skip messages
    print_results                  print the report on stdout
    print_zone_results             append the reverse index to the report
    slack_results                  post the report to chat
    slack_token, slack_channel_id  chat destination
    redirect_networks              CIDR blocks exempt from the policy
    skip_unchanged                 do not re-fetch zones whose serial is unchanged
    zone_concurrency               zones scanned at once (1 = sequential)
    catalog_attempts               attempts for login and zone listing
    api_url, request_timeout       provider endpoint and per-request timeout
"""
from __future__ import annotations

import ipaddress
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import yaml

from .errors import ConfigError

SLACK_TOKEN_ENV = "OPSBOT_SLACK_TOKEN"
SLACK_TOKEN_PLACEHOLDER = re.compile(r"\{\{\s*\.SlackToken\s*\}\}")

DEFAULT_API_URL = "https://api.dynect.net"
DEFAULT_REDIRECT_NETWORKS: Tuple[str, ...] = ("216.146.0.0/16",)
DEFAULT_CATALOG_ATTEMPTS = 5
DEFAULT_REQUEST_TIMEOUT = 30.0


@dataclass(frozen=True)
class Config:
    customer: str
    username: str
    password: str
    min_ttl: int
    verbose: bool = False
    print_results: bool = False
    print_zone_results: bool = False
    slack_results: bool = False
    slack_token: str = ""
    slack_channel_id: str = ""
    redirect_networks: Tuple[str, ...] = DEFAULT_REDIRECT_NETWORKS
    skip_unchanged: bool = True
    zone_concurrency: int = 1
    catalog_attempts: int = DEFAULT_CATALOG_ATTEMPTS
    api_url: str = DEFAULT_API_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT


def render_template(text: str, slack_token: Optional[str] = None) -> str:
    """Substitute `{{ .SlackToken }}` with the token (env by default)."""
    token = slack_token if slack_token is not None else os.getenv(SLACK_TOKEN_ENV, "")
    return SLACK_TOKEN_PLACEHOLDER.sub(lambda _m: token, text)


def _require_str(raw: Dict[str, Any], key: str) -> str:
    value = raw.get(key)
    if value is None or str(value).strip() == "":
        raise ConfigError(f"missing required setting '{key}'")
    return str(value)


def _as_bool(raw: Dict[str, Any], key: str, default: bool) -> bool:
    value = raw.get(key, default)
    if isinstance(value, bool):
        return value
    raise ConfigError(f"setting '{key}' must be true or false, got {value!r}")


def _as_int(raw: Dict[str, Any], key: str, default: Optional[int], minimum: int) -> int:
    value = raw.get(key, default)
    if value is None:
        raise ConfigError(f"missing required setting '{key}'")
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"setting '{key}' must be an integer, got {value!r}")
    if value < minimum:
        raise ConfigError(f"setting '{key}' must be >= {minimum}, got {value}")
    return value


def _as_networks(raw: Dict[str, Any]) -> Tuple[str, ...]:
    value = raw.get("redirect_networks", list(DEFAULT_REDIRECT_NETWORKS))
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise ConfigError("setting 'redirect_networks' must be a list of CIDR blocks")
    networks = []
    for item in value:
        try:
            networks.append(str(ipaddress.ip_network(str(item).strip(), strict=False)))
        except ValueError as e:
            raise ConfigError(f"invalid redirect network {item!r}: {e}") from e
    return tuple(networks)


def parse_config(raw: Any) -> Config:
    """Validate a parsed YAML mapping and build the immutable Config."""
    if not isinstance(raw, dict):
        raise ConfigError("configuration must be a YAML mapping")

    try:
        timeout = float(raw.get("request_timeout", DEFAULT_REQUEST_TIMEOUT))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"setting 'request_timeout' must be a number: {e}") from e
    if timeout <= 0:
        raise ConfigError("setting 'request_timeout' must be positive")

    conf = Config(
        customer=_require_str(raw, "customer"),
        username=_require_str(raw, "username"),
        password=_require_str(raw, "password"),
        min_ttl=_as_int(raw, "minTTL", None, 0),
        verbose=_as_bool(raw, "verbose", False),
        print_results=_as_bool(raw, "print_results", False),
        print_zone_results=_as_bool(raw, "print_zone_results", False),
        slack_results=_as_bool(raw, "slack_results", False),
        slack_token=str(raw.get("slack_token") or ""),
        slack_channel_id=str(raw.get("slack_channel_id") or ""),
        redirect_networks=_as_networks(raw),
        skip_unchanged=_as_bool(raw, "skip_unchanged", True),
        zone_concurrency=_as_int(raw, "zone_concurrency", 1, 1),
        catalog_attempts=_as_int(raw, "catalog_attempts", DEFAULT_CATALOG_ATTEMPTS, 1),
        api_url=str(raw.get("api_url") or DEFAULT_API_URL).rstrip("/"),
        request_timeout=timeout,
    )

    if conf.slack_results and not (conf.slack_token and conf.slack_channel_id):
        raise ConfigError("slack_results requires slack_token and slack_channel_id")
    return conf


def load_config(path: str) -> Config:
    """
    Read, template and validate the configuration file.

    Raises:
        ConfigError: unreadable file, YAML syntax error or invalid settings.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except OSError as e:
        raise ConfigError(f"cannot read configuration {path}: {e}") from e

    try:
        raw = yaml.safe_load(render_template(text))
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e
    return parse_config(raw)
