"""Config observers for the console URL, the API server URL and audit arguments."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlsplit

from authop.conditions import NotFoundError
from authop.config import nested_field_copy, nested_string, pruned, set_nested_field
from authop.listers import InMemoryRecorder, Listers

_log = logging.getLogger(__name__)

ObserveResult = tuple[Any, list[Exception]]

ASSET_PUBLIC_URL_PATH = ("oauthConfig", "assetPublicURL")
LOGIN_URL_PATH = ("oauthConfig", "loginURL")
SERVER_ARGUMENTS_PATH = ("serverArguments",)

NONE_AUDIT_PROFILE = "None"

AUDIT_OPTIONS_ARGS: dict[str, list[str]] = {
    "audit-log-path": ["/var/log/oauth-server/audit.log"],
    "audit-log-format": ["json"],
    "audit-log-maxsize": ["100"],
    "audit-log-maxbackup": ["10"],
    "audit-policy-file": ["/var/run/configmaps/audit/audit.yaml"],
}


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _wrap(message: str, err: BaseException) -> Exception:
    wrapped = RuntimeError(f"{message}: {err}")
    wrapped.__cause__ = err
    return wrapped


def _validate_url(url: str) -> None:
    """Raise ValueError for URLs that cannot be parsed."""
    if any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in url):
        raise ValueError("net/url: invalid control character in URL")
    parts = urlsplit(url)
    hostport = parts.netloc.rpartition("@")[2]
    if hostport.startswith("["):
        end = hostport.find("]")
        if end < 0:
            raise ValueError("missing ']' in host")
        rest = hostport[end + 1 :]
        if rest and not rest.startswith(":"):
            raise ValueError(f"invalid port {_quote(rest)} after host")
        port = rest[1:] if rest else None
    else:
        _, sep, port_part = hostport.rpartition(":")
        port = port_part if sep else None
    if port is not None and port and not port.isdigit():
        raise ValueError(f"invalid port {_quote(':' + port)} after host")


def _field(obj: Any, *path: str) -> Any:
    value = obj
    for name in path:
        if isinstance(value, Mapping):
            value = value.get(name)
        else:
            value = getattr(value, name, None)
        if value is None:
            return None
    return value


def _observe_url(
    lister: Any,
    recorder: InMemoryRecorder,
    existing_config: dict[str, Any],
    status_field: str,
    url_label: str,
    path: tuple[str, ...],
    reason: str,
    event_label: str,
) -> ObserveResult:
    errs: list[Exception] = []
    try:
        cluster = lister.get("cluster")
    except Exception as err:
        return existing_config, [err]

    observed_url = _field(cluster, "status", status_field) or ""
    try:
        _validate_url(observed_url)
    except ValueError as err:
        return existing_config, [_wrap(f"failed to parse {url_label} {_quote(observed_url)}", err)]

    observed_config: dict[str, Any] = {}
    set_nested_field(observed_config, observed_url, *path)

    try:
        current_url, _ = nested_string(existing_config, *path)
    except TypeError as err:
        # keep going so that a broken existing config gets replaced
        errs.append(err)
        current_url = ""

    if current_url != observed_url:
        recorder.eventf(reason, f"{event_label} changed from %s to %s", current_url, observed_url)

    return observed_config, errs


def observe_console_url(
    listers: Listers, recorder: InMemoryRecorder, existing_config: dict[str, Any]
) -> ObserveResult:
    """Observe the console URL as the OAuth server's asset public URL."""
    config, errs = _observe_url(
        listers.console_lister,
        recorder,
        existing_config,
        "consoleURL",
        "consoleURL",
        ASSET_PUBLIC_URL_PATH,
        "ObserveConsoleURL",
        "assetPublicURL",
    )
    return pruned(config, ASSET_PUBLIC_URL_PATH), errs


def observe_api_server_url(
    listers: Listers, recorder: InMemoryRecorder, existing_config: dict[str, Any]
) -> ObserveResult:
    """Observe the API server URL as the OAuth server's login URL."""
    config, errs = _observe_url(
        listers.infrastructure_lister,
        recorder,
        existing_config,
        "apiServerURL",
        "apiServerURL",
        LOGIN_URL_PATH,
        "ObserveAPIServerURL",
        "loginURL",
    )
    return pruned(config, LOGIN_URL_PATH), errs


def _observe_audit(
    listers: Listers, recorder: InMemoryRecorder, existing_config: dict[str, Any]
) -> ObserveResult:
    errs: list[Exception] = []
    api_server = None
    try:
        api_server = listers.api_server_lister.get("cluster")
    except NotFoundError:
        _log.warning("config.openshift.io/v1/cluster: not found")
    except Exception as err:
        return existing_config, [_wrap("failed to get oauth.config.openshift.io/cluster", err)]

    profile = ""
    if api_server is not None:
        profile = _field(api_server, "spec", "audit", "profile") or ""

    observed_config: dict[str, Any] = {}
    if profile != NONE_AUDIT_PROFILE:
        set_nested_field(observed_config, AUDIT_OPTIONS_ARGS, *SERVER_ARGUMENTS_PATH)

    try:
        current, _ = nested_field_copy(existing_config, *SERVER_ARGUMENTS_PATH)
    except TypeError as err:
        return existing_config, errs + [err]

    if current != AUDIT_OPTIONS_ARGS:
        recorder.eventf(
            "ObserveAuditProfile",
            "AuditProfile changed from '%s' to '%s'",
            current,
            AUDIT_OPTIONS_ARGS,
        )

    return observed_config, errs


def observe_audit(
    listers: Listers, recorder: InMemoryRecorder, existing_config: dict[str, Any]
) -> ObserveResult:
    """Observe the audit profile and set the OAuth server's audit arguments unless it is None."""
    config, errs = _observe_audit(listers, recorder, existing_config)
    return pruned(config, SERVER_ARGUMENTS_PATH), errs