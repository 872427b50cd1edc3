"""OAuth server login, provider-selection and error templates, with console branding."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

import yaml

from authop.conditions import NotFoundError
from authop.config import nested_field_copy, pruned, set_nested_field
from authop.listers import InMemoryRecorder, Listers


class Brand(str, Enum):
    OCP = "ocp"
    OKD = "okd"


DEFAULT_BRAND = Brand.OKD

TEMPLATES_PATH = ("oauthConfig", "templates")

LOGIN_TEMPLATE_KEY = "login.html"
PROVIDER_SELECTION_TEMPLATE_KEY = "providers.html"
ERRORS_TEMPLATE_KEY = "errors.html"

CONSOLE_CONFIG_NAMESPACE = "openshift-config-managed"
CONSOLE_CONFIG_NAME = "console-config"
CONSOLE_CONFIG_KEY = "console-config.yaml"

USER_CONFIG_NAMESPACE = "openshift-config"
TARGET_NAMESPACE = "openshift-authentication"

_OCP_EQUIVALENT_BRANDS = frozenset({Brand.OCP.value, "dedicated", "online", "azure"})


@dataclass(frozen=True)
class OAuthTemplates:
    """Paths of the HTML templates the OAuth server serves."""

    login: str = ""
    provider_selection: str = ""
    error: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "login": self.login,
            "providerSelection": self.provider_selection,
            "error": self.error,
        }


OCP_DEFAULT_TEMPLATES = OAuthTemplates(
    login="/var/config/system/secrets/v4-0-config-system-ocp-branding-template/login.html",
    provider_selection="/var/config/system/secrets/v4-0-config-system-ocp-branding-template/providers.html",
    error="/var/config/system/secrets/v4-0-config-system-ocp-branding-template/errors.html",
)

USER_LOGIN_TEMPLATE = "/var/config/user/template/secret/v4-0-config-user-template-login/login.html"
USER_PROVIDER_SELECTION_TEMPLATE = (
    "/var/config/user/template/secret/v4-0-config-user-template-provider-selection/providers.html"
)
USER_ERROR_TEMPLATE = "/var/config/user/template/secret/v4-0-config-user-template-error/errors.html"


@dataclass(frozen=True)
class ResourceLocation:
    """Where a synced resource lives; an empty location means 'nothing to sync'."""

    namespace: str = ""
    name: str = ""


def _field(obj: Any, *path: str) -> Any:
    value = obj
    for name in path:
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(name)
        else:
            value = getattr(value, name, None)
    return value


def _ref_name(templates: Any, json_key: str, attr: str) -> str:
    if templates is None:
        return ""
    if isinstance(templates, Mapping):
        ref = templates.get(json_key)
    else:
        ref = getattr(templates, attr, None)
    if ref is None:
        return ""
    if isinstance(ref, str):
        return ref
    return _field(ref, "name") or ""


def get_console_branding(cm_lister: Any) -> str:
    """Return the branding set in the console config map, or an empty string."""
    try:
        config_map = cm_lister.get(CONSOLE_CONFIG_NAME, namespace=CONSOLE_CONFIG_NAMESPACE)
    except NotFoundError:
        return ""
    except Exception as err:
        raise RuntimeError(f"error getting console-config: {err}") from err

    data = _field(config_map, "data") or {}
    raw = data.get(CONSOLE_CONFIG_KEY) or ""
    if not raw:
        return ""

    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as err:
        raise ValueError(f"error parsing console-config: {err}") from err
    if parsed is None:
        return ""
    if not isinstance(parsed, Mapping):
        raise ValueError("error parsing console-config: document is not a mapping")

    customization = parsed.get("customization")
    if customization is None:
        return ""
    if not isinstance(customization, Mapping):
        raise ValueError("error parsing console-config: customization is not a mapping")

    branding = customization.get("branding")
    if branding is None:
        return ""
    if not isinstance(branding, str):
        raise ValueError("error parsing console-config: branding is not a string")
    return branding


def convert_templates_with_branding(
    cm_lister: Any, config_templates: Any, default_brand: Brand | str = DEFAULT_BRAND
) -> tuple[OAuthTemplates | None, dict[str, str] | None]:
    """Work out the template paths and the user secrets that must be synced.

    Returns ``(None, None)`` when no template is configured at all.
    """
    brand = get_console_branding(cm_lister)
    templates = OAuthTemplates()
    if brand == Brand.OKD.value:
        pass  # the OAuth server already carries this branding
    elif brand in _OCP_EQUIVALENT_BRANDS:
        templates = OCP_DEFAULT_TEMPLATES
    elif Brand(default_brand) is Brand.OCP:
        templates = OCP_DEFAULT_TEMPLATES

    sync_data: dict[str, str] = {}

    login = _ref_name(config_templates, "login", "login")
    if login:
        sync_data[LOGIN_TEMPLATE_KEY] = login
        templates = dataclasses.replace(templates, login=USER_LOGIN_TEMPLATE)

    provider_selection = _ref_name(config_templates, "providerSelection", "provider_selection")
    if provider_selection:
        sync_data[PROVIDER_SELECTION_TEMPLATE_KEY] = provider_selection
        templates = dataclasses.replace(
            templates, provider_selection=USER_PROVIDER_SELECTION_TEMPLATE
        )

    error = _ref_name(config_templates, "error", "error")
    if error:
        sync_data[ERRORS_TEMPLATE_KEY] = error
        templates = dataclasses.replace(templates, error=USER_ERROR_TEMPLATE)

    if templates == OAuthTemplates():
        return None, None
    return templates, sync_data


def _sync_config(syncer: Any, destination_name: str, source_name: str) -> None:
    source = ResourceLocation(USER_CONFIG_NAMESPACE, source_name) if source_name else ResourceLocation()
    syncer.sync_secret(ResourceLocation(TARGET_NAMESPACE, destination_name), source)


def _sync_template_secrets(syncer: Any, sync_data: Mapping[str, str]) -> None:
    # every key is visited so that secrets no longer wanted stop being synced
    _sync_config(syncer, "v4-0-config-user-template-login", sync_data.get(LOGIN_TEMPLATE_KEY, ""))
    _sync_config(
        syncer,
        "v4-0-config-user-template-provider-selection",
        sync_data.get(PROVIDER_SELECTION_TEMPLATE_KEY, ""),
    )
    _sync_config(syncer, "v4-0-config-user-template-error", sync_data.get(ERRORS_TEMPLATE_KEY, ""))


def _observe_templates(
    listers: Listers, recorder: InMemoryRecorder, existing_config: dict[str, Any]
) -> tuple[Any, list[Exception]]:
    try:
        existing_templates, _ = nested_field_copy(existing_config, *TEMPLATES_PATH)
    except TypeError as err:
        return existing_config, [err]

    try:
        oauth_config = listers.oauth_lister.get("cluster")
    except NotFoundError:
        oauth_config = None
    except Exception as err:
        return existing_config, [err]

    config_templates = _field(oauth_config, "spec", "templates")
    try:
        templates, sync_data = convert_templates_with_branding(
            listers.config_map_lister, config_templates
        )
    except Exception as err:
        return existing_config, [err]

    observed_config: dict[str, Any] = {}
    observed_templates = None
    if templates is not None:
        observed_templates = templates.to_dict()
        set_nested_field(observed_config, observed_templates, *TEMPLATES_PATH)

    if existing_templates != observed_templates:
        recorder.eventf("ObserveTemplates", "templates changed to %r", observed_templates)

    _sync_template_secrets(listers.resource_sync, sync_data or {})
    return observed_config, []


def observe_templates(
    listers: Listers, recorder: InMemoryRecorder, existing_config: dict[str, Any]
) -> tuple[Any, list[Exception]]:
    """Observe the OAuth templates configuration and sync the user template secrets."""
    config, errs = _observe_templates(listers, recorder, existing_config)
    return pruned(config, TEMPLATES_PATH), errs