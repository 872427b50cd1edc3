# authop

Building blocks for an operator that manages a cluster's OAuth server:
reading cluster configuration objects, turning them into the OAuth server's
observed config, and computing the status conditions the operator reports.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `authop.config` – helpers for nested, JSON-like configuration
  dictionaries: `nested_field_copy`, `nested_string`, `nested_slice`,
  `set_nested_field` and `pruned` (keep only the given paths). Type
  mismatches along a path raise `TypeError`. `unstructured_config_from`
  returns the JSON of the sub-tree under a prefix of an encoded config, and
  `names_filter` builds a predicate that accepts objects whose
  `metadata.name` is one of the given names.
- `authop.conditions` – `OperatorCondition`, `OperatorStatus`,
  `NotFoundError` and `ControllerProgressingError`, an error that keeps a
  controller *Progressing* and only counts as *Degraded* once the same
  condition (type, reason and message) has been in the status longer than
  its maximum age; a non-positive age never degrades. Also
  `controller_progressing_condition_name`, `find_operator_condition`,
  `set_operator_condition` (moves the transition time when the status
  changes), `update_controller_conditions` (writes every named condition,
  resetting missing ones to `True` for `*Available` and `False` otherwise,
  through an object with `get_operator_status()` and
  `update_operator_status(status)`), and the lookups `get_auth_config`,
  `get_oauth_server_route` and `get_oauth_server_service`, which return a
  `*Degraded` condition instead of raising.
- `authop.arguments` – `parse` server arguments whose values are strings or
  lists of strings (anything else raises `ValueError`), and `encode` /
  `encode_with_delimiter` them into sorted `--key=value` flags quoted with
  `shell_escape`.
- `authop.listers` – `ObjectStore`, an in-memory cache of objects keyed by
  namespace and name whose `get` raises `NotFoundError`; `InMemoryRecorder`,
  which collects `Event`s; and `Listers`, the bundle of stores handed to the
  observers.
- `authop.observers` – `observe_console_url`, `observe_api_server_url` and
  `observe_audit`. Each takes listers, a recorder and the existing config
  and returns the observed config together with a list of errors; on a
  failure the existing config is returned unchanged.
- `authop.templates` – `Brand`, `OAuthTemplates`, `get_console_branding`,
  `convert_templates_with_branding` and `observe_templates`. The console
  branding picks the default template paths; user-configured secrets
  override them. `observe_templates` calls
  `listers.resource_sync.sync_secret(destination, source)` for each of the
  three template secrets, with an empty source when a template is not set.
- `authop.customroute` – `Condition`, `find_condition`,
  `ensure_default_conditions`, `check_errors_configuring_custom_route`,
  `degrade_if_time_elapsed`, and `parse_certificates`, which returns every
  certificate in a PEM bundle and raises `ValueError` when there is none.

## Examples

```python
from authop.arguments import encode

print(encode({"audit-log-format": ["json"], "audit-log-path": ["/var/log/audit.log"]}))
# --audit-log-format=json \
# --audit-log-path=/var/log/audit.log
```

```python
from datetime import timedelta
from authop.conditions import ControllerProgressingError, OperatorStatus

err = ControllerProgressingError("Rolling", ValueError("rollout in progress"), timedelta(minutes=5))
print(err.to_condition("Deployment").type)              # DeploymentProgressing
print(err.is_degraded("Deployment", OperatorStatus()))  # False
```

```python
from authop.listers import InMemoryRecorder, Listers, ObjectStore
from authop.observers import observe_console_url

consoles = ObjectStore("consoles", [
    {"metadata": {"name": "cluster"}, "status": {"consoleURL": "https://console.example.com"}},
])
config, errors = observe_console_url(Listers(console_lister=consoles), InMemoryRecorder(), {})
print(config)  # {'oauthConfig': {'assetPublicURL': 'https://console.example.com'}}
print(errors)  # []
```

## What it does not do

This is a library of pieces, not a running operator. It has no command to
start, does not connect to a cluster API, watch objects or run controller
loops, and does not itself create or update routes, secrets or status on a
cluster. Lookups read from whatever objects you put into an `ObjectStore`
(or any object with a compatible `get`), and status and secret syncing go
through objects you supply.