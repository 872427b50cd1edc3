"""Operator status conditions and lookups that report failures as conditions."""

from __future__ import annotations

import copy
import dataclasses
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

CONDITION_TRUE = "True"
CONDITION_FALSE = "False"
CONDITION_UNKNOWN = "Unknown"

OAUTH_NAMESPACE = "openshift-authentication"
OAUTH_NAME = "oauth-openshift"


class NotFoundError(LookupError):
    """A requested object does not exist."""

    def __init__(self, resource: str, name: str) -> None:
        super().__init__(f'{resource} "{name}" not found')
        self.resource = resource
        self.name = name

    def __str__(self) -> str:
        return f'{self.resource} "{self.name}" not found'


@dataclass
class OperatorCondition:
    type: str
    status: str
    last_transition_time: datetime | None = None
    reason: str = ""
    message: str = ""


@dataclass
class OperatorStatus:
    conditions: list[OperatorCondition] = field(default_factory=list)


class OperatorClient(Protocol):
    def get_operator_status(self) -> OperatorStatus: ...

    def update_operator_status(self, status: OperatorStatus) -> Any: ...


def controller_progressing_condition_name(controller_name: str) -> str:
    return controller_name + "Progressing"


def find_operator_condition(
    conditions: Iterable[OperatorCondition] | None, condition_type: str
) -> OperatorCondition | None:
    """Return the first condition of the given type, or None."""
    for condition in conditions or ():
        if condition.type == condition_type:
            return condition
    return None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def set_operator_condition(conditions: list[OperatorCondition], condition: OperatorCondition) -> None:
    """Add or update ``condition`` in place, moving the transition time on status change."""
    existing = find_operator_condition(conditions, condition.type)
    if existing is None:
        conditions.append(dataclasses.replace(condition, last_transition_time=_now()))
        return
    if existing.status != condition.status:
        existing.status = condition.status
        existing.last_transition_time = _now()
    existing.reason = condition.reason
    existing.message = condition.message


class ControllerProgressingError(Exception):
    """An error that makes a controller report Progressing instead of Degraded.

    ``max_age`` limits how long the same error may stay in the status before it
    counts as Degraded; a non-positive age means never.
    """

    def __init__(self, reason: str, err: BaseException, max_age: timedelta | float) -> None:
        super().__init__(str(err))
        if not isinstance(max_age, timedelta):
            max_age = timedelta(seconds=max_age)
        self.reason = reason
        self.err = err
        self.max_age = max_age
        self.__cause__ = err

    def __str__(self) -> str:
        return str(self.err)

    def to_condition(self, controller_name: str) -> OperatorCondition:
        return OperatorCondition(
            type=controller_progressing_condition_name(controller_name),
            status=CONDITION_TRUE,
            reason=self.reason,
            message=str(self.err),
        )

    def is_degraded(self, controller_name: str, last_status: OperatorStatus) -> bool:
        """True if the matching condition has been present for longer than ``max_age``."""
        if self.max_age <= timedelta(0):
            return False

        last = find_operator_condition(
            last_status.conditions, controller_progressing_condition_name(controller_name)
        )
        if last is None:
            return False
        if last.reason != self.reason or last.message != str(self):
            return False

        transition = last.last_transition_time
        if transition is None:
            return False
        return transition + self.max_age < datetime.now(transition.tzinfo)


def update_controller_conditions(
    operator_client: OperatorClient,
    all_condition_names: Iterable[str],
    updated_conditions: Iterable[OperatorCondition],
) -> bool:
    """Write every named condition to the operator status.

    Names missing from ``updated_conditions`` are reset: ``True`` for
    ``*Available`` conditions, ``False`` otherwise. Returns whether the
    status was written.
    """
    updated = list(updated_conditions)
    status = operator_client.get_operator_status()
    new_status = copy.deepcopy(status)

    for condition_type in sorted(set(all_condition_names)):
        condition = find_operator_condition(updated, condition_type)
        if condition is None:
            condition = OperatorCondition(
                type=condition_type,
                status=CONDITION_TRUE if condition_type.endswith("Available") else CONDITION_FALSE,
            )
        set_operator_condition(new_status.conditions, condition)

    if new_status == status:
        return False
    operator_client.update_operator_status(new_status)
    return True


def _degraded(condition_prefix: str, reason: str, message: str) -> list[OperatorCondition]:
    return [
        OperatorCondition(
            type=condition_prefix + "Degraded",
            status=CONDITION_TRUE,
            reason=reason,
            message=message,
        )
    ]


def get_auth_config(auth_lister: Any, condition_prefix: str) -> tuple[Any, list[OperatorCondition]]:
    """Fetch the cluster authentication config, or a Degraded condition on failure."""
    try:
        config = auth_lister.get("cluster")
    except Exception as err:
        return None, _degraded(
            condition_prefix, "GetFailed", f"Unable to get cluster authentication config: {err}"
        )
    return config, []


def get_oauth_server_route(route_lister: Any, condition_prefix: str) -> tuple[Any, list[OperatorCondition]]:
    """Fetch the OAuth server route, or a Degraded condition on failure."""
    try:
        route = route_lister.get(OAUTH_NAME, namespace=OAUTH_NAMESPACE)
    except NotFoundError:
        return None, _degraded(
            condition_prefix,
            "NotFound",
            "The OAuth server route 'openshift-authentication/oauth-openshift' was not found",
        )
    except Exception as err:
        return None, _degraded(
            condition_prefix,
            "GetFailed",
            f"Unable to get 'openshift-authentication/oauth-openshift' route: {err}",
        )
    return route, []


def get_oauth_server_service(
    service_lister: Any, condition_prefix: str
) -> tuple[Any, list[OperatorCondition]]:
    """Fetch the OAuth server service, or a Degraded condition on failure."""
    try:
        service = service_lister.get(OAUTH_NAME, namespace=OAUTH_NAMESPACE)
    except Exception as err:
        return None, _degraded(
            condition_prefix, "GetFailed", f"Unable to get oauth server service: {err}"
        )
    return service, []