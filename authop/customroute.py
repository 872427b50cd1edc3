"""Status conditions for the custom OAuth route and certificate parsing."""

from __future__ import annotations

import base64
import binascii
import dataclasses
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from cryptography import x509

from authop.conditions import CONDITION_FALSE, CONDITION_TRUE

_PEM_BLOCK = re.compile(
    rb"-----BEGIN ([^\r\n-]+)-----\r?\n(.*?)-----END \1-----", re.DOTALL
)


@dataclass
class Condition:
    type: str
    status: str
    reason: str = ""
    message: str = ""
    last_transition_time: datetime | None = None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def find_condition(conditions: Iterable[Condition] | None, condition_type: str) -> Condition | None:
    """Return the first condition of the given type, or None."""
    for condition in conditions or ():
        if condition.type == condition_type:
            return condition
    return None


def ensure_default_conditions(conditions: Iterable[Condition] | None) -> list[Condition]:
    """Return the conditions with healthy Progressing and Degraded added where missing."""
    result = list(conditions or ())
    for condition_type in ("Progressing", "Degraded"):
        if find_condition(result, condition_type) is None:
            result.append(
                Condition(
                    type=condition_type,
                    status=CONDITION_FALSE,
                    reason="AsExpected",
                    message="All is well",
                    last_transition_time=_now(),
                )
            )
    return result


def check_errors_configuring_custom_route(errors: Sequence[BaseException] | None) -> list[Condition]:
    """Return Degraded and Progressing conditions describing ``errors``, or nothing."""
    if not errors:
        return []
    now = _now()
    message = "Error Configuring custom route: [" + " ".join(str(err) for err in errors) + "]"
    return [
        Condition(
            type="Degraded",
            status=CONDITION_TRUE,
            reason="CustomRouteError",
            message=message,
            last_transition_time=now,
        ),
        Condition(
            type="Progressing",
            status=CONDITION_FALSE,
            reason="CustomRouteError",
            message=message,
            last_transition_time=now,
        ),
    ]


def degrade_if_time_elapsed(
    conditions: Iterable[Condition], condition: Condition, max_age: timedelta
) -> Condition:
    """Return ``condition``, turned Degraded if a matching one has lasted past ``max_age``.

    The age is measured from the given condition's own transition time.
    """
    transition = condition.last_transition_time
    for existing in conditions:
        if (
            existing.reason == condition.reason
            and existing.message == condition.message
            and existing.type == condition.type
            and transition is not None
            and transition + max_age < transition
        ):
            return dataclasses.replace(condition, type="Degraded")
    return condition


def parse_certificates(key_data: bytes | str) -> list[x509.Certificate]:
    """Return every certificate found in PEM ``key_data``, skipping other blocks."""
    if isinstance(key_data, str):
        key_data = key_data.encode()
    certs: list[x509.Certificate] = []
    for match in _PEM_BLOCK.finditer(key_data):
        try:
            der = base64.b64decode(b"".join(match.group(2).split()), validate=True)
            certs.append(x509.load_der_x509_certificate(der))
        except (binascii.Error, ValueError):
            continue
    if not certs:
        raise ValueError("data does not contain any valid certificates")
    return certs