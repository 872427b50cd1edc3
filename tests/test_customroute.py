from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from authop.customroute import (
    Condition,
    check_errors_configuring_custom_route,
    degrade_if_time_elapsed,
    ensure_default_conditions,
    find_condition,
    parse_certificates,
)


def _make_cert(common_name):
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=1))
        .sign(key, hashes.SHA256())
    )
    key_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )
    return key_pem, cert


def _cert_pem(cert):
    return cert.public_bytes(serialization.Encoding.PEM)


def test_find_condition_returns_first_match():
    conditions = [
        Condition(type="Degraded", status="True", reason="A"),
        Condition(type="Progressing", status="False"),
        Condition(type="Degraded", status="False", reason="B"),
    ]
    assert find_condition(conditions, "Degraded").reason == "A"
    assert find_condition(conditions, "Available") is None


def test_ensure_default_conditions_fills_empty():
    result = ensure_default_conditions([])
    assert [c.type for c in result] == ["Progressing", "Degraded"]
    for condition in result:
        assert condition.status == "False"
        assert condition.reason == "AsExpected"
        assert condition.message == "All is well"
        assert condition.last_transition_time is not None


def test_ensure_default_conditions_keeps_existing():
    degraded = Condition(type="Degraded", status="True", reason="CustomRouteError")
    result = ensure_default_conditions([degraded])
    assert result[0] is degraded
    assert [c.type for c in result] == ["Degraded", "Progressing"]


def test_check_errors_none():
    assert check_errors_configuring_custom_route([]) == []
    assert check_errors_configuring_custom_route(None) == []


def test_check_errors_reports_degraded_and_progressing():
    result = check_errors_configuring_custom_route([ValueError("boom")])
    assert [(c.type, c.status, c.reason) for c in result] == [
        ("Degraded", "True", "CustomRouteError"),
        ("Progressing", "False", "CustomRouteError"),
    ]
    assert result[0].message == "Error Configuring custom route: [boom]"
    assert result[0].message == result[1].message
    assert result[0].last_transition_time == result[1].last_transition_time


def _progressing(message="Route not admitted: x", when=None):
    return Condition(
        type="Progressing",
        status="True",
        reason="RouteNotAdmitted",
        message=message,
        last_transition_time=when,
    )


def test_degrade_keeps_type_with_positive_age():
    when = datetime.now(timezone.utc) - timedelta(hours=1)
    condition = _progressing(when=when)
    result = degrade_if_time_elapsed([_progressing(when=when)], condition, timedelta(minutes=5))
    assert result.type == "Progressing"


def test_degrade_with_negative_age_on_match():
    when = datetime.now(timezone.utc)
    condition = _progressing(when=when)
    result = degrade_if_time_elapsed([_progressing(when=when)], condition, timedelta(minutes=-5))
    assert result.type == "Degraded"
    assert result.message == condition.message
    assert condition.type == "Progressing"


def test_degrade_requires_matching_condition():
    when = datetime.now(timezone.utc)
    condition = _progressing(when=when)
    other = _progressing(message="different", when=when)
    result = degrade_if_time_elapsed([other], condition, timedelta(minutes=-5))
    assert result.type == "Progressing"


def test_degrade_requires_transition_time():
    condition = _progressing(when=None)
    result = degrade_if_time_elapsed([_progressing()], condition, timedelta(minutes=-5))
    assert result.type == "Progressing"


def test_parse_single_certificate():
    _, cert = _make_cert("one.example.com")
    parsed = parse_certificates(_cert_pem(cert))
    assert parsed == [cert]


def test_parse_skips_private_keys_and_keeps_order():
    key_pem, first = _make_cert("first.example.com")
    _, second = _make_cert("second.example.com")
    data = key_pem + _cert_pem(first) + _cert_pem(second)
    parsed = parse_certificates(data)
    assert [c.subject for c in parsed] == [first.subject, second.subject]


def test_parse_accepts_text():
    _, cert = _make_cert("text.example.com")
    parsed = parse_certificates(_cert_pem(cert).decode())
    assert parsed[0].serial_number == cert.serial_number


def test_parse_rejects_key_only():
    key_pem, _ = _make_cert("key.example.com")
    with pytest.raises(ValueError, match="data does not contain any valid certificates"):
        parse_certificates(key_pem)


def test_parse_rejects_empty():
    with pytest.raises(ValueError, match="data does not contain any valid certificates"):
        parse_certificates(b"")