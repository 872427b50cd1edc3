import pytest

from authop.conditions import NotFoundError
from authop.listers import OAUTH_SERVER_CONFIG_PREFIX, Event, InMemoryRecorder, Listers, ObjectStore


def _obj(name, namespace=None, **extra):
    metadata = {"name": name}
    if namespace is not None:
        metadata["namespace"] = namespace
    return {"metadata": metadata, **extra}


def test_store_get_returns_added_object():
    store = ObjectStore("consoles.config.openshift.io")
    obj = _obj("cluster", status={"consoleURL": "https://teh.console.my"})
    store.add(obj)
    assert store.get("cluster") is obj
    assert len(store) == 1


def test_store_is_keyed_by_namespace():
    store = ObjectStore("secrets")
    first = _obj("router-certs", "openshift-authentication")
    second = _obj("router-certs", "openshift-config")
    store.add(first)
    store.add(second)
    assert store.get("router-certs", "openshift-authentication") is first
    assert store.get("router-certs", namespace="openshift-config") is second
    with pytest.raises(NotFoundError):
        store.get("router-certs")


def test_store_add_replaces_same_key():
    store = ObjectStore("oauths", [_obj("cluster", spec={"a": 1})])
    replacement = _obj("cluster", spec={"a": 2})
    store.add(replacement)
    assert store.get("cluster") is replacement
    assert len(store) == 1


def test_store_missing_object_raises_not_found():
    store = ObjectStore("consoles.config.openshift.io")
    with pytest.raises(NotFoundError) as info:
        store.get("cluster")
    assert '"cluster" not found' in str(info.value)
    assert info.value.name == "cluster"


def test_store_rejects_object_without_name():
    store = ObjectStore("things")
    with pytest.raises(ValueError):
        store.add({"metadata": {}})


def test_recorder_formats_and_keeps_order():
    recorder = InMemoryRecorder("test")
    recorder.eventf("First", "changed from %s to %s", "a", "b")
    recorder.eventf("Second", "plain 100%")
    assert recorder.events() == [
        Event("First", "changed from a to b"),
        Event("Second", "plain 100%"),
    ]


def test_recorder_events_returns_copy():
    recorder = InMemoryRecorder()
    recorder.eventf("Reason", "message")
    events = recorder.events()
    events.clear()
    assert len(recorder.events()) == 1


def test_listers_defaults_and_prefix():
    listers = Listers()
    assert listers.console_lister is None
    assert listers.pre_run_caches_synced == []
    assert OAUTH_SERVER_CONFIG_PREFIX == "oauthServer"