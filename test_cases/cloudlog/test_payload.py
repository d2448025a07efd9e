from cloudlog.payload import MISSING_VALUE, build_payload, format_payload, normalize_fields


def test_payload_from_mapping() -> None:
    p = build_payload("test message", {"key1": "value1", "key2": "value2"})
    assert p == {"msg": "test message", "key1": "value1", "key2": "value2"}


def test_payload_empty_fields() -> None:
    assert build_payload("test message", {}) == {"msg": "test message"}
    assert build_payload("test message") == {"msg": "test message"}
    assert build_payload("test message", []) == {"msg": "test message"}


def test_payload_from_flat_sequence() -> None:
    p = build_payload("hello", ["a", "1", "b", "2"])
    assert p == {"msg": "hello", "a": "1", "b": "2"}


def test_payload_odd_sequence_gets_missing() -> None:
    p = build_payload("hello", ["a", "1", "orphan"])
    assert p["orphan"] == MISSING_VALUE == "MISSING"
    assert p["a"] == "1"
    assert len(p) == 3


def test_payload_field_named_msg_overwrites_message() -> None:
    p = build_payload("original", {"msg": "override", "k": "v"})
    assert p["msg"] == "override"
    assert len(p) == 2


def test_payload_duplicate_flat_keys_last_wins() -> None:
    p = build_payload("m", ["k", "first", "k", "second"])
    assert p == {"msg": "m", "k": "second"}


def test_payload_message_key_comes_first() -> None:
    p = build_payload("m", {"z": "1", "a": "2"})
    assert list(p) == ["msg", "z", "a"]


def test_normalize_non_string_values() -> None:
    assert normalize_fields({"n": 3, "ok": True}) == {"n": "3", "ok": "True"}
    assert normalize_fields(("port", 8080)) == {"port": "8080"}


def test_normalize_lone_string_is_a_single_key() -> None:
    assert normalize_fields("orphan") == {"orphan": MISSING_VALUE}


def test_format_payload() -> None:
    assert format_payload({"msg": "boom", "k": "v"}) == "{msg:boom k:v}"
    assert format_payload({}) == "{}"


def test_payload_scalar_fields_never_raise() -> None:
    assert build_payload("m", 42) == {"msg": "m", "42": MISSING_VALUE}
    assert build_payload("m", 1.5) == {"msg": "m", "1.5": MISSING_VALUE}
    assert build_payload("m", True) == {"msg": "m", "True": MISSING_VALUE}
