from cdnorigin.strhelper import (
    StringSet,
    contains,
    filter_strings,
    is_empty_or_none,
    merge_maps,
)


def test_set_add():
    ss = StringSet()
    ss.add("test-1")
    ss.add("test-2")
    assert "test-1" in ss
    assert "test-2" in ss
    assert len(ss) == 2


def test_set_add_is_idempotent():
    ss = StringSet()
    ss.add("test-1")
    ss.add("test-1")
    assert len(ss) == 1


def test_set_contains():
    ss = StringSet()
    ss.add("test-1")
    ss.add("test-2")
    assert "test-1" in ss
    assert "test-2" in ss
    assert "some other string" not in ss


def test_set_to_list():
    ss = StringSet()
    ss.add("test-1")
    ss.add("test-2")
    assert sorted(ss.to_list()) == ["test-1", "test-2"]


def test_empty_set_to_list():
    assert StringSet().to_list() == []


def test_contains():
    assert contains(["a", "b"], "b") is True
    assert contains(["a", "b"], "c") is False
    assert contains(None, "a") is False


def test_filter_strings_keeps_order():
    assert filter_strings(["a1", "b", "a2"], lambda s: s.startswith("a")) == ["a1", "a2"]
    assert filter_strings(None, lambda s: True) == []


def test_merge_maps_second_wins():
    m1 = {"a": "1", "b": "2"}
    m2 = {"b": "3", "c": "4"}
    merged = merge_maps(m1, m2)
    assert merged == {"a": "1", "b": "3", "c": "4"}
    assert m1 == {"a": "1", "b": "2"}
    assert merge_maps(None, None) == {}


def test_is_empty_or_none():
    assert is_empty_or_none(None) is True
    assert is_empty_or_none("") is True
    assert is_empty_or_none("x") is False