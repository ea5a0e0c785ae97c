import json

import pytest

from promcommon.labelset import LabelSet


def test_from_json_valid():
    document = json.loads('{"labelSet": {"monitor": "codelab", "foo": "bar"}}')
    ls = LabelSet.from_json(json.dumps(document["labelSet"]))
    assert str(ls) == '{foo="bar", monitor="codelab"}'


def test_from_json_invalid_name():
    with pytest.raises(ValueError) as exc:
        LabelSet.from_json('{"1nvalid_23name": "codelab", "foo": "bar"}')
    assert str(exc.value) == '"1nvalid_23name" is not a valid label name'


def test_from_json_null_is_empty():
    assert LabelSet.from_json("null") == {}


def test_clone():
    ls = LabelSet({"monitor": "codelab", "foo": "bar", "bar": "baz"})
    cloned = ls.clone()
    assert cloned == ls
    assert isinstance(cloned, LabelSet)
    cloned["extra"] = "x"
    assert "extra" not in ls


def test_merge():
    ls = LabelSet({"monitor": "codelab", "foo": "bar", "bar": "baz"})
    other = LabelSet({"monitor": "codelab", "dolor": "mi", "lorem": "ipsum"})
    merged = ls.merge(other)
    assert merged == {
        "monitor": "codelab",
        "foo": "bar",
        "bar": "baz",
        "dolor": "mi",
        "lorem": "ipsum",
    }
    assert len(ls) == 3


def test_merge_other_wins():
    assert LabelSet({"a": "1"}).merge({"a": "2"}) == {"a": "2"}


def test_validate_errors():
    with pytest.raises(ValueError, match="invalid name"):
        LabelSet({"!bad": "x"}).validate()
    with pytest.raises(ValueError, match="invalid value"):
        LabelSet({"good": "\udcffx"}).validate()


def test_validate_ok_returns_none():
    assert LabelSet({"a": "b"}).validate() is None


def test_before_by_length():
    assert LabelSet({"a": "1"}).before({"a": "1", "b": "2"}) is True
    assert LabelSet({"a": "1", "b": "2"}).before({"a": "1"}) is False


def test_before_by_names_and_values():
    assert LabelSet({"a": "1"}).before({"b": "1"}) is False
    assert LabelSet({"b": "1"}).before({"a": "1"}) is True
    assert LabelSet({"a": "1"}).before({"a": "2"}) is True
    assert LabelSet({"a": "2"}).before({"a": "1"}) is False
    assert LabelSet({"a": "1"}).before({"a": "1"}) is False


def test_fingerprints():
    ls = LabelSet({"name": "garland, briggs", "fear": "love is not enough"})
    assert ls.fingerprint() == 5799056148416392346
    assert ls.fast_fingerprint() == 12952432476264840823


def test_str_empty():
    assert str(LabelSet()) == "{}"