from datetime import datetime, timedelta, timezone

import pytest

from promcommon.silence import Matcher, Silence

TS = datetime.now(timezone.utc)


@pytest.mark.parametrize(
    "matcher, err",
    [
        (Matcher(name="name", value="value"), ""),
        (Matcher(name="name", value="value", is_regex=True), ""),
        (Matcher(name="name!", value="value"), "invalid name"),
        (Matcher(name="", value="value"), "invalid name"),
        (Matcher(name="name", value="value\udcff"), "invalid value"),
        (Matcher(name="name", value=""), "invalid value"),
        (Matcher(name="name", value="(", is_regex=True), "invalid regular expression"),
    ],
)
def test_matcher_validate(matcher, err):
    if err:
        with pytest.raises(ValueError) as exc:
            matcher.validate()
        assert err in str(exc.value)
    else:
        assert matcher.validate() is None


def _ok():
    return Matcher(name="name", value="value")


@pytest.mark.parametrize(
    "silence, err",
    [
        (
            Silence(matchers=[_ok()], starts_at=TS, ends_at=TS, created_at=TS,
                    created_by="name", comment="comment"),
            "",
        ),
        (
            Silence(
                matchers=[_ok(), _ok(), _ok(),
                          Matcher(name="name", value="value", is_regex=True)],
                starts_at=TS, ends_at=TS, created_at=TS,
                created_by="name", comment="comment",
            ),
            "",
        ),
        (
            Silence(matchers=[_ok()], starts_at=TS, ends_at=TS - timedelta(minutes=1),
                    created_at=TS, created_by="name", comment="comment"),
            "start time must be before end time",
        ),
        (
            Silence(matchers=[_ok()], starts_at=TS, created_at=TS,
                    created_by="name", comment="comment"),
            "end time missing",
        ),
        (
            Silence(matchers=[_ok()], ends_at=TS, created_at=TS,
                    created_by="name", comment="comment"),
            "start time missing",
        ),
        (
            Silence(matchers=[Matcher(name="!name", value="value")], starts_at=TS,
                    ends_at=TS, created_at=TS, created_by="name", comment="comment"),
            "invalid matcher",
        ),
        (
            Silence(matchers=[_ok()], starts_at=TS, ends_at=TS, created_at=TS,
                    created_by="name"),
            "comment missing",
        ),
        (
            Silence(matchers=[_ok()], starts_at=TS, ends_at=TS,
                    created_by="name", comment="comment"),
            "creation timestamp missing",
        ),
        (
            Silence(matchers=[_ok()], starts_at=TS, ends_at=TS, created_at=TS,
                    comment="comment"),
            "creator information missing",
        ),
        (
            Silence(matchers=[], starts_at=TS, ends_at=TS, created_at=TS,
                    comment="comment"),
            "at least one matcher required",
        ),
    ],
)
def test_silence_validate(silence, err):
    if err:
        with pytest.raises(ValueError) as exc:
            silence.validate()
        assert err in str(exc.value)
    else:
        assert silence.validate() is None


def test_matcher_from_json():
    m = Matcher.from_json('{"name": "job", "value": "api.*", "isRegex": true}')
    assert m == Matcher(name="job", value="api.*", is_regex=True)


def test_matcher_from_json_missing_name():
    with pytest.raises(ValueError, match="label name in matcher must not be empty"):
        Matcher.from_json('{"value": "x"}')


def test_matcher_from_json_invalid_name():
    with pytest.raises(ValueError, match="is not a valid label name"):
        Matcher.from_json('{"name": "1bad", "value": "x"}')


def test_matcher_from_json_bad_regex():
    with pytest.raises(ValueError):
        Matcher.from_json('{"name": "job", "value": "(", "isRegex": true}')