import json
from datetime import UTC, datetime

import pytest

from arcanepaths.codec import FORMAT_VERSION, SnapshotDecodeError, deserialize, serialize
from arcanepaths.models import BadgeKind, GameKind, new_snapshot


def _payload() -> dict:
    return json.loads(serialize(new_snapshot()).decode("utf-8"))


def _encode(payload: dict) -> bytes:
    return json.dumps(payload).encode("utf-8")


def test_serialize_uses_camel_case_keys() -> None:
    payload = _payload()
    assert payload["formatVersion"] == FORMAT_VERSION
    assert payload["hasOnboarded"] is False
    assert payload["pathwaysUnlockedCount"] == 1
    assert [p["gameKind"] for p in payload["pathways"]] == ["reflex", "balance", "pattern"]
    first_level = payload["pathways"][0]["levels"][0]
    assert first_level == {
        "id": 1,
        "gameKind": "reflex",
        "difficulty": "easy",
        "isCompleted": False,
        "bestScore": 0,
    }
    assert payload["badges"][0] == {"kind": "firstStep", "isEarned": False, "earnedAt": None}


def test_fresh_snapshot_survives_round_trip() -> None:
    snapshot = new_snapshot()
    assert deserialize(serialize(snapshot)) == snapshot


def test_progress_and_earned_at_survive_round_trip() -> None:
    snapshot = new_snapshot()
    snapshot.has_onboarded = True
    level = snapshot.level(GameKind.REFLEX, 3)
    assert level is not None
    level.is_completed = True
    level.best_score = 180
    badge = snapshot.badge(BadgeKind.FIRST_STEP)
    assert badge is not None
    badge.is_earned = True
    badge.earned_at = datetime(2026, 3, 14, 9, 26, 53, tzinfo=UTC)
    snapshot.total_levels_completed = 1
    snapshot.current_streak = 1
    snapshot.best_streak = 1

    restored = deserialize(serialize(snapshot))
    assert restored == snapshot
    restored_badge = restored.badge(BadgeKind.FIRST_STEP)
    assert restored_badge is not None
    assert restored_badge.earned_at == badge.earned_at


def test_missing_format_version_is_accepted() -> None:
    payload = _payload()
    del payload["formatVersion"]
    assert deserialize(_encode(payload)) == new_snapshot()


@pytest.mark.parametrize(
    "data",
    [
        b"not json",
        b"\xff\xfe",
        b"[]",
        b'{"pathways": 3}',
    ],
)
def test_malformed_bytes_raise_decode_error(data: bytes) -> None:
    with pytest.raises(SnapshotDecodeError):
        deserialize(data)


def test_newer_format_version_is_rejected() -> None:
    payload = _payload()
    payload["formatVersion"] = FORMAT_VERSION + 1
    with pytest.raises(SnapshotDecodeError, match="newer"):
        deserialize(_encode(payload))


def test_pathways_out_of_order_are_rejected() -> None:
    payload = _payload()
    payload["pathways"].reverse()
    with pytest.raises(SnapshotDecodeError):
        deserialize(_encode(payload))


def test_unknown_enum_value_is_rejected() -> None:
    payload = _payload()
    payload["pathways"][0]["levels"][0]["difficulty"] = "nightmare"
    with pytest.raises(SnapshotDecodeError, match="level.difficulty"):
        deserialize(_encode(payload))


def test_missing_badge_kind_is_rejected() -> None:
    payload = _payload()
    payload["badges"].pop()
    with pytest.raises(SnapshotDecodeError):
        deserialize(_encode(payload))


def test_boolean_is_not_an_integer() -> None:
    payload = _payload()
    payload["currentStreak"] = True
    with pytest.raises(SnapshotDecodeError):
        deserialize(_encode(payload))


def test_bad_timestamp_is_rejected() -> None:
    payload = _payload()
    payload["badges"][0]["earnedAt"] = "yesterday"
    with pytest.raises(SnapshotDecodeError):
        deserialize(_encode(payload))


@pytest.mark.parametrize("keep", [0, 4])
def test_missing_milestones_are_rejected(keep: int) -> None:
    payload = _payload()
    payload["milestones"] = payload["milestones"][:keep]
    with pytest.raises(SnapshotDecodeError, match="milestones"):
        deserialize(_encode(payload))


def test_unknown_milestone_id_is_rejected() -> None:
    payload = _payload()
    payload["milestones"][1]["id"] = "levels_11"
    with pytest.raises(SnapshotDecodeError, match="milestones"):
        deserialize(_encode(payload))


def test_duplicate_level_ids_are_rejected() -> None:
    payload = _payload()
    for level in payload["pathways"][0]["levels"]:
        level["id"] = 1
    with pytest.raises(SnapshotDecodeError, match="out of order"):
        deserialize(_encode(payload))


def test_difficulty_bands_out_of_order_are_rejected() -> None:
    payload = _payload()
    levels = payload["pathways"][1]["levels"]
    levels[0]["difficulty"], levels[8]["difficulty"] = "hard", "easy"
    with pytest.raises(SnapshotDecodeError, match="out of order"):
        deserialize(_encode(payload))


def test_earned_badge_needs_timestamp() -> None:
    payload = _payload()
    payload["badges"][0]["isEarned"] = True
    with pytest.raises(SnapshotDecodeError, match="earnedAt"):
        deserialize(_encode(payload))


def test_unearned_badge_rejects_timestamp() -> None:
    payload = _payload()
    payload["badges"][0]["earnedAt"] = "2026-03-14T09:26:53+00:00"
    with pytest.raises(SnapshotDecodeError, match="earnedAt"):
        deserialize(_encode(payload))
