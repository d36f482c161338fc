"""Tests for the reward HTTP endpoints and ledger slot storage."""

import pytest

from extensions import db
from models_rewards import RewardLedgerSlot

from tests.helpers import OTHER_WALLET, WALLET


def _select(client, activity="Check-in", slot="slot-1", wallet=WALLET, num_tasks=100, num_users=100):
    return client.post(
        "/api/rewards/select-activity",
        json={
            "wallet": wallet,
            "slot": slot,
            "activity": activity,
            "num_tasks": num_tasks,
            "num_users": num_users,
        },
    )


def test_list_activities(client):
    resp = client.get("/api/rewards/activities")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["activities"]["Check-in"] == "0.01"
    assert body["scaling_factor"] == 100


def test_first_application_creates_slot(client):
    resp = _select(client, num_tasks=100, num_users=50)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["created"] is True
    assert body["demand"] == "high"
    assert body["multiplier"] == "1.2"
    assert body["scaled_reward"] == "1.2"
    assert body["entry"] == {
        "owner": WALLET,
        "activity": "Check-in",
        "num_tasks": 100,
        "num_users": 50,
        "consecutive_count": 1,
        "reward_amount": 1,
    }
    assert body["slot"]["slot"] == "slot-1"
    assert body["slot"]["updated_at"] is not None


def test_wallet_is_normalised(client):
    resp = _select(client, wallet=WALLET.upper().replace("0X", "0x"))
    assert resp.status_code == 200
    assert resp.get_json()["entry"]["owner"] == WALLET


def test_streak_grows_and_resets(client):
    counts = []
    amounts = []
    for activity in ["Check-in", "Check-in", "Check-in", "Check-in", "View Analytics"]:
        body = _select(client, activity=activity).get_json()
        counts.append(body["entry"]["consecutive_count"])
        amounts.append(body["entry"]["reward_amount"])
    assert counts == [1, 2, 3, 4, 1]
    assert amounts == [1, 1, 1, 0, 1]


def test_slot_is_overwritten_in_place(app, client):
    _select(client, activity="Check-in")
    _select(client, activity="Cast a Vote", num_tasks=1, num_users=9)
    with app.app_context():
        rows = db.session.execute(db.select(RewardLedgerSlot)).scalars().all()
        assert len(rows) == 1
        entry = rows[0].to_entry()
    assert entry.activity == "Cast a Vote"
    assert entry.consecutive_count == 1
    assert entry.reward_amount == 5  # 0.05 * 0.9 * 100 = 4.5 -> 5


def test_slots_are_independent(client):
    _select(client, slot="a")
    _select(client, slot="a")
    body = _select(client, slot="b").get_json()
    assert body["created"] is True
    assert body["entry"]["consecutive_count"] == 1


def test_get_slot(client):
    _select(client)
    resp = client.get("/api/rewards/slots/slot-1")
    assert resp.status_code == 200
    assert resp.get_json()["slot"]["activity"] == "Check-in"
    assert client.get("/api/rewards/slots/nope").status_code == 404


def test_unknown_activity_writes_nothing(client):
    resp = _select(client, activity="Nonexistent")
    assert resp.status_code == 400
    assert resp.get_json()["error_type"] == "ConfigError"
    assert client.get("/api/rewards/slots/slot-1").status_code == 404


def test_failed_application_keeps_previous_entry(client):
    _select(client, activity="Check-in")
    _select(client, activity="Nonexistent")
    slot = client.get("/api/rewards/slots/slot-1").get_json()["slot"]
    assert slot["activity"] == "Check-in"
    assert slot["consecutive_count"] == 1


def test_slot_owned_by_other_wallet(client):
    _select(client, wallet=WALLET)
    resp = _select(client, wallet=OTHER_WALLET)
    assert resp.status_code == 403


def test_counter_overflow_returns_422(app, client):
    _select(client)
    with app.app_context():
        slot = db.session.get(RewardLedgerSlot, "slot-1")
        slot.consecutive_count = 2**32 - 1
        db.session.commit()
    resp = _select(client)
    assert resp.status_code == 422
    assert resp.get_json()["error_type"] == "Overflow"
    assert client.get("/api/rewards/slots/slot-1").get_json()["slot"]["consecutive_count"] == 2**32 - 1


def test_corrupt_slot_returns_500(app, client):
    _select(client)
    with app.app_context():
        slot = db.session.get(RewardLedgerSlot, "slot-1")
        slot.consecutive_count = 0
        db.session.commit()
    resp = _select(client)
    assert resp.status_code == 500
    assert resp.get_json()["error_type"] == "InvalidEntry"


@pytest.mark.parametrize(
    "overrides",
    [
        {"wallet": "not-a-wallet"},
        {"slot": ""},
        {"slot": "x" * 65},
        {"num_tasks": "many"},
        {"num_users": None},
        {"num_tasks": True},
        {"num_tasks": -1},
        {"activity": ""},
    ],
)
def test_bad_input(client, overrides):
    payload = {
        "wallet": WALLET,
        "slot": "slot-1",
        "activity": "Check-in",
        "num_tasks": 1,
        "num_users": 1,
    }
    payload.update(overrides)
    resp = client.post("/api/rewards/select-activity", json=payload)
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_digit_strings_are_accepted(client):
    resp = _select(client, num_tasks="10", num_users="20")
    assert resp.status_code == 200
    assert resp.get_json()["demand"] == "low"


def test_non_object_body(client):
    resp = client.post("/api/rewards/select-activity", json=["Check-in"])
    assert resp.status_code == 400


def test_max_u64_counts_survive_storage(client):
    top = 2**64 - 1
    for expected_streak in (1, 2):
        resp = _select(client, slot="whale", num_tasks=top, num_users=0)
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["entry"]["consecutive_count"] == expected_streak
        assert body["slot"]["num_tasks"] == top

    slot = client.get("/api/rewards/slots/whale").get_json()["slot"]
    assert slot["num_tasks"] == top
    assert slot["num_users"] == 0
    assert slot["consecutive_count"] == 2


def test_counts_above_float_precision_are_exact(app, client):
    value = 2**53 + 1
    assert _select(client, num_tasks=value, num_users=value - 1).status_code == 200
    with app.app_context():
        row = db.session.get(RewardLedgerSlot, "slot-1")
        assert row.num_tasks == value
        assert row.to_entry().num_users == value - 1


def test_activity_id_is_matched_exactly(client):
    resp = _select(client, activity="Check-in ")
    assert resp.status_code == 400
    assert resp.get_json()["error_type"] == "ConfigError"
    assert client.get("/api/rewards/slots/slot-1").status_code == 404


def test_slot_with_slash_is_rejected(client):
    resp = _select(client, slot="a/b")
    assert resp.status_code == 400
    assert "slot" in resp.get_json()["error"]
    assert client.get("/api/rewards/slots/a").status_code == 404
