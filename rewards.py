"""Activity reward APIs.

Routes:
- GET  /api/rewards/activities
- GET  /api/rewards/slots/<slot_key>
- POST /api/rewards/select-activity

Assumptions:
- Users are identified by wallet address; the wallet is trusted after a format check.
- The slot key is chosen by the client and reused to build a streak. The first
  call creates the slot, every later call overwrites it in place.
- A slot belongs to the wallet that created it.
- On any reward error the transaction is rolled back and the slot is left as it was.
"""

import re

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import IntegrityError

from extensions import db, limiter
from models_rewards import RewardLedgerSlot
from pricing import demand_level
from reward_config import format_fraction
from reward_engine import RewardEngine
from reward_errors import ConfigError, InvalidEntry, InvalidRequest, Overflow, RewardError
from reward_ledger import RewardRequest


rewards_api = Blueprint("rewards_api", __name__)

_WALLET_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
_SLOT_MAX_LEN = 64

_ERROR_STATUS = (
    (ConfigError, 400),
    (InvalidRequest, 400),
    (Overflow, 422),
    (InvalidEntry, 500),
)


def _norm_wallet(wallet) -> str:
    return str(wallet or "").strip().lower()


def _is_valid_wallet(wallet: str) -> bool:
    return bool(_WALLET_RE.match(wallet or ""))


def _parse_count(raw):
    """Accept ints and digit strings; anything else is None."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip().lstrip("-").isdigit():
        return int(raw.strip())
    return None


def _engine() -> RewardEngine:
    return current_app.extensions["reward_engine"]


def _status_for(err: RewardError) -> int:
    for cls, status in _ERROR_STATUS:
        if isinstance(err, cls):
            return status
    return 400


def _rate_limit() -> str:
    return current_app.config.get("REWARDS_RATE_LIMIT", "30 per minute")


@rewards_api.get("/api/rewards/activities")
def list_activities():
    engine = _engine()
    return jsonify(
        {
            "success": True,
            "activities": engine.activity_config.to_dict(),
            "scaling_factor": engine.scaling_factor,
        }
    )


@rewards_api.get("/api/rewards/slots/<slot_key>")
def get_slot(slot_key: str):
    slot = db.session.get(RewardLedgerSlot, slot_key)
    if slot is None:
        return jsonify({"success": False, "error": "Slot not found"}), 404
    return jsonify({"success": True, "slot": slot.to_dict()})


@rewards_api.post("/api/rewards/select-activity")
@limiter.limit(_rate_limit)
def select_activity():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    wallet = _norm_wallet(data.get("wallet"))
    slot_key = str(data.get("slot") or "").strip()
    activity = data.get("activity")
    num_tasks = _parse_count(data.get("num_tasks"))
    num_users = _parse_count(data.get("num_users"))

    if not _is_valid_wallet(wallet):
        return jsonify({"success": False, "error": "Invalid wallet address"}), 400
    if not slot_key or len(slot_key) > _SLOT_MAX_LEN:
        return jsonify({"success": False, "error": f"slot is required (max {_SLOT_MAX_LEN} chars)"}), 400
    if "/" in slot_key:
        return jsonify({"success": False, "error": "slot must not contain '/'"}), 400
    if num_tasks is None or num_users is None:
        return jsonify({"success": False, "error": "num_tasks and num_users must be integers"}), 400

    try:
        reward_request = RewardRequest(user=wallet, activity=activity, num_tasks=num_tasks, num_users=num_users)

        # Row lock serialises concurrent applications against the same slot.
        slot = db.session.execute(
            db.select(RewardLedgerSlot).filter_by(slot_key=slot_key).with_for_update()
        ).scalar_one_or_none()
        if slot is not None and slot.owner != wallet:
            db.session.rollback()
            return jsonify({"success": False, "error": "Slot belongs to another wallet"}), 403

        created = slot is None
        prior_entry = None if created else slot.to_entry()

        engine = _engine()
        quote = engine.quote(reward_request, prior_entry)
        entry = engine.entry_from_quote(reward_request, quote)

        if created:
            slot = RewardLedgerSlot(slot_key=slot_key)
            db.session.add(slot)
        slot.write_entry(entry)
        db.session.commit()
    except RewardError as e:
        db.session.rollback()
        status = _status_for(e)
        if status >= 500:
            current_app.logger.error("Reward slot %s is corrupt: %s", slot_key, e)
        else:
            current_app.logger.warning("Reward request rejected for %s: %s", wallet, e)
        return jsonify({"success": False, "error": str(e), "error_type": type(e).__name__}), status
    except IntegrityError:
        db.session.rollback()
        current_app.logger.warning("Concurrent first write to reward slot %s", slot_key)
        return jsonify({"success": False, "error": "Slot was written concurrently, retry"}), 409
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Reward select_activity failed")
        return jsonify({"success": False, "error": "Internal server error"}), 500

    current_app.logger.info(
        "Reward %s for %s on slot %s (streak %d)",
        entry.reward_amount, activity, slot_key, entry.consecutive_count,
    )
    return jsonify(
        {
            "success": True,
            "created": created,
            "entry": entry.to_dict(),
            "slot": slot.to_dict(),
            "demand": demand_level(num_tasks, num_users),
            "multiplier": format_fraction(quote.multiplier),
            "scaled_reward": format_fraction(quote.scaled_reward),
            "decay_exponent": quote.decay_exponent,
        }
    )
