"""Shared pytest fixtures and configuration."""

import os

import pytest
from hypothesis import HealthCheck, settings

from reward_config import ActivityConfig, DEFAULT_ACTIVITIES
from reward_engine import RewardEngine
from reward_ledger import RewardRequest

from tests.helpers import WALLET

# =============================================================================
# Hypothesis Configuration
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=50,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)

settings.register_profile(
    "dev",
    max_examples=10,
    deadline=500,
)

settings.register_profile(
    "thorough",
    max_examples=1000,
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


# =============================================================================
# Core Fixtures
# =============================================================================

@pytest.fixture
def activity_config():
    return ActivityConfig(DEFAULT_ACTIVITIES)


@pytest.fixture
def engine(activity_config):
    """Engine with the default catalogue and a scale of 100."""
    return RewardEngine(activity_config, 100)


@pytest.fixture
def make_request():
    def _make(activity="Check-in", num_tasks=100, num_users=100, user=WALLET):
        return RewardRequest(user=user, activity=activity, num_tasks=num_tasks, num_users=num_users)

    return _make


# =============================================================================
# Flask Fixtures
# =============================================================================

@pytest.fixture
def app():
    from app import create_app
    from extensions import db

    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "SQLALCHEMY_ENGINE_OPTIONS": {},
            "RATELIMIT_ENABLED": False,
            "REWARD_ACTIVITIES": DEFAULT_ACTIVITIES,
            "REWARD_SCALING_FACTOR": 100,
        }
    )
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()
