from dotenv import load_dotenv
load_dotenv()

import os

from flask import Flask, jsonify
from flask_cors import CORS

from extensions import db, limiter
from reward_config import load_activity_config, load_scaling_factor, ActivityConfig
from reward_engine import RewardEngine


def _database_url() -> str:
    db_url = os.getenv("DATABASE_URL")
    if not db_url:
        if os.getenv("RENDER") == "true":
            raise RuntimeError("DATABASE_URL missing on Render; refusing to use SQLite.")
        db_url = "sqlite:///rewards.db"
    if db_url.startswith("postgres://"):
        db_url = db_url.replace("postgres://", "postgresql://", 1)
    return db_url


def _build_engine(app: Flask) -> RewardEngine:
    """Catalogue and scale are read once here and never change afterwards.

    REWARD_ACTIVITIES / REWARD_SCALING_FACTOR in the app config override the environment.
    """
    activities = app.config.get("REWARD_ACTIVITIES")
    if activities is None:
        activity_config = load_activity_config()
    else:
        activity_config = ActivityConfig(activities)
    scaling_factor = load_scaling_factor(app.config.get("REWARD_SCALING_FACTOR"))
    return RewardEngine(activity_config, scaling_factor)


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__)

    app.config["SQLALCHEMY_DATABASE_URI"] = _database_url()
    app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {
        "pool_recycle": 300,
        "pool_pre_ping": True,
    }
    app.config["REWARDS_RATE_LIMIT"] = os.getenv("REWARDS_RATE_LIMIT", "30 per minute")
    if test_config:
        app.config.update(test_config)

    # Initialize extensions
    db.init_app(app)
    CORS(app)
    limiter.init_app(app)

    app.extensions["reward_engine"] = _build_engine(app)

    # Imported late so models register against the initialised db.
    from rewards import rewards_api
    app.register_blueprint(rewards_api)

    @app.get("/healthz")
    def healthz():
        return jsonify({"ok": True})

    with app.app_context():
        db.create_all()

    return app


if __name__ == "__main__":
    app = create_app()
    port = int(os.getenv("PORT", "5000"))
    print("=" * 60)
    print("Activity Rewards Service")
    print("=" * 60)
    print(f"Activities: {', '.join(app.extensions['reward_engine'].activity_config)}")
    print(f"Scaling factor: {app.extensions['reward_engine'].scaling_factor}")
    print(f"Select activity: http://localhost:{port}/api/rewards/select-activity")
    print("=" * 60)
    app.run(host="0.0.0.0", port=port, debug=os.getenv("FLASK_ENV") == "development")
