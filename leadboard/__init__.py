import os
import logging

import click
from flask import Flask, jsonify

from leadboard.config import config_by_name
from leadboard.extensions import db, migrate, limiter

# Pipeline created by `flask seed-stages` on an empty database.
DEFAULT_STAGES = [
    {"id": "new", "title": "New Leads", "color": "blue"},
    {"id": "contacted", "title": "Contacted", "color": "yellow"},
    {"id": "qualified", "title": "Qualified", "color": "green"},
    {"id": "proposal", "title": "Proposal", "color": "purple"},
    {"id": "closed", "title": "Closed", "color": "gray"},
]


def create_app(config_name=None):
    """Application factory."""

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    # --- Validate required env vars (skip in testing) ---
    if config_name != "testing":
        try:
            config_by_name[config_name].validate()
        except RuntimeError as e:
            app.logger.warning(f"Config validation: {e}")

    # --- Init extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    # --- Import models so Alembic can discover them ---
    with app.app_context():
        from leadboard import models  # noqa: F401

    # --- Register blueprints ---
    from leadboard.blueprints.board import board_bp

    app.register_blueprint(board_bp)

    @app.route("/health")
    def health():
        return jsonify({"status": "ok", "store": app.config["STORE_BACKEND"]})

    # --- Error handlers ---
    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(500)
    def server_error(e):
        return jsonify({"error": "Internal server error"}), 500

    # --- CLI commands ---
    register_cli(app)

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=logging.INFO)

    return app


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("seed-stages")
    def seed_stages():
        """Create the default pipeline stages on an empty board.

        Usage:
            flask seed-stages
        """
        from leadboard.gateway import build_gateway

        gateway = build_gateway(app.config)
        existing = gateway.list_stages()
        if existing:
            click.echo(f"Board already has {len(existing)} stages, nothing to do.")
            return

        for position, stage in enumerate(DEFAULT_STAGES):
            created = gateway.create_stage(dict(stage, position=position))
            click.echo(f"  Created stage: {created.title} ({created.id})")
        click.echo(f"Seeded {len(DEFAULT_STAGES)} stages.")

    @app.cli.command("board")
    @click.option("--sort", default="none", help="Lead order inside each stage.")
    def show_board(sort):
        """Print the resolved board: each stage with its leads.

        Usage:
            flask board
            flask board --sort priority-high-first
        """
        from leadboard.engine.resolver import order_leads
        from leadboard.engine.sync import SyncEngine
        from leadboard.gateway import build_gateway

        engine = SyncEngine(build_gateway(app.config))
        engine.load()
        view = order_leads(engine.view, sort)
        if not view:
            click.echo("No stages yet. Run `flask seed-stages` first.")
            return

        for stage in view:
            click.echo(f"{stage.title} [{stage.meta.color.value}] ({len(stage.leads)})")
            for lead in stage.leads:
                priority = f" !{lead.priority.value}" if lead.priority else ""
                click.echo(f"  #{lead.id} {lead.name} <{lead.email}>{priority}")
