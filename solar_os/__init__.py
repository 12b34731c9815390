"""
solar_os/__init__.py

Flask application factory for the Solar OS domain store.

Architecture:
- One DomainStore per application, built here and kept in app.extensions["domain_store"].
  Consumers receive it via get_store() (or by injection) rather than importing a global.
- The store persists its full snapshot into the state_slots table (Flask-SQLAlchemy) and,
  when AUDIT_ENABLED, records an AuditLog row per mutated record.
- No HTTP routes: the screens that consume the store live outside this package.

IMPORTANT:
- Store operations backed by SqlStateSlot must run inside an application context.
"""

from __future__ import annotations

import json
import logging

import click
from flask import Flask, current_app

from .audit import log_action
from .extensions import db, migrate
from .persistence import SqlStateSlot, StateRepository
from .store import DomainStore

STORE_EXTENSION_KEY = "domain_store"


def build_store(app: Flask) -> DomainStore:
    """Create the DomainStore for an app (call inside its application context)."""
    repository = StateRepository(
        SqlStateSlot(),
        app.config["STATE_STORAGE_KEY"],
        seed_on_empty=app.config.get("STATE_SEED_ON_EMPTY", True),
    )
    audit = log_action if app.config.get("AUDIT_ENABLED", True) else None
    return DomainStore(repository, audit=audit)


def get_store(app: Flask | None = None) -> DomainStore:
    """Return the store of the given app (default: current_app)."""
    app = app or current_app
    return app.extensions[STORE_EXTENSION_KEY]


def create_app(config_object: str | object = "solar_os.config.Config") -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Package loggers (solar_os.store, solar_os.persistence, ...) are children of app.logger
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)

    with app.app_context():
        if app.config.get("STATE_AUTO_CREATE_TABLES", True):
            db.create_all()
        app.extensions[STORE_EXTENSION_KEY] = build_store(app)

    # ----------------------------------------------------------------------
    # CLI
    # ----------------------------------------------------------------------
    @app.cli.command("init-db")
    def init_db_command():
        """Create the state slot and audit tables."""
        db.create_all()
        click.echo("Tables created.")

    @app.cli.command("reset-state")
    def reset_state_command():
        """Overwrite the persisted state with the canonical initial state."""
        get_store(app).reset()
        click.echo(f"State under {app.config['STATE_STORAGE_KEY']!r} reset to initial data.")

    @app.cli.command("export-state")
    @click.option("--indent", default=2, show_default=True, help="JSON indentation.")
    def export_state_command(indent: int):
        """Print the current state snapshot as JSON."""
        click.echo(json.dumps(get_store(app).get_state(), ensure_ascii=False, indent=indent))

    logging.getLogger(__name__).debug("Solar OS store ready (key=%s)", app.config["STATE_STORAGE_KEY"])
    return app
