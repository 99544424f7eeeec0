import logging

from flask import Flask
from config import Config
from routes import (
    health_bp, payments_bp, webhook_bp, pay_pages_bp, checks_bp, booking_bp, settlements_bp,
)

from models import db
from flask_migrate import Migrate
from services.transactions import engine_options_for, use_serializable_sqlite


def create_app(config_overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(webhook_bp)
    app.register_blueprint(pay_pages_bp)
    app.register_blueprint(checks_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(settlements_bp)

    # Database init
    app.config["SQLALCHEMY_ENGINE_OPTIONS"] = engine_options_for(
        app.config["SQLALCHEMY_DATABASE_URI"], app.config.get("SQLALCHEMY_ENGINE_OPTIONS")
    )
    db.init_app(app)
    with app.app_context():
        if app.config.get("SQLITE_SERIALIZABLE") and db.engine.dialect.name == "sqlite":
            use_serializable_sqlite(db.engine)

    # Migrations
    Migrate(app, db)

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        return resp


    register_cli(app)


    return app

#-------------------------
import click
from models.booking import Booking
from models.facility import Facility
from models.manual_payment import ManualPayment
from models.reconciliation import ReconciliationItem
from services.slots import normalize_resource_type

def register_cli(app):
    @app.cli.command("set-capacity")
    @click.argument("facility_id")
    @click.argument("resource_type")
    @click.argument("capacity", type=int)
    @click.option("--name", default=None, help="Display name for the facility.")
    @click.option("--admin-email", multiple=True, help="Address notified on confirmations (repeatable).")
    def set_capacity(facility_id, resource_type, capacity, name, admin_email):
        """Set how many concurrent bookings a facility takes for one resource type."""
        if capacity < 1:
            raise click.BadParameter("capacity must be at least 1", param_hint="CAPACITY")

        facility = db.session.get(Facility, facility_id)
        if not facility:
            facility = Facility(id=facility_id)
            db.session.add(facility)

        capacities = {
            normalize_resource_type(k): v for k, v in facility.capacities.items()
        }
        capacities[normalize_resource_type(resource_type)] = capacity
        facility.capacities = capacities
        if name:
            facility.name = name
        if admin_email:
            facility.admin_emails = sorted(set(facility.admin_emails) | set(admin_email))
        db.session.commit()

        print(f"{facility_id}: {facility.capacities}")

    @app.cli.command("normalize-resource-types")
    def normalize_resource_types():
        """Rewrite stored resource types to their canonical key (5.0, ' 5 ', 'Padel' -> 5, 5, padel)."""
        changed = 0
        for model in (Booking, ManualPayment, ReconciliationItem):
            for row in model.query.filter(model.resource_type.isnot(None)).all():
                try:
                    key = normalize_resource_type(row.resource_type)
                except ValueError:
                    continue
                if key != row.resource_type:
                    row.resource_type = key
                    changed += 1
        db.session.commit()
        print(f"normalized {changed} row(s)")

#-------------------------




if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
