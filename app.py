import os
from datetime import date
from typing import Optional, Tuple

import click
from flask import Flask, jsonify
from sqlalchemy import create_engine, func, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import OperationalError, ProgrammingError

from attendance_statistics import StatisticsInputError
from config import Config, current_database_url
from extensions import db, migrate, jwt
from models import RoleEnum, User
from routes import (
    accounts,
    alternate_saturdays,
    auth,
    blogs,
    breaks,
    clients,
    departments,
    events,
    holidays,
    leaves,
    projects,
    reports,
    saturdays,
    statistics,
    teams,
    tickets,
    todos,
    users,
)


def _ensure_database_exists(database_url: str | None) -> None:
    if not database_url:
        return

    url = make_url(database_url)
    backend = (url.get_backend_name() or "").lower()

    if backend.startswith("sqlite"):
        database_path = url.database
        if database_path and database_path not in {":memory:", ""}:
            directory = os.path.dirname(os.path.abspath(database_path))
            if directory:
                os.makedirs(directory, exist_ok=True)
        return

    database_name = url.database
    if not database_name or not backend.startswith("postgresql"):
        return

    engine = create_engine(url)
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return
    except OperationalError:
        pass
    finally:
        engine.dispose()

    admin_engine = create_engine(url.set(database="postgres"), isolation_level="AUTOCOMMIT")
    try:
        with admin_engine.connect() as connection:
            exists = connection.execute(
                text("SELECT 1 FROM pg_database WHERE datname = :name"),
                {"name": database_name},
            ).scalar()
            if not exists:
                connection.execute(text(f'CREATE DATABASE "{database_name}"'))
    finally:
        admin_engine.dispose()


def create_app():
    app = Flask(__name__)
    app.config.from_object(Config)
    database_url = current_database_url()
    _ensure_database_exists(database_url)
    app.config["SQLALCHEMY_DATABASE_URI"] = database_url
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    @jwt.additional_claims_loader
    def add_claims(identity):
        try:
            u = User.query.get(int(identity))
        except (TypeError, ValueError):
            u = None
        return {"role": u.role.value if u else None}

    app.register_blueprint(auth.bp)
    app.register_blueprint(users.bp)
    app.register_blueprint(departments.bp)
    app.register_blueprint(holidays.bp)
    app.register_blueprint(events.bp)
    app.register_blueprint(saturdays.bp)
    app.register_blueprint(alternate_saturdays.bp)
    app.register_blueprint(leaves.bp)
    app.register_blueprint(reports.bp)
    app.register_blueprint(breaks.bp)
    app.register_blueprint(tickets.bp)
    app.register_blueprint(todos.bp)
    app.register_blueprint(clients.bp)
    app.register_blueprint(projects.bp)
    app.register_blueprint(teams.bp)
    app.register_blueprint(accounts.bp)
    app.register_blueprint(blogs.bp)
    app.register_blueprint(statistics.bp)

    with app.app_context():
        db.create_all()

    @app.get("/api/health")
    def health(): return jsonify({"ok": True})

    return app


app = create_app()


def _normalize_email(value: str) -> str:
    return (value or "").strip().lower()


def _ensure_admin_user(
    flask_app=None,
    *,
    email: Optional[str] = None,
    password: Optional[str] = None,
    first_name: Optional[str] = None,
    ensure_if_missing: bool = True,
    force_reset: bool = False,
) -> Tuple[str, str]:
    """Ensure a super admin exists and optionally reset its password.

    Returns a tuple of (status, normalized_email) where status is one of
    ``{"created", "reset", "updated", "skipped"}``.
    """

    target_app = flask_app or globals().get("app")
    normalized_email = _normalize_email(email or os.getenv("ADMIN_EMAIL", "admin@hrms.local"))
    if target_app is None:
        return "skipped", normalized_email

    password = password or os.getenv("ADMIN_PASSWORD")
    target_name = (first_name or os.getenv("ADMIN_NAME") or "").strip() or None

    with target_app.app_context():
        try:
            admin = User.query.filter(func.lower(User.email) == normalized_email).first()
        except (OperationalError, ProgrammingError):
            # Tables might not be ready yet
            return "skipped", normalized_email

        if admin:
            status = "skipped"
            if admin.role != RoleEnum.super_admin:
                admin.role = RoleEnum.super_admin
                status = "updated"
            if not admin.active:
                admin.active = True
                status = "updated"
            if target_name and admin.first_name != target_name:
                admin.first_name = target_name
                status = "updated"
            if force_reset and password:
                admin.set_password(password)
                status = "reset"

            if status != "skipped":
                db.session.commit()
            return status, normalized_email

        if not ensure_if_missing or not password:
            return "skipped", normalized_email

        if not force_reset and User.query.filter_by(role=RoleEnum.super_admin).first():
            # Avoid creating a second super admin on start-up
            return "skipped", normalized_email

        admin = User(
            first_name=target_name or "Admin",
            last_name="",
            email=normalized_email,
            role=RoleEnum.super_admin,
            active=True,
        )
        admin.set_password(password)
        db.session.add(admin)
        db.session.commit()
        return "created", normalized_email


def _bootstrap_admin_user(flask_app=None):
    status, normalized_email = _ensure_admin_user(
        flask_app=flask_app,
        force_reset=os.getenv("RUN_SEED_ADMIN") == "1",
    )
    if status == "created":
        print(f"✅ Super admin created: {normalized_email}")
    elif status == "reset":
        print(f"✅ Super admin password reset: {normalized_email}")
    elif status == "updated":
        print(f"✅ Super admin updated: {normalized_email}")


# Idempotent; only creates an account when ADMIN_PASSWORD is configured
_bootstrap_admin_user(flask_app=app)


# ---- CLI: seed or reset the super admin ----
@app.cli.command("seed-admin")
@click.option("--email", default="admin@hrms.local", help="Super admin email")
@click.option("--password", default="Admin@123", help="Super admin password")
@click.option("--name", default="Admin", help="Super admin first name")
def seed_admin(email, password, name):
    """Create or reset the super admin user."""
    with app.app_context():
        status, normalized_email = _ensure_admin_user(
            flask_app=app,
            email=email,
            password=password,
            first_name=name,
            ensure_if_missing=True,
            force_reset=True,
        )

        if status == "created":
            click.echo(f"✅ Super admin created: {normalized_email}")
        elif status == "reset":
            click.echo(f"✅ Super admin password reset: {normalized_email}")
        elif status == "updated":
            click.echo(f"✅ Super admin updated: {normalized_email}")
        else:
            click.echo(f"ℹ️ Super admin already up-to-date: {normalized_email}")


# ---- CLI: monthly attendance summary ----
@app.cli.command("statistics")
@click.option("--year", type=int, help="Calendar year (defaults to the current year)")
@click.option("--month", type=int, help="Month number 1-12 (defaults to the current month)")
def print_statistics(year, month):
    """Print the attendance and salary-day totals for a month."""

    today = date.today()
    year = year or today.year
    month = month or today.month

    with app.app_context():
        try:
            stats = statistics.build_month_statistics(year, month)
        except StatisticsInputError as exc:
            raise click.BadParameter(str(exc)) from exc

        click.echo(f"Attendance for {year}-{month:02d} ({len(stats.employees)} employees)")
        click.echo(f"{'Employee':<30} {'Leave':>6} {'Extra':>6} {'Deduct':>7} {'Salary':>7}")
        for row in stats.employees:
            click.echo(
                f"{row.name[:30]:<30} {float(row.leave_taken):>6.1f} {float(row.extra_working_days):>6.1f} "
                f"{float(row.deduction):>7.1f} {float(row.salary_days):>7.1f}"
            )
