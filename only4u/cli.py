# only4u/cli.py
import os
import uuid

import click
from flask.cli import with_appcontext

from only4u.extensions import db


@click.command("create-admin")
@click.option("--email", default=lambda: os.environ.get("ADMIN_EMAIL", "admin@example.com"),
              show_default=True, help="Admin e-mail (login name)")
@click.option("--password", default=lambda: os.environ.get("ADMIN_PASSWORD"),
              help="Password (prompted when not given)")
@click.option("--force", is_flag=True, default=False,
              help="If the account exists, reset its password and role")
@with_appcontext
def create_admin(email: str, password: str | None, force: bool):
    """Create or reset an admin account. Hashes through Flask-Bcrypt like the login does."""
    from only4u.models.user import User

    db.create_all()  # for an empty database

    email = (email or "").strip().lower()
    if not email:
        raise click.BadParameter("e-mail must not be empty", param_hint="--email")

    if not password:
        password = click.prompt("Password", hide_input=True, confirmation_prompt=True)

    u = User.query.filter_by(email=email).first()
    if u and not force:
        click.echo(f"User '{email}' already exists. Use --force to reset the password.")
        return

    if not u:
        # profile columns are required for customers; admins get placeholders
        u = User(
            id=str(uuid.uuid4()),
            email=email,
            first_name="Admin",
            company="Only4U",
            phone="-",
            address="-",
            city="-",
            zip_code="-",
            country="-",
        )
        db.session.add(u)

    u.role = "admin"
    u.set_password(password)
    db.session.commit()
    click.echo(f"Admin ready: {email}")
