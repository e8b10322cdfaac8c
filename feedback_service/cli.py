import click
from flask.cli import with_appcontext

from feedback_service.errors import ServiceError
from feedback_service.extensions import db
from feedback_service.models import Application, User, ROLE_ADMIN, ROLE_MEMBER
from feedback_service.services.api_keys import rotate_api_key
from feedback_service.services.tokens import generate_operator_token
from feedback_service.utils.validators import is_valid_email


def _get_operator(email: str) -> User:
    user = db.session.query(User).filter_by(email=email.strip().lower()).one_or_none()
    if not user:
        raise click.ClickException("Operator not found")
    return user


@click.group()
def operators():
    """Dashboard operator management."""

@operators.command("create")
@click.option("--email", required=True)
@click.option("--name", default="")
@click.option("--role", type=click.Choice([ROLE_MEMBER, ROLE_ADMIN]), default=ROLE_MEMBER)
@with_appcontext
def operators_create(email, name, role):
    email = email.strip().lower()
    if not email or not is_valid_email(email):
        raise click.ClickException("A valid email is required")
    if db.session.query(User).filter_by(email=email).count():
        raise click.ClickException("Operator already exists")

    user = User(email=email, name=name.strip(), role=role, is_active=True)
    db.session.add(user)
    db.session.commit()
    click.echo(f"Operator created id={user.id} email={user.email} role={role}")

@operators.command("token")
@click.option("--email", required=True)
@with_appcontext
def operators_token(email):
    """Print a bearer token for an active operator."""
    user = _get_operator(email)
    if not user.is_active:
        raise click.ClickException("Operator is deactivated")
    click.echo(generate_operator_token(user))

@operators.command("deactivate")
@click.option("--email", required=True)
@with_appcontext
def operators_deactivate(email):
    user = _get_operator(email)

    # Safety rail: keep at least one active admin
    if user.is_admin and user.is_active:
        admins = db.session.query(User).filter_by(role=ROLE_ADMIN, is_active=True).count()
        if admins <= 1:
            raise click.ClickException("Refused: cannot deactivate the last active admin")

    user.is_active = False
    db.session.commit()
    click.echo(f"Deactivated {user.email}")


@click.group()
def applications():
    """Application ops."""

@applications.command("rotate-key")
@click.option("--slug", required=True)
@with_appcontext
def applications_rotate_key(slug):
    app_row = db.session.query(Application).filter_by(slug=slug.strip()).one_or_none()
    if not app_row:
        raise click.ClickException("Application not found")
    try:
        api_key = rotate_api_key(db.session, app_row.id)
    except ServiceError as e:
        raise click.ClickException(e.message) from e
    db.session.commit()
    click.echo(f"New API key for {app_row.slug}: {api_key}")


def register_cli(app):
    app.cli.add_command(operators)
    app.cli.add_command(applications)
