"""Maintenance commands, run as ``flask --app psyhospital <command>``."""
import click
from flask.cli import with_appcontext
from sqlalchemy.exc import IntegrityError

from psyhospital import db
from psyhospital.controllers.prescription_controller import complete_expired
from psyhospital.models.user import User
from psyhospital.models.ward import Ward
from psyhospital.utils.session import ROLE_ADMIN, ROLES, UserSession


def _system_session() -> UserSession:
    admin = (
        User.query
        .filter_by(role=ROLE_ADMIN, is_active=True)
        .order_by(User.user_id)
        .first()
    )
    if not admin:
        raise click.ClickException('No active administrator account; create one with create-user first.')
    return UserSession.for_user(admin)


@click.command('init-db')
@with_appcontext
def init_db_command():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo('Database initialized.')


@click.command('create-user')
@with_appcontext
@click.argument('username')
@click.argument('full_name')
@click.option('--role', type=click.Choice(ROLES), default='doctor', show_default=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
def create_user_command(username, full_name, role, password):
    if User.query.filter_by(username=username).first():
        raise click.ClickException(f'User {username} already exists.')

    user = User(username=username, full_name=full_name, role=role, is_active=True)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    click.echo(f'Created {role} {username} (id={user.user_id}).')


@click.command('create-ward')
@with_appcontext
@click.argument('number')
@click.argument('department')
@click.argument('total_beds', type=click.IntRange(min=1))
def create_ward_command(number, department, total_beds):
    ward = Ward(ward_number=number, department=department, total_beds=total_beds, occupied_beds=0)
    db.session.add(ward)
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise click.ClickException(f'Ward {number} already exists.') from e
    click.echo(f'Created ward {number} in {department} with {total_beds} beds.')


@click.command('complete-expired')
@with_appcontext
def complete_expired_command():
    """Mark active prescriptions past their end date as completed."""
    session = _system_session()
    completed = complete_expired(session)
    db.session.commit()
    click.echo(f'{len(completed)} prescriptions completed.')


def register_commands(app):
    app.cli.add_command(init_db_command)
    app.cli.add_command(create_user_command)
    app.cli.add_command(create_ward_command)
    app.cli.add_command(complete_expired_command)
