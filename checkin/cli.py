import logging

import click
from flask.cli import with_appcontext

from . import db
from .auth import hash_password
from .queries import add_user, get_user_by_login, write_transaction
from .util import time_util

logger = logging.getLogger(__name__)


@click.command('init-db')
@with_appcontext
def init_db_command():
    """Create any missing tables."""
    db.create_all()
    click.echo('Database initialized')


@click.command('create-admin')
@with_appcontext
@click.option('--username', prompt=True)
@click.option('--email', prompt=True)
@click.option('--first-name', prompt=True)
@click.option('--last-name', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
def create_admin_command(username, email, first_name, last_name, password):
    """Create an admin account, or reset an existing one with the same username."""
    existing = get_user_by_login(username)
    if existing is None:
        add_user({
            'username': username,
            'email': email,
            'password': password,
            'role': 'admin',
            'firstName': first_name,
            'lastName': last_name,
        })
        click.echo(f'Admin user {username} created')
        return

    with write_transaction('Username or email already exists'):
        existing.email = email
        existing.first_name = first_name
        existing.last_name = last_name
        existing.role = 'admin'
        existing.password_hash = hash_password(password)
        existing.updated_at = time_util.local_now()
    logger.info("reset admin account %s", username)
    click.echo(f'Admin user {username} updated')


def register_commands(app):
    app.cli.add_command(init_db_command)
    app.cli.add_command(create_admin_command)
