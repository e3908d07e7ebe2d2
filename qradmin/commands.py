"""Flask CLI commands."""

from __future__ import annotations

import click
from flask import Flask
from flask.cli import with_appcontext

from qradmin.seed import seed_campaigns, seed_database


@click.command('create-admin')
@click.option('--username', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_admin(username: str, password: str) -> None:
    """Создаёт пользователя с правами администратора."""
    from qradmin.services.users_service import create_user

    if len(password) < 6:
        raise click.ClickException('Password must be at least 6 characters')
    try:
        create_user(username, password, is_admin=True, is_active=True)
    except ValueError:
        raise click.ClickException('User with the same username already exists') from None
    click.echo(f'Admin {username} created.')


@click.command('seed')
@with_appcontext
def seed_command() -> None:
    """Засеять демо-пользователей и примерные кампании."""
    result = seed_database()
    click.echo(f'Seed finished: {result.status} ({result.inserted} campaigns inserted).')


@click.command('seed-campaigns')
@with_appcontext
def seed_campaigns_command() -> None:
    """Засеять только примерные кампании (нужен хотя бы один пользователь)."""
    result = seed_campaigns()
    click.echo(f'Campaign seed: {result.status} ({result.inserted} inserted).')


@click.command('expire-campaigns')
@with_appcontext
def expire_campaigns_command() -> None:
    """Перевести кампании с прошедшей датой окончания в статус expired."""
    from qradmin.services.campaigns_service import expire_finished_campaigns

    changed = expire_finished_campaigns()
    click.echo(f'{changed} campaign(s) expired.')


def register_commands(app: Flask) -> None:
    for command in (create_admin, seed_command, seed_campaigns_command, expire_campaigns_command):
        app.cli.add_command(command)
