#!/usr/bin/env python3
"""clusterkeys CLI - per-environment SSH credentials."""

import sys
from pathlib import Path
from typing import NoReturn, Optional

import click

from clusterkeys.config import CONFIG_ENVVAR, DEFAULT_CONFIG_DIR, Settings, resolve_config_dir
from clusterkeys.environment import Environment
from clusterkeys.ssh_keys import KeyCorruptError, KeyGenerationError, fingerprint as key_fingerprint


def _debug(ctx: click.Context, message: str) -> None:
    if ctx.obj['verbose']:
        click.echo(f"debug: {message}", err=True)


def _environment(ctx: click.Context, name: Optional[str]) -> Environment:
    """Build the Environment for a command, falling back to config.yml."""
    config_dir: Path = ctx.obj['config_dir']
    try:
        settings = Settings.load(config_dir)
    except (ValueError, OSError) as e:
        click.secho(f"❌ Invalid configuration: {e}", fg='red')
        sys.exit(1)

    name = name or settings.environment
    if not name:
        click.secho("❌ No environment given and none set in config.yml", fg='red')
        sys.exit(1)

    try:
        env = Environment(name, config_dir, key_bits=settings.key_bits)
    except ValueError as e:
        click.secho(f"❌ {e}", fg='red')
        sys.exit(1)

    _debug(ctx, f"environment={env.name} config_dir={config_dir} key_bits={settings.key_bits}")
    return env


def _fail_on_key_error(env: Environment, error: Exception) -> NoReturn:
    path = env.ssh_private_key_path()
    if isinstance(error, KeyCorruptError):
        click.secho(f"❌ {path} is not a valid SSH private key", fg='red')
        click.echo(f"   {error.cause}")
        click.echo("   The file was left untouched. Fix or remove it, then run init again.")
    elif isinstance(error, KeyGenerationError):
        click.secho(f"❌ Failed to create SSH key: {error}", fg='red')
    else:
        click.secho(f"❌ Unable to read {path}: {error}", fg='red')
    sys.exit(1)


@click.group()
@click.version_option(package_name='clusterkeys')
@click.option('--config-directory', '-c', envvar=CONFIG_ENVVAR, default=DEFAULT_CONFIG_DIR,
              show_default=True, help='Config directory holding per-environment state')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def main(ctx, config_directory, verbose):
    """Manage the SSH key of each cluster environment."""
    ctx.ensure_object(dict)
    ctx.obj['config_dir'] = resolve_config_dir(config_directory)
    ctx.obj['verbose'] = verbose


@main.command()
@click.argument('environment', required=False)
@click.pass_context
def init(ctx, environment):
    """Create the environment SSH key if it does not exist yet."""
    env = _environment(ctx, environment)
    key_path = env.ssh_private_key_path()
    existed = key_path.exists()

    if not existed:
        click.echo("Generating SSH key...")
    try:
        pubkey = env.ssh_public_key()
    except (KeyCorruptError, KeyGenerationError, OSError) as e:
        _fail_on_key_error(env, e)

    if existed:
        click.echo(f"✓ SSH key already exists at {key_path}")
    else:
        click.echo(f"✓ SSH key created at {key_path}")

    click.echo("\n" + "="*60)
    click.echo(f"📋 Public key for environment '{env.name}':")
    click.echo("="*60)
    click.echo(pubkey)
    click.echo("="*60 + "\n")


@main.command('key-path')
@click.argument('environment', required=False)
@click.pass_context
def key_path(ctx, environment):
    """Print where the environment SSH key lives."""
    env = _environment(ctx, environment)
    click.echo(str(env.ssh_private_key_path()))


@main.command('public-key')
@click.argument('environment', required=False)
@click.pass_context
def public_key(ctx, environment):
    """Print the OpenSSH public key (generates the key on first use)."""
    env = _environment(ctx, environment)
    try:
        click.echo(env.ssh_public_key())
    except (KeyCorruptError, KeyGenerationError, OSError) as e:
        _fail_on_key_error(env, e)


@main.command()
@click.argument('environment', required=False)
@click.pass_context
def fingerprint(ctx, environment):
    """Print the SHA256 fingerprint of the environment key."""
    env = _environment(ctx, environment)
    try:
        click.echo(key_fingerprint(env.ssh_private_key()))
    except (KeyCorruptError, KeyGenerationError, OSError) as e:
        _fail_on_key_error(env, e)


@main.command()
@click.argument('environment', required=False)
@click.pass_context
def check(ctx, environment):
    """Validate the existing SSH key without generating one."""
    env = _environment(ctx, environment)
    try:
        key = env.credentials.load()
    except FileNotFoundError:
        click.secho(f"❌ No SSH key at {env.ssh_private_key_path()}", fg='red')
        click.echo(f"Run 'clusterkeys init {env.name}' first.")
        sys.exit(1)
    except (KeyCorruptError, OSError) as e:
        _fail_on_key_error(env, e)

    click.echo(f"✅ {env.ssh_private_key_path()} ({key.key_size}-bit RSA, {key_fingerprint(key)})")


if __name__ == '__main__':
    main()
