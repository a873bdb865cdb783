import click

from addonstore.cli.utils import get_service, handle_errors


def _echo_summary(addon):
    marker = "*" if addon.is_upgradable else " "
    installed = f" (installed {addon.installed_version})" if addon.installed else ""
    click.echo(f"{marker} {addon.id:>6}  {addon.name} {addon.version}{installed}")


@click.command()
@click.option("--upgrade", is_flag=True, help="Upgrade every out of date addon after syncing.")
@click.pass_context
@handle_errors
def sync(ctx, upgrade):
    """Sync the addon catalog."""
    result = get_service(ctx).update(upgrade_all=upgrade)
    click.echo(f"Synced {result.sync.addons} addons, {result.sync.categories} categories")
    for stale in result.sync.stale:
        click.echo(f"Update available: {stale.name} {stale.installed_version} -> {stale.version}")
    for upgrade_result in result.upgrades:
        if upgrade_result.error:
            click.echo(f"Failed to upgrade {upgrade_result.name}: {upgrade_result.error}")
        else:
            click.echo(f"Upgraded {upgrade_result.name}")
    for missing in result.missing_dependencies:
        click.echo(f"Missing dependency: {missing.directory} (required by {missing.required_by_display})")


@click.command()
@click.argument("addon_id", type=int)
@click.option("--force", is_flag=True, help="Reinstall even if the installed version is current.")
@click.pass_context
@handle_errors
def install(ctx, addon_id, force):
    """Install an addon by id."""
    outcome = get_service(ctx).install(addon_id, force_update=force)
    click.echo(f"{outcome.name} {outcome.version}: {outcome.status.value}")
    if outcome.dependencies:
        click.echo(f"Depends on: {', '.join(outcome.dependencies)}")


@click.command()
@click.argument("addon_id", type=int)
@click.pass_context
@handle_errors
def remove(ctx, addon_id):
    """Remove an installed addon."""
    if not get_service(ctx).remove(addon_id):
        raise click.ClickException(f"Addon {addon_id} is not installed")
    click.echo(f"Removed addon {addon_id}")


@click.command()
@click.pass_context
@handle_errors
def upgrade(ctx):
    """Upgrade every out of date addon."""
    results = get_service(ctx).upgrade()
    if not results:
        click.echo("All addons are up to date")
        return
    for result in results:
        if result.error:
            click.echo(f"Failed to upgrade {result.name}: {result.error}")
        else:
            click.echo(f"Upgraded {result.name} to {result.outcome.version}")


@click.command()
@click.argument("term")
@click.pass_context
@handle_errors
def search(ctx, term):
    """Search the catalog by addon name."""
    results = get_service(ctx).search(term)
    if not results:
        click.echo("No addons found")
        return
    for addon in results:
        _echo_summary(addon)


@click.command()
@click.pass_context
@handle_errors
def installed(ctx):
    """List installed addons."""
    for addon in get_service(ctx).list_installed():
        _echo_summary(addon)


@click.command(name="import-list")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
@handle_errors
def import_list(ctx, path):
    """Install addons from a comma-separated id list."""
    for result in get_service(ctx).import_id_list(path):
        if result.error:
            click.echo(f"Failed to install {result.addon_id}: {result.error}")
        else:
            click.echo(f"{result.name}: {result.outcome.status.value}")
