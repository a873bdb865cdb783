import click

from addonstore.cli.utils import get_service, handle_errors


@click.group()
def backup():
    """Export and import installed addons."""
    pass


@backup.command(name="export")
@click.argument("path", type=click.Path(dir_okay=False))
@click.pass_context
@handle_errors
def export_backup(ctx, path):
    """Write installed addons and dependency overrides to a JSON file."""
    snapshot = get_service(ctx).export_backup(path)
    click.echo(
        f"Exported {len(snapshot.installed_addons)} addons and "
        f"{len(snapshot.manual_dependencies)} overrides to {path}"
    )


@backup.command(name="import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
@handle_errors
def import_backup(ctx, path):
    """Restore installed addons and dependency overrides from a JSON file."""
    snapshot = get_service(ctx).import_backup(path)
    click.echo(
        f"Imported {len(snapshot.installed_addons)} addons and "
        f"{len(snapshot.manual_dependencies)} overrides from {path}"
    )
