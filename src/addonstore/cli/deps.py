import click

from addonstore.cli.utils import get_service, handle_errors
from addonstore.dependencies.models import UserDecision


@click.group()
def deps():
    """Manage missing dependencies."""
    pass


@deps.command(name="list")
@click.pass_context
@handle_errors
def list_missing(ctx):
    """List dependencies no installed addon provides."""
    missing = get_service(ctx).find_missing_dependencies()
    if not missing:
        click.echo("No missing dependencies")
        return
    for entry in missing:
        click.echo(f"{entry.directory} (required by {entry.required_by_display})")
        for candidate in entry.candidates:
            click.echo(f"    {candidate.id:>6}  {candidate.name}")


@deps.command(name="ignore")
@click.argument("directory")
@click.pass_context
@handle_errors
def ignore(ctx, directory):
    """Stop reporting a dependency directory."""
    get_service(ctx).apply_resolutions([UserDecision(directory=directory, ignore=True)])
    click.echo(f"Ignoring {directory}")


@deps.command(name="satisfy")
@click.argument("directory")
@click.argument("addon_id", type=int)
@click.pass_context
@handle_errors
def satisfy(ctx, directory, addon_id):
    """Install an addon to provide a dependency directory."""
    get_service(ctx).apply_resolutions([UserDecision(directory=directory, satisfied_by=addon_id)])
    click.echo(f"{directory} satisfied by addon {addon_id}")
