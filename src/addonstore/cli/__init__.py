import logging

import click

from addonstore.cli.addons import import_list, install, installed, remove, search, sync, upgrade
from addonstore.cli.backup import backup
from addonstore.cli.deps import deps
from addonstore.version import get_version


@click.group()
@click.option("--config", "config_path", help="Path to the configuration file.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx, config_path, verbose):
    """Addon store CLI"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


main.add_command(sync)
main.add_command(install)
main.add_command(remove)
main.add_command(upgrade)
main.add_command(search)
main.add_command(installed)
main.add_command(import_list)
main.add_command(deps)
main.add_command(backup)


@main.command()
def version():
    """Show the installed version."""
    click.echo(get_version())


if __name__ == "__main__":
    main()
