import functools

import click

from addonstore.config.settings import Config
from addonstore.errors import AddonStoreError
from addonstore.service import AddonService


def get_service(ctx: click.Context) -> AddonService:
    """Build the service once per invocation from the --config option."""
    obj = ctx.ensure_object(dict)
    if "service" not in obj:
        config_path = obj.get("config_path")
        obj["service"] = AddonService(Config.load(config_path), config_path=config_path)
    return obj["service"]


def handle_errors(f):
    """Report engine errors as click errors instead of tracebacks."""

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except AddonStoreError as e:
            raise click.ClickException(str(e)) from e

    return wrapper
