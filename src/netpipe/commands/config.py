"""Config commands -- view and modify the user configuration.

Provides the ``netpipe config`` sub-command group. Settings are persisted as
JSON in the netpipe config directory (see :func:`netpipe.config.config_path`)
and form the lowest-precedence layer of :func:`netpipe.config.resolve_config`.
"""

from __future__ import annotations

import typer

from netpipe.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the stored configuration.

    Prints the config file path followed by the stored settings. Use
    ``--config`` on the root command to show an alternate file.

    Example::

        netpipe config show
        netpipe --json config show
    """
    from netpipe.config import config_path, load_config
    from netpipe.exceptions import ConfigError

    path = (ctx.obj or {}).get("config_file") or config_path()
    try:
        stored = load_config(path)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    info(f"Config file: {path}")
    format_response(stored.model_dump(mode="json", exclude_none=True))


@config_app.command("set-base-url")
def config_set_base_url(
    ctx: typer.Context,
    base_url: str = typer.Argument(help="Base URL every relative request path is joined to."),
) -> None:
    """Store the default base URL.

    Example::

        netpipe config set-base-url https://api.example.com/v1/
    """
    from netpipe.config import config_path, load_config, save_config
    from netpipe.exceptions import ConfigError

    value = base_url.strip()
    if not value:
        error("Base URL must not be empty")
        raise typer.Exit(code=2)

    path = (ctx.obj or {}).get("config_file") or config_path()
    try:
        stored = load_config(path)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    save_config(stored.model_copy(update={"base_url": value}), path)
    success(f"Set base_url = {value}")
