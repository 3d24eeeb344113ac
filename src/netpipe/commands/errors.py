"""Error code commands -- inspect the business error messages in effect."""

from __future__ import annotations

import typer

from netpipe.output import error, print_table


errors_app = typer.Typer(no_args_is_help=True)


@errors_app.command("list")
def errors_list(ctx: typer.Context) -> None:
    """List every registered error code and its message.

    Includes the built-in messages and the ``error_codes`` section of the
    user and project config files.
    """
    from netpipe.config import build_registry, load_config, load_project_config
    from netpipe.exceptions import ConfigError

    try:
        stored = load_config((ctx.obj or {}).get("config_file"))
        project = load_project_config()
        if project is not None:
            stored = stored.merged_with(project)
        registry = build_registry(stored.error_codes)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    rows = [[str(code), message] for code, message in registry.snapshot().items()]
    print_table(["Code", "Message"], rows, title="Error codes")
