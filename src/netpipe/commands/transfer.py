"""Transfer commands -- ``upload`` and ``download``.

Both commands drive a Rich progress bar on stderr from the dispatcher's
progress snapshots. The bar is hidden with ``--quiet`` or when stderr is not
a terminal.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from netpipe.commands.runtime import parse_pairs, run_call
from netpipe.constants import DEFAULT_FILE_FIELD
from netpipe.models import Progress
from netpipe.output import get_output, print_data, success


def upload_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Upload endpoint, relative to the base URL."),
    files: list[Path] = typer.Argument(
        help="File(s) to upload.", exists=True, dir_okay=False, readable=True
    ),
    field_name: str = typer.Option(
        DEFAULT_FILE_FIELD, "--field-name", help="Multipart field name for the file part(s)."
    ),
    form: Optional[list[str]] = typer.Option(
        None, "--form", "-F", help="Additional text part as KEY=VALUE."
    ),
) -> None:
    """Upload one or more files as a multipart POST.

    The raw response body is printed as-is; it is not decoded as an
    envelope.

    Example::

        netpipe upload avatar ./me.png -F user=42
    """
    params = parse_pairs(form, "=", "form part")
    label = files[0].name if len(files) == 1 else f"{len(files)} files"

    with get_output().transfer_progress() as bar:
        task_id = bar.add_task(f"Uploading {label}", total=None)

        def _on_progress(progress: Progress) -> None:
            total = progress.total_bytes if progress.total_bytes > 0 else None
            bar.update(task_id, completed=progress.current_bytes, total=total)

        if len(files) == 1:
            body = run_call(
                ctx,
                lambda d: d.upload(path, files[0], field_name, params, on_progress=_on_progress),
            )
        else:
            body = run_call(
                ctx,
                lambda d: d.upload_files(path, files, field_name, params, on_progress=_on_progress),
            )

    if body:
        print_data(body)
    success(f"Uploaded {label}")


def download_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="File URL, relative to the base URL or absolute."),
    destination: Path = typer.Argument(help="Where to write the file.", dir_okay=False),
) -> None:
    """Download a file and write it to DESTINATION.

    Parent directories are created; an existing file is overwritten.

    Example::

        netpipe download files/report.pdf ./out/report.pdf
    """
    with get_output().transfer_progress() as bar:
        task_id = bar.add_task(f"Downloading {destination.name}", total=None)

        def _on_progress(progress: Progress) -> None:
            total = progress.total_bytes if progress.total_bytes > 0 else None
            bar.update(task_id, completed=progress.current_bytes, total=total)

        saved = run_call(ctx, lambda d: d.download(url, destination, on_progress=_on_progress))

    success(f"Saved {saved}")
