"""Built-in CLI sub-commands for netpipe.

This package groups all Typer sub-command modules that form the CLI's
top-level command tree:

* :mod:`~netpipe.commands.request` -- ``get``, ``post``, ``put``, ``delete``
  calls decoded through the response envelope.
* :mod:`~netpipe.commands.transfer` -- ``upload`` and ``download`` with a
  progress bar.
* :mod:`~netpipe.commands.config` -- view and modify the user configuration.
* :mod:`~netpipe.commands.errors` -- list the error code messages in effect.

Request and transfer commands are plain callbacks registered directly on the
root app; ``config`` and ``errors`` export :class:`typer.Typer` groups.
Shared plumbing (building the network context, mapping outcomes to exit
codes) lives in :mod:`~netpipe.commands.runtime`.
"""
