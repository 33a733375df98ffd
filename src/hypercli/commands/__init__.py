"""Built-in CLI sub-commands for hypercli.

* :mod:`~hypercli.commands.config` -- manage profiles and global settings.
* :mod:`~hypercli.commands.inspect` -- list operations, show one
  operation's documentation, and list the links of a response.

Each module exports a :class:`typer.Typer` sub-application that
:func:`hypercli.app.main` attaches to the root app.  The generated ``api``
group is built separately from the active profile.
"""
