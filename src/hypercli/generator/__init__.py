"""CLI generator -- turn compiled operations into commands and requests.

This sub-package is responsible for the second half of the hypercli
pipeline: taking an :class:`~hypercli.models.API` (produced by the parser)
and exposing it as Typer commands that build outgoing requests.

Typical usage::

    from hypercli.generator import build_command_tree

    app = build_command_tree(api, executor=client.send)
    app()  # invoke the CLI

Sub-modules:

* :mod:`~hypercli.generator.serializer` -- wire encoding, CLI parsing and
  default suppression of parameter values.
* :mod:`~hypercli.generator.request_builder` -- render one operation plus
  bound values into a :class:`~hypercli.models.Request`.
* :mod:`~hypercli.generator.body` -- build request bodies from shorthand
  arguments and piped stdin.
* :mod:`~hypercli.generator.param_mapper` -- map parameters to Typer
  positional arguments and ``--option`` flags with correct Python types.
* :mod:`~hypercli.generator.command_tree` -- attach one command per
  operation with a dynamically generated function signature.
"""

from hypercli.generator.command_tree import build_command_tree
from hypercli.generator.request_builder import build_request
from hypercli.generator.serializer import parse_value, serialize, should_send

__all__ = ["build_command_tree", "build_request", "serialize", "parse_value", "should_send"]
