"""Command line — ``envfetch get|print|set|add|delete|load|init-config``.

The CLI is thin glue: it parses arguments, takes one snapshot of the
real environment, builds an ``Engine``, and maps results and errors to
output and an exit status.  All behaviour lives in the engine.

Exit status:
    - the child's exit code when a PROCESS was run,
    - ``1`` on any error (or any warning with ``--exit-on-error``),
    - ``2`` on a usage error,
    - ``0`` otherwise.
"""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import TextIO, TypeAlias

from envfetch.config import Config, config_file_path, init_config, load_config
from envfetch.engine import Engine, OperationResult, Scope
from envfetch.env import Environment
from envfetch.errors import EnvfetchError, VariableNotFoundError
from envfetch.launcher import run_shell
from envfetch.logging import Logger, LogLevel
from envfetch.persistence import PersistenceBackend, detect_target, open_backend

_Handler: TypeAlias = Callable[[argparse.Namespace, "_Context"], int]

_USAGE_ERROR = 2
_PROCESS_COMMANDS = frozenset(["set", "add", "delete", "load"])


class _Context:
    """Everything a command handler needs for one invocation."""

    def __init__(
        self,
        *,
        engine: Engine,
        config: Config,
        config_path: Path,
        stdout: TextIO,
        stderr: TextIO,
    ) -> None:
        self.engine = engine
        self.config = config
        self.config_path = config_path
        self.stdout = stdout
        self.stderr = stderr

    def error(self, message: str) -> int:
        print(f"error: {message}", file=self.stderr)
        return 1


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for every command."""
    # Repeated on each command so they may also follow its name.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-e",
        "--exit-on-error",
        action="store_true",
        default=argparse.SUPPRESS,
        help="treat warnings as errors",
    )
    common.add_argument(
        "-v", "--verbose", action="store_true", default=argparse.SUPPRESS, help="log every change"
    )
    common.add_argument(
        "--config", type=Path, default=argparse.SUPPRESS, help="use this config file"
    )

    parser = argparse.ArgumentParser(
        prog="envfetch",
        description="envfetch - lightweight tool for working with environment variables",
    )
    parser.add_argument(
        "-e", "--exit-on-error", action="store_true", help="treat warnings as errors"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log every change")
    parser.add_argument("--config", type=Path, default=None, help="use this config file")
    commands = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")

    get = commands.add_parser("get", parents=[common], help="print the value of a variable")
    get.add_argument("name", metavar="NAME")
    get.add_argument(
        "-s",
        "--no-similar-names",
        action="store_true",
        help="don't suggest similar names if the variable is missing",
    )

    show = commands.add_parser("print", parents=[common], help="print all variables")
    show.add_argument("-f", "--format", help="output format, e.g. '{name}={value}'")

    for name, summary in (
        ("set", "set a variable and run PROCESS, or persist it with --global"),
        ("add", "append to a variable and run PROCESS, or persist it with --global"),
    ):
        sub = commands.add_parser(name, parents=[common], help=summary)
        sub.add_argument("name", metavar="NAME")
        sub.add_argument("value", metavar="VALUE")
        _add_scope_arguments(sub)
        if name == "add":
            sub.add_argument(
                "--separator", default=None, help="put this between the old and new value"
            )

    delete = commands.add_parser(
        "delete", parents=[common], help="delete a variable and run PROCESS, or permanently"
    )
    delete.add_argument("name", metavar="NAME")
    _add_scope_arguments(delete)

    load = commands.add_parser("load", parents=[common], help="load variables from a dotenv file")
    _add_scope_arguments(load)
    load.add_argument("-f", "--file", default=".env", help="dotenv file (default: .env)")

    commands.add_parser("init-config", parents=[common], help="write the default config file")
    return parser


def _add_scope_arguments(sub: argparse.ArgumentParser) -> None:
    sub.add_argument(
        "-g",
        "--global",
        dest="permanent",
        action="store_true",
        help="change the variable permanently for future shells",
    )
    sub.add_argument(
        "process",
        nargs="*",
        metavar="PROCESS",
        help="command to run with the changed environment (usually after --)",
    )


def _split_process(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    """Split *argv* at the first ``--``; the rest is the PROCESS command."""
    argv = list(argv)
    if "--" not in argv:
        return argv, []
    index = argv.index("--")
    return argv[:index], argv[index + 1 :]


def main(
    argv: Sequence[str] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> int:
    """Run envfetch and return the exit status."""
    stdout = stdout if stdout is not None else sys.stdout
    stderr = stderr if stderr is not None else sys.stderr
    view = (
        Environment.from_os()
        if environ is None
        else Environment(environ, case_insensitive=os.name == "nt")
    )
    environ = environ if environ is not None else os.environ

    head, process = _split_process(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    try:
        args = parser.parse_args(head)
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else _USAGE_ERROR
    if process:
        if args.command not in _PROCESS_COMMANDS:
            print(f"error: {args.command} doesn't run a PROCESS", file=stderr)
            return _USAGE_ERROR
        args.process = [*args.process, *process]

    if args.command in _PROCESS_COMMANDS and not args.permanent and not args.process:
        print("error: a PROCESS is required unless --global is given", file=stderr)
        return _USAGE_ERROR

    logger = Logger(stderr, echo_level=LogLevel.INFO if args.verbose else LogLevel.WARNING)
    config_path = args.config or config_file_path(dict(environ))
    if args.command == "init-config":
        config = Config()
    else:
        try:
            config = load_config(config_path)
        except EnvfetchError as err:
            print(f"error: {err}", file=stderr)
            return 1

    def backend_factory() -> PersistenceBackend:
        target = detect_target(environ=environ, shell_file=config.shell_file)
        logger.debug(f"permanent store: {target}", source="cli")
        return open_backend(target, logger=logger)

    engine = Engine(
        view,
        backend_factory=backend_factory,
        logger=logger,
        suggestion_limit=config.suggestion_limit,
    )
    context = _Context(
        engine=engine, config=config, config_path=config_path, stdout=stdout, stderr=stderr
    )

    handler = _COMMANDS[args.command]
    try:
        return handler(args, context)
    except EnvfetchError as err:
        return context.error(str(err))


# -- command handlers ----------------------------------------------------------


def _cmd_get(args: argparse.Namespace, ctx: _Context) -> int:
    try:
        value = ctx.engine.get(args.name, similar=not args.no_similar_names)
    except VariableNotFoundError as err:
        ctx.error(str(err))
        if err.suggestions:
            print("Did you mean:", file=ctx.stderr)
            for name in err.suggestions:
                print(f"  {name}", file=ctx.stderr)
        return 1
    print(value, file=ctx.stdout)
    return 0


def _cmd_print(args: argparse.Namespace, ctx: _Context) -> int:
    template = args.format or ctx.config.print_format
    for var in ctx.engine.print_variables():
        print(template.replace("{name}", var.name).replace("{value}", var.value), file=ctx.stdout)
    return 0


def _cmd_set(args: argparse.Namespace, ctx: _Context) -> int:
    def apply(scope: Scope) -> OperationResult:
        return ctx.engine.set(args.name, args.value, scope)

    return _run_operation(args, ctx, apply)


def _cmd_add(args: argparse.Namespace, ctx: _Context) -> int:
    separator = args.separator if args.separator is not None else ctx.config.add_separator

    def apply(scope: Scope) -> OperationResult:
        return ctx.engine.add(args.name, args.value, scope, separator=separator)

    return _run_operation(args, ctx, apply)


def _cmd_delete(args: argparse.Namespace, ctx: _Context) -> int:
    def apply(scope: Scope) -> OperationResult:
        return ctx.engine.delete(args.name, scope)

    return _run_operation(args, ctx, apply)


def _cmd_load(args: argparse.Namespace, ctx: _Context) -> int:
    parsed = ctx.engine.read_dotenv(args.file)

    def apply(scope: Scope) -> OperationResult:
        return ctx.engine.load_entries(parsed, scope)

    return _run_operation(args, ctx, apply)


def _cmd_init_config(_args: argparse.Namespace, ctx: _Context) -> int:
    path = init_config(ctx.config_path)
    print(f"Successfully initialized config at {path}", file=ctx.stdout)
    return 0


def _run_operation(
    args: argparse.Namespace,
    ctx: _Context,
    apply: Callable[[Scope], OperationResult],
) -> int:
    """Apply a change in the requested scope, then run PROCESS if given.

    With ``--global`` the change is persisted; if a PROCESS is also
    given, the same change is applied to the child's environment so it
    sees the new value immediately.
    """
    if args.permanent:
        apply(Scope.PERMANENT)
    if args.process:
        apply(Scope.PROCESS)

    # The log holds every warning of this invocation.
    if args.exit_on_error and ctx.engine.logger.filter(min_level=LogLevel.WARNING):
        return 1
    if not args.process:
        return 0
    return run_shell(" ".join(args.process), ctx.engine.view.to_dict(), logger=ctx.engine.logger)


_COMMANDS: dict[str, _Handler] = {
    "get": _cmd_get,
    "print": _cmd_print,
    "set": _cmd_set,
    "add": _cmd_add,
    "delete": _cmd_delete,
    "load": _cmd_load,
    "init-config": _cmd_init_config,
}
