"""Command-line parsing and validation of the standard I/O redirections."""

from __future__ import annotations

from dataclasses import dataclass, field

NAME = "o-o"
VERSION = "0.5.3"

USAGE = """Run a sub-process and customize how it handles standard I/O.

Usage:
  o-o [options] <stdin> <stdout> <stderr> [--] <commandline>...
  o-o --help
  o-o --version

Options:
  <stdin>       File served as the standard input. Use `-` for no redirection.
  <stdout>      File served as the standard output. Use `-` for no redirection, `=` for the same file as the standard input, and `.` for /dev/null.
  <stderr>      File served as the standard error. Use `-` for no redirection, `=` for the same file as the standard output, and `.` for /dev/null.
                Prefix with `+` to append to the file (akin to the `>>` redirection in shell).
  -e VAR=VALUE                      Set environment variables.
  --pipe=STR, -p STR                String for pipe to connect subprocesses (`|` in shell) [default: `I`].
  --separator=STR, -s STR           String for separator of command lines (`;` in shell) [default: `J`].
  --tempdir-placeholder=STR, -t STR     Placeholder string for temporary directory [default: `T`].
  --force-overwrite, -F             Overwrite the file even if subprocess fails (exit status != 0). Valid only when <stdout> is `=`.
  --keep-going, -k                  Only effective when multiple command lines are chained with the separator. Even if one command line fails, subsequent command lines continue to be executed.
  --working-directory=DIR, -d DIR   Working directory.
  --version, -V                     Version information.
  --help, -h                        Shows this help message.
"""

_FLAGS = {
    "-F": "force_overwrite",
    "--force-overwrite": "force_overwrite",
    "-k": "keep_going",
    "--keep-going": "keep_going",
    "--debug-info": "debug_info",
}

_VALUE_OPTIONS = {
    "-d": "working_directory",
    "--working-directory": "working_directory",
    "-p": "pipe_str",
    "--pipe": "pipe_str",
    "-s": "separator_str",
    "--separator": "separator_str",
    "-t": "tempdir_placeholder",
    "--tempdir-placeholder": "tempdir_placeholder",
}

_SHORTHAND_CHARS = "-.="


class OOError(Exception):
    """A usage error reported to the user."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return f"o-o: {self.message}"


class ExitRequest(Exception):
    """Raised when parsing asks to print some text and stop (help, version)."""

    def __init__(self, output: str, code: int = 0) -> None:
        self.output = output
        self.code = code
        super().__init__(output)


@dataclass
class Args:
    """Parsed command line."""

    fds: list[str] = field(default_factory=list)
    command_line: list[str] = field(default_factory=list)
    force_overwrite: bool = False
    envs: list[tuple[str, str]] = field(default_factory=list)
    working_directory: str | None = None
    keep_going: bool = False
    debug_info: bool = False
    pipe_str: str | None = None
    separator_str: str | None = None
    tempdir_placeholder: str | None = None


def split_append_flag(file_name: str) -> tuple[str, bool]:
    """Split a leading ``+`` (append mode) off a file name."""
    if file_name.startswith("+"):
        return file_name[1:], True
    return file_name, False


def unpack_shorthand_args(a: str) -> list[str] | None:
    """Expand a three-character shorthand such as ``-=.`` into three fds."""
    if len(a) != 3 or any(c not in _SHORTHAND_CHARS for c in a):
        return None
    return list(a)


def _is_argument(token: str) -> bool:
    return token == "-" or not token.startswith("-")


def _split_option(token: str) -> tuple[str, str | None]:
    if token.startswith("--") and "=" in token:
        name, _, value = token.partition("=")
        return name, value
    return token, None


def _option_value(rest: list[str], index: int, name: str, inline: str | None) -> tuple[str, int]:
    """Return the option's value and the index after it."""
    if inline is not None:
        return inline, index + 1
    if index + 1 < len(rest):
        return rest[index + 1], index + 2
    raise OOError(f"option {name} requires an argument")


def parse_args(argv: list[str]) -> Args:
    """Parse *argv* (program name first) into an :class:`Args`."""
    args = Args()
    rest = list(argv[1:])
    index = 0
    while len(args.fds) < 3 and index < len(rest):
        token = rest[index]
        if not args.fds:
            shorthand = unpack_shorthand_args(token)
            if shorthand is not None:
                args.fds = shorthand
                index += 1
                break

        name, inline = _split_option(token)
        if name in ("-h", "--help"):
            raise ExitRequest(USAGE)
        if name in ("-V", "--version"):
            raise ExitRequest(f"{NAME} {VERSION}\n")
        if name == "--":
            args.fds += ["-"] * (3 - len(args.fds))
            break
        if name in _FLAGS and inline is None:
            setattr(args, _FLAGS[name], True)
            index += 1
        elif name == "-e":
            value, index = _option_value(rest, index, name, inline)
            var, sep, val = value.partition("=")
            if not sep:
                raise OOError(f"option -e's argument should be `VAR=VALUE`: {name}")
            args.envs.append((var, val))
        elif name in _VALUE_OPTIONS:
            value, index = _option_value(rest, index, name, inline)
            setattr(args, _VALUE_OPTIONS[name], value)
        elif _is_argument(token):
            args.fds.append(token)
            index += 1
        else:
            raise OOError(f"unknown option: {token}")

    if index < len(rest):
        if rest[index] == "--":
            index += 1
        args.command_line = rest[index:]

    if not args.command_line:
        raise OOError("no command line specified")
    return args


def validate_fds(fds: list[str], force_overwrite: bool) -> None:
    """Raise :class:`OOError` if the stdin/stdout/stderr specification is invalid."""
    from .fileio import command_exists

    if len(fds) < 3:
        raise OOError("requires three arguments: stdin, stdout and stderr")

    for fd in fds[1:]:
        if command_exists(fd):
            raise OOError(
                f"out/err looks a command: {fd}\n"
                "> (Use `--` to explicitly separate command from out/err)"
            )

    for i, fd in enumerate(fds):
        if fd in ("+-", "+="):
            raise OOError("not possible to use `-` or `=` in combination with `+`")
        if fd not in ("-", "=", "."):
            name = split_append_flag(fd)[0]
            if any(split_append_flag(other)[0] == name for other in fds[i + 1:]):
                raise OOError("explicitly use `=` when dealing with the same file")

    if force_overwrite:
        if fds[0] == "-":
            raise OOError("option --force-overwrite requires a real file name")
        if fds[1] != "=":
            raise OOError("option --force-overwrite is only valid when <stdout> is `=`")

    if fds[0] in ("=", "."):
        raise OOError("can not specify either `=` or `.` as stdin")