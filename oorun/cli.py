"""Command-line entry point: split, validate and run the command lines."""

from __future__ import annotations

import contextlib
import json
import os
import shutil
import subprocess
import sys
import tempfile
from dataclasses import replace
from typing import Any, Callable

from .args import USAGE, Args, ExitRequest, OOError, parse_args, validate_fds
from .fileio import create_temp_file, do_sync, open_file_with_mode

_STDOUT_FD = 1
_NO_REDIRECTION = ["-", "-", "-"]


def is_filename_like_char(c: str) -> bool:
    """Return True for characters that may be part of a file name."""
    return c.isalnum() or c in "_-."


def replace_tempdir_name(arg: str, tempdir_placeholder: str, temp_dir_str: str) -> str | None:
    """Replace the temp-directory placeholder in *arg*, or return None if absent."""
    if not tempdir_placeholder:
        return None

    parts = arg.split(tempdir_placeholder)
    previous = [""] + parts[:-1]
    following = parts[1:] + [""]
    replaced: list[str] = []
    occurred = False
    for prev, part, nxt in zip(previous, parts, following):
        prev_last = prev[-1] if prev else " "
        next_first = nxt[0] if nxt else " "
        if not is_filename_like_char(prev_last) and next_first == "/":
            replaced.append(temp_dir_str)
            occurred = True
        else:
            replaced.append(part)
    return "".join(replaced) if occurred else None


def split_pipelines(
    command_line: list[str],
    pipe_str: str,
    separator_str: str,
    tempdir_placeholder: str,
    temp_dir_factory: Callable[[], Any],
) -> tuple[list[list[list[str]]], list[tuple[str, str]]]:
    """Split a command line into pipelines of commands.

    Returns the pipelines and the (original, replaced) arguments in which
    the temp-directory placeholder was substituted. *temp_dir_factory* is
    called at most once, when the first placeholder is met.
    """
    pipelines: list[list[list[str]]] = [[[]]]
    replaced_args: list[tuple[str, str]] = []
    temp_dir: str | None = None
    for arg in command_line:
        if separator_str and arg == separator_str:
            if not pipelines[-1][-1]:
                raise OOError("empty command line (unexpected separator)")
            pipelines.append([[]])
        elif pipe_str and arg == pipe_str:
            if not pipelines[-1][-1]:
                raise OOError("empty command line (unexpected pipe)")
            pipelines[-1].append([])
        else:
            if replace_tempdir_name(arg, tempdir_placeholder, "dummy") is not None:
                if temp_dir is None:
                    temp_dir = os.fspath(temp_dir_factory())
                new_arg = replace_tempdir_name(arg, tempdir_placeholder, temp_dir)
                replaced_args.append((arg, new_arg))
                arg = new_arg
            pipelines[-1][-1].append(arg)
    return pipelines, replaced_args


def _debug_repr(value: Any) -> str:
    if value is None:
        return "None"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, tuple):
        return "(" + ", ".join(_debug_repr(v) for v in value) + ")"
    if isinstance(value, list):
        return "[" + ", ".join(_debug_repr(v) for v in value) + "]"
    return str(value)


def _debug_option(value: Any) -> str:
    return "None" if value is None else f"Some({_debug_repr(value)})"


def format_debug_info(
    args: Args,
    pipelines: list[list[list[str]]],
    tempdir_replaced_arguments: list[tuple[str, str]],
) -> str:
    """Describe the parsed arguments and the resulting command lines."""
    lines = [
        f"fds = {_debug_repr(args.fds)}",
        f"command_line = {_debug_repr(args.command_line)}",
        f"force_overwrite = {_debug_repr(args.force_overwrite)}",
        f"keep_going = {_debug_repr(args.keep_going)}",
        f"envs = {_debug_repr(args.envs)}",
        f"working_directory = {_debug_option(args.working_directory)}",
        f"pipe = {_debug_option(args.pipe_str)}",
        f"tempdir_placeholder = {_debug_option(args.tempdir_placeholder)}",
        "",
        "target command lines:",
    ]
    lines.extend(
        " | ".join(" ".join(command) for command in pipeline) + " ;"
        for pipeline in pipelines
    )
    if tempdir_replaced_arguments:
        lines += ["", "tempdir-including arguments:"]
        lines.extend(_debug_repr(original) for original, _ in tempdir_replaced_arguments)
    return "\n".join(lines) + "\n"


def _adjust_fds(fds: list[str]) -> list[str]:
    fds = list(fds)
    if fds[0] == "-" and fds[1] == "=":
        fds[1] = "-"
    return fds


def reform_sub_command_line(
    pipeline: list[list[str]], args: Args
) -> tuple[list[list[str]], Args]:
    """Interpret a pipeline starting with a nested ``o-o`` command.

    Returns the pipeline with the nested options removed and the nested
    arguments merged with the outer ones.
    """
    sub = parse_args(pipeline[0])
    if sub.debug_info:
        raise OOError("invalid option used in sub-command: --debug-info")
    if sub.pipe_str is not None:
        raise OOError("invalid option used in sub-command: --pipe")
    if sub.separator_str is not None:
        raise OOError("invalid option used in sub-command: --separator")
    if sub.tempdir_placeholder is not None:
        raise OOError("invalid option used in sub-command: --tempdir-placeholder=")

    validate_fds(sub.fds, sub.force_overwrite)
    sub_pipeline = [list(sub.command_line), *pipeline[1:]]
    merged = replace(
        sub,
        fds=_adjust_fds(sub.fds),
        envs=[*args.envs, *sub.envs],
        working_directory=(
            sub.working_directory if sub.working_directory is not None else args.working_directory
        ),
        force_overwrite=sub.force_overwrite or args.force_overwrite,
    )
    return sub_pipeline, merged


def _spawn_all(
    commands: list[list[str]],
    stdin: Any,
    stdout: Any,
    stderr: Any,
    cwd: str | None,
    env: dict[str, str] | None,
) -> list[int]:
    procs: list[subprocess.Popen] = []
    upstream = stdin
    try:
        for position, command in enumerate(commands):
            is_last = position == len(commands) - 1
            proc = subprocess.Popen(
                command,
                stdin=upstream,
                stdout=stdout if is_last else subprocess.PIPE,
                stderr=stderr,
                cwd=cwd,
                env=env,
            )
            if procs:
                procs[-1].stdout.close()
            procs.append(proc)
            upstream = proc.stdout
    except BaseException:
        for proc in procs:
            if proc.stdout is not None:
                proc.stdout.close()
            proc.kill()
            proc.wait()
        raise
    return [proc.wait() for proc in procs]


def _pipeline_status(codes: list[int]) -> int:
    """The rightmost failing status of a pipeline, or 0."""
    for code in reversed(codes):
        if code != 0:
            return code if code > 0 else 128 - code
    return 0


def run_pipeline(
    commands: list[list[str]],
    fds: list[str],
    envs: list[tuple[str, str]],
    working_directory: str | None,
    force_overwrite: bool,
    tempdir_placeholder: str | None,
) -> int:
    """Run the commands connected by pipes with the given redirections.

    Returns the pipeline's exit status. When stdout is ``=`` the output is
    written to a temporary file that replaces the input file on success
    (or always, with *force_overwrite*).
    """
    if not commands or any(not command for command in commands):
        raise OOError("No command to execute")

    env = {**os.environ, **dict(envs)} if envs else None
    temp_file_path = None

    with contextlib.ExitStack() as stack:
        stdin = stack.enter_context(open(fds[0], "rb")) if fds[0] != "-" else None

        stdout: Any = None
        if fds[1] == "=":
            temp_file_path = create_temp_file(tempdir_placeholder)
            stdout = stack.enter_context(open(temp_file_path, "wb"))
        elif fds[1] == ".":
            stdout = subprocess.DEVNULL
        elif fds[1] != "-":
            stdout = stack.enter_context(open_file_with_mode(fds[1]))

        stderr: Any = None
        if fds[2] == "=":
            stderr = _STDOUT_FD if stdout is None else stdout
        elif fds[2] == ".":
            stderr = subprocess.DEVNULL
        elif fds[2] != "-":
            stderr = stack.enter_context(open_file_with_mode(fds[2]))

        sys.stdout.flush()
        sys.stderr.flush()
        status = _pipeline_status(
            _spawn_all(commands, stdin, stdout, stderr, working_directory, env)
        )
    do_sync()

    if temp_file_path is not None:
        if status == 0 or force_overwrite:
            if os.name != "nt":
                shutil.move(os.fspath(temp_file_path), fds[0])
            else:
                with open(fds[0], "r+b") as target:
                    target.truncate(0)
                temp_file_path.unlink(missing_ok=True)
            do_sync()
        else:
            temp_file_path.unlink(missing_ok=True)
    return status


def _run(argv: list[str]) -> int:
    args = parse_args(argv)
    placeholder = args.tempdir_placeholder if args.tempdir_placeholder is not None else "T"
    pipe_str = args.pipe_str if args.pipe_str is not None else "I"
    separator_str = args.separator_str if args.separator_str is not None else "J"

    with contextlib.ExitStack() as stack:
        def temp_dir_factory() -> str:
            return stack.enter_context(tempfile.TemporaryDirectory())

        pipelines, replaced_args = split_pipelines(
            args.command_line, pipe_str, separator_str, placeholder, temp_dir_factory
        )

        if args.debug_info:
            print(format_debug_info(args, pipelines, replaced_args), end="")
            return 0

        validate_fds(args.fds, args.force_overwrite)
        first, *later = pipelines
        exit_code = run_pipeline(
            first,
            _adjust_fds(args.fds),
            args.envs,
            args.working_directory,
            args.force_overwrite,
            args.tempdir_placeholder,
        )
        if not args.keep_going and exit_code != 0:
            return exit_code

        # Later command lines are not redirected unless they are explicit o-o commands.
        plain = replace(args, fds=list(_NO_REDIRECTION))
        for pipeline in later:
            head = pipeline[0]
            if head and head[0] == "o-o":
                sub_pipeline, sub_args = reform_sub_command_line(pipeline, plain)
                exit_code = run_pipeline(
                    sub_pipeline,
                    sub_args.fds,
                    sub_args.envs,
                    sub_args.working_directory,
                    args.force_overwrite,
                    args.tempdir_placeholder,
                )
            else:
                exit_code = run_pipeline(
                    pipeline,
                    plain.fds,
                    plain.envs,
                    plain.working_directory,
                    args.force_overwrite,
                    args.tempdir_placeholder,
                )
            if not args.keep_going and exit_code != 0:
                return exit_code
        return exit_code


def main_argv(argv: list[str]) -> int:
    """Run with a full argument vector (program name first); return the exit code."""
    argv = list(argv)
    if len(argv) == 1:
        print(USAGE, end="")
        return 0
    try:
        return _run(argv)
    except ExitRequest as request:
        print(request.output, end="")
        return request.code


def main(argv: list[str] | None = None) -> int:
    """Command entry point; *argv* excludes the program name."""
    arguments = sys.argv[1:] if argv is None else list(argv)
    try:
        return main_argv(["o-o", *arguments])
    except OOError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: o-o: {e}", file=sys.stderr)
        return 1