# oorun

`oorun` runs a command, or a chain of commands, and redirects its standard
input, output and error to files named on the command line. It gives you
shell-style redirection, pipes and command sequences without a shell.

## Installation

```
pip install .
```

This installs the `o-o` command. The package has no dependencies beyond the
standard library.

## Usage

```
o-o [options] <stdin> <stdout> <stderr> [--] <commandline>...
o-o --help
o-o --version
```

Run with no arguments, `o-o` prints the help text.

The first three arguments choose where the standard streams go:

- `<stdin>`: the file to read from. `-` means no redirection. `=` and `.` are
  not allowed here.
- `<stdout>`: `-` means no redirection. `=` means the same file as stdin. The
  output goes to a temporary file, and that file replaces the input file only
  after the command succeeds. `.` sends output to the null device.
- `<stderr>`: `-` means no redirection. `=` sends it to wherever stdout goes.
  `.` sends it to the null device.

Put `+` in front of a file name to append to it instead of truncating it, as `>>`
does in a shell. `+-` and `+=` are rejected.

The same file cannot be named twice. Use `=` for that instead. If `<stdout>` or
`<stderr>` names a program found on the search path, `o-o` refuses to run. The
message asks you to put `--` between the stream arguments and the command.

The three arguments can also be written as one word made of `-`, `=` and `.`,
for example `---` or `-.-`. Writing `--` after fewer than three arguments fills
the rest with `-`.

### Options

| Option | Meaning |
| --- | --- |
| `-e VAR=VALUE` | Set an environment variable for the command. Can be repeated. |
| `-p STR`, `--pipe=STR` | Word that joins commands with a pipe (default `I`). |
| `-s STR`, `--separator=STR` | Word that separates command lines (default `J`). |
| `-t STR`, `--tempdir-placeholder=STR` | Placeholder for a temporary directory (default `T`). |
| `-F`, `--force-overwrite` | Replace the input file even if the command fails. Only valid when `<stdin>` is a file and `<stdout>` is `=`. |
| `-k`, `--keep-going` | Keep running later command lines after one fails. |
| `-d DIR`, `--working-directory=DIR` | Run the commands in `DIR`. |
| `--debug-info` | Print the parsed arguments and the command lines that would run, then exit without running anything. |
| `-V`, `--version` | Print the version. |
| `-h`, `--help` | Print the help text. |

An unknown option is an error.

## Examples

Write a directory listing to a file:

```
o-o - listing.txt - ls
```

Sort a file in place. The file is replaced only if `sort` succeeds:

```
o-o data.txt = - sort
```

Count lines through a pipe:

```
o-o --- cat notes.txt I wc -l
```

Run two command lines one after the other:

```
o-o --- cp a.txt b.txt J wc -l b.txt
```

A later command line does not redirect anything unless it starts with `o-o`
itself. That nested `o-o` takes its own three stream arguments. It may use `-e`,
`-d`, `-F` and `-k`, but not `--pipe`, `--separator`, `--tempdir-placeholder` or
`--debug-info`. Its environment variables are added to the outer ones, and the
outer working directory applies unless it gives its own:

```
o-o --- cp a.txt b.txt J o-o b.txt - - wc -l
```

Use a temporary directory that is created for the run and removed afterwards.
The placeholder is replaced when a `/` follows it and it is not preceded by a
file-name character. So both `T/copy.txt` and `--out=T/copy.txt` are replaced:

```
o-o --- cp a.txt T/copy.txt J cat T/copy.txt
```

Append the output of several runs to one log file:

```
o-o - +run.log - date
```

## Exit status

A pipeline's status is that of the rightmost command in it that failed, or 0
if every command succeeded. By default `o-o` stops at the first command line
that fails and exits with its status. With `-k` it runs every command line and
exits with the status of the last one. If a usage error or file error occurs,
`o-o` prints a message to standard error and exits with status 1.

After each pipeline, `o-o` runs `sync` to flush file-system buffers.

## Limitations

`o-o` runs commands directly, not through a shell. Shell syntax such as globbing,
quoting rules or `&&` is not interpreted. In-place replacement with `=` moves the
temporary file over the input file, which is meant for POSIX systems.