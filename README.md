# minishell

A small interactive command shell. It reads a line, splits it into words
and operators, expands variables, strips quotes and runs the result. A line
holds either a single command or a pipeline.

## Features

- Pipelines: `ls -l | grep py | wc -l`
- Redirections: `<`, `>`, `>>` and here-documents with `<<`
- Single and double quotes; `$NAME` and `$?` expand outside single quotes,
  and unset variables expand to nothing
- Built-in commands: `echo` (with `-n`), `cd`, `pwd`, `export`, `unset`,
  `env` and `exit`
- `SHLVL` is raised by one when the shell starts
- Ctrl-C gives a fresh prompt and sets the status to 130; Ctrl-D leaves the
  shell
- Lines are kept in the readline history, except lines containing `<<`

## Installation

```
pip install .
```

## Usage

Start the shell:

```
minishell
```

It starts with the variables of the process environment and shows the
prompt `minishell> `. Here-document lines are read after the prompt
`heredoc> `. For example:

```
minishell> export GREETING="hello world"
minishell> echo "$GREETING" | tr a-z A-Z > out.txt
minishell> cat << END
heredoc> first line
heredoc> END
first line
minishell> exit 3
```

`exit` leaves the shell with the code it is given (taken modulo 256), or,
without an argument, with the status of the last command. At the end of
input (Ctrl-D) the shell exits with status 0.

Syntax errors, such as a missing redirection target or a pipe with nothing
after it, are reported as `minishell: parse error near '...'` and the line
is skipped; so is a line with an unclosed quote.

## Use from Python

```python
from minishell.shell import Shell

shell = Shell(["PATH=/usr/bin:/bin", "HOME=/tmp"])
shell.run_line("export NAME=value")
status = shell.run_line("echo $NAME > result.txt")
```

`Shell` takes `NAME=value` strings; `run_line` returns the new exit status,
and `exit` raises `minishell.builtins.ShellExit` carrying the status.

The lower layers can also be used directly: `minishell.lexer.tokenize`,
`minishell.expander.expand`, `minishell.parser.parse`,
`minishell.heredoc.prepare_heredocs` and `minishell.executor.execute`,
with variables kept in `minishell.environment.Environment`.

## What it does not do

- The `minishell` command only runs interactively; it ignores its
  arguments and does not run script files.
- There are no command lists or conditionals (`;`, `&&`, `||`), no
  subshells, no globbing and no job control.
- In a pipeline, built-in commands run on a copy of the variables, so
  `export` or `cd` there do not change the shell.

## Running the tests

```
pip install .[test]
pytest
```