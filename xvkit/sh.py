"""Shell command-line parsing and the shell's built-in commands."""

from __future__ import annotations

import sys
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import NamedTuple, TextIO, Union

from xvkit.cstring import atoi
from xvkit.printf import fprintf
from xvkit.syscalls import OpenFlag

MAXARGS = 10

WHITESPACE = " \t\r\n\v"
SYMBOLS = "<|>&;()"

# Token kinds: a word, one of the single-character symbols, or "+" for ">>".
WORD = "a"
APPEND = "+"
_SINGLE = "|();&<"


class ShellError(Exception):
    """A command line that cannot be parsed."""

    def __init__(self, message: str, leftovers: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.leftovers = leftovers


@dataclass
class ExecCommand:
    """Run a program with its arguments; argv[0] names the program."""

    argv: list[str] = field(default_factory=list)


@dataclass
class RedirCommand:
    """Run a command with one file descriptor redirected to a file."""

    cmd: "Command"
    file: str
    mode: OpenFlag
    fd: int


@dataclass
class PipeCommand:
    """Connect the output of left to the input of right."""

    left: "Command"
    right: "Command"


@dataclass
class ListCommand:
    """Run left, wait for it, then run right."""

    left: "Command"
    right: "Command"


@dataclass
class BackCommand:
    """Run a command in the background."""

    cmd: "Command"


Command = Union[ExecCommand, RedirCommand, PipeCommand, ListCommand, BackCommand]


@dataclass
class Credentials:
    """User and group identity that the _set and _get builtins act on."""

    uid: int = 0
    gid: int = 0


class Token(NamedTuple):
    kind: str
    text: str


class _Scanner:
    def __init__(self, line: str) -> None:
        end = line.find("\0")
        self.text = line if end < 0 else line[:end]
        self.pos = 0
        self.end = len(self.text)

    def skip_space(self) -> None:
        while self.pos < self.end and self.text[self.pos] in WHITESPACE:
            self.pos += 1

    def peek(self, toks: str) -> bool:
        self.skip_space()
        return self.pos < self.end and self.text[self.pos] in toks

    def next_token(self) -> Token:
        self.skip_space()
        start = self.pos
        if self.pos >= self.end:
            kind = ""
        else:
            c = self.text[self.pos]
            if c in _SINGLE:
                self.pos += 1
                kind = c
            elif c == ">":
                self.pos += 1
                kind = ">"
                if self.pos < self.end and self.text[self.pos] == ">":
                    self.pos += 1
                    kind = APPEND
            else:
                kind = WORD
                while (
                    self.pos < self.end
                    and self.text[self.pos] not in WHITESPACE
                    and self.text[self.pos] not in SYMBOLS
                ):
                    self.pos += 1
        token = Token(kind, self.text[start:self.pos])
        self.skip_space()
        return token

    def rest(self) -> str:
        return self.text[self.pos:self.end]


def tokenize(line: str) -> Iterator[Token]:
    """Yield the tokens of a command line.

    Kinds are "a" for a word, the symbol itself for | ( ) ; & < >, and "+" for >>.
    """
    scanner = _Scanner(line)
    while True:
        token = scanner.next_token()
        if not token.kind:
            return
        yield token


class _Parser:
    def __init__(self, line: str) -> None:
        self.scan = _Scanner(line)

    def line(self) -> Command:
        cmd = self.pipe()
        while self.scan.peek("&"):
            self.scan.next_token()
            cmd = BackCommand(cmd)
        if self.scan.peek(";"):
            self.scan.next_token()
            cmd = ListCommand(cmd, self.line())
        return cmd

    def pipe(self) -> Command:
        cmd = self.exec()
        if self.scan.peek("|"):
            self.scan.next_token()
            cmd = PipeCommand(cmd, self.pipe())
        return cmd

    def redirs(self, cmd: Command) -> Command:
        while self.scan.peek("<>"):
            op = self.scan.next_token()
            target = self.scan.next_token()
            if target.kind != WORD:
                raise ShellError("missing file for redirection")
            if op.kind == "<":
                cmd = RedirCommand(cmd, target.text, OpenFlag.RDONLY, 0)
            else:
                cmd = RedirCommand(cmd, target.text, OpenFlag.WRONLY | OpenFlag.CREATE, 1)
        return cmd

    def block(self) -> Command:
        if not self.scan.peek("("):
            raise ShellError("parseblock")
        self.scan.next_token()
        cmd = self.line()
        if not self.scan.peek(")"):
            raise ShellError("syntax - missing )")
        self.scan.next_token()
        return self.redirs(cmd)

    def exec(self) -> Command:
        if self.scan.peek("("):
            return self.block()
        cmd = ExecCommand()
        ret = self.redirs(cmd)
        while not self.scan.peek("|)&;"):
            token = self.scan.next_token()
            if not token.kind:
                break
            if token.kind != WORD:
                raise ShellError("syntax")
            cmd.argv.append(token.text)
            if len(cmd.argv) >= MAXARGS:
                raise ShellError("too many args")
            ret = self.redirs(ret)
        return ret


def parse_command(line: str) -> Command:
    """Parse a whole command line into a command tree."""
    parser = _Parser(line)
    cmd = parser.line()
    parser.scan.skip_space()
    if parser.scan.pos != parser.scan.end:
        raise ShellError("syntax", leftovers=parser.scan.rest())
    return cmd


def _out(out: TextIO | None) -> TextIO:
    return out if out is not None else sys.stderr


def _after(text: str, prefix: str) -> str:
    return text[len(prefix):].lstrip(" ")


def set_builtin(line: str, credentials: Credentials, out: TextIO | None = None) -> int:
    """Handle "_set uid N" or "_set gid N"; returns the new id, or -1."""
    rest = _after(line, "_set")
    if rest.startswith("uid"):
        credentials.uid = atoi(_after(rest, "uid"))
        return credentials.uid
    if rest.startswith("gid"):
        credentials.gid = atoi(_after(rest, "gid"))
        return credentials.gid
    fprintf(_out(out), "Invalid _set parameter\n")
    return -1


def get_builtin(line: str, credentials: Credentials, out: TextIO | None = None) -> int:
    """Handle "_get uid" or "_get gid" by printing the id; returns 0, or -1."""
    rest = _after(line, "_get")
    if rest.startswith("uid"):
        fprintf(_out(out), "%d\n", credentials.uid)
        return 0
    if rest.startswith("gid"):
        fprintf(_out(out), "%d\n", credentials.gid)
        return 0
    fprintf(_out(out), "Invalid _get parameter\n")
    return -1


_BUILTINS = (
    ("_set", set_builtin),
    ("_get", get_builtin),
)


def run_builtin(line: str, credentials: Credentials, out: TextIO | None = None) -> int | None:
    """Dispatch a line to the builtin whose name it starts with.

    Returns the builtin's result, or None when no builtin matches.
    """
    result = None
    for name, handler in _BUILTINS:
        if line.startswith(name):
            result = handler(line, credentials, out)
    return result