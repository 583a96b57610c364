"""Command-line parser for the shell: pipes, lists, background jobs and redirections."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

from .params import OpenFlag

MAXARGS = 10

WHITESPACE = " \t\r\n\v"
SYMBOLS = "<|>&;()"

END = ""
WORD = "a"
APPEND = "+"


class ShellSyntaxError(ValueError):
    """The command line could not be parsed."""


@dataclass
class ExecCmd:
    """Run a program with arguments."""

    argv: list[str] = field(default_factory=list)


@dataclass
class RedirCmd:
    """Run cmd with file opened on descriptor fd."""

    cmd: "Command"
    file: str
    mode: OpenFlag
    fd: int


@dataclass
class PipeCmd:
    """Connect left's output to right's input."""

    left: "Command"
    right: "Command"


@dataclass
class ListCmd:
    """Run left to completion, then right."""

    left: "Command"
    right: "Command"


@dataclass
class BackCmd:
    """Run cmd without waiting for it."""

    cmd: "Command"


Command = Union[ExecCmd, RedirCmd, PipeCmd, ListCmd, BackCmd]


class Parser:
    """Recursive-descent parser over one command line."""

    def __init__(self, line: str) -> None:
        nul = line.find("\0")
        self.text = line if nul < 0 else line[:nul]
        self.pos = 0
        self.end = len(self.text)

    def _skip_space(self) -> None:
        while self.pos < self.end and self.text[self.pos] in WHITESPACE:
            self.pos += 1

    def peek(self, toks: str) -> bool:
        """Skip whitespace; whether the next character is one of toks."""
        self._skip_space()
        return self.pos < self.end and self.text[self.pos] in toks

    def next_token(self) -> tuple[str, str]:
        """Consume one token; returns its kind and its text.

        The kind is "" at the end of input, "a" for a word, "+" for ">>",
        and the symbol itself otherwise.
        """
        self._skip_space()
        start = self.pos
        if start >= self.end:
            return END, ""
        c = self.text[start]
        if c in "|();&<":
            self.pos += 1
            kind = c
        elif c == ">":
            self.pos += 1
            kind = ">"
            if self.pos < self.end and self.text[self.pos] == ">":
                kind = APPEND
                self.pos += 1
        else:
            kind = WORD
            while (
                self.pos < self.end
                and self.text[self.pos] not in WHITESPACE
                and self.text[self.pos] not in SYMBOLS
            ):
                self.pos += 1
        text = self.text[start:self.pos]
        self._skip_space()
        return kind, text

    def parse_line(self) -> Command:
        """A pipeline, optionally backgrounded, optionally followed by ';' and more."""
        cmd = self.parse_pipe()
        while self.peek("&"):
            self.next_token()
            cmd = BackCmd(cmd)
        if self.peek(";"):
            self.next_token()
            cmd = ListCmd(cmd, self.parse_line())
        return cmd

    def parse_pipe(self) -> Command:
        """One command, or several joined by '|'."""
        cmd = self.parse_exec()
        if self.peek("|"):
            self.next_token()
            cmd = PipeCmd(cmd, self.parse_pipe())
        return cmd

    def parse_redirs(self, cmd: Command) -> Command:
        """Wrap cmd in any redirections that follow."""
        while self.peek("<>"):
            kind, _ = self.next_token()
            file_kind, file = self.next_token()
            if file_kind != WORD:
                raise ShellSyntaxError("missing file for redirection")
            if kind == "<":
                cmd = RedirCmd(cmd, file, OpenFlag.RDONLY, 0)
            else:
                cmd = RedirCmd(cmd, file, OpenFlag.WRONLY | OpenFlag.CREATE, 1)
        return cmd

    def parse_block(self) -> Command:
        """A parenthesised command line with optional redirections."""
        if not self.peek("("):
            raise ShellSyntaxError("parseblock")
        self.next_token()
        cmd = self.parse_line()
        if not self.peek(")"):
            raise ShellSyntaxError("syntax - missing )")
        self.next_token()
        return self.parse_redirs(cmd)

    def parse_exec(self) -> Command:
        """A block, or a program with arguments and redirections."""
        if self.peek("("):
            return self.parse_block()
        exec_cmd = ExecCmd()
        cmd: Command = self.parse_redirs(exec_cmd)
        while not self.peek("|)&;"):
            kind, text = self.next_token()
            if kind == END:
                break
            if kind != WORD:
                raise ShellSyntaxError("syntax")
            exec_cmd.argv.append(text)
            if len(exec_cmd.argv) >= MAXARGS:
                raise ShellSyntaxError("too many args")
            cmd = self.parse_redirs(cmd)
        return cmd


def parse_cmd(line: str) -> Command:
    """Parse a whole command line; anything left over is a syntax error."""
    parser = Parser(line)
    cmd = parser.parse_line()
    parser.peek("")
    if parser.pos != parser.end:
        raise ShellSyntaxError(f"leftovers: {parser.text[parser.pos:]}")
    return cmd


def split_cd(line: str) -> Optional[str]:
    """The directory of a 'cd' line as read (last character chopped), or None."""
    if not line.startswith("cd "):
        return None
    return line[3:-1]