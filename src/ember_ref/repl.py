"""Interactive parse REPL for Ember, powered by prompt_toolkit."""

from __future__ import annotations

import re
import sys
import traceback
from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import clear

from .lexer_rd import LexError, tokenize
from .parser_rd import ParseError
from .repl_highlight import EmberHighlighter
from .runner import render
from .token_types import TT
from .utils import configure_logging, debug_py_trace_enabled, set_py_trace

# Zero-width and invisible characters to strip from input.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

# Slash commands: name => (description, argument_hint).
_SLASH_CMDS = {
    "/clear": ("Clear the terminal screen", ""),
    "/tokens": ("Toggle printing the token stream instead of the tree", "[on|off]"),
    "/py-traceback": ("Toggle Python traceback on errors", "[on|off]"),
}

_DEPTH_OPEN = {TT.LPAR, TT.LSQB, TT.LBRACE}
_DEPTH_CLOSE = {TT.RPAR, TT.RSQB, TT.RBRACE}

_ON = ("on", "1", "true", "yes")
_OFF = ("off", "0", "false", "no")


def open_depth(text: str) -> int:
    """Nesting depth left open at the end of *text*; 0 when balanced."""
    try:
        tokens = tokenize(text)
    except LexError:
        return 0

    depth = 0
    for tok in tokens:
        if tok.type in _DEPTH_OPEN:
            depth += 1
        elif tok.type in _DEPTH_CLOSE:
            depth = max(depth - 1, 0)
    return depth


class _SlashCompleter(Completer):
    """Autocomplete slash commands on the primary prompt."""

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        if not text.startswith("/"):
            return

        for cmd, (desc, hint) in _SLASH_CMDS.items():
            if cmd.startswith(text):
                yield Completion(
                    cmd,
                    start_position=-len(text),
                    display_meta=desc,
                )


def _parse_switch(arg: str):
    if arg.lower() in _ON:
        return True
    if arg.lower() in _OFF:
        return False
    return None


def _handle_slash(line: str, state: dict) -> bool:
    """Handle slash commands. Returns True if the line was a command."""
    stripped = line.strip()
    if not stripped.startswith("/"):
        return False

    parts = stripped.split(None, 1)
    cmd = parts[0]
    arg = parts[1] if len(parts) > 1 else ""

    if cmd == "/clear":
        clear()
        return True

    if cmd in ("/tokens", "/py-traceback"):
        switch = _parse_switch(arg)
        if arg and switch is None:
            print(f"Usage: {cmd} [on|off]", file=sys.stderr)
            return True

        if cmd == "/tokens":
            state["tokens"] = (not state["tokens"]) if switch is None else switch
            enabled = state["tokens"]
            label = "Token mode"
        else:
            enabled = set_py_trace(switch)
            label = "Python traceback"

        print(f"{label}: {'on' if enabled else 'off'}")
        return True

    print(f"Unknown command: {cmd}", file=sys.stderr)
    return True


def _normalize(text: str) -> str:
    """Strip invisible characters from input."""
    return _INVISIBLE_RE.sub("", text)


def _compute_indent(text: str) -> str:
    """Indent continuation lines by four spaces per open bracket."""
    return " " * (4 * open_depth(text))


def repl() -> None:
    """Interactive read-parse-print loop with prompt_toolkit."""
    configure_logging()
    state = {"tokens": False}

    history = InMemoryHistory()
    bindings = KeyBindings()

    @bindings.add("backspace")
    def _backspace(event):
        buf = event.app.current_buffer
        buf.delete_before_cursor(1)
        if buf.text.startswith("/"):
            buf.start_completion()

    @bindings.add("enter")
    def _enter(event):
        buf = event.app.current_buffer
        text = buf.text

        # Balanced brackets => accept; otherwise keep reading lines.
        if text.startswith("/") or open_depth(text) == 0:
            buf.validate_and_handle()
            return

        # An empty continuation line forces submission so the parser can
        # report the unterminated construct.
        if text.split("\n")[-1].strip() == "" and "\n" in text:
            buf.validate_and_handle()
            return

        buf.insert_text("\n" + _compute_indent(text))

    session: PromptSession[str] = PromptSession(
        history=history,
        lexer=EmberHighlighter(),
        completer=_SlashCompleter(),
        complete_while_typing=True,
        key_bindings=bindings,
        multiline=True,
        prompt_continuation="... ",
    )

    print("ember parse repl (Ctrl-D to exit, / for commands)")

    while True:
        try:
            text = session.prompt(">>> ")
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print("KeyboardInterrupt")
            continue

        text = _normalize(text)
        if not text.strip():
            continue

        # Slash command?
        if _handle_slash(text, state):
            continue

        try:
            output = render(text, "tokens" if state["tokens"] else "program")
        except (ParseError, LexError) as exc:
            print(f"Error: {exc}", file=sys.stderr)
            if debug_py_trace_enabled():
                print("\nPython traceback:", file=sys.stderr)
                print(
                    "".join(traceback.format_tb(exc.__traceback__)),
                    file=sys.stderr,
                    end="",
                )
            continue

        print(output)


if __name__ == "__main__":
    repl()
