"""Tiny terminal prompt helpers (prompt_toolkit-based).

Kept apart from the migration flow so the flow can be driven by any
``Callable[[str], bool]`` in tests.
"""

from __future__ import annotations

from prompt_toolkit import PromptSession


def parse_boolean(user_input: str) -> bool:
    """Only ``y``/``Y`` (surrounding whitespace ignored) means yes."""

    return user_input.strip() in {"y", "Y"}


def confirm(message: str, *, session: PromptSession | None = None) -> bool:
    """Ask a yes/no question; anything other than ``y`` is a no."""

    if session is None:
        sess: PromptSession = PromptSession()
    else:
        sess = PromptSession(
            input=getattr(session, "input", None),
            output=getattr(session, "output", None),
        )
    return parse_boolean(sess.prompt(f"{message} (y/n): "))


__all__ = ["parse_boolean", "confirm"]
