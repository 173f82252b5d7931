"""Command strings and status lines of the Soundpad remote control protocol.

Commands look like ``VerbName(arg1, arg2, ...)``. Numbers are written in
decimal, booleans as ``true``/``false`` and strings inside double quotes.
Embedded quotes are not escaped because Soundpad has no escape syntax.
"""

from __future__ import annotations

SUCCESS_PREFIX = "R-200"
STATUS_PREFIX = "R"


def render_arg(value: bool | int | float | str) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return f'"{value}"'
    raise TypeError(f"Unsupported command argument: {value!r}")


def format_command(verb: str, *args: bool | int | float | str, separator: str = ", ") -> str:
    return f"{verb}({separator.join(render_arg(arg) for arg in args)})"


def is_success(response: str) -> bool:
    return response.startswith(SUCCESS_PREFIX)


def is_status_line(response: str) -> bool:
    """True for ``R-xxx`` replies, as opposed to a data payload."""
    return response.startswith(STATUS_PREFIX)


def parse_int(response: str) -> int | None:
    """Parse a whole reply as a base-10 integer, ``None`` when it is not one."""
    try:
        return int(response.strip(), 10)
    except ValueError:
        return None
