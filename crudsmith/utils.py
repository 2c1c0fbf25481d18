"""Shared utility functions for crudsmith.

Provides async command execution, naming and inflection helpers used to
derive entity, table and relation names, and Rich-based console reporting.
"""

from __future__ import annotations

import asyncio
import os
import re
from pathlib import Path

import inflect
from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()

_inflector = inflect.engine()

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: str | list[str],
    cwd: str | Path | None = None,
    timeout: int = 120,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run a command asynchronously.

    Args:
        cmd: Shell command string or list of arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple. A missing executable is
        reported as return code 127 and one that cannot be executed as 126,
        rather than raised.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    try:
        if isinstance(cmd, list):
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd else None,
                env=merged_env,
            )
        else:
            process = await asyncio.create_subprocess_shell(
                cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd else None,
                env=merged_env,
            )
    except FileNotFoundError as exc:
        return (127, "", str(exc))
    except OSError as exc:
        return (126, "", str(exc))

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (
            -1,
            "",
            f"Command timed out after {timeout}s: {cmd if isinstance(cmd, str) else ' '.join(cmd)}",
        )

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


# ---------------------------------------------------------------------------
# Naming helpers
# ---------------------------------------------------------------------------


def _split_words(value: str) -> list[str]:
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1 \2", value)
    s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", s1)
    return [w for w in re.split(r"[-_\s]+", s2) if w]


def snake_case(value: str) -> str:
    """Convert ``OrderItem`` or ``order-item`` to ``order_item``."""
    return "_".join(w.lower() for w in _split_words(value))


def studly_case(value: str) -> str:
    """Convert ``order_item`` or ``order-item`` to ``OrderItem``."""
    return "".join(w[:1].upper() + w[1:] for w in _split_words(value))


def camel_case(value: str) -> str:
    """Convert ``order_item`` to ``orderItem``."""
    studly = studly_case(value)
    return studly[:1].lower() + studly[1:] if studly else ""


def title_words(value: str) -> str:
    """Convert ``due_date`` to ``Due Date``."""
    return " ".join(w.capitalize() for w in value.replace("_", " ").split())


# Endings of singular nouns that inflect would otherwise strip a trailing "s" from.
_SINGULAR_S_ENDINGS = ("ss", "us", "is")

# Plurals of nouns ending in a vowel that still carry one of those endings.
_VOWEL_S_PLURALS = frozenset({
    "alibis", "emus", "gurus", "haikus", "kiwis", "menus", "skis", "taxis", "tofus",
})


def _is_singular(word: str) -> bool:
    lowered = word.lower()
    if lowered.endswith(_SINGULAR_S_ENDINGS) and lowered not in _VOWEL_S_PLURALS:
        return True
    return _inflector.singular_noun(word) is False


def _singular_segment(word: str) -> str:
    if _is_singular(word):
        return word
    return _inflector.singular_noun(word) or word


def singular(word: str) -> str:
    """Singularise the last segment of a snake_case word.

    ``categories`` -> ``category``, ``order_items`` -> ``order_item``.
    Words that are already singular are returned unchanged.
    """
    if not word:
        return word
    head, sep, last = word.rpartition("_")
    if not last:
        return word
    return f"{head}{sep}{_singular_segment(last)}"


def plural(word: str) -> str:
    """Pluralise the last segment of a snake_case word.

    ``category`` -> ``categories``, ``order_item`` -> ``order_items``.
    """
    if not word:
        return word
    head, sep, last = word.rpartition("_")
    if not last:
        return word
    if not _is_singular(last):
        return word
    return f"{head}{sep}{_inflector.plural_noun(last)}"


def table_name_for(entity: str) -> str:
    """Return the conventional table for an entity: ``OrderItem`` -> ``order_items``."""
    return plural(snake_case(entity))


def entity_name_for(table: str) -> str:
    """Return the conventional entity for a table: ``order_items`` -> ``OrderItem``."""
    return studly_case(singular(table))


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{escape(message)}[/bold yellow]")


def print_info(message: str) -> None:
    """Print a cyan informational message."""
    console.print(f"[cyan]{escape(message)}[/cyan]")
