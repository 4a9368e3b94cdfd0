"""
Terminal prompts built on rich.

Option lists are rendered as numbered menus in the order they are given.
Ctrl-C or end-of-input at any prompt raises ``PromptCancelled``.
"""

from __future__ import annotations

from typing import Any, Callable, Sequence

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from .errors import LnrError
from .models import Option

NONE_TOKEN = "-"


class PromptCancelled(LnrError):
    """Raised when the user aborts a prompt."""

    def __init__(self, message: str = "cancelled"):
        super().__init__("cancelled", message)


def _parse_indices(raw: str, count: int) -> list[int]:
    """Parse "1, 3 4" into zero-based indices; raises ValueError when out of range."""
    indices: list[int] = []
    for part in raw.replace(",", " ").split():
        number = int(part)
        if not 1 <= number <= count:
            raise ValueError(f"{number} is not between 1 and {count}")
        if number - 1 not in indices:
            indices.append(number - 1)
    return indices


class RichPrompter:
    """Interactive prompts on a rich console."""

    def __init__(self, console: Console | None = None):
        self._console = console or Console()

    def _ask(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, console=self._console, **kwargs)
        except (KeyboardInterrupt, EOFError) as exc:
            self._console.print()
            raise PromptCancelled() from exc

    def _heading(self, title: str, description: str) -> None:
        self._console.print(f"\n[bold]{title}[/bold]")
        if description:
            self._console.print(f"[dim]{description}[/dim]")

    def _print_options(self, options: Sequence[Option]) -> None:
        for number, option in enumerate(options, start=1):
            self._console.print(f"  [cyan]{number:>2}[/cyan]  {escape(option.label)}", highlight=False)

    def text(
        self,
        title: str,
        description: str = "",
        default: str = "",
        required: bool = False,
        multiline: bool = False,
    ) -> str:
        self._heading(title, description)
        if multiline:
            return self._multiline()
        while True:
            answer = self._ask(Prompt.ask, ">", default=default, show_default=bool(default))
            answer = (answer or "").strip()
            if answer or not required:
                return answer
            self._console.print(f"[red]{title} cannot be empty[/red]")

    def _multiline(self) -> str:
        self._console.print("[dim]Empty line to finish[/dim]")
        lines: list[str] = []
        while True:
            line = self._ask(Prompt.ask, "", default="", show_default=False) or ""
            if not line.strip():
                break
            lines.append(line.rstrip())
        return "\n".join(lines)

    def select(
        self,
        title: str,
        options: Sequence[Option],
        default: str | None = None,
        description: str = "",
    ) -> str:
        if not options:
            return ""
        self._heading(title, description)
        self._print_options(options)

        default_number = "1"
        for number, option in enumerate(options, start=1):
            if option.value == default:
                default_number = str(number)
                break

        choices = [str(number) for number in range(1, len(options) + 1)]
        answer = self._ask(Prompt.ask, ">", choices=choices, default=default_number, show_choices=False)
        return options[int(answer) - 1].value

    def multi_select(
        self,
        title: str,
        options: Sequence[Option],
        default: Sequence[str] = (),
        limit: int | None = None,
        description: str = "",
    ) -> list[str]:
        if not options:
            return []
        self._heading(title, description)
        self._print_options(options)

        preselected = [index for index, option in enumerate(options) if option.value in default]
        if preselected:
            current = ", ".join(escape(options[index].label) for index in preselected)
            hint = f"> numbers separated by commas, Enter keeps [green]{current}[/green], {NONE_TOKEN} for none"
        else:
            hint = "> numbers separated by commas, blank for none"

        while True:
            answer = (self._ask(Prompt.ask, hint, default="", show_default=False) or "").strip()
            if answer == NONE_TOKEN:
                return []
            if not answer:
                return [options[index].value for index in preselected]
            try:
                indices = _parse_indices(answer, len(options))
            except ValueError as exc:
                self._console.print(f"[red]Invalid selection: {exc}[/red]")
                continue
            if limit is not None and len(indices) > limit:
                self._console.print(f"[red]Select at most {limit}[/red]")
                continue
            return [options[index].value for index in indices]

    def confirm(self, title: str, default: bool = True) -> bool:
        return bool(self._ask(Confirm.ask, title, default=default))
