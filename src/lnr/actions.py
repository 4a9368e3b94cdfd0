"""
Follow-up actions offered after an issue is created.
"""

from __future__ import annotations

import logging
import webbrowser

import pyperclip
from rich.console import Console
from rich.markup import escape

from .errors import LnrError
from .models import CreatedIssue, Option

logger = logging.getLogger(__name__)

ISSUE_URL_TEMPLATE = "https://linear.app/issue/{identifier}"

COPY_BRANCH = "branch"
OPEN_ISSUE = "open"
EXIT = "exit"

POST_ACTIONS = [
    Option("Copy branch name", COPY_BRANCH),
    Option("Open in Linear", OPEN_ISSUE),
    Option("Exit", EXIT),
]


class ActionError(LnrError):
    """Raised when a post-creation action fails."""

    def __init__(self, message: str):
        super().__init__("action_failed", message)


def branch_name(issue: CreatedIssue) -> str:
    return issue.identifier.lower()


def issue_url(issue: CreatedIssue) -> str:
    return issue.url or ISSUE_URL_TEMPLATE.format(identifier=issue.identifier)


def copy_to_clipboard(text: str) -> None:
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as exc:
        raise ActionError(f"Failed to copy to clipboard: {exc}") from exc


def open_url(url: str) -> None:
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as exc:
        raise ActionError(f"Failed to open URL: {exc}") from exc
    if not opened:
        raise ActionError(f"Failed to open URL: no browser available for {url}")


def run_post_action(action: str, issue: CreatedIssue, console: Console) -> bool:
    """
    Perform a post-creation action and report the outcome.

    Failures are printed, never raised.

    Returns:
        True if the action succeeded (or was "exit"), False otherwise.
    """
    try:
        if action == COPY_BRANCH:
            name = branch_name(issue)
            copy_to_clipboard(name)
            console.print(f"📋 Copied '{name}' to clipboard")
        elif action == OPEN_ISSUE:
            url = issue_url(issue)
            open_url(url)
            console.print(f"🌐 Opened {url}")
    except ActionError as exc:
        logger.debug("Post action %s failed", action, exc_info=True)
        console.print(f"[red]❌ {escape(exc.message)}[/red]")
        return False
    return True
