"""
Interactive ticket session: pick a team, fill the form, create the issue.
"""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .actions import EXIT, POST_ACTIONS, run_post_action
from .errors import LnrError
from .estimates import DEFAULT_SCALE, estimate_label, estimate_options
from .models import (
    CreatedIssue,
    Label,
    Option,
    Team,
    Ticket,
    User,
    UserSelections,
    WorkflowState,
)
from .prompts import PromptCancelled
from .resolver import ReferenceDataResolver, choose_cached_team

logger = logging.getLogger(__name__)

MAX_LABELS = 4
NO_ASSIGNEE = Option("No assignee", "")


class SessionError(LnrError):
    """Raised when the session cannot continue with the data it has."""

    def __init__(self, message: str):
        super().__init__("session_error", message)


class IssueCreator(Protocol):
    def create_issue(self, ticket: Ticket, label_ids_by_name: dict[str, str]) -> CreatedIssue: ...


class Prompter(Protocol):
    def text(
        self,
        title: str,
        description: str = "",
        default: str = "",
        required: bool = False,
        multiline: bool = False,
    ) -> str: ...

    def select(
        self, title: str, options: Sequence[Option], default: str | None = None, description: str = ""
    ) -> str: ...

    def multi_select(
        self,
        title: str,
        options: Sequence[Option],
        default: Sequence[str] = (),
        limit: int | None = None,
        description: str = "",
    ) -> list[str]: ...

    def confirm(self, title: str, default: bool = True) -> bool: ...


def _name_for(records: Sequence[Team | User | WorkflowState], record_id: str, fallback: str) -> str:
    for record in records:
        if record.id == record_id:
            return record.name
    return fallback


def _known(value: str, options: Sequence[Option]) -> str:
    return value if any(option.value == value for option in options) else ""


class TicketSession:
    """Runs one ticket-creation session from team choice to post action."""

    def __init__(
        self,
        resolver: ReferenceDataResolver,
        creator: IssueCreator,
        prompter: Prompter,
        console: Console,
        estimate_scale: str = DEFAULT_SCALE,
    ):
        self._resolver = resolver
        self._creator = creator
        self._prompter = prompter
        self._console = console
        self._estimate_scale = estimate_scale

    def run(self) -> CreatedIssue | None:
        """
        Run the session.

        Returns:
            The created issue, or None if the user chose not to submit.

        Raises:
            ResolutionError: If reference data cannot be fetched.
            PromptCancelled: If the user aborts a prompt.
            LinearApiError: If issue creation fails.
        """
        selections = self._resolver.load_selections() or UserSelections()

        teams = self._resolver.teams()
        if not teams:
            raise SessionError("No teams available for this API key")
        team_id = self._choose_team(teams, selections.team_id)
        team_name = _name_for(teams, team_id, team_id)
        self._console.print(Text(f"Team: {team_name}", style="dim"))

        labels = self._resolver.labels(team_id)
        users = self._resolver.users(team_id)
        states = self._resolver.states(team_id)

        ticket = self._fill_form(team_id, selections, labels, users, states)
        self._print_summary(ticket, users, states)

        if not self._prompter.confirm("Create this ticket in Linear?", default=True):
            self._console.print("Ticket not submitted.")
            return None

        self._console.print("\n🚀 Creating ticket in Linear...")
        label_ids_by_name = {label.name: label.id for label in labels}
        issue = self._creator.create_issue(ticket, label_ids_by_name)
        self._console.print(f"[green]✅ Ticket created successfully! ID: {issue.identifier}[/green]")

        self._resolver.save_selections(ticket.to_selections())
        self._post_action(issue)
        return issue

    def _choose_team(self, teams: list[Team], cached_team_id: str) -> str:
        team_id = choose_cached_team(teams, cached_team_id)
        if team_id:
            return team_id
        options = [Option(team.name, team.id) for team in teams]
        return self._prompter.select("Team", options, description="Select the team for this ticket")

    def _fill_form(
        self,
        team_id: str,
        selections: UserSelections,
        labels: list[Label],
        users: list[User],
        states: list[WorkflowState],
    ) -> Ticket:
        status_options = [Option(state.name, state.id) for state in states]
        estimate_choices = estimate_options(self._estimate_scale)
        label_options = [Option(label.name, label.name) for label in labels]
        user_options = [NO_ASSIGNEE] + [Option(user.name, user.id) for user in users]

        ticket = Ticket(team_id=team_id)
        ticket.title = self._prompter.text(
            "Ticket Title",
            description="A brief summary of the issue or feature",
            required=True,
        )
        ticket.description = self._prompter.text(
            "Description", description="Detailed description of the ticket", multiline=True
        )
        ticket.status_id = self._prompter.select(
            "Status",
            status_options,
            default=_known(selections.status_id, status_options) or None,
            description="Select the status for this ticket",
        )
        ticket.estimate = self._prompter.select(
            "Estimate",
            estimate_choices,
            default=_known(selections.estimate, estimate_choices) or None,
            description="Story point estimate",
        )
        ticket.labels = self._prompter.multi_select(
            "Labels",
            label_options,
            default=[name for name in selections.labels if _known(name, label_options)],
            limit=MAX_LABELS,
            description=f"Select up to {MAX_LABELS} labels",
        )
        ticket.assignee_id = self._prompter.select(
            "Assignee",
            user_options,
            default=_known(selections.assignee_id, user_options),
            description="Select who should work on this ticket",
        )
        return ticket

    def _print_summary(self, ticket: Ticket, users: list[User], states: list[WorkflowState]) -> None:
        table = Table(title="📝 Ticket Information", show_header=False, title_justify="left")
        table.add_column("Field", style="bold")
        table.add_column("Value")
        table.add_row("Title", Text(ticket.title))
        table.add_row("Description", Text(ticket.description))
        table.add_row("Estimate", Text(estimate_label(self._estimate_scale, ticket.estimate)))
        table.add_row("Status", Text(_name_for(states, ticket.status_id, "Unknown")))
        table.add_row("Assignee", Text(_name_for(users, ticket.assignee_id, "No Assignee")))
        table.add_row("Labels", Text(", ".join(ticket.labels) if ticket.labels else "None"))
        self._console.print()
        self._console.print(table)

    def _post_action(self, issue: CreatedIssue) -> None:
        try:
            action = self._prompter.select("What would you like to do?", POST_ACTIONS, default=EXIT)
        except PromptCancelled:
            logger.debug("Post-action menu cancelled")
            return
        if action != EXIT:
            run_post_action(action, issue, self._console)
