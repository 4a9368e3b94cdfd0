"""
Linear GraphQL client.

Issues the paginated reference-data queries (teams, labels, users, workflow
states) and the ``issueCreate`` mutation. Requests are attempted once; any
failure is raised as ``LinearApiError``.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import httpx

from .config import DEFAULT_API_URL, DEFAULT_HTTP_TIMEOUT_SECONDS
from .errors import LnrError
from .models import CreatedIssue, DecodeError, Label, Team, Ticket, User, WorkflowState

logger = logging.getLogger(__name__)

PAGE_SIZE = 50

TEAMS_QUERY = """
query Teams($first: Int!, $after: String) {
  teams(first: $first, after: $after) {
    nodes { id name }
    pageInfo { hasNextPage endCursor }
  }
}
"""

TEAM_LABELS_QUERY = """
query TeamLabels($teamId: String!, $first: Int!, $after: String) {
  team(id: $teamId) {
    labels(first: $first, after: $after) {
      nodes { id name }
      pageInfo { hasNextPage endCursor }
    }
  }
}
"""

TEAM_USERS_QUERY = """
query TeamUsers($teamId: String!, $first: Int!, $after: String) {
  team(id: $teamId) {
    organization {
      users(first: $first, after: $after) {
        nodes { id name email }
        pageInfo { hasNextPage endCursor }
      }
    }
  }
}
"""

TEAM_STATES_QUERY = """
query TeamWorkflowStates($teamId: String!, $first: Int!, $after: String) {
  team(id: $teamId) {
    states(first: $first, after: $after) {
      nodes { id name type }
      pageInfo { hasNextPage endCursor }
    }
  }
}
"""

ISSUE_CREATE_MUTATION = """
mutation IssueCreate($input: IssueCreateInput!) {
  issueCreate(input: $input) {
    success
    issue { id identifier title url }
  }
}
"""


class LinearApiError(LnrError):
    """Raised when a Linear API request fails.

    ``code`` is one of ``transport``, ``http``, ``decode``, ``graphql`` or
    ``create_failed``. For ``graphql`` errors, ``errors`` holds the raw list
    returned by the API.
    """

    def __init__(self, code: str, message: str, errors: list[Any] | None = None):
        super().__init__(code, message)
        self.errors = errors


def _dig(data: Any, path: tuple[str, ...]) -> Any:
    current = data
    for key in path:
        if not isinstance(current, dict) or not isinstance(current.get(key), dict):
            raise LinearApiError("decode", f"unexpected response shape at '{key}'")
        current = current[key]
    return current


def build_issue_input(ticket: Ticket, label_ids_by_name: dict[str, str]) -> dict[str, Any]:
    """
    Map a ticket onto ``IssueCreateInput``.

    Optional fields are left out entirely when empty. An estimate of "0" means
    no estimate and is omitted, as is any non-integer estimate code.
    """
    payload: dict[str, Any] = {
        "teamId": ticket.team_id,
        "title": ticket.title,
        "description": ticket.description,
    }

    if ticket.estimate and ticket.estimate != "0":
        try:
            payload["estimate"] = int(ticket.estimate)
        except ValueError:
            logger.warning("Ignoring non-numeric estimate %r", ticket.estimate)

    label_ids = [label_ids_by_name[name] for name in ticket.labels if name in label_ids_by_name]
    if label_ids:
        payload["labelIds"] = label_ids

    if ticket.assignee_id:
        payload["assigneeId"] = ticket.assignee_id
    if ticket.status_id:
        payload["stateId"] = ticket.status_id
    return payload


class LinearClient:
    """Synchronous Linear GraphQL client holding one HTTP connection pool."""

    def __init__(
        self,
        api_key: str,
        url: str = DEFAULT_API_URL,
        timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ):
        self._url = url
        self._http = httpx.Client(
            headers={
                "Authorization": api_key,
                "Content-Type": "application/json",
            },
            timeout=timeout_seconds,
            transport=transport,
        )

    def __enter__(self) -> LinearClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        POST one GraphQL document and return its ``data`` object.

        Raises:
            LinearApiError: On transport failure, non-JSON body, a non-empty
                ``errors`` array, or a non-2xx status.
        """
        body = {"query": query, "variables": variables or {}}
        try:
            response = self._http.post(self._url, json=body)
        except httpx.HTTPError as exc:
            raise LinearApiError("transport", f"request to {self._url} failed: {exc}") from exc

        try:
            result = response.json()
        except ValueError as exc:
            raise LinearApiError(
                "decode",
                f"invalid JSON from Linear API (HTTP {response.status_code}): {exc}",
            ) from exc

        if not isinstance(result, dict):
            raise LinearApiError("decode", "Linear API response is not a JSON object")

        errors = result.get("errors")
        if isinstance(errors, list) and errors:
            raise LinearApiError("graphql", f"Linear API error: {errors}", errors=errors)

        if response.status_code >= 400:
            raise LinearApiError("http", f"Linear API returned HTTP {response.status_code}")

        data = result.get("data")
        if not isinstance(data, dict):
            raise LinearApiError("decode", "Linear API response has no data object")
        return data

    def _paginate(
        self,
        query: str,
        variables: dict[str, Any],
        path: tuple[str, ...],
        decode: Callable[[Any], Any],
    ) -> list[Any]:
        items: list[Any] = []
        after: str | None = None
        while True:
            page_vars = {**variables, "first": PAGE_SIZE}
            if after:
                page_vars["after"] = after
            connection = _dig(self.execute(query, page_vars), path)

            nodes = connection.get("nodes")
            if not isinstance(nodes, list):
                raise LinearApiError("decode", f"'{path[-1]}' has no nodes list")
            try:
                items.extend(decode(node) for node in nodes)
            except DecodeError as exc:
                raise LinearApiError("decode", exc.message) from exc

            page_info = connection.get("pageInfo")
            if page_info is None:
                page_info = {}
            if not isinstance(page_info, dict):
                raise LinearApiError("decode", f"'{path[-1]}' pageInfo is not an object")
            has_next = page_info.get("hasNextPage")
            if has_next is not None and not isinstance(has_next, bool):
                raise LinearApiError("decode", f"'{path[-1]}' hasNextPage is not a boolean")
            logger.debug("Fetched %d %s (total %d)", len(nodes), path[-1], len(items))
            if not has_next:
                break
            after = page_info.get("endCursor")
            if not isinstance(after, str) or not after:
                break
        return items

    def list_teams(self) -> list[Team]:
        return self._paginate(TEAMS_QUERY, {}, ("teams",), Team.from_record)

    def list_labels(self, team_id: str) -> list[Label]:
        return self._paginate(
            TEAM_LABELS_QUERY, {"teamId": team_id}, ("team", "labels"), Label.from_record
        )

    def list_users(self, team_id: str) -> list[User]:
        """Members of the organization that owns the team."""
        return self._paginate(
            TEAM_USERS_QUERY,
            {"teamId": team_id},
            ("team", "organization", "users"),
            User.from_record,
        )

    def list_states(self, team_id: str) -> list[WorkflowState]:
        return self._paginate(
            TEAM_STATES_QUERY,
            {"teamId": team_id},
            ("team", "states"),
            WorkflowState.from_record,
        )

    def create_issue(self, ticket: Ticket, label_ids_by_name: dict[str, str]) -> CreatedIssue:
        payload = build_issue_input(ticket, label_ids_by_name)
        data = self.execute(ISSUE_CREATE_MUTATION, {"input": payload})

        result = data.get("issueCreate")
        if not isinstance(result, dict) or not result.get("success"):
            raise LinearApiError("create_failed", "Linear did not create the issue")
        issue = result.get("issue")
        if not isinstance(issue, dict):
            raise LinearApiError("create_failed", "Linear returned no issue for issueCreate")
        try:
            return CreatedIssue.from_record(issue)
        except DecodeError as exc:
            raise LinearApiError("decode", exc.message) from exc
