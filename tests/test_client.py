from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from lnr.client import PAGE_SIZE, LinearApiError, LinearClient, build_issue_input
from lnr.models import CreatedIssue, Label, Team, Ticket, User, WorkflowState

API_URL = "https://linear.test/graphql"


class FakeLinear:
    """Serves queued JSON responses and records each request body."""

    def __init__(self, responses: list[Any]):
        self.responses = list(responses)
        self.requests: list[dict[str, Any]] = []
        self.headers: list[httpx.Headers] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        self.headers.append(request.headers)
        if not self.responses:
            raise AssertionError("unexpected extra request")
        response = self.responses.pop(0)
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=response)


def _client(handler) -> LinearClient:
    return LinearClient("lin_api_test", url=API_URL, transport=httpx.MockTransport(handler))


def _teams_page(nodes: list[dict[str, str]], has_next: bool, cursor: str | None) -> dict[str, Any]:
    return {
        "data": {
            "teams": {
                "nodes": nodes,
                "pageInfo": {"hasNextPage": has_next, "endCursor": cursor},
            }
        }
    }


def test_pagination_drains_all_pages():
    fake = FakeLinear(
        [
            _teams_page([{"id": "T1", "name": "One"}, {"id": "T2", "name": "Two"}], True, "c1"),
            _teams_page([{"id": "T3", "name": "Three"}], True, "c2"),
            _teams_page([{"id": "T4", "name": "Four"}], False, "c3"),
        ]
    )

    with _client(fake) as client:
        teams = client.list_teams()

    assert [team.id for team in teams] == ["T1", "T2", "T3", "T4"]
    assert all(isinstance(team, Team) for team in teams)
    assert len(fake.requests) == 3
    assert "after" not in fake.requests[0]["variables"]
    assert fake.requests[1]["variables"]["after"] == "c1"
    assert fake.requests[2]["variables"]["after"] == "c2"
    assert all(req["variables"]["first"] == PAGE_SIZE for req in fake.requests)


@pytest.mark.parametrize("cursor", [None, ""])
def test_pagination_stops_without_cursor(cursor):
    fake = FakeLinear([_teams_page([{"id": "T1", "name": "One"}], True, cursor)])

    with _client(fake) as client:
        teams = client.list_teams()

    assert teams == [Team(id="T1", name="One")]
    assert len(fake.requests) == 1


def test_list_labels_sends_team_id():
    fake = FakeLinear(
        [
            {
                "data": {
                    "team": {
                        "labels": {
                            "nodes": [{"id": "L1", "name": "bug"}, {"id": "L2", "name": "ui"}],
                            "pageInfo": {"hasNextPage": False, "endCursor": None},
                        }
                    }
                }
            }
        ]
    )

    with _client(fake) as client:
        labels = client.list_labels("T1")

    assert labels == [Label("L1", "bug"), Label("L2", "ui")]
    assert fake.requests[0]["variables"]["teamId"] == "T1"
    assert "TeamLabels" in fake.requests[0]["query"]


def test_list_users_reads_organization_members():
    fake = FakeLinear(
        [
            {
                "data": {
                    "team": {
                        "organization": {
                            "users": {
                                "nodes": [{"id": "U1", "name": "Ada", "email": "ada@example.com"}],
                                "pageInfo": {"hasNextPage": False},
                            }
                        }
                    }
                }
            }
        ]
    )

    with _client(fake) as client:
        users = client.list_users("T1")

    assert users == [User("U1", "Ada", "ada@example.com")]


def test_list_states_decodes_type():
    fake = FakeLinear(
        [
            {
                "data": {
                    "team": {
                        "states": {
                            "nodes": [
                                {"id": "S1", "name": "Todo", "type": "unstarted"},
                                {"id": "S2", "name": "Done", "type": "completed"},
                            ],
                            "pageInfo": {"hasNextPage": False, "endCursor": "x"},
                        }
                    }
                }
            }
        ]
    )

    with _client(fake) as client:
        states = client.list_states("T1")

    assert states == [WorkflowState("S1", "Todo", "unstarted"), WorkflowState("S2", "Done", "completed")]


def test_authorization_header_carries_api_key():
    fake = FakeLinear([_teams_page([], False, None)])

    with _client(fake) as client:
        client.list_teams()

    assert fake.headers[0]["authorization"] == "lin_api_test"
    assert fake.headers[0]["content-type"] == "application/json"


def test_graphql_errors_are_aggregated():
    errors = [{"message": "Entity not found"}, {"message": "Forbidden"}]
    fake = FakeLinear([{"data": None, "errors": errors}])

    with _client(fake) as client:
        with pytest.raises(LinearApiError) as exc_info:
            client.list_labels("missing")

    assert exc_info.value.code == "graphql"
    assert exc_info.value.errors == errors
    assert "Entity not found" in exc_info.value.message


def test_graphql_errors_on_http_400_keep_graphql_code():
    fake = FakeLinear([httpx.Response(400, json={"errors": [{"message": "bad input"}]})])

    with _client(fake) as client:
        with pytest.raises(LinearApiError) as exc_info:
            client.list_teams()

    assert exc_info.value.code == "graphql"


def test_http_error_without_errors_array():
    fake = FakeLinear([httpx.Response(500, json={})])

    with _client(fake) as client:
        with pytest.raises(LinearApiError) as exc_info:
            client.list_teams()

    assert exc_info.value.code == "http"


def test_non_json_body_is_a_decode_error():
    fake = FakeLinear([httpx.Response(502, text="<html>Bad gateway</html>")])

    with _client(fake) as client:
        with pytest.raises(LinearApiError) as exc_info:
            client.list_teams()

    assert exc_info.value.code == "decode"


def test_unexpected_shape_is_a_decode_error():
    fake = FakeLinear([{"data": {"team": None}}])

    with _client(fake) as client:
        with pytest.raises(LinearApiError) as exc_info:
            client.list_states("T1")

    assert exc_info.value.code == "decode"


@pytest.mark.parametrize(
    "page_info",
    [[1], "done", {"hasNextPage": "false", "endCursor": "c1"}, {"hasNextPage": 1, "endCursor": "c1"}],
)
def test_malformed_page_info_is_a_decode_error(page_info):
    fake = FakeLinear([{"data": {"teams": {"nodes": [{"id": "T1", "name": "Core"}], "pageInfo": page_info}}}])

    with _client(fake) as client:
        with pytest.raises(LinearApiError) as exc_info:
            client.list_teams()

    assert exc_info.value.code == "decode"
    assert len(fake.requests) == 1


def test_missing_page_info_ends_pagination():
    fake = FakeLinear([{"data": {"teams": {"nodes": [{"id": "T1", "name": "Core"}]}}}])

    with _client(fake) as client:
        assert client.list_teams() == [Team("T1", "Core")]


def test_wrongly_typed_node_is_a_decode_error():
    fake = FakeLinear([_teams_page([{"id": 7, "name": "Seven"}], False, None)])

    with _client(fake) as client:
        with pytest.raises(LinearApiError) as exc_info:
            client.list_teams()

    assert exc_info.value.code == "decode"


def test_transport_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with _client(handler) as client:
        with pytest.raises(LinearApiError) as exc_info:
            client.list_teams()

    assert exc_info.value.code == "transport"


def test_no_retry_after_failure():
    fake = FakeLinear([httpx.Response(503, text="unavailable")])

    with _client(fake) as client:
        with pytest.raises(LinearApiError):
            client.list_teams()

    assert len(fake.requests) == 1


class TestBuildIssueInput:
    def test_required_fields_only(self):
        payload = build_issue_input(Ticket(team_id="T1", title="Fix it", description=""), {})

        assert payload == {"teamId": "T1", "title": "Fix it", "description": ""}

    def test_label_names_map_to_ids_in_order(self):
        ticket = Ticket(team_id="T1", title="t", labels=["bug", "ui"])

        payload = build_issue_input(ticket, {"ui": "L2", "bug": "L1"})

        assert payload["labelIds"] == ["L1", "L2"]

    def test_unknown_labels_are_dropped(self):
        ticket = Ticket(team_id="T1", title="t", labels=["gone"])

        assert "labelIds" not in build_issue_input(ticket, {"bug": "L1"})

    def test_zero_estimate_is_omitted(self):
        payload = build_issue_input(Ticket(team_id="T1", title="t", estimate="0"), {})

        assert "estimate" not in payload

    def test_empty_and_non_numeric_estimates_are_omitted(self):
        assert "estimate" not in build_issue_input(Ticket(team_id="T1", title="t", estimate=""), {})
        assert "estimate" not in build_issue_input(Ticket(team_id="T1", title="t", estimate="XL"), {})

    def test_numeric_estimate_is_sent_as_int(self):
        payload = build_issue_input(Ticket(team_id="T1", title="t", estimate="5"), {})

        assert payload["estimate"] == 5

    def test_assignee_and_state(self):
        ticket = Ticket(team_id="T1", title="t", assignee_id="U1", status_id="S1")

        payload = build_issue_input(ticket, {})

        assert payload["assigneeId"] == "U1"
        assert payload["stateId"] == "S1"


def test_create_issue_returns_identifier():
    fake = FakeLinear(
        [
            {
                "data": {
                    "issueCreate": {
                        "success": True,
                        "issue": {
                            "id": "uuid-1",
                            "identifier": "ENG-42",
                            "title": "Fix it",
                            "url": "https://linear.app/acme/issue/ENG-42/fix-it",
                        },
                    }
                }
            }
        ]
    )
    ticket = Ticket(team_id="T1", title="Fix it", estimate="0", labels=["bug", "ui"])

    with _client(fake) as client:
        issue = client.create_issue(ticket, {"bug": "L1", "ui": "L2"})

    assert issue == CreatedIssue(
        id="uuid-1",
        identifier="ENG-42",
        title="Fix it",
        url="https://linear.app/acme/issue/ENG-42/fix-it",
    )
    sent = fake.requests[0]["variables"]["input"]
    assert sent["labelIds"] == ["L1", "L2"]
    assert "estimate" not in sent
    assert "IssueCreate" in fake.requests[0]["query"]


def test_create_issue_with_errors_returns_nothing():
    fake = FakeLinear(
        [
            {
                "data": {"issueCreate": {"success": True, "issue": {"id": "x", "identifier": "ENG-1"}}},
                "errors": [{"message": "Argument Validation Error"}],
            }
        ]
    )

    result = None
    with _client(fake) as client:
        with pytest.raises(LinearApiError) as exc_info:
            result = client.create_issue(Ticket(team_id="T1", title="t"), {})

    assert result is None
    assert exc_info.value.code == "graphql"
    assert "Argument Validation Error" in exc_info.value.message


def test_create_issue_unsuccessful():
    fake = FakeLinear([{"data": {"issueCreate": {"success": False, "issue": None}}}])

    with _client(fake) as client:
        with pytest.raises(LinearApiError) as exc_info:
            client.create_issue(Ticket(team_id="T1", title="t"), {})

    assert exc_info.value.code == "create_failed"
