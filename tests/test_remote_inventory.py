from unittest.mock import MagicMock

import pytest
import requests

from provider_advisor.agentic.remote_inventory import RemoteInventoryClient, clamp_page_size
from provider_advisor.utils.errors import ToolInvocationFailed


def make_response(payload=None, status=200, json_error=None):
    response = MagicMock()
    response.status_code = status
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(response=response)
    if json_error:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


def sites(*ids):
    return {"res": 0, "sites": [{"site_id": i, "domain": f"site{i}.com"} for i in ids]}


def make_client(*responses, page_size=2):
    session = MagicMock()
    session.post.side_effect = list(responses)
    client = RemoteInventoryClient(
        api_id="1234",
        api_key="secret",
        base_url="https://api.example.com/prov/v1/",
        page_size=page_size,
        session=session,
    )
    return client, session


def test_list_page_posts_credentials_and_paging():
    client, session = make_client(make_response(sites(1, 2)))

    page = client.list_page(3)

    args, kwargs = session.post.call_args
    assert args == ("https://api.example.com/prov/v1/sites/list",)
    assert kwargs["headers"] == {"x-API-Id": "1234", "x-API-Key": "secret"}
    assert kwargs["data"] == {"page_size": 2, "page_num": 3}
    assert [r.id for r in page.resources] == ["1", "2"]
    assert page.resources[0].name == "site1.com"
    assert page.resources[0].type == "incapsula_site_v3"
    assert page.has_more


def test_list_all_stops_on_short_page():
    client, session = make_client(
        make_response(sites(1, 2)),
        make_response(sites(3, 4)),
        make_response(sites(5)),
    )

    resources = client.list_all()

    assert [r.id for r in resources] == ["1", "2", "3", "4", "5"]
    assert session.post.call_count == 3


def test_list_all_with_empty_account():
    client, session = make_client(make_response({"res": 0, "sites": []}))

    assert client.list_all() == []
    assert session.post.call_count == 1


def test_backend_error_code_raises():
    client, _ = make_client(make_response({"res": 9403, "res_message": "Unknown/unauthorized account_id"}))

    with pytest.raises(ToolInvocationFailed, match="9403"):
        client.list_page(0)


def test_http_error_raises_tool_invocation_failed():
    client, _ = make_client(make_response(status=401))

    with pytest.raises(ToolInvocationFailed):
        client.list_page(0)


def test_connection_error_raises_tool_invocation_failed():
    client, _ = make_client(requests.ConnectionError("refused"))

    with pytest.raises(ToolInvocationFailed):
        client.list_page(0)


def test_non_json_response_raises():
    client, _ = make_client(make_response(json_error=ValueError("Expecting value")))

    with pytest.raises(ToolInvocationFailed, match="non-JSON"):
        client.list_page(0)


def test_malformed_site_entries_are_skipped():
    client, _ = make_client(make_response({"res": 0, "sites": [{"domain": "x.com"}, "junk", {"site_id": 9}]}))

    page = client.list_page(0)

    assert [(r.id, r.name) for r in page.resources] == [("9", "9")]


def test_invoke_tool_returns_page_payload():
    client, _ = make_client(make_response(sites(1)))

    payload = client.invoke_tool({"page_num": 0, "page_size": 5})

    assert payload["has_more"] is False
    assert payload["page_size"] == 5
    assert payload["resources"] == [{"type": "incapsula_site_v3", "id": "1", "name": "site1.com"}]


@pytest.mark.parametrize("arguments", [{"page_num": "first"}, {"page_num": -1}, "page 1"])
def test_invoke_tool_rejects_bad_arguments(arguments):
    client, session = make_client()

    with pytest.raises(ToolInvocationFailed):
        client.invoke_tool(arguments)
    session.post.assert_not_called()


def test_clamp_page_size():
    assert clamp_page_size(0) == 1
    assert clamp_page_size(50) == 50
    assert clamp_page_size(500) == 100
