import base64
import json

import httpx
import pytest

from app.core.exceptions import ExternalServiceError, ServiceNotConfiguredError
from app.repositories.implementations.jira_service import AtlassianJiraService


def make_service(settings, handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AtlassianJiraService(settings, client), client


def basic_auth(email, token):
    return "Basic " + base64.b64encode(f"{email}:{token}".encode()).decode()


@pytest.mark.asyncio
async def test_create_issue_payload(test_settings):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"id": 10042, "key": "PROJ-7", "self": "..."})

    service, client = make_service(test_settings, handler)
    async with client:
        created = await service.create_issue("PROJ", "Login test", "Valid users can log in", priority="High")

    assert (created.key, created.id) == ("PROJ-7", "10042")
    assert seen["method"] == "POST"
    assert seen["url"] == "https://example.atlassian.net/rest/api/3/issue"
    assert seen["auth"] == basic_auth("bot@example.com", "jira-token")
    assert seen["body"] == {
        "fields": {
            "project": {"key": "PROJ"},
            "summary": "Login test",
            "issuetype": {"name": "Test"},
            "description": {
                "type": "doc",
                "version": 1,
                "content": [{"type": "paragraph", "content": [{"type": "text", "text": "Valid users can log in"}]}],
            },
            "priority": {"name": "High"},
        }
    }


@pytest.mark.asyncio
async def test_create_issue_without_objective_uses_empty_paragraph(test_settings):
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={"id": "1", "key": "PROJ-1"})

    service, client = make_service(test_settings, handler)
    async with client:
        await service.create_issue("PROJ", "Login test")

    fields = bodies[0]["fields"]
    assert fields["description"]["content"][0]["content"][0]["text"] == ""
    assert "priority" not in fields


@pytest.mark.asyncio
async def test_search_issues(test_settings):
    bodies = []

    def handler(request):
        assert request.url.path == "/rest/api/3/search/jql"
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"issues": [{"key": "PROJ-3", "fields": {"summary": "Login test"}}]})

    service, client = make_service(test_settings, handler)
    async with client:
        issues = await service.search_issues('summary = "Login test"')

    assert issues == [{"key": "PROJ-3", "fields": {"summary": "Login test"}}]
    assert bodies == [{"jql": 'summary = "Login test"', "maxResults": 50, "fields": ["summary"]}]


@pytest.mark.asyncio
async def test_get_project_id(test_settings):
    def handler(request):
        assert request.method == "GET"
        assert request.url.path == "/rest/api/3/project/PROJ"
        return httpx.Response(200, json={"id": "10001", "key": "PROJ"})

    service, client = make_service(test_settings, handler)
    async with client:
        assert await service.get_project_id("PROJ") == "10001"


@pytest.mark.asyncio
async def test_link_issues(test_settings):
    bodies = []

    def handler(request):
        assert request.url.path == "/rest/api/3/issueLink"
        bodies.append(json.loads(request.content))
        return httpx.Response(201)

    service, client = make_service(test_settings, handler)
    async with client:
        await service.link_issues(inward_key="PROJ-12", outward_key="PROJ-7")

    assert bodies == [{
        "type": {"name": "Relates"},
        "inwardIssue": {"key": "PROJ-12"},
        "outwardIssue": {"key": "PROJ-7"},
    }]


@pytest.mark.asyncio
async def test_non_2xx_raises_with_payload(test_settings):
    def handler(request):
        return httpx.Response(400, json={"errorMessages": ["Issue type 'Test' does not exist"]})

    service, client = make_service(test_settings, handler)
    async with client:
        with pytest.raises(ExternalServiceError) as exc_info:
            await service.create_issue("PROJ", "Login test")

    error = exc_info.value
    assert error.service == "jira"
    assert error.status_code == 400
    assert error.error_payload == {"errorMessages": ["Issue type 'Test' does not exist"]}


@pytest.mark.asyncio
async def test_transport_error_raises_external_service_error(test_settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    service, client = make_service(test_settings, handler)
    async with client:
        with pytest.raises(ExternalServiceError) as exc_info:
            await service.get_project_id("PROJ")

    assert "connection refused" in exc_info.value.error_payload


@pytest.mark.asyncio
async def test_missing_credentials(test_settings):
    settings = test_settings.model_copy(update={"jira_api_token": None})

    def handler(request):
        raise AssertionError("no request expected")

    service, client = make_service(settings, handler)
    async with client:
        with pytest.raises(ServiceNotConfiguredError):
            await service.get_project_id("PROJ")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(201, json={}),
        httpx.Response(201, json={"key": "PROJ-7"}),
        httpx.Response(201, json=["PROJ-7"]),
        httpx.Response(201, text="<html>gateway</html>"),
    ],
)
async def test_create_issue_with_unexpected_body_raises(test_settings, response):
    service, client = make_service(test_settings, lambda request: response)
    async with client:
        with pytest.raises(ExternalServiceError) as exc_info:
            await service.create_issue("PROJ", "Login test")

    assert exc_info.value.service == "jira"
    assert exc_info.value.status_code == 201
    assert "unexpected response body" in exc_info.value.message


@pytest.mark.asyncio
async def test_get_project_id_with_unexpected_body_raises(test_settings):
    service, client = make_service(test_settings, lambda request: httpx.Response(200, text="not json"))
    async with client:
        with pytest.raises(ExternalServiceError) as exc_info:
            await service.get_project_id("PROJ")

    assert exc_info.value.error_payload == "not json"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [["PROJ-3"], {"issues": "PROJ-3"}])
async def test_search_issues_with_unexpected_body_raises(test_settings, body):
    service, client = make_service(test_settings, lambda request: httpx.Response(200, json=body))
    async with client:
        with pytest.raises(ExternalServiceError):
            await service.search_issues('summary = "Login test"')
