import pytest
from typing import Any, Dict, List, Optional
from fastapi.testclient import TestClient

from main import app
from app.config.settings import Settings
from app.core.dependencies import get_test_ingestion_service
from app.core.exceptions import ExternalServiceError
from app.models.zephyr import CreatedIssue, TestStep
from app.repositories.interfaces.jira_service import IJiraService
from app.repositories.interfaces.zephyr_service import IZephyrService
from app.services.test_ingestion_service import TestIngestionService


class FakeJiraService(IJiraService):
    """In-memory JIRA that records every call made against it."""

    def __init__(self, fail_on: Optional[str] = None):
        self.calls: List[tuple] = []
        # (requirement key, summary) pairs that already exist as linked tests
        self.linked_tests: List[tuple] = []
        self.fail_on = fail_on
        self._next_id = 10000

    def _maybe_fail(self, operation: str) -> None:
        if self.fail_on == operation:
            raise ExternalServiceError(
                service="jira",
                message=f"{operation} failed with status 400",
                status_code=400,
                payload={"errorMessages": [f"{operation} rejected"]},
            )

    async def get_project_id(self, project_key: str) -> str:
        self.calls.append(("get_project_id", project_key))
        self._maybe_fail("get_project_id")
        return "10001"

    async def search_issues(self, jql: str, fields: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        self.calls.append(("search_issues", jql))
        self._maybe_fail("search_issues")
        return [
            {"key": f"{requirement.split('-')[0]}-{i}", "fields": {"summary": summary}}
            for i, (requirement, summary) in enumerate(self.linked_tests, start=1)
            if f'linkedIssues("{requirement}")' in jql
        ]

    async def create_issue(
        self,
        project_key: str,
        summary: str,
        description: Optional[str] = None,
        priority: Optional[str] = None,
    ) -> CreatedIssue:
        self.calls.append(("create_issue", project_key, summary, description, priority))
        self._maybe_fail("create_issue")
        self._next_id += 1
        return CreatedIssue(key=f"{project_key}-{self._next_id - 10000}", id=str(self._next_id))

    async def link_issues(self, inward_key: str, outward_key: str) -> None:
        self.calls.append(("link_issues", inward_key, outward_key))
        self._maybe_fail("link_issues")

    def calls_named(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]


class FakeZephyrService(IZephyrService):
    def __init__(self, fail_after: Optional[int] = None):
        self.steps: List[tuple] = []
        self.fail_after = fail_after

    async def add_test_step(self, issue_id: str, project_id: str, step: TestStep) -> Dict[str, Any]:
        if self.fail_after is not None and len(self.steps) >= self.fail_after:
            raise ExternalServiceError(
                service="zephyr",
                message="Add Zephyr test step failed with status 401",
                status_code=401,
                payload={"clientMessage": "Unauthorized"},
            )
        self.steps.append((issue_id, project_id, step))
        return {"id": f"step-{len(self.steps)}"}


@pytest.fixture
def jira():
    return FakeJiraService()


@pytest.fixture
def zephyr():
    return FakeZephyrService()


@pytest.fixture
def service(jira, zephyr):
    return TestIngestionService(jira_service=jira, zephyr_service=zephyr)


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        jira_base_url="https://example.atlassian.net",
        jira_email="bot@example.com",
        jira_api_token="jira-token",
        zephyr_base_url="https://prod-api.zephyr4jiracloud.com",
        zephyr_access_key="access-key",
        zephyr_secret_key="secret-key",
    )


@pytest.fixture
def test_client():
    """Synchronous test client for simple tests"""
    return TestClient(app)


@pytest.fixture
def override_service():
    """Route the webhook to a given TestIngestionService for the duration of a test."""

    def _override(ingestion_service: TestIngestionService) -> None:
        app.dependency_overrides[get_test_ingestion_service] = lambda: ingestion_service

    yield _override
    app.dependency_overrides.pop(get_test_ingestion_service, None)
