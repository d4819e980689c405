import httpx
from typing import Any, Dict, List, Optional
import structlog
from app.repositories.interfaces.jira_service import IJiraService
from app.models.zephyr import CreatedIssue
from app.core.exceptions import ExternalServiceError, ServiceNotConfiguredError
from app.config.settings import Settings

logger = structlog.get_logger()


class AtlassianJiraService(IJiraService):
    """Atlassian JIRA Cloud implementation of JIRA service"""

    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self.base_url = (settings.jira_base_url or "").rstrip("/")
        self.username = settings.jira_email
        self.api_token = settings.jira_api_token
        self.issue_type = settings.jira_test_issue_type
        self.link_type = settings.jira_link_type
        self.max_results = settings.jira_search_max_results
        self.auth = (self.username, self.api_token) if self.username and self.api_token else None
        self.client = client

    async def _request(self, method: str, path: str, action: str, json: Optional[Dict[str, Any]] = None) -> httpx.Response:
        if not self._is_configured():
            raise ServiceNotConfiguredError(service="jira", message="Missing JIRA credentials")

        try:
            response = await self.client.request(
                method,
                f"{self.base_url}{path}",
                json=json,
                auth=self.auth,
                headers={"Accept": "application/json", "Content-Type": "application/json"},
            )
        except httpx.HTTPError as e:
            logger.error(f"{action} failed", path=path, error=str(e))
            raise ExternalServiceError(service="jira", message=f"{action} failed: {e}") from e

        if response.is_success:
            return response

        logger.error(
            f"{action} failed",
            path=path,
            status_code=response.status_code,
            response=response.text,
        )
        raise ExternalServiceError.from_response("jira", action, response)

    async def get_project_id(self, project_key: str) -> str:
        """Resolve a project key to its numeric project id"""
        response = await self._request("GET", f"/rest/api/3/project/{project_key}", "Fetch JIRA project")
        project_id = str(self._json_fields(response, "Fetch JIRA project", "id")["id"])
        logger.info("Resolved JIRA project", project_key=project_key, project_id=project_id)
        return project_id

    async def search_issues(self, jql: str, fields: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        """Run a JQL search and return the matching issues"""
        payload = {
            "jql": jql,
            "maxResults": self.max_results,
            "fields": fields or ["summary"],
        }
        response = await self._request("POST", "/rest/api/3/search/jql", "Search JIRA issues", json=payload)
        try:
            issues = response.json().get("issues", [])
        except (ValueError, AttributeError) as e:
            raise ExternalServiceError.unexpected_body("jira", "Search JIRA issues", response) from e
        if not isinstance(issues, list):
            raise ExternalServiceError.unexpected_body("jira", "Search JIRA issues", response)
        return [issue for issue in issues if isinstance(issue, dict)]

    async def create_issue(
        self,
        project_key: str,
        summary: str,
        description: Optional[str] = None,
        priority: Optional[str] = None,
    ) -> CreatedIssue:
        """Create a test issue with an Atlassian Document Format description"""
        fields: Dict[str, Any] = {
            "project": {"key": project_key},
            "summary": summary,
            "issuetype": {"name": self.issue_type},
            "description": {
                "type": "doc",
                "version": 1,
                "content": [
                    {
                        "type": "paragraph",
                        "content": [
                            {
                                "type": "text",
                                "text": description or ""
                            }
                        ]
                    }
                ]
            },
        }
        if priority:
            fields["priority"] = {"name": priority}

        response = await self._request("POST", "/rest/api/3/issue", "Create JIRA issue", json={"fields": fields})
        issue_data = self._json_fields(response, "Create JIRA issue", "key", "id")
        created = CreatedIssue(key=issue_data["key"], id=str(issue_data["id"]))
        logger.info("JIRA issue created successfully", issue_key=created.key, issue_id=created.id)
        return created

    async def link_issues(self, inward_key: str, outward_key: str) -> None:
        """Link two issues with the configured link type"""
        payload = {
            "type": {"name": self.link_type},
            "inwardIssue": {"key": inward_key},
            "outwardIssue": {"key": outward_key},
        }
        await self._request("POST", "/rest/api/3/issueLink", "Link JIRA issues", json=payload)
        logger.info("JIRA issues linked", inward_key=inward_key, outward_key=outward_key, link_type=self.link_type)

    @staticmethod
    def _json_fields(response: httpx.Response, action: str, *keys: str) -> Dict[str, Any]:
        """Pick required keys out of a successful JSON response"""
        try:
            body = response.json()
            return {key: body[key] for key in keys}
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"{action} returned an unexpected body", error=str(e), response=response.text)
            raise ExternalServiceError.unexpected_body("jira", action, response) from e

    def _is_configured(self) -> bool:
        """Check if JIRA service is properly configured"""
        return bool(self.base_url and self.username and self.api_token)
