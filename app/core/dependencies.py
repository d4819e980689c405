from typing import AsyncIterator
import httpx
from app.config.settings import Settings, settings
from app.repositories.interfaces.jira_service import IJiraService
from app.repositories.interfaces.zephyr_service import IZephyrService

from app.repositories.implementations.jira_service import AtlassianJiraService
from app.repositories.implementations.zephyr_service import ZephyrSquadService

from app.services.test_ingestion_service import TestIngestionService


class Container:
    """Dependency injection container"""

    def __init__(self, settings: Settings):
        self.settings = settings

    def http_client(self) -> httpx.AsyncClient:
        """Outbound HTTP client, one per webhook call"""
        return httpx.AsyncClient(timeout=self.settings.http_timeout_seconds)

    def jira_service(self, client: httpx.AsyncClient) -> IJiraService:
        """Get JIRA service instance"""
        return AtlassianJiraService(self.settings, client)

    def zephyr_service(self, client: httpx.AsyncClient) -> IZephyrService:
        """Get Zephyr service instance"""
        return ZephyrSquadService(self.settings, client)

    def test_ingestion_service(self, client: httpx.AsyncClient) -> TestIngestionService:
        """Get test ingestion service instance"""
        return TestIngestionService(
            jira_service=self.jira_service(client),
            zephyr_service=self.zephyr_service(client),
            isolate_failures=self.settings.batch_failure_mode == "isolate",
            test_issue_type=self.settings.jira_test_issue_type,
        )


# Global container instance
container = Container(settings)


async def get_test_ingestion_service() -> AsyncIterator[TestIngestionService]:
    """FastAPI dependency for the test ingestion service"""
    async with container.http_client() as client:
        yield container.test_ingestion_service(client)
