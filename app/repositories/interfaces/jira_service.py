from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from app.models.zephyr import CreatedIssue


class IJiraService(ABC):
    """Interface for JIRA integration operations"""

    @abstractmethod
    async def get_project_id(self, project_key: str) -> str:
        """Resolve a project key to its numeric project id"""
        pass

    @abstractmethod
    async def search_issues(self, jql: str, fields: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        """Run a JQL search and return the matching issues"""
        pass

    @abstractmethod
    async def create_issue(
        self,
        project_key: str,
        summary: str,
        description: Optional[str] = None,
        priority: Optional[str] = None,
    ) -> CreatedIssue:
        """Create a test issue and return its key and id"""
        pass

    @abstractmethod
    async def link_issues(self, inward_key: str, outward_key: str) -> None:
        """Create an issue link between two issues"""
        pass
