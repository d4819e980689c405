from abc import ABC, abstractmethod
from typing import Any, Dict
from app.models.zephyr import TestStep


class IZephyrService(ABC):
    """Interface for Zephyr integration operations"""

    @abstractmethod
    async def add_test_step(self, issue_id: str, project_id: str, step: TestStep) -> Dict[str, Any]:
        """Add one step to a test issue and return the created step"""
        pass
