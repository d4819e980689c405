from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings
from typing import Literal, Optional


class Settings(BaseSettings):
    # API Configuration
    debug: bool = False
    environment: str = "development"
    api_host: str = "0.0.0.0"
    api_port: int = 3001
    api_prefix: str = ""

    # JIRA Integration (configure via environment)
    jira_base_url: Optional[str] = None
    jira_email: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("jira_email", "jira_username"),
    )
    jira_api_token: Optional[str] = None
    jira_test_issue_type: str = "Test"
    jira_link_type: str = "Relates"
    # Search results are re-checked for an exact summary match, so fetch a few
    jira_search_max_results: int = 50

    # Zephyr Squad Cloud (ZAPI) Integration
    zephyr_base_url: str = "https://prod-api.zephyr4jiracloud.com"
    zephyr_access_key: Optional[str] = None
    zephyr_secret_key: Optional[str] = None
    zephyr_token_ttl_seconds: int = 60

    # Outbound HTTP
    http_timeout_seconds: float = 30.0

    # "abort" stops the batch on the first external failure,
    # "isolate" records the failure and moves on to the next test case.
    batch_failure_mode: Literal["abort", "isolate"] = "abort"

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
