import re

_JQL_SPECIAL = re.compile(r'(["\\])')


def escape_jql(text: str) -> str:
    """Escape a value for use inside a double-quoted JQL string literal."""
    return _JQL_SPECIAL.sub(r"\\\1", text or "")


def duplicate_test_jql(project_key: str, requirement_key: str, test_name: str, issue_type: str = "Test") -> str:
    return (
        f'project = "{escape_jql(project_key)}" '
        f'AND issuetype = "{escape_jql(issue_type)}" '
        f'AND summary = "{escape_jql(test_name)}" '
        f'AND issue in linkedIssues("{escape_jql(requirement_key)}")'
    )
