import json
from typing import Any, List

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from app.core.dependencies import get_test_ingestion_service
from app.core.exceptions import ExternalServiceError
from app.models.zephyr import CreateTestsRequest, CreateTestsResponse
from app.services.test_ingestion_service import TestIngestionService

logger = structlog.get_logger()

router = APIRouter(tags=["webhooks"])


class InvalidBatchError(ValueError):
    pass


def parse_tests(tests: Any) -> List[Any]:
    """Accept the batch as a JSON array or as a JSON-encoded string of one."""
    if tests is None:
        raise InvalidBatchError("No tests received")

    if isinstance(tests, str):
        try:
            tests = json.loads(tests)
        except ValueError as e:
            raise InvalidBatchError(f"tests is not valid JSON: {e}") from e

    if not isinstance(tests, list):
        raise InvalidBatchError("tests must be a list")
    if not tests:
        raise InvalidBatchError("No tests received")
    return tests


def _error(status_code: int, error: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error})


@router.post(
    "/create-tests",
    response_model=CreateTestsResponse,
    responses={400: {"description": "Invalid batch"}, 500: {"description": "External service failure"}},
)
async def create_tests(
    data: CreateTestsRequest,
    service: TestIngestionService = Depends(get_test_ingestion_service),
):
    """Create JIRA test issues with Zephyr steps for a batch of test cases."""
    logger.info("Webhook triggered")

    try:
        tests = parse_tests(data.tests)
    except InvalidBatchError as e:
        logger.warning("Rejected test batch", error=str(e))
        return _error(status.HTTP_400_BAD_REQUEST, str(e))

    try:
        result = await service.ingest_batch(tests)
    except ExternalServiceError as e:
        logger.error(
            "Test batch aborted",
            service=e.service,
            status_code=e.status_code,
            error=e.message,
        )
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, e.error_payload)
    except Exception as e:
        logger.error("Test batch aborted", error=str(e), exc_info=True)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

    return CreateTestsResponse(
        message="Completed" if not result.failed else "Completed with failures",
        created=result.created,
        skipped=result.skipped,
        failed=result.failed,
        results=result.results,
    )
