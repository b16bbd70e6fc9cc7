"""
Client for the external code-execution service.

The service runs a program once per test case and reports a verdict. This
module only builds the request from stored test cases and parses the reply;
it never judges output itself.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from src.codeprep.core.config import settings
from src.codeprep.models.problem import Problem

logger = logging.getLogger(__name__)


class EvaluatorUnavailableError(Exception):
    """Raised when the evaluator cannot be reached or replies with garbage."""
    pass


@dataclass
class EvaluationRequest:
    source_code: str
    language_id: int
    stdin: list[str]
    expected_outputs: list[str]

    def to_payload(self) -> dict[str, Any]:
        return {
            "source_code": self.source_code,
            "language_id": self.language_id,
            "stdin": self.stdin,
            "expected_outputs": self.expected_outputs,
        }


@dataclass
class EvaluationResult:
    status: str
    runtime: Optional[str]
    memory: Optional[str]
    test_cases_passed: int
    total_test_cases: int


def build_evaluation_request(problem: Problem, *, source_code: str, language_id: int) -> EvaluationRequest:
    """Build an evaluator request from the problem's test cases, in stored order."""
    test_cases = problem.test_cases or []
    return EvaluationRequest(
        source_code=source_code,
        language_id=language_id,
        stdin=[str(tc.get("input", "")) for tc in test_cases],
        expected_outputs=[str(tc.get("output", "")) for tc in test_cases],
    )


def _pick(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def parse_evaluation_result(data: dict[str, Any]) -> EvaluationResult:
    """Parse the evaluator reply; both camelCase and snake_case keys are accepted.

    Raises:
        EvaluatorUnavailableError: If a required field is missing or malformed
    """
    if isinstance(data.get("data"), dict):
        data = data["data"]
    status = _pick(data, "status")
    passed = _pick(data, "testCasesPassed", "test_cases_passed")
    total = _pick(data, "totalTestCases", "total_test_cases")
    if not status or passed is None or total is None:
        raise EvaluatorUnavailableError("Malformed evaluator response")
    try:
        passed, total = int(passed), int(total)
    except (TypeError, ValueError) as e:
        raise EvaluatorUnavailableError("Malformed evaluator response") from e
    runtime = _pick(data, "runtime", "time")
    memory = _pick(data, "memory")
    return EvaluationResult(
        status=str(status).lower().replace(" ", "_"),
        runtime=str(runtime) if runtime is not None else None,
        memory=str(memory) if memory is not None else None,
        test_cases_passed=passed,
        total_test_cases=total,
    )


class EvaluatorClient:
    """Async client for the code-execution service."""

    def __init__(
        self,
        url: str,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    async def evaluate(self, request: EvaluationRequest) -> EvaluationResult:
        """
        Run source code against test cases.

        Args:
            request: Source, language id and the ordered test inputs/outputs

        Returns:
            EvaluationResult: Verdict, runtime, memory and pass counts

        Raises:
            EvaluatorUnavailableError: On timeout, transport or HTTP error
        """
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, headers=headers, json=request.to_payload())
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            logger.error(f"Evaluator timed out after {self.timeout}s")
            raise EvaluatorUnavailableError("Timeout") from e
        except httpx.HTTPError as e:
            logger.error(f"Evaluator request failed: {e}")
            raise EvaluatorUnavailableError(str(e)) from e
        except ValueError as e:
            logger.error("Evaluator returned a non-JSON body")
            raise EvaluatorUnavailableError("Malformed evaluator response") from e

        if not isinstance(data, dict):
            raise EvaluatorUnavailableError("Malformed evaluator response")
        return parse_evaluation_result(data)


def get_evaluator() -> EvaluatorClient:
    """FastAPI dependency for the evaluator client."""
    return EvaluatorClient(
        settings.EVALUATOR_URL,
        api_key=settings.EVALUATOR_API_KEY,
        timeout=settings.EVALUATOR_TIMEOUT_SECONDS,
    )
