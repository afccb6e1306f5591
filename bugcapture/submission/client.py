"""Submission client for the bug report ingestion API.

This module provides the SubmissionClient class that serializes a capture
snapshot plus operator metadata into the ingestion wire format, posts it, and
turns the tRPC-style response envelope into a SubmissionResult or a
SubmissionError.
"""

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from ..errors import ConfigurationError, SubmissionError
from ..models.capture import BugReportPayload, CaptureSnapshot, ReportOptions, SubmissionResult

logger = logging.getLogger(__name__)


DEFAULT_SUBMIT_PATH = "/api/trpc/bugReports.submit"


class SubmissionClient:
    """Posts bug reports to the ingestion API."""

    def __init__(
        self,
        project_key: str,
        api_endpoint: str,
        submit_path: str = DEFAULT_SUBMIT_PATH,
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize submission client.

        Args:
            project_key: Project identifier issued by the ingestion API
            api_endpoint: Base URL of the ingestion API
            submit_path: Submission route appended to the endpoint
            timeout_seconds: Request timeout
            transport: Optional httpx transport (tests, custom routing)

        Raises:
            ConfigurationError: If the project key or endpoint is missing
        """
        if not project_key:
            raise ConfigurationError("projectKey is required", field="project_key")
        if not api_endpoint:
            raise ConfigurationError("apiEndpoint is required", field="api_endpoint")

        self.project_key = project_key
        self.api_endpoint = api_endpoint.rstrip("/")
        self.submit_url = f"{self.api_endpoint}{submit_path}"
        self.submissions = 0
        self.failures = 0

        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout=timeout_seconds, connect=10.0),
            transport=transport,
        )

    @classmethod
    def from_config(cls, config, transport: Optional[httpx.AsyncBaseTransport] = None) -> "SubmissionClient":
        """Create a client from a CaptureConfig."""
        return cls(
            project_key=config.project_key,
            api_endpoint=config.api_endpoint,
            submit_path=config.submit_path,
            timeout_seconds=config.request_timeout_seconds,
            transport=transport,
        )

    def build_payload(
        self,
        snapshot: CaptureSnapshot,
        options: Optional[ReportOptions] = None
    ) -> Dict[str, Any]:
        """Build the request body for a snapshot.

        Raises:
            SubmissionError: If the operator metadata is invalid
        """
        try:
            payload = BugReportPayload.from_snapshot(self.project_key, snapshot, options)
        except ValidationError as e:
            raise SubmissionError(f"Invalid bug report: {e}", code="BAD_REQUEST") from e
        return {"json": payload.to_wire()}

    async def submit(
        self,
        snapshot: CaptureSnapshot,
        options: Optional[ReportOptions] = None
    ) -> SubmissionResult:
        """Submit a snapshot as a bug report.

        Returns:
            SubmissionResult with the stored report id

        Raises:
            SubmissionError: If the endpoint is unreachable or rejects the report
        """
        body = self.build_payload(snapshot, options)
        self.submissions += 1

        try:
            response = await self.client.post(
                self.submit_url,
                json=body,
                headers={"User-Agent": "bug-capture/1.0"},
            )
        except httpx.RequestError as e:
            self.failures += 1
            logger.error(f"Bug report submission failed: {e}")
            raise SubmissionError(f"Request error: {e}") from e

        try:
            result = self._parse_response(response)
        except SubmissionError as e:
            self.failures += 1
            logger.error(f"Bug report rejected: {e.message}")
            raise

        logger.info(f"Bug report submitted: id={result.id}")
        return result

    def _parse_response(self, response: httpx.Response) -> SubmissionResult:
        try:
            data = response.json()
        except ValueError:
            if response.is_success:
                raise SubmissionError(
                    "Invalid response from ingestion API",
                    status_code=response.status_code
                )
            raise SubmissionError(
                f"HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code
            )

        if not isinstance(data, dict):
            raise SubmissionError("Invalid response from ingestion API", status_code=response.status_code)

        error = data.get("error")
        if error or not response.is_success:
            error = error if isinstance(error, dict) else {}
            error = error.get("json", error)
            code = (error.get("data") or {}).get("code")
            message = error.get("message") or f"HTTP {response.status_code}"
            raise SubmissionError(message, status_code=response.status_code, code=code)

        result = (data.get("result") or {}).get("data", data)
        if isinstance(result, dict) and "json" in result:
            result = result["json"]

        try:
            return SubmissionResult.model_validate(result)
        except ValidationError as e:
            raise SubmissionError(
                f"Unexpected response from ingestion API: {e}",
                status_code=response.status_code
            ) from e

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "SubmissionClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return (
            f"SubmissionClient(url={self.submit_url}, "
            f"submissions={self.submissions}, failures={self.failures})"
        )
