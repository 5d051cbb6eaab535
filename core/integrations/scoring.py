"""
Client for the external resume scoring service.

The service receives resume text plus the job description and answers with a
match score (0-100) and a short summary. Calls are bounded by a deadline; a
slow or failing oracle leaves the application unscored instead of failing it.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from core.config import Settings
from core.workflow.application_status import ScoringStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreResult:
    match_score: float
    summary: str


class ScoringOracle:
    """HTTP scoring client."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["ScoringOracle"]:
        if not settings.scoring_oracle_url:
            return None
        return cls(settings.scoring_oracle_url, settings.scoring_timeout_seconds)

    async def score(self, resume_text: str, job_title: str, job_description: str) -> ScoreResult:
        """
        Request a score from the oracle.

        Raises:
            httpx.HTTPError: On transport or HTTP status failure
            ValueError: If the response body is malformed
        """
        body = {
            "resume_text": resume_text,
            "job_title": job_title,
            "job_description": job_description,
        }
        if self._client is not None:
            response = await self._client.post(f"{self.base_url}/score", json=body)
        else:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.post(f"{self.base_url}/score", json=body)
        response.raise_for_status()

        data = response.json()
        score = float(data["match_score"])
        if not 0 <= score <= 100:
            raise ValueError(f"match_score out of range: {score}")
        return ScoreResult(match_score=score, summary=str(data.get("summary", "")))

    async def evaluate(
        self, resume_text: str, job_title: str, job_description: str
    ) -> tuple[ScoringStatus, Optional[ScoreResult]]:
        """Score under the configured deadline, mapping failures to a status."""
        try:
            result = await asyncio.wait_for(
                self.score(resume_text, job_title, job_description),
                timeout=self.timeout_seconds,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning(f"Scoring oracle timed out after {self.timeout_seconds}s")
            return ScoringStatus.TIMED_OUT, None
        except (httpx.HTTPError, KeyError, ValueError, TypeError) as e:
            logger.warning(f"Scoring oracle failed: {e}")
            return ScoringStatus.UNSCORED, None
        return ScoringStatus.SCORED, result
