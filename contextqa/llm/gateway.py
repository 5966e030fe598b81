# contextqa/llm/gateway.py
import logging
from typing import Any, Dict, Optional

import requests

from contextqa.errors import GatewayError

logger = logging.getLogger(__name__)


class AnswerGateway:
    """Forwards (context, question) to the remote QA API and returns its JSON body as-is."""

    def __init__(
        self,
        api_url: str,
        api_key: str = "",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url or ""
        self.api_key = api_key or ""
        self.timeout = float(timeout)
        # one-off requests.post per call unless a session is injected
        self.session = session

    @property
    def headers(self) -> Dict[str, str]:
        h = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.api_key:
            h["Authorization"] = self.api_key
        return h

    def ask(self, context: str, question: str) -> Any:
        if not self.api_url:
            raise GatewayError("API_URL is not configured.")

        payload = {
            "inputs": {
                "question": question,
                "context": context,
            },
        }
        logger.debug("POST %s (context=%d chars)", self.api_url, len(context or ""))
        try:
            post = self.session.post if self.session is not None else requests.post
            resp = post(
                self.api_url, json=payload, headers=self.headers, timeout=self.timeout
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise GatewayError(f"QA API request failed: {e}") from e

        try:
            return resp.json()
        except ValueError as e:
            raise GatewayError(
                f"QA API returned a non-JSON body (status={resp.status_code})"
            ) from e
