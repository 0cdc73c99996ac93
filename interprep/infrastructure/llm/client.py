"""
Gemini over the Vertex AI REST API.
"""
import json
import logging
from typing import Optional, Dict, Any

import requests
import google.auth
import google.auth.transport.requests
from google.oauth2 import service_account

from ...config import VERTEX_LOCATION, MODEL_NAME, LLM_TIMEOUT, MAX_OUTPUT_TOKENS

logger = logging.getLogger("llm_client")

SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]


class VertexRestClient:
    """Thin requests-based client for Gemini generateContent."""

    def __init__(self,
                 project: str,
                 location: str = VERTEX_LOCATION,
                 model: str = MODEL_NAME,
                 credentials_json: Optional[str] = None,
                 timeout: int = LLM_TIMEOUT):
        self.project = project
        self.location = location
        self.model = model
        self.credentials_json = credentials_json
        self.timeout = timeout
        self._creds = None

    def _token(self) -> str:
        """Return a valid OAuth token, refreshing the credentials when expired."""
        if self._creds is None:
            if self.credentials_json:
                self._creds = service_account.Credentials.from_service_account_file(
                    self.credentials_json, scopes=SCOPES,
                )
            else:
                self._creds, _ = google.auth.default(scopes=SCOPES)

        if not self._creds.valid:
            self._creds.refresh(google.auth.transport.requests.Request())
        return self._creds.token

    @property
    def endpoint(self) -> str:
        return (f"https://{self.location}-aiplatform.googleapis.com/v1/projects/{self.project}"
                f"/locations/{self.location}/publishers/google/models/{self.model}:generateContent")

    def generate_content(self,
                         prompt_text: str,
                         temperature: float = 0.0,
                         max_output_tokens: int = MAX_OUTPUT_TOKENS,
                         response_mime_type: Optional[str] = None,
                         response_schema: Optional[Dict[str, Any]] = None) -> str:
        """
        Run one generateContent call and return the reply text.

        Raises:
            RuntimeError: On an HTTP error status or a reply without text
            requests.RequestException: On transport failure
        """
        generation_config: Dict[str, Any] = {"temperature": float(temperature),
                                             "maxOutputTokens": int(max_output_tokens)}
        if response_mime_type:
            generation_config["responseMimeType"] = response_mime_type
        if response_schema:
            generation_config["responseSchema"] = response_schema

        resp = requests.post(
            self.endpoint,
            headers={"Authorization": f"Bearer {self._token()}", "Content-Type": "application/json"},
            json={
                "contents": [{"role": "user", "parts": [{"text": prompt_text}]}],
                "generationConfig": generation_config,
            },
            timeout=self.timeout,
        )
        if resp.status_code >= 400:
            raise RuntimeError(f"Vertex AI returned HTTP {resp.status_code}: {resp.text[:300]}")
        return self._extract_text(resp.json())

    @staticmethod
    def _extract_text(payload: Dict[str, Any]) -> str:
        # candidates[0].content.parts[*].text, else a bare top-level text field
        for candidate in (payload.get("candidates") or [])[:1]:
            parts = (candidate.get("content") or {}).get("parts") or []
            text = "".join(p.get("text", "") for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str))
            if text:
                return text
        if isinstance(payload.get("text"), str):
            return payload["text"]
        raise RuntimeError(f"Vertex response had no text: {json.dumps(payload)[:300]}")

    def generate_text(self, prompt: str, temperature: float = 0.7) -> str:
        """Generate a free-text reply, stripped of surrounding whitespace."""
        logger.debug("Sending text prompt to LLM (%d chars)", len(prompt))
        text = self.generate_content(prompt, temperature=temperature).strip()
        logger.debug("Raw LLM output: %s", repr(text))
        return text

    def generate_json(self, prompt: str, response_schema: Optional[Dict[str, Any]] = None) -> str:
        """
        Generate a JSON reply using structured output.

        Returns the raw text; callers validate it against their schema so the
        parsing errors land in their own error taxonomy.
        """
        logger.debug("Sending JSON prompt to LLM (%d chars)", len(prompt))
        text = self.generate_content(
            prompt,
            temperature=0.0,
            response_mime_type="application/json",
            response_schema=response_schema,
        )
        logger.debug("Raw LLM output: %s", repr(text))
        return text.strip()
