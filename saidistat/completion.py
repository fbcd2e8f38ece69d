"""Client for the remote thesis-writing assistant."""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

import requests

from .errors import CompletionError, ConfigurationError, QuotaExceededError, RateLimitedError

logger = logging.getLogger(__name__)

ACTIONS = ('identify_study', 'generate_section', 'generate_references')

_FENCED_JSON = re.compile(r'```(?:json)?\s*\n?([\s\S]*?)\n?```')
_BRACED = re.compile(r'\{[\s\S]*\}')


@dataclass(frozen=True)
class StudyContext:
    domain: Optional[str] = None
    objective: Optional[str] = None
    population: Optional[str] = None
    period: Optional[str] = None
    location: Optional[str] = None
    variables: List[str] = field(default_factory=list)

    def to_dict(self):
        return {key: value for key, value in self.__dict__.items() if value not in (None, "", [])}


@dataclass(frozen=True)
class CompletionRequest:
    action: str
    topic: Optional[str] = None
    study_type: Optional[str] = None
    section: Optional[str] = None
    context: Optional[StudyContext] = None
    existing_content: Optional[str] = None

    def to_payload(self):
        payload = {'action': self.action}
        if self.topic:
            payload['topic'] = self.topic
        if self.study_type:
            payload['studyType'] = self.study_type
        if self.section:
            payload['section'] = self.section
        if self.context is not None:
            payload['context'] = self.context.to_dict()
        if self.existing_content:
            payload['existingContent'] = self.existing_content
        return payload


@dataclass(frozen=True)
class Citation:
    citation: str
    full_reference: str = ''


@dataclass(frozen=True)
class CompletionResult:
    content: str
    citations: List[Citation]
    payload: dict


def extract_json_payload(text):
    """Parses JSON out of a model answer.

    Looks for a fenced ```json block, then the outermost {...} span; anything
    that does not parse is returned as {"content": text}.
    """
    match = _FENCED_JSON.search(text) or _BRACED.search(text)
    if match:
        candidate = match.group(1) if match.re is _FENCED_JSON else match.group(0)
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, dict):
            return parsed
    return {'content': text}


def _citations(payload):
    citations = []
    for item in payload.get('references') or []:
        if isinstance(item, dict) and item.get('citation'):
            citations.append(Citation(citation=item['citation'], full_reference=item.get('fullReference', '')))
        elif isinstance(item, str):
            citations.append(Citation(citation=item))
    return citations


def _content(payload):
    content = payload.get('content')
    if isinstance(content, str):
        return content
    if 'studyType' in payload:
        return f"{payload['studyType']}: {payload.get('justification', '')}".strip()
    return ''


def parse_completion_body(body):
    """Normalizes the service answer: an OpenAI-style `choices` envelope or a plain JSON object."""
    if not isinstance(body, dict):
        raise CompletionError("Unexpected response from the writing assistant.")
    if 'error' in body and len(body) == 1:
        raise CompletionError(str(body['error']))
    if 'choices' in body:
        try:
            text = body['choices'][0]['message']['content'] or ''
        except (KeyError, IndexError, TypeError) as exc:
            raise CompletionError("Malformed completion response.") from exc
        payload = extract_json_payload(text)
    else:
        payload = body
    return CompletionResult(content=_content(payload), citations=_citations(payload), payload=payload)


def request_completion(request, settings, session=None):
    """Sends one request to the configured endpoint.

    Raises RateLimitedError on HTTP 429, QuotaExceededError on 402 and
    CompletionError for any other failure.
    """
    if request.action not in ACTIONS:
        raise CompletionError(f"Unknown action: {request.action!r}")
    if not settings.completion_url:
        raise ConfigurationError("SAIDISTAT_COMPLETION_URL is not configured.")

    headers = {'Content-Type': 'application/json'}
    if settings.completion_api_key:
        headers['Authorization'] = f"Bearer {settings.completion_api_key}"
    http = session or requests
    logger.info("Writing assistant request: %s", request.action)
    try:
        response = http.post(
            settings.completion_url,
            json=request.to_payload(),
            headers=headers,
            timeout=settings.completion_timeout,
        )
    except requests.exceptions.RequestException as exc:
        logger.error("Writing assistant unreachable: %s", exc)
        raise CompletionError("The writing assistant is unreachable, please try again later.") from exc

    if response.status_code == 429:
        logger.warning("Writing assistant rate limited the request")
        raise RateLimitedError()
    if response.status_code == 402:
        logger.warning("Writing assistant quota exhausted")
        raise QuotaExceededError()
    if not response.ok:
        logger.error("Writing assistant error %s: %s", response.status_code, response.text[:200])
        raise CompletionError(f"Writing assistant error: {response.status_code}", status_code=response.status_code)

    try:
        body = response.json()
    except ValueError as exc:
        raise CompletionError("The writing assistant returned invalid JSON.") from exc
    result = parse_completion_body(body)
    logger.info("Writing assistant response received, length: %d", len(result.content))
    return result
