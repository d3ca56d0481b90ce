"""
AI text services (Claude over the Anthropic Messages API, or a local Ollama).

Both providers expose the same methods so admin actions can call
`AiServiceFactory.make()` without caring which backend answers.
"""
import json
import logging
import os
import re
from typing import Any, Dict, List, Optional

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

ANTHROPIC_API_URL = 'https://api.anthropic.com/v1/messages'
ANTHROPIC_VERSION = '2023-06-01'
DEFAULT_CLAUDE_MODEL = 'claude-3-5-sonnet-latest'
DEFAULT_OLLAMA_MODEL = 'llama3.1'

_FENCE_RE = re.compile(r'^```(?:json)?\s*|\s*```$', re.MULTILINE)


class AiServiceError(Exception):
    """Raised when an AI provider call fails or returns unusable output"""


def extract_json(text: str) -> Any:
    """Parse JSON from a model reply, tolerating ``` fences and leading prose"""
    if not text:
        raise AiServiceError("Empty AI response")
    cleaned = _FENCE_RE.sub('', text.strip()).strip()
    try:
        return json.loads(cleaned)
    except ValueError:
        pass
    # Fall back to the outermost object/array in the reply
    for opener, closer in (('{', '}'), ('[', ']')):
        start, end = cleaned.find(opener), cleaned.rfind(closer)
        if start != -1 and end > start:
            try:
                return json.loads(cleaned[start:end + 1])
            except ValueError:
                continue
    raise AiServiceError("AI response is not valid JSON")


def _response_language():
    return getattr(settings, 'AI_LANGUAGE', os.getenv('AI_LANGUAGE', 'Italian'))


class BaseAiService:
    """Prompt construction and response parsing shared by every provider"""
    name = 'base'
    label = 'AI'

    def is_configured(self) -> bool:
        raise NotImplementedError

    def complete(self, prompt: str, max_tokens: int = 1000) -> str:
        raise NotImplementedError

    def _safe_complete(self, prompt: str, max_tokens: int = 1000) -> Optional[str]:
        if not self.is_configured():
            return None
        try:
            return self.complete(prompt, max_tokens).strip()
        except AiServiceError as e:
            logger.error(f"{self.label} request failed: {str(e)}")
            return None

    @staticmethod
    def _context_lines(context: Optional[Dict[str, Any]]) -> str:
        if not context:
            return ''
        return '\n'.join(f"- {key}: {value}" for key, value in context.items() if value)

    def improve_project_description(self, project_name: str, current_description: str = '',
                                    context: Optional[Dict[str, Any]] = None) -> Optional[str]:
        prompt = (
            f"You write technical project descriptions for an electronics design and PCB assembly company.\n"
            f"Project: {project_name}\n"
            f"Current description: {current_description or '(none)'}\n"
            f"{self._context_lines(context)}\n"
            f"Rewrite the description in {_response_language()} as 2-3 clear, professional paragraphs. "
            f"Reply with the description text only."
        )
        return self._safe_complete(prompt)

    def improve_milestone_description(self, milestone_name: str, project_name: str, current_description: str = '',
                                      context: Optional[Dict[str, Any]] = None) -> Optional[str]:
        prompt = (
            f"Milestone '{milestone_name}' of the electronics project '{project_name}'.\n"
            f"Current description: {current_description or '(none)'}\n"
            f"{self._context_lines(context)}\n"
            f"Write a concise description (max 3 sentences, in {_response_language()}) of the deliverables "
            f"and acceptance criteria. Reply with the text only."
        )
        return self._safe_complete(prompt)

    def generate_project_milestones(self, project_name: str, project_description: str,
                                    context: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        prompt = (
            f"Plan the milestones of the electronics project '{project_name}'.\n"
            f"Description: {project_description or '(none)'}\n"
            f"{self._context_lines(context)}\n"
            f"Reply ONLY with a JSON array; each element has the keys "
            f"\"name\", \"description\", \"category\" (design, prototyping, production, testing, delivery) "
            f"and \"days_offset\" (integer days from project start). Texts in {_response_language()}."
        )
        response = self._safe_complete(prompt, max_tokens=2000)
        if not response:
            return []
        try:
            return self.parse_milestones(response)
        except AiServiceError as e:
            logger.error(f"Failed to parse milestones for {project_name}: {str(e)}")
            return []

    @staticmethod
    def parse_milestones(response: str) -> List[Dict[str, Any]]:
        data = extract_json(response)
        if isinstance(data, dict):
            data = data.get('milestones', [])
        if not isinstance(data, list):
            raise AiServiceError("Milestone response is not a list")

        milestones = []
        for index, item in enumerate(data):
            if not isinstance(item, dict) or not item.get('name'):
                continue
            try:
                days_offset = int(item.get('days_offset') or 0)
            except (TypeError, ValueError):
                days_offset = 0
            milestones.append({
                'name': str(item['name'])[:255],
                'description': str(item.get('description') or ''),
                'category': str(item.get('category') or 'design')[:50],
                'days_offset': max(days_offset, 0),
                'sort_order': index,
            })
        return milestones

    def generate_project_notification_email(self, project_name: str, client_name: str, deadline,
                                            context: Optional[Dict[str, Any]] = None) -> Optional[str]:
        prompt = (
            f"Write a short, polite e-mail in {_response_language()} to the client '{client_name}' "
            f"about the project '{project_name}', whose deadline is {deadline:%d/%m/%Y}.\n"
            f"{self._context_lines(context)}\n"
            f"Reply with the e-mail body only."
        )
        return self._safe_complete(prompt)

    def test_connection(self) -> Dict[str, Any]:
        if not self.is_configured():
            return {'success': False, 'message': f"{self.label} is not configured"}
        try:
            reply = self.complete("Reply with the single word: OK", max_tokens=20)
            return {'success': True, 'message': f"{self.label} connection successful", 'response': reply.strip()}
        except AiServiceError as e:
            return {'success': False, 'message': str(e)}


class ClaudeAiService(BaseAiService):
    name = 'claude'
    label = 'Claude AI (Anthropic)'

    def __init__(self, api_key=None, model=None, profile=None, timeout=60):
        if profile is None:
            from .models import CompanyProfile
            profile = CompanyProfile.current()
        profile_key = profile.claude_api_key if profile.claude_enabled else ''
        self.api_key = api_key or profile_key or getattr(
            settings, 'ANTHROPIC_API_KEY', os.getenv('ANTHROPIC_API_KEY', ''))
        self.model = model or getattr(settings, 'ANTHROPIC_MODEL', '') or profile.claude_model or DEFAULT_CLAUDE_MODEL
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def complete(self, prompt: str, max_tokens: int = 1000) -> str:
        if not self.is_configured():
            raise AiServiceError("Claude API key not configured")
        try:
            response = requests.post(
                ANTHROPIC_API_URL,
                headers={
                    'x-api-key': self.api_key,
                    'anthropic-version': ANTHROPIC_VERSION,
                    'content-type': 'application/json',
                },
                json={
                    'model': self.model,
                    'max_tokens': max_tokens,
                    'messages': [{'role': 'user', 'content': prompt}],
                },
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise AiServiceError(f"Claude request failed: {str(e)}") from e

        if response.status_code != 200:
            logger.error(f"Claude API error {response.status_code}: {response.text[:500]}")
            raise AiServiceError(f"Claude API returned HTTP {response.status_code}")

        payload = response.json()
        parts = [block.get('text', '') for block in payload.get('content', []) if block.get('type') == 'text']
        if not parts:
            raise AiServiceError("Claude response contained no text")
        return ''.join(parts)


class OllamaAiService(BaseAiService):
    name = 'ollama'
    label = 'Ollama (local)'

    def __init__(self, base_url=None, model=None, profile=None, timeout=120):
        if profile is None:
            from .models import CompanyProfile
            profile = CompanyProfile.current()
        self.base_url = (base_url or profile.ollama_url or getattr(
            settings, 'OLLAMA_URL', os.getenv('OLLAMA_URL', ''))).rstrip('/')
        self.model = model or profile.ollama_model or getattr(settings, 'OLLAMA_MODEL', '') or DEFAULT_OLLAMA_MODEL
        self.timeout = timeout
        self._available = None

    def is_configured(self) -> bool:
        """Ollama counts as configured only when its server answers /api/tags"""
        if not self.base_url:
            return False
        if self._available is None:
            try:
                response = requests.get(f"{self.base_url}/api/tags", timeout=3)
                self._available = response.status_code == 200
            except requests.exceptions.RequestException as e:
                logger.debug(f"Ollama not reachable at {self.base_url}: {str(e)}")
                self._available = False
        return self._available

    def complete(self, prompt: str, max_tokens: int = 1000) -> str:
        if not self.base_url:
            raise AiServiceError("Ollama URL not configured")
        try:
            response = requests.post(
                f"{self.base_url}/api/generate",
                json={
                    'model': self.model,
                    'prompt': prompt,
                    'stream': False,
                    'options': {'num_predict': max_tokens},
                },
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise AiServiceError(f"Ollama request failed: {str(e)}") from e

        if response.status_code != 200:
            raise AiServiceError(f"Ollama returned HTTP {response.status_code}")
        text = response.json().get('response', '')
        if not text:
            raise AiServiceError("Ollama response was empty")
        return text


class AiServiceFactory:
    """Pick the AI provider from AI_PROVIDER, auto-detecting when unset"""

    @staticmethod
    def make() -> BaseAiService:
        provider = getattr(settings, 'AI_PROVIDER', os.getenv('AI_PROVIDER', 'auto'))
        logger.debug(f"AiServiceFactory creating service for provider={provider}")

        if provider == 'claude':
            return ClaudeAiService()
        if provider == 'ollama':
            return OllamaAiService()
        return AiServiceFactory._create_default_service()

    @staticmethod
    def _create_default_service() -> BaseAiService:
        claude = ClaudeAiService()
        if claude.is_configured():
            logger.debug("Using Claude AI service (auto-detected)")
            return claude

        ollama = OllamaAiService()
        if ollama.is_configured():
            logger.debug("Using Ollama AI service (auto-detected)")
            return ollama

        logger.debug("No AI service configured, returning Claude AI (unconfigured)")
        return claude

    @staticmethod
    def available_providers() -> List[Dict[str, Any]]:
        providers = []
        for service in (ClaudeAiService(), OllamaAiService()):
            if service.is_configured():
                providers.append({'name': service.name, 'label': service.label, 'configured': True})
        return providers
