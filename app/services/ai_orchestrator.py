import json
import re
import requests
from typing import List, Dict, Any
from app.core.config import settings
from app.core.exceptions import AIError, AIKillSwitchError
import logging
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

logger = logging.getLogger(__name__)

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"

class AIDomain:
    EVALUATION = "evaluation"
    FEEDBACK = "feedback"
    SKILLS = "skills"
    GENERAL = "general"

class AIOrchestrator:
    """
    Transport to the hosted model. Owns the HTTP timeout, bounded transport
    retries and the fallback model; callers see a single call that either
    returns text or raises AIError.
    """

    @staticmethod
    @retry(
        stop=stop_after_attempt(settings.ai.max_attempts),
        wait=wait_exponential(multiplier=1, min=4, max=10),
        retry=retry_if_exception_type((requests.exceptions.ConnectionError, requests.exceptions.Timeout)),
        reraise=True
    )
    def _post(payload: Dict[str, Any]) -> requests.Response:
        response = requests.post(
            url=OPENROUTER_URL,
            headers={
                "Authorization": f"Bearer {settings.ai.openrouter_api_key}",
                "Content-Type": "application/json",
            },
            data=json.dumps(payload),
            timeout=settings.ai.timeout_seconds
        )
        response.raise_for_status()
        return response

    @classmethod
    def _do_call(
        cls,
        messages: List[Dict[str, str]],
        model_name: str,
        temperature: float = 0.7,
        json_output: bool = True
    ) -> str:
        logger.info(f"Calling AI Model: {model_name}")

        try:
            response = cls._post({
                "model": model_name,
                "messages": messages,
                "temperature": temperature
            })
            content = response.json()["choices"][0]["message"]["content"]
        except requests.exceptions.Timeout:
            logger.error("AI service timeout.")
            raise AIError("AI service reached timeout limit.")
        except requests.exceptions.HTTPError as e:
            logger.error(f"AI service HTTP error: {e}")
            raise AIError(f"AI service returned error: {e.response.status_code}")
        except requests.exceptions.RequestException as e:
            logger.error(f"AI service unreachable: {e}")
            raise AIError(f"AI service unreachable: {e}")
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"Unexpected AI response envelope: {e}")
            raise AIError("AI service returned an unexpected response.")

        if json_output:
            # Models sometimes wrap the JSON in prose or code fences
            json_match = re.search(r'\{.*\}', content, re.DOTALL)
            if json_match:
                return json_match.group()

        return content

    @classmethod
    def call_model(
        cls,
        messages: List[Dict[str, str]],
        temperature: float = 0.7,
        json_output: bool = True,
        domain: str = AIDomain.GENERAL,
    ) -> str:
        """Kill-switch, primary model, then fallback model."""
        logger.info(f"AI Coordination Request | Domain: {domain}")

        if settings.ai.kill_switch:
            logger.warning("AI Kill-switch is active. Blocking request.")
            raise AIKillSwitchError()

        if not settings.ai.openrouter_api_key:
            logger.error("OpenRouter API Key missing.")
            raise AIError("AI service configuration error.")

        try:
            return cls._do_call(messages, settings.ai.model_name, temperature, json_output)
        except AIError as e:
            logger.warning(f"Primary model {settings.ai.model_name} failed: {e.message}. Attempting fallback.")
            try:
                return cls._do_call(messages, settings.ai.fallback_model, temperature, json_output)
            except AIError as fe:
                logger.error(f"Fallback model {settings.ai.fallback_model} also failed: {fe.message}")
                raise AIError(
                    f"AI service completely unavailable (Primary: {e.message}, Fallback: {fe.message})"
                )

    @classmethod
    def analyze_text(
        cls,
        system_prompt: str,
        user_content: str,
        temperature: float = 0.5,
        domain: str = AIDomain.GENERAL,
    ) -> Dict[str, Any]:
        """ Helper for analysis tasks that expect a JSON object back. """
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_content}
        ]
        response_text = cls.call_model(messages, temperature=temperature, json_output=True, domain=domain)
        try:
            parsed = json.loads(response_text)
        except json.JSONDecodeError:
            logger.error(f"Failed to decode AI JSON response: {response_text[:500]}")
            raise AIError("Failed to parse AI response.")
        if not isinstance(parsed, dict):
            raise AIError("AI response was not a JSON object.")
        return parsed

    @classmethod
    def complete_text(
        cls,
        system_prompt: str,
        user_content: str,
        temperature: float = 0.5,
        domain: str = AIDomain.GENERAL,
    ) -> str:
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_content}
        ]
        return cls.call_model(messages, temperature=temperature, json_output=False, domain=domain).strip()
