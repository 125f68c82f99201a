"""
AI scoring service (Gemini generateContent over REST)
"""

import json
import logging
import httpx
from typing import Any, Dict, List, Optional
from prompt_battle.core.config import settings
from prompt_battle.core.errors import ScoringError
from prompt_battle.core.utils import clamp
from prompt_battle.schemas.battle_schemas import Evaluation

logger = logging.getLogger(__name__)

SCORING_INSTRUCTIONS = """
Task: Given an image and multiple prompts, score each prompt 0–100 based on how well it matches the image.

Rules:
- Judge how likely the prompt would recreate a similar image in a text-to-image model
- Higher score = closer match
- Include constructive feedback with specific image details

Return ONLY valid JSON:
[
  {
    "user_id": "...",
    "prompt_id": "...",
    "score": 0-100,
    "reason": "short explanation"
  }
]
"""


def format_prompt_list(prompts: List[Dict[str, Any]]) -> str:
    """Numbered prompt listing sent alongside the image"""
    return "\n\n".join(
        f'Prompt {i + 1}:\nID: {p["id"]}\nUser: {p["user_id"]}\nText: "{p["prompt_text"]}"'
        for i, p in enumerate(prompts)
    )


def build_contents(image_url: str, prompts: List[Dict[str, Any]]) -> List[dict]:
    return [
        {
            "role": "user",
            "parts": [
                {"text": SCORING_INSTRUCTIONS},
                {"file_data": {"mime_type": "image/jpeg", "file_uri": image_url}},
                {"text": "Prompts:\n" + format_prompt_list(prompts)},
            ],
        }
    ]


def extract_text(result: dict) -> str:
    """First text part of the first candidate, empty when absent"""
    try:
        return result["candidates"][0]["content"]["parts"][0].get("text", "") or ""
    except (KeyError, IndexError, TypeError, AttributeError):
        return ""


def strip_code_fences(text: str) -> str:
    return text.replace("```json", "").replace("```", "").strip()


def parse_evaluations(text: str) -> List[Evaluation]:
    """Parse the model answer into evaluations.

    The answer must be a JSON array. Entries without a prompt id or with a
    non-numeric or non-finite score are dropped; scores are clamped to 0..100.
    """
    cleaned = strip_code_fences(text)
    try:
        data = json.loads(cleaned)
    except (json.JSONDecodeError, TypeError):
        raise ScoringError("Gemini did not return valid JSON", {"raw": cleaned})

    if not isinstance(data, list):
        raise ScoringError("Gemini did not return valid JSON", {"raw": cleaned})

    evaluations = []
    for item in data:
        if not isinstance(item, dict) or not item.get("prompt_id"):
            logger.warning(f"⚠️ Skipping malformed evaluation: {item!r}")
            continue
        try:
            score = clamp(int(round(float(item.get("score")))), 0, 100)
        except (TypeError, ValueError, OverflowError):
            # NaN, Infinity and 1e999 land here too
            logger.warning(f"⚠️ Skipping evaluation with bad score: {item!r}")
            continue
        evaluations.append(Evaluation(
            user_id=str(item.get("user_id") or ""),
            prompt_id=str(item["prompt_id"]),
            score=score,
            reason=str(item.get("reason") or ""),
        ))
    return evaluations


class ScoringService:
    """Sends the image and prompt batch to Gemini and parses the scores"""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 base_url: Optional[str] = None, timeout: Optional[int] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.base_url = (base_url or settings.GEMINI_BASE_URL).rstrip('/')
        self.timeout = timeout or settings.SCORING_TIMEOUT
        self.transport = transport

    def _endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    async def generate(self, contents: List[dict]) -> str:
        """Call generateContent and return the answer text"""
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["x-goog-api-key"] = self.api_key

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self._endpoint(),
                    json={"contents": contents},
                    headers=headers
                )
                response.raise_for_status()
                return extract_text(response.json())
        except httpx.HTTPStatusError as e:
            logger.error(f"❌ Gemini returned {e.response.status_code}: {e.response.text[:200]}")
            raise ScoringError(f"Gemini API call failed: HTTP {e.response.status_code}")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"❌ Gemini API call failed: {e}")
            raise ScoringError(f"Gemini API call failed: {e}")

    async def score(self, image_url: str, prompts: List[Dict[str, Any]]) -> List[Evaluation]:
        """Score every prompt against the image"""
        logger.info(f"🤖 Scoring {len(prompts)} prompts with {self.model}")
        text = await self.generate(build_contents(image_url, prompts))
        return parse_evaluations(text)
