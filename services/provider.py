# services/provider.py
"""
Generative text provider.

GeminiProvider talks to the Gemini generateContent REST endpoint. It makes exactly
one attempt per call with a bounded timeout and hands back raw text; parsing and
validation of that text happen in services/validator.py.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional, Protocol

import httpx

from schemas.problems import Difficulty, Topic
from services.answers import num_to_clean_str
from services.errors import ProviderTimeout, ProviderUnavailable

logger = logging.getLogger("wordmath.provider")

GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
GEMINI_BASE_URL = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta")
PROVIDER_TIMEOUT_S = float(os.getenv("PROVIDER_TIMEOUT_S", "10"))


class ProblemProvider(Protocol):
    def generate_problem(self, difficulty: Difficulty, topic: Topic) -> str: ...

    def generate_feedback(
        self, problem_text: str, correct_answer: float, user_answer: float, is_correct: bool
    ) -> str: ...


# ─── Prompts ──────────────────────────────────────────────────────────────────

DIFFICULTY_GUIDE: Dict[Difficulty, str] = {
    Difficulty.easy: "Use small numbers (1-50) and simple single-step operations.",
    Difficulty.medium: "Use moderate numbers (1-100) and at most two steps.",
    Difficulty.hard: "Use larger numbers (1-500) and several steps mixing different operations.",
}

TOPIC_GUIDE: Dict[Topic, str] = {
    Topic.addition: "Only addition (adding two or more numbers).",
    Topic.subtraction: "Only subtraction.",
    Topic.multiplication: "Only multiplication.",
    Topic.division: "Only division, and the answer must be a whole number.",
    Topic.mixed: "Any combination of addition, subtraction, multiplication and division.",
}

PROBLEM_PROMPT = """Write one maths word problem for Primary 5 students (ages 10-11).

DIFFICULTY: {difficulty}
{difficulty_guide}

PROBLEM TYPE: {topic}
{topic_guide}

Set it in an everyday situation a child would recognise.

Respond with ONLY a JSON object, no markdown:
{{
  "problem_text": "<the word problem>",
  "final_answer": <number>,
  "hint": "<a hint that does not give the answer away>",
  "solution_steps": "Step 1: ...\\nStep 2: ...\\nFinal answer: ..."
}}

final_answer must be a JSON number (integer or decimal), not a string.
"""

FEEDBACK_PROMPT = """You are a supportive maths tutor for Primary 5 students (ages 10-11).

Problem: {problem_text}
Correct answer: {correct_answer}
Student's answer: {user_answer}
Result: {result}

If the answer is correct, congratulate the student and say briefly why it is right.
If it is incorrect, be gentle: point out where they may have gone wrong, show the
correct answer and explain how to reach it.

Keep it friendly, age-appropriate and under 4 sentences.
Respond with ONLY a JSON object, no markdown: {{"feedback": "<your feedback>"}}
"""


def build_problem_prompt(difficulty: Difficulty, topic: Topic) -> str:
    return PROBLEM_PROMPT.format(
        difficulty=difficulty.value.upper(),
        difficulty_guide=DIFFICULTY_GUIDE[difficulty],
        topic=topic.value.upper(),
        topic_guide=TOPIC_GUIDE[topic],
    )


def build_feedback_prompt(
    problem_text: str, correct_answer: float, user_answer: float, is_correct: bool
) -> str:
    return FEEDBACK_PROMPT.format(
        problem_text=problem_text,
        correct_answer=num_to_clean_str(correct_answer),
        user_answer=num_to_clean_str(user_answer),
        result="CORRECT" if is_correct else "INCORRECT",
    )


# ─── Gemini client ────────────────────────────────────────────────────────────


class GeminiProvider:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = GEMINI_MODEL,
        base_url: str = GEMINI_BASE_URL,
        timeout_s: float = PROVIDER_TIMEOUT_S,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.api_key = api_key or os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._client = client or httpx.Client(timeout=timeout_s)

    def generate_problem(self, difficulty: Difficulty, topic: Topic) -> str:
        prompt = build_problem_prompt(Difficulty(difficulty), Topic(topic))
        return self._generate(prompt, temperature=0.9, max_output_tokens=1024)

    def generate_feedback(
        self, problem_text: str, correct_answer: float, user_answer: float, is_correct: bool
    ) -> str:
        prompt = build_feedback_prompt(problem_text, correct_answer, user_answer, is_correct)
        return self._generate(prompt, temperature=0.4, max_output_tokens=512)

    def _generate(self, prompt: str, *, temperature: float, max_output_tokens: int) -> str:
        if not self.api_key:
            raise ProviderUnavailable("GEMINI_API_KEY not configured on server.")

        url = f"{self.base_url}/models/{self.model}:generateContent"
        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_output_tokens,
                "responseMimeType": "application/json",
            },
        }
        try:
            resp = self._client.post(
                url,
                json=payload,
                headers={"x-goog-api-key": self.api_key},
                timeout=self.timeout_s,
            )
        except httpx.TimeoutException as e:
            logger.warning("provider timed out after %.1fs", self.timeout_s)
            raise ProviderTimeout(f"provider did not answer within {self.timeout_s:g}s") from e
        except httpx.HTTPError as e:
            logger.warning("provider request failed: %s", type(e).__name__)
            raise ProviderUnavailable(f"provider request failed: {type(e).__name__}") from e

        if resp.status_code != 200:
            logger.warning("provider returned HTTP %s", resp.status_code)
            raise ProviderUnavailable(f"provider returned HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise ProviderUnavailable("provider response is not JSON") from e

        candidates = data.get("candidates") if isinstance(data, dict) else None
        if not (isinstance(candidates, list) and candidates and isinstance(candidates[0], dict)):
            raise ProviderUnavailable("provider returned no candidates")

        # Anything odd below this point is left for the validator to reject.
        content = candidates[0].get("content")
        parts = (content.get("parts") if isinstance(content, dict) else None) or []
        texts = [
            p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)
        ]
        return "\n".join(texts).strip()
