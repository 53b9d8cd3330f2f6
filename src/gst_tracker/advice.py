"""Study advice from an LLM, fed a JSON summary of the exam log."""
import json
import logging
import time
from datetime import date

from gst_tracker.config import DEFAULT_MODEL
from gst_tracker.models import ExamRecord

logger = logging.getLogger(__name__)

ADVICE_KINDS = ("tips", "plan")


class AdviceError(Exception):
    """The advice service could not produce text."""


def build_advice_payload(exams: list[ExamRecord], today: date | None = None) -> list[dict]:
    """JSON-serializable summary of each exam, soonest first."""
    today = today or date.today()
    payload = []
    for exam in sorted(exams, key=lambda e: e.date):
        payload.append({
            "subject": exam.subject,
            "type": exam.exam_type.value,
            "status": exam.status.value,
            "date": exam.date.date().isoformat(),
            "days_away": (exam.date.date() - today).days,
            "topics": list(exam.topics),
            "accuracy": round(exam.accuracy * 100, 1) if exam.accuracy is not None else None,
            "grade": exam.grade,
        })
    return payload


def build_prompt(payload: list[dict], kind: str = "tips") -> str:
    if kind not in ADVICE_KINDS:
        raise ValueError(f"Unknown advice kind: {kind}")
    data = json.dumps(payload)
    if kind == "tips":
        return (
            f"Based on these exams: {data}, give me 5 highly specific, actionable study tips "
            "to maximize my efficiency. Focus on the exams that are closest or have the "
            "weakest scores."
        )
    return (
        f"Create a detailed weekly study plan for these exams: {data}. Break it down by day "
        "and suggest which chapters to focus on based on their proximity and current scores."
    )


class GeminiAdvisor:
    """Wrapper for the Gemini API."""

    def __init__(self, api_key: str | None, model: str = DEFAULT_MODEL, temperature: float = 0.7):
        if not api_key:
            raise AdviceError("GEMINI_API_KEY not set.")
        from google import genai

        self.client = genai.Client(api_key=api_key)
        self.model_name = model
        self.temperature = temperature

    def generate(self, prompt: str, max_retries: int = 3) -> str:
        from google.genai import types as genai_types

        for attempt in range(max_retries):
            try:
                response = self.client.models.generate_content(
                    model=self.model_name,
                    contents=prompt,
                    config=genai_types.GenerateContentConfig(temperature=self.temperature),
                )
                if not response.text:
                    raise AdviceError("Empty response from API")
                return response.text
            except Exception as e:
                logger.warning("API call failed (attempt %d/%d): %s", attempt + 1, max_retries, e)
                if attempt < max_retries - 1:
                    time.sleep(2 ** attempt)
                else:
                    raise AdviceError(str(e)) from e


def generate_advice(advisor, exams: list[ExamRecord], kind: str = "tips", today: date | None = None) -> str:
    if not exams:
        raise AdviceError("Log at least one exam before asking for advice.")
    prompt = build_prompt(build_advice_payload(exams, today), kind)
    return advisor.generate(prompt)
