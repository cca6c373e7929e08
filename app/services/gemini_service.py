"""
Gemini AI service for question generation and free-text grading
"""
import google.generativeai as genai
from app.config import settings
from app.exceptions import ExternalServiceError
import json
import logging
from typing import List, Dict, Any

logger = logging.getLogger(__name__)

# Configure Gemini API
genai.configure(api_key=settings.GEMINI_API_KEY)


def _strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code block if the model added one"""
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


class GeminiService:
    """Service for all Gemini AI operations"""

    def __init__(self):
        self.generation_model = genai.GenerativeModel(
            settings.GEMINI_GENERATION_MODEL,
            system_instruction="You are an AI assistant that generates quiz questions in JSON format.",
            generation_config={"response_mime_type": "application/json", "temperature": 0.7},
        )
        self.grading_model = genai.GenerativeModel(
            settings.GEMINI_GRADING_MODEL,
            system_instruction="You are an AI assistant that provides quiz grading in JSON format.",
            generation_config={"response_mime_type": "application/json", "temperature": 0.2},
        )

    async def generate_questions(self, topic_name: str, number_of_questions: int) -> List[Dict[str, Any]]:
        """
        Generate a batch of quiz questions for a topic

        Args:
            topic_name: Topic name used as prompt context
            number_of_questions: Number of questions to request

        Returns:
            List of raw question dictionaries (unvalidated). Empty if the
            reply could not be parsed.

        Raises:
            ExternalServiceError: if the Gemini call itself fails
        """
        prompt = self._create_generation_prompt(topic_name, number_of_questions)

        try:
            response = await self.generation_model.generate_content_async(prompt)
            response_text = response.text
        except Exception as e:
            logger.error(f"Gemini question generation call failed: {str(e)}")
            raise ExternalServiceError("Question generation service is unavailable") from e

        return self._parse_generation_response(response_text, number_of_questions)

    def _create_generation_prompt(self, topic_name: str, number_of_questions: int) -> str:
        """Create structured prompt for question generation"""

        return f"""
You are an expert content creator for technical recruiter training quizzes.
Generate {number_of_questions} quiz questions about the topic: "{topic_name}".

For each question provide:
1. "question_text": (string) the full text of the question.
2. "question_type": (string) either "free-text" or "multiple-choice". Aim for a mix.
3. "answer_key": (string) for "free-text" a concise model answer; for "multiple-choice" the letter of the correct option (e.g. "A").
4. "options": (object) for "multiple-choice" an object with keys "A", "B", "C", "D"; for "free-text" null.
5. "difficulty": (string) "Easy", "Medium" or "Hard".

Return ONLY a JSON object of the form {{"questions": [ ... ]}} containing exactly {number_of_questions} question objects.

Example multiple-choice question:
{{
  "question_text": "What is the main purpose of a Dockerfile?",
  "question_type": "multiple-choice",
  "answer_key": "B",
  "options": {{
    "A": "To manage container networking",
    "B": "To define the steps to create a Docker image",
    "C": "To run containerized applications in production",
    "D": "To store Docker images"
  }},
  "difficulty": "Medium"
}}

Example free-text question:
{{
  "question_text": "Explain the concept of CI/CD.",
  "question_type": "free-text",
  "answer_key": "CI is frequently merging changes with automated builds and tests; CD automates releases to each environment.",
  "options": null,
  "difficulty": "Medium"
}}
"""

    def _parse_generation_response(self, response_text: str, number_of_questions: int) -> List[Dict[str, Any]]:
        """Accept a bare array, a {"questions": [...]} wrapper, or a single object for n == 1"""
        try:
            parsed = json.loads(_strip_code_fence(response_text))
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse generated questions JSON: {str(e)}")
            logger.error(f"Response text: {response_text[:500]}")
            return []

        if isinstance(parsed, dict):
            if isinstance(parsed.get("questions"), list):
                parsed = parsed["questions"]
            elif number_of_questions == 1 and "question_text" in parsed:
                parsed = [parsed]

        if not isinstance(parsed, list):
            logger.error(f"Generated questions reply is not a list: {str(parsed)[:500]}")
            return []

        if len(parsed) != number_of_questions:
            logger.warning(f"Expected {number_of_questions} questions, got {len(parsed)}")

        return [item for item in parsed if isinstance(item, dict)]

    async def grade_free_text(self, question_text: str, user_answer: str) -> Any:
        """
        Grade a free-text answer

        Args:
            question_text: The question text
            user_answer: The user's answer

        Returns:
            Parsed JSON reply, unvalidated

        Raises:
            ExternalServiceError: if the call fails or the reply is not JSON
        """
        prompt = f"""
You are an expert evaluator for technical recruiter training quizzes.
Given the following question and user's answer, provide a grade and feedback.

Question: "{question_text}"
User's Answer: "{user_answer}"

1. Give a numerical score from 0 to 5 (inclusive), where 0 is completely incorrect and 5 is perfectly correct and comprehensive.
2. Give brief, constructive feedback explaining the score.
3. Give a concise example of an ideal answer to the question.

Return ONLY valid JSON with exactly these keys:
{{
  "score": 4,
  "feedback": "Your answer covers most key aspects, but could be more specific about X.",
  "suggestedAnswer": "An ideal answer would include X, Y and Z."
}}
"""

        try:
            response = await self.grading_model.generate_content_async(prompt)
            return json.loads(_strip_code_fence(response.text))
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse grading JSON: {str(e)}")
            raise ExternalServiceError("Grading service returned malformed output") from e
        except Exception as e:
            logger.error(f"Gemini grading call failed: {str(e)}")
            raise ExternalServiceError("Grading service is unavailable") from e


# Global instance
gemini_service = GeminiService()
