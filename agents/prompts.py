"""Prompt builders for question generation and transcript evaluation."""
from __future__ import annotations

from typing import Sequence

from interview_session.models import ConversationExchange, Interview

RETRY_SUFFIX = "\nGenerate a different question."


def _experience(interview: Interview) -> str:
    return f"{interview.experience:g}"


def introduction_prompt(interview: Interview) -> str:
    return (
        f"You are a Professional AI Interviewer conducting an interview for: {interview.role}\n\n"
        f"Required Skills: {', '.join(interview.skills)}\n"
        f"Experience Level: {_experience(interview)} years\n\n"
        "Your task:\n"
        "Start the interview with a simple introduction question asking the candidate to introduce themselves.\n\n"
        "Return only the question text without any explanation."
    )


def conversation_context(history: Sequence[ConversationExchange]) -> str:
    return "\n\n".join(
        f"Q{idx}: {item.question}\nA{idx}: {item.answer}" for idx, item in enumerate(history, start=1)
    )


def next_question_prompt(
    interview: Interview,
    history: Sequence[ConversationExchange],
    last_answer: str,
    sentinel: str,
) -> str:
    """Ask for one new question, or the bare sentinel once the interview has enough signal."""

    return (
        f"You are an AI interviewer for: {interview.role} ({_experience(interview)} years experience)\n\n"
        "Rules:\n"
        "- Generate one unique question\n"
        "- No repetition\n"
        "- Adjust question difficulty based on last answer\n"
        "- Keep it short and clear\n\n"
        f"Conversation so far:\n{conversation_context(history)}\n\n"
        f"Candidate's last answer:\n{last_answer}\n\n"
        f"Generate the next question. If interview is complete return only: {sentinel}"
    )


def evaluation_prompt(interview: Interview, transcript: str) -> str:
    return (
        f"You are an interview evaluator. Evaluate the following interview for a {interview.role} "
        f"position requiring {_experience(interview)} years experience.\n\n"
        f"Required Skills: {', '.join(interview.skills)}\n\n"
        f"Interview Responses:\n{transcript}\n\n"
        "Return evaluation in valid JSON format with these fields:\n"
        "- overallScore (number 0-100)\n"
        "- answers (array of objects with: questionIndex, question, score, feedback)\n"
        "- strengths (array of strings)\n"
        "- weaknesses (array of strings)\n"
        "- summary (string)\n"
        "- recommendation (string: PASS/FAIL)"
    )


__all__ = [
    "RETRY_SUFFIX",
    "conversation_context",
    "evaluation_prompt",
    "introduction_prompt",
    "next_question_prompt",
]
