"""
answers.py — canned answers for follow-up questions when no model is reachable.

Independent of the analysis fallback tables. Rules are (predicate, answer)
pairs checked in order against the lowercased question.
"""
from __future__ import annotations

from typing import Callable


def _has(*words: str) -> Callable[[str], bool]:
    return lambda q: any(w in q for w in words)


ANSWER_RULES: list[tuple[Callable[[str], bool], str]] = [
    # Rest / recovery duration
    (
        lambda q: "how long" in q and ("rest" in q or "recover" in q),
        "For most minor injuries, rest for 24-48 hours is recommended. For moderate pain, "
        "consider 3-5 days of modified activity. Always listen to your body and consult a "
        "healthcare provider for severe or persistent symptoms.",
    ),
    # Exercise / stretching
    (
        _has("exercise", "stretch"),
        "Gentle stretching and range-of-motion exercises are generally helpful after the "
        "acute phase (24-48 hours). Start with light movements, avoid painful ranges, and "
        "gradually increase activity. Consider consulting a physical therapist for a "
        "personalized exercise plan.",
    ),
    # When to see a doctor
    (
        _has("doctor", "see a", "medical"),
        "Seek medical attention if you experience: severe pain, numbness or tingling, "
        "inability to move the area, swelling that doesn't improve after 48 hours, or "
        "symptoms that worsen despite treatment. When in doubt, it's always best to consult "
        "a healthcare professional.",
    ),
    # Returning to sport
    (
        _has("sport", "activity", "continue"),
        "Return to sports/activities gradually. Start with light activity and increase "
        "intensity only if you remain pain-free. Use the 10% rule: increase activity by no "
        "more than 10% per week. Stop if pain returns and consider consulting a sports "
        "medicine professional.",
    ),
    # Heat vs cold
    (
        _has("heat", "cold", "ice"),
        "Use cold therapy (ice) for the first 48-72 hours after injury to reduce swelling. "
        "After that, heat therapy can help relax muscles and improve blood flow. Never apply "
        "ice or heat directly to skin - always use a barrier. Sessions should be 15-20 minutes.",
    ),
]

GENERIC_ANSWER = (
    "I'm temporarily unable to provide a detailed answer. However, here are general "
    "recommendations:\n\n"
    "• Start therapy at lower intensity and increase gradually\n"
    "• Apply for 15-20 minutes, 2-3 times daily\n"
    "• Stop if pain increases\n"
    "• Rest between sessions\n"
    "• Consult a healthcare provider for specific guidance\n\n"
    "For immediate concerns, please consult a medical professional."
)

EMPTY_QUESTION_ANSWER = (
    "Please type a question about your therapy, for example how long to rest "
    "or whether to use heat or cold."
)


def fallback_answer(question: str) -> str:
    """Best canned answer for a question. Never raises."""
    q = (question or "").lower()
    for predicate, answer in ANSWER_RULES:
        if predicate(q):
            return answer
    return GENERIC_ANSWER
