"""
excusemaster/llm/prompt.py
Chat-completion payload builders. Pure string and dict construction:
no validation, no I/O. Inputs are interpolated verbatim.
"""

from typing import Any, Dict

from excusemaster.models.record import MECHANICS, GenerationRequest

USER_INSTRUCTION         = 'Generate the 3 excuses now.'
CONNECTIVITY_PROMPT      = 'Say OK'
CONNECTIVITY_MAX_TOKENS  = 5


def _mechanics_rubric() -> str:
    return '\n'.join(
        f"{number}. {name} — {description}"
        for number, (name, description) in MECHANICS.items()
    )


def build_system_prompt(request: GenerationRequest) -> str:
    """Excuse-architect instruction with the rubric and the caller's inputs."""
    return (
        "You are an expert excuse architect. "
        "Build excuses using these mechanics:\n\n"
        f"{_mechanics_rubric()}\n\n"
        f"Situation: {request.situation}\n"
        f"Category: {request.category_label}\n"
        f"Tone requested: {request.tone_label}\n"
        f"Extra user details: {request.details}\n\n"
        "Generate exactly 3 excuses.\n\n"
        "For each return:\n"
        "• the excuse text (ready to copy-paste)\n"
        '• very short "Why it works" (1–2 sentences)\n'
        "• strongest mechanics used (just list the numbers)\n\n"
        "Stay concise overall."
    )


def build_generation_payload(request: GenerationRequest) -> Dict[str, Any]:
    return {
        'model':       request.model,
        'temperature': request.temperature,
        'messages': [
            {'role': 'system', 'content': build_system_prompt(request)},
            {'role': 'user',   'content': USER_INSTRUCTION},
        ],
    }


def build_connectivity_payload(model: str) -> Dict[str, Any]:
    """
    Minimal request used only to confirm credentials and reachability.
    No temperature; output capped at CONNECTIVITY_MAX_TOKENS.
    """
    return {
        'model':      model,
        'messages':   [{'role': 'user', 'content': CONNECTIVITY_PROMPT}],
        'max_tokens': CONNECTIVITY_MAX_TOKENS,
    }
