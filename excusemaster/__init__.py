"""
excusemaster — structured excuses from a chat-completion model.

The core is two pure functions: build_generation_payload() and
parse_excuses(). Transport, history and the HTTP/CLI surfaces sit around them.
"""

from excusemaster.llm.prompt import build_connectivity_payload, build_generation_payload
from excusemaster.models.record import ExcuseRecord, GenerationRequest
from excusemaster.parsers.excuse_parser import parse_excuses

__version__ = "1.0.0"

__all__ = [
    "ExcuseRecord",
    "GenerationRequest",
    "build_connectivity_payload",
    "build_generation_payload",
    "parse_excuses",
]
