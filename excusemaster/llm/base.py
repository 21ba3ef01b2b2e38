"""
excusemaster/llm/base.py
Abstract base class for chat-completion backends.
To add a new provider: subclass LLMAdapter and implement
test_connection() and complete().
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from excusemaster.llm.prompt import build_generation_payload
from excusemaster.models.record import ExcuseRecord, GenerationRequest
from excusemaster.parsers.excuse_parser import parse_excuses


class LLMAdapter(ABC):
    """
    All backends implement this interface.
    Callers use generate() and get back parsed ExcuseRecords;
    they never know which provider is running.
    """

    @abstractmethod
    def test_connection(self) -> bool:
        """
        Send the cheapest possible request to confirm the key and
        network path are valid. Returns True or raises
        ExcuseGeneratorError.
        """
        ...

    @abstractmethod
    def complete(self, payload: Dict[str, Any]) -> str:
        """
        Send a chat-completion payload and return the first choice's
        message content. Raises ExcuseGeneratorError on any failure.
        """
        ...

    def generate(self, request: GenerationRequest) -> List[ExcuseRecord]:
        """
        Shared generation path: build payload, complete, parse.
        Parsing never fails; an unstructured reply comes back as
        one raw-text record.
        """
        content = self.complete(build_generation_payload(request))
        return parse_excuses(content)
