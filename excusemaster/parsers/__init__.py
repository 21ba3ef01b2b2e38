"""excusemaster/parsers — free-text model reply parsing."""

from excusemaster.parsers.excuse_parser import parse_excuses

__all__ = ["parse_excuses"]
