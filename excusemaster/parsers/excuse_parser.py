"""
excusemaster/parsers/excuse_parser.py
Turns a model's free-text reply into ExcuseRecords.

The model is asked for 3 numbered excuses, each with a "Why it works"
line and a mechanics line, but nothing enforces the format. Parsing is
a two-level heuristic scan:
  1. split the reply into blank-line separated blocks
  2. a block that looks like "Excuse N" / "N." / "**1" starts a new excuse
  3. every line of the block is matched against field labels, first hit wins

Never raises. If nothing can be recovered the raw reply comes back as a
single record with FALLBACK_RATIONALE and no mechanics.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List

from excusemaster.models.record import (
    FALLBACK_RATIONALE,
    MECHANIC_MAX,
    MECHANIC_MIN,
    ExcuseRecord,
)

logger = logging.getLogger(__name__)

BLOCK_SPLIT_RE   = re.compile(r'\n[ \t]*\n')
BOUNDARY_RE      = re.compile(r'Excuse\s*\d|^\s*\d\s*[.):]', re.MULTILINE)
BOLD_PREFIXES    = ('**Excuse', '**1', '**2', '**3')
TEXT_LABEL_RE    = re.compile(r'^excuse text\s*:?', re.IGNORECASE)
QUOTE_CHARS      = '"“”'
BULLET_RE        = re.compile(r'^[•\-*](?:\s+|(?=[' + QUOTE_CHARS + ']))')
BULLET_QUOTE_RE  = re.compile(r'^[•\-*]\s*[' + QUOTE_CHARS + ']')


@dataclass
class _Accumulator:
    text:      str       = ''
    rationale: str       = ''
    mechanics: List[int] = field(default_factory=list)
    in_excuse: bool      = False

    def reset(self) -> None:
        self.text      = ''
        self.rationale = ''
        self.mechanics = []
        self.in_excuse = True

    def finalize(self) -> ExcuseRecord:
        return ExcuseRecord(
            text      = self.text,
            rationale = self.rationale,
            mechanics = list(self.mechanics),
        )

    @property
    def ready(self) -> bool:
        return self.in_excuse and bool(self.text)


def is_excuse_boundary(block: str) -> bool:
    """True if a (stripped) block looks like the start of a new excuse."""
    return bool(BOUNDARY_RE.search(block)) or block.startswith(BOLD_PREFIXES)


def extract_mechanics(line: str) -> List[int]:
    """
    Every digit character in [1,7], left to right, each kept once.
    Digits are read one at a time, so "10" yields 1 and drops 0.
    """
    found: List[int] = []
    for ch in line:
        if ch not in '0123456789':
            continue
        n = int(ch)
        if MECHANIC_MIN <= n <= MECHANIC_MAX and n not in found:
            found.append(n)
    return found


def _strip_decoration(line: str) -> str:
    cleaned = TEXT_LABEL_RE.sub('', line, count=1)
    cleaned = BULLET_RE.sub('', cleaned.strip(), count=1)
    return cleaned.strip().strip(QUOTE_CHARS + ' \t').strip()


def _after_colon(line: str) -> str:
    _, sep, tail = line.partition(':')
    return tail.strip() if sep else line


def _is_text_label(lower: str) -> bool:
    return (
        lower.startswith('excuse text')
        or bool(BULLET_QUOTE_RE.match(lower))
        or lower[:1] in QUOTE_CHARS
    )


def _apply_line(acc: _Accumulator, line: str) -> None:
    lower = line.lower()

    if 'why it works' in lower or lower.startswith(('why:', 'reason:')):
        acc.rationale = _after_colon(line)

    elif 'mechanic' in lower or (lower.startswith('strongest') and 'used' in lower):
        acc.mechanics = extract_mechanics(line)

    elif _is_text_label(lower):
        cleaned = _strip_decoration(line)
        if cleaned:
            acc.text = cleaned

    elif not acc.text and not line[0].isdigit():
        cleaned = _strip_decoration(line)
        if cleaned:
            acc.text = cleaned


def parse_excuses(content: str) -> List[ExcuseRecord]:
    """
    Parse a raw model reply into an ordered, never-empty list of excuses.
    """
    excuses: List[ExcuseRecord] = []
    acc    = _Accumulator()
    blocks = BLOCK_SPLIT_RE.split(content.replace('\r\n', '\n'))

    for block in blocks:
        trimmed = block.strip()
        if not trimmed:
            continue

        if is_excuse_boundary(trimmed):
            if acc.ready:
                excuses.append(acc.finalize())
            acc.reset()

        for raw_line in trimmed.split('\n'):
            line = raw_line.strip().replace('**', '').strip()
            if line:
                _apply_line(acc, line)

    if acc.ready:
        excuses.append(acc.finalize())

    logger.debug(f"Parsed {len(excuses)} excuses from {len(blocks)} blocks")

    if not excuses:
        logger.warning("Structured parsing failed — returning raw response as one excuse")
        return [ExcuseRecord(text=content, rationale=FALLBACK_RATIONALE, mechanics=[])]

    return excuses
