"""
excusemaster/models/record.py
Shared dataclass schema. The builder, parser, history store and API
all use these types. Keep logic to lookups and (de)serialization.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Tuple, Union


FALLBACK_RATIONALE = (
    "Raw API response: structured parsing could not split it "
    "into individual excuses."
)

# Persuasion mechanics the prompt rubric asks the model to use and self-report.
MECHANICS: Dict[int, Tuple[str, str]] = {
    1: ('Plausibility Anchor',    'common, hard-to-disprove situations'),
    2: ('Specificity Balance',    '1–2 vivid but flexible details only'),
    3: ('Future-Oriented Close',  'finish with a meaningful and plausible future commitment'),
    4: ('Emotional Layer',        'show genuine empathy, sincere regret, apology, and wish the other person well'),
    5: ('Risk Mitigation',        'avoid high-verification or dramatic lies (hospital, death, accidents, police, etc.)'),
    6: ('Relationship Tuning',    'match tone to the relationship (professional for work/boss, warm & casual for friends/partner/family)'),
    7: ('Brevity & Natural Flow', 'keep it very short, natural, conversational, text-friendly'),
}

MECHANIC_MIN = min(MECHANICS)
MECHANIC_MAX = max(MECHANICS)


class _LabelEnum(str, Enum):
    """String enum whose value is the display label."""

    @classmethod
    def parse(cls, value: Union[str, '_LabelEnum']):
        """
        Resolve a member from its label, its member name, or a
        case-insensitive label prefix ("professional" -> Believable/Professional).
        Raises ValueError when nothing matches.
        """
        if isinstance(value, cls):
            return value
        wanted = str(value).strip().lower()
        for member in cls:
            if wanted in (member.value.lower(), member.name.lower()):
                return member
        for member in cls:
            parts = [p.strip().lower() for p in member.value.split('/')]
            if any(p.startswith(wanted) for p in parts if wanted):
                return member
        raise ValueError(f"Unknown {cls.__name__}: {value!r}")

    def __str__(self) -> str:
        return self.value


class Category(_LabelEnum):
    WORK   = 'Work'
    SOCIAL = 'Social'
    FAMILY = 'Family'
    HEALTH = 'Health'
    CHORES = 'Chores'
    OTHER  = 'Other'


class Tone(_LabelEnum):
    FUNNY           = 'Funny'
    PROFESSIONAL    = 'Believable/Professional'
    DRAMATIC        = 'Dramatic'
    SHORT_AND_SWEET = 'Short & Sweet'


class AIModel(_LabelEnum):
    GROK_3_MINI = 'grok-3-mini'
    GROK_4_FAST = 'grok-4-1-fast-reasoning'

    @property
    def display_name(self) -> str:
        return {
            AIModel.GROK_3_MINI: 'Grok 3 Mini',
            AIModel.GROK_4_FAST: 'Grok 4.1 Fast Reasoning',
        }[self]


DEFAULT_MODEL       = AIModel.GROK_3_MINI.value
DEFAULT_TEMPERATURE = 0.8


def _label(value: Union[str, Enum]) -> str:
    return value.value if isinstance(value, Enum) else str(value)


@dataclass
class GenerationRequest:
    """Caller inputs for one excuse generation."""
    situation:   str
    category:    Union[Category, str]
    tone:        Union[Tone, str]
    details:     str   = ''
    model:       str   = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE

    @property
    def category_label(self) -> str:
        return _label(self.category)

    @property
    def tone_label(self) -> str:
        return _label(self.tone)


@dataclass
class ExcuseRecord:
    """One structured excuse recovered from a model reply."""
    text:       str
    rationale:  str       = ''
    mechanics:  List[int] = field(default_factory=list)
    created_at: datetime  = field(default_factory=lambda: datetime.now(timezone.utc))
    id:         str       = field(default_factory=lambda: uuid.uuid4().hex)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id':         self.id,
            'text':       self.text,
            'rationale':  self.rationale,
            'mechanics':  list(self.mechanics),
            'created_at': self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExcuseRecord':
        created = data.get('created_at')
        kwargs: Dict[str, Any] = {
            'text':      str(data.get('text', '')),
            'rationale': str(data.get('rationale', '') or ''),
            'mechanics': [
                int(m) for m in data.get('mechanics', []) or []
                if MECHANIC_MIN <= int(m) <= MECHANIC_MAX
            ],
        }
        if created:
            kwargs['created_at'] = datetime.fromisoformat(created)
        if data.get('id'):
            kwargs['id'] = str(data['id'])
        return cls(**kwargs)

    @property
    def mechanic_names(self) -> List[str]:
        return [MECHANICS[m][0] for m in self.mechanics if m in MECHANICS]
