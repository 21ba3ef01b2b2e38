"""
tests/test_excuse_parser.py
Unit tests for the free-text reply parser.
Synthetic model replies only — no network.
"""

import pytest

from excusemaster.models.record import FALLBACK_RATIONALE
from excusemaster.parsers.excuse_parser import (
    extract_mechanics,
    is_excuse_boundary,
    parse_excuses,
)


# ── FIXTURES: Synthetic model replies ─────────────────────────

THREE_BLOCKS = """Excuse 1
"My car wouldn't start this morning."
Why it works: Common and hard to verify.
Mechanics used: 1, 3

Excuse 2
"Stuck in unexpected traffic."
Why it works: Relatable excuse.
Mechanics used: 1, 5

Excuse 3
"Family emergency came up."
Why it works: Evokes empathy.
Mechanics used: 4, 6
"""

BOLD_MARKDOWN = """Here are your excuses:

**Excuse 1**
• "I'm so sorry, my laptop died mid-update. I'll send it first thing tomorrow."
**Why it works:** Tech failures are universal.
**Strongest mechanics used:** 1, 3, 7

**Excuse 2**
• "Apologies, I got pulled into an urgent client call. Can we move it to Friday?"
**Why it works:** Urgent work is hard to question.
**Strongest mechanics used:** 1, 6

**Excuse 3**
• "I came down with a migraine, so sorry. Hope the meeting goes well!"
**Why it works:** Low-verification and sympathetic.
**Strongest mechanics used:** 4, 5
"""

NUMBERED_BLOCKS = """1.
Sorry, the plumber only had a slot this afternoon.
Reason: Home repairs are mundane and plausible.
Mechanic numbers: 1, 2

2)
Can't make it, my sister needs a hand moving a couch tonight.
Reason: Family obligations are relatable.
Mechanic numbers: 4, 6
"""


@pytest.fixture
def three():
    return parse_excuses(THREE_BLOCKS)


# ── THREE-BLOCK REPLY ─────────────────────────────────────────

class TestThreeBlockReply:

    def test_returns_three_records(self, three):
        assert len(three) == 3

    def test_texts_in_order_without_quotes(self, three):
        assert [e.text for e in three] == [
            "My car wouldn't start this morning.",
            "Stuck in unexpected traffic.",
            "Family emergency came up.",
        ]

    def test_rationales(self, three):
        assert [e.rationale for e in three] == [
            "Common and hard to verify.",
            "Relatable excuse.",
            "Evokes empathy.",
        ]

    def test_mechanics(self, three):
        assert [e.mechanics for e in three] == [[1, 3], [1, 5], [4, 6]]

    def test_records_get_distinct_ids(self, three):
        assert len({e.id for e in three}) == 3


class TestMarkdownVariants:

    def test_bold_headers_and_bullets(self):
        excuses = parse_excuses(BOLD_MARKDOWN)
        assert len(excuses) == 3
        assert excuses[0].text.startswith("I'm so sorry, my laptop died")
        assert excuses[0].rationale == "Tech failures are universal."
        assert excuses[0].mechanics == [1, 3, 7]
        assert excuses[2].mechanics == [4, 5]

    def test_preamble_block_is_not_an_excuse(self):
        excuses = parse_excuses(BOLD_MARKDOWN)
        assert all("Here are your excuses" not in e.text for e in excuses)

    def test_numbered_list_markers(self):
        excuses = parse_excuses(NUMBERED_BLOCKS)
        assert len(excuses) == 2
        assert excuses[0].text == "Sorry, the plumber only had a slot this afternoon."
        assert excuses[0].rationale == "Home repairs are mundane and plausible."
        assert excuses[1].mechanics == [4, 6]

    def test_crlf_line_endings(self):
        excuses = parse_excuses(THREE_BLOCKS.replace('\n', '\r\n'))
        assert len(excuses) == 3
        assert excuses[1].text == "Stuck in unexpected traffic."

    def test_curly_quotes_stripped(self):
        reply = 'Excuse 1\n“Running late, the train stalled.”\nWhy it works: Public transit.'
        excuses = parse_excuses(reply)
        assert excuses[0].text == "Running late, the train stalled."

    @pytest.mark.parametrize("line", [
        '•"Sorry, the train stalled."',
        '- "Sorry, the train stalled."',
        '*“Sorry, the train stalled.”',
    ])
    def test_bullet_glued_to_quote_stripped(self, line):
        excuses = parse_excuses(f'Excuse 1\n{line}\nWhy it works: transit.')
        assert excuses[0].text == "Sorry, the train stalled."

    def test_why_without_colon_keeps_whole_line(self):
        reply = 'Excuse 1\n"Dog ate it."\nWhy it works because everyone loves dogs'
        excuses = parse_excuses(reply)
        assert excuses[0].rationale == "Why it works because everyone loves dogs"

    def test_missing_rationale_and_mechanics_still_valid(self):
        excuses = parse_excuses('Excuse 1\n"Only text here."')
        assert len(excuses) == 1
        assert excuses[0].rationale == ''
        assert excuses[0].mechanics == []


# ── PRECEDENCE AND OVERWRITE ──────────────────────────────────

class TestFieldPrecedence:

    def test_labeled_text_overwrites_first_line_guess(self):
        reply = 'Excuse 1\nSomething vague up front\nExcuse text: "the real text"'
        excuses = parse_excuses(reply)
        assert excuses[0].text == "the real text"

    def test_rationale_wins_over_mechanic_keyword(self):
        reply = 'Excuse 1\n"Text."\nWhy it works: uses mechanic 4 well'
        excuses = parse_excuses(reply)
        assert excuses[0].rationale == "uses mechanic 4 well"
        assert excuses[0].mechanics == []

    def test_later_rationale_overwrites_earlier(self):
        reply = 'Excuse 1\n"Text."\nReason: first\nWhy: second'
        assert parse_excuses(reply)[0].rationale == "second"

    def test_digit_led_line_not_taken_as_text(self):
        reply = 'Excuse 1\n\n1) header only\nActual excuse line'
        excuses = parse_excuses(reply)
        assert excuses[-1].text == "Actual excuse line"

    def test_record_without_text_is_dropped(self):
        reply = THREE_BLOCKS + '\n\nExcuse 4\n4.\nMechanics used: 2'
        excuses = parse_excuses(reply)
        assert len(excuses) == 4   # "Excuse 4" header line becomes the text guess
        reply = THREE_BLOCKS + '\n\n4.\nMechanics used: 2'
        assert len(parse_excuses(reply)) == 3


# ── MECHANICS DIGIT FILTER ────────────────────────────────────

class TestMechanics:

    def test_ten_contributes_one_and_drops_zero(self):
        assert extract_mechanics("Mechanics: 1, 2, 10") == [1, 2]

    def test_out_of_range_digits_dropped(self):
        assert extract_mechanics("Mechanics used: 8, 9, 0, 3") == [3]

    def test_order_preserved(self):
        assert extract_mechanics("Mechanics: 7, 2, 5") == [7, 2, 5]

    def test_year_digits_read_individually(self):
        assert extract_mechanics("Mechanics (2024): 6") == [2, 4, 6]

    def test_no_digits(self):
        assert extract_mechanics("Mechanics: none") == []

    def test_parsed_mechanics_always_in_range(self):
        reply = 'Excuse 1\n"T."\nMechanics: 0 8 9 10 77 3'
        for e in parse_excuses(reply):
            assert all(1 <= m <= 7 for m in e.mechanics)


# ── BOUNDARY DETECTION ────────────────────────────────────────

class TestBoundaries:

    @pytest.mark.parametrize("block", [
        "Excuse 1",
        "Excuse2: something",
        "1. Sorry!",
        "intro\n  2) Sorry!",
        "3: text",
        "**Excuse One**",
        "**1**",
        "**3.** text",
    ])
    def test_detected(self, block):
        assert is_excuse_boundary(block)

    @pytest.mark.parametrize("block", [
        "Here you go",
        "Why it works: 1 reason",
        "**Note**",
        "excuse number one",
    ])
    def test_not_detected(self, block):
        assert not is_excuse_boundary(block)


# ── FALLBACK ──────────────────────────────────────────────────

class TestFallback:

    @pytest.mark.parametrize("content", [
        "",
        "   \n\n  ",
        "just a sentence with no structure",
        "Why it works: nothing else here",
    ])
    def test_never_empty(self, content):
        assert len(parse_excuses(content)) >= 1

    def test_unstructured_returns_raw_text(self):
        content = "I could not think of anything useful"
        excuses = parse_excuses(content)
        assert len(excuses) == 1
        assert excuses[0].text == content
        assert excuses[0].rationale == FALLBACK_RATIONALE
        assert excuses[0].mechanics == []

    def test_fallback_keeps_untrimmed_input(self):
        content = "  no structure here \n"
        assert parse_excuses(content)[0].text == content

    def test_fallback_logs_warning(self, caplog):
        with caplog.at_level("WARNING", logger="excusemaster.parsers.excuse_parser"):
            parse_excuses("nothing to see")
        assert any("raw response" in r.getMessage() for r in caplog.records)
