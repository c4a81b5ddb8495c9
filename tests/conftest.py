"""
Shared fixtures for Slidewright tests.
"""
import pytest

from slidewright.services.slides.deck import parser

SAMPLE_MARKDOWN = """---
title: Quarterly Review
theme: seriph
---

# Quarterly Review

Results and plans for the next quarter.

---

# Highlights

- Revenue grew steadily
- Two new markets opened

<!-- notes -->
Mention the partner launch.

---
layout: center
class: text-center
---

# Thank You

Questions are welcome.
"""


@pytest.fixture
def sample_markdown() -> str:
    return SAMPLE_MARKDOWN


@pytest.fixture
def sample_deck(sample_markdown):
    return parser.parse(sample_markdown)
