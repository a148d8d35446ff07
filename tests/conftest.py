"""Shared test fixtures for rst2site tests."""

import threading
import time
from pathlib import Path

import pytest
import yaml

from rst2site.errors import ConversionError, ConverterUnavailableError
from rst2site.parser.rst import is_underline


class FakeConverter:
    """
    Stand-in for pandoc: turns underlined RST titles into ``#`` headings
    (levels by order of first appearance) and toctree directives into a
    ``<div class="toctree">`` block.
    """

    def __init__(self, available=True, fail_on=(), delay=0.0):
        self.available = available
        self.fail_on = set(fail_on)
        self.delay = delay
        self.calls: list[str] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def check_available(self):
        if not self.available:
            raise ConverterUnavailableError("pandoc not found: fake converter disabled")

    def convert(self, source, dest):
        with self._lock:
            self.calls.append(Path(source).name)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            if Path(source).name in self.fail_on:
                raise ConversionError(f"Error converting {source}: exit status 64", path=str(source))
            text = Path(source).read_text(encoding="utf-8")
            Path(dest).write_text(rst_to_markdown(text), encoding="utf-8")
        finally:
            with self._lock:
                self.active -= 1


def rst_to_markdown(text: str) -> str:
    lines = text.split("\n")
    levels: dict[str, int] = {}
    out: list[str] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        stripped = line.strip()
        if stripped == ".. toctree::":
            out.append('<div class="toctree">')
            i += 1
            while i < len(lines) and (not lines[i].strip() or lines[i].startswith(" ")):
                out.append(lines[i].strip())
                i += 1
            out.append("</div>")
            continue
        if stripped and i + 1 < len(lines) and is_underline(lines[i + 1].strip(), len(stripped)):
            char = lines[i + 1].strip()[0]
            level = levels.setdefault(char, len(levels) + 1)
            out.append("#" * level + " " + stripped)
            i += 2
            continue
        out.append(line)
        i += 1
    return "\n".join(out)


def _read_page(path: Path) -> tuple[dict, str]:
    """Split a written page into (front matter, body)."""
    text = Path(path).read_text(encoding="utf-8")
    assert text.startswith("---\n")
    front, body = text[4:].split("---\n", 1)
    return yaml.safe_load(front), body


@pytest.fixture
def read_page():
    return _read_page


@pytest.fixture
def fake_converter():
    return FakeConverter()


@pytest.fixture
def make_converter():
    """Return the fake converter class for tests that need custom behaviour."""
    return FakeConverter


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / "site"


@pytest.fixture
def sample_rst():
    """Return an RST page with a directive before its title."""
    return """.. _user-guide:

.. meta::
   :description: guide

User Guide
==========

Welcome to the user guide.

Installation
------------

Install the package.
"""


@pytest.fixture
def sample_index_rst():
    return """Welcome
=======

Introduction to the docs.

.. toctree::
   :maxdepth: 2
   :caption: Contents

   guide
   reference/api
   Project Home <https://example.com/project>
"""


@pytest.fixture
def sample_converted_markdown():
    """Return pandoc-style markdown with several heading levels."""
    return """Preamble text that belongs to no section.

# Getting Started

Welcome.

### Prerequisites

You need Python.

## Installation

Install with pip:

```bash
# not a heading
pip install thing
```

## Configuration

Set things up.
"""


@pytest.fixture
def source_tree(tmp_path):
    """Create the two-document source tree: an index and one page."""
    src = tmp_path / "docs"
    src.mkdir()
    (src / "index.rst").write_text(
        "Welcome\n=======\n\nIntro.\n\n.. toctree::\n   :maxdepth: 2\n\n   page\n",
        encoding="utf-8",
    )
    (src / "page.rst").write_text(
        "Page Title\n==========\n\nIntro text.\n\nDetails\n-------\n\nMore text.\n",
        encoding="utf-8",
    )
    return src


@pytest.fixture
def full_source_tree(source_tree):
    """Source tree with a nested page, an external link and an assets directory."""
    (source_tree / "index.rst").write_text(
        "Welcome\n=======\n\n.. toctree::\n\n   page\n   reference/api\n   Project Home <https://example.com/project>\n",
        encoding="utf-8",
    )
    ref = source_tree / "reference"
    ref.mkdir()
    (ref / "api.rst").write_text(
        "**API**\n=======\n\nCalls.\n\nClient\n------\n\nUse it.\n\nServer\n------\n\nRun it.\n",
        encoding="utf-8",
    )
    images = source_tree / "images"
    images.mkdir()
    (images / "logo.png").write_bytes(b"\x89PNG fake")
    (images / "notes.rst").write_text("Not A Page\n==========\n", encoding="utf-8")
    return source_tree
