"""Shared fixtures for core unit tests"""

import pytest

from mdblog.core.markdown import make_parser


SAMPLE_MD = """\
pubdate: 2023-04-01T12:00:00
tags: travel, photo

# A trip

A paragraph with **bold** text.

## Day one

- item one
- item two

```python
print("hello")
```

---

Footer paragraph.
"""


@pytest.fixture(name="parser")
def parser_fixture():
    return make_parser()


@pytest.fixture(name="sample_md")
def sample_md_fixture():
    return SAMPLE_MD


@pytest.fixture(name="sample_file")
def sample_file_fixture(tmp_path):
    """The sample post written as `a-trip.en.md`."""
    path = tmp_path / "a-trip.en.md"
    path.write_text(SAMPLE_MD, encoding="utf-8")
    return path
