"""Reply text loaded from responses.yml."""

from functools import cache
from pathlib import Path
from typing import Any

import yaml

_RESPONSES_PATH = Path(__file__).parent / "responses.yml"


@cache
def _load() -> dict[str, dict[str, str]]:
    with open(_RESPONSES_PATH, encoding="utf-8") as f:
        return yaml.safe_load(f)


def reply(section: str, key: str, **values: Any) -> str:
    """Look up a reply template and fill in its placeholders."""
    template = _load()[section][key]
    return template.format(**values) if values else template
