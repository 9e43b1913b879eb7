import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from src.rules.models import LibraryRules

logger = logging.getLogger(__name__)


def _extract_yaml(content: str) -> str:
    """Body of the first ```yaml fence, or the whole text when there is none."""
    lines = content.splitlines()
    for start, line in enumerate(lines):
        if line.strip().startswith("```yaml"):
            body: list[str] = []
            for inner in lines[start + 1 :]:
                if inner.strip().startswith("```"):
                    break
                body.append(inner)
            return "\n".join(body)
    return content


def load_rules(path: Path) -> LibraryRules:
    """
    Load and validate the library rules file.

    Raises:
        FileNotFoundError: If the file is missing.
        ValueError: On YAML syntax errors or schema violations.
    """
    if not path.exists():
        raise FileNotFoundError(f"Rules file not found at: {path}")

    try:
        data = yaml.safe_load(_extract_yaml(path.read_text()))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in rules file: {e}") from e

    try:
        rules = LibraryRules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Rules validation failed:\n{e}") from e

    logger.debug("Loaded rules %s v%s", rules.project.slug, rules.project.rules_version)
    return rules
