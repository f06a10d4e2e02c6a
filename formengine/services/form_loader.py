"""Form definition loader with caching.

This module loads form definitions from YAML or JSON files, validates them
against the Pydantic schemas, and caches the results. Files are named after
the form slug: `contact.yaml`, `contact.yml` or `contact.json`.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from formengine.config import get_settings
from formengine.schemas.form import FormDefinition
from formengine.logging_config import get_logger

logger = get_logger(__name__)

DEFINITION_SUFFIXES = (".yaml", ".yml", ".json")


class FormNotFoundError(Exception):
    """Raised when a form does not exist or has been deleted."""
    pass


class FormDefinitionError(Exception):
    """Raised when a form definition cannot be parsed or fails validation."""
    pass


def parse_definition(raw_data, source: str) -> FormDefinition:
    """Validate raw definition data into a FormDefinition.

    Args:
        raw_data: Decoded YAML/JSON document
        source: Name used in error messages

    Returns:
        Validated FormDefinition

    Raises:
        FormDefinitionError: If the data is not a valid form definition
    """
    if not isinstance(raw_data, dict):
        raise FormDefinitionError(f"Form definition '{source}' must be a mapping")

    try:
        return FormDefinition.model_validate(raw_data)
    except ValidationError as e:
        logger.error(f"Validation error for form {source}: {e}")
        raise FormDefinitionError(f"Validation failed for form '{source}': {e}")


class FormLoader:
    """Service for loading and caching form definition files."""

    def __init__(self, forms_dir: Optional[str] = None):
        """Initialize form loader.

        Args:
            forms_dir: Path to the definitions directory (defaults to settings.forms_dir)
        """
        if forms_dir is None:
            forms_dir = get_settings().forms_dir

        self.forms_dir = Path(forms_dir)

        if not self.forms_dir.exists():
            logger.warning(f"Forms directory not found: {self.forms_dir}")

    def _find_file(self, slug: str) -> Optional[Path]:
        for suffix in DEFINITION_SUFFIXES:
            path = self.forms_dir / f"{slug}{suffix}"
            if path.exists():
                return path
        return None

    @lru_cache(maxsize=128)
    def load_form(self, slug: str) -> FormDefinition:
        """Load and validate a form definition file.

        A definition without a slug takes the file name.

        Args:
            slug: Form slug (file name without extension)

        Returns:
            Validated FormDefinition

        Raises:
            FormNotFoundError: If no definition file exists
            FormDefinitionError: If the file does not parse or validate

        Example:
            >>> loader = FormLoader("./forms")
            >>> loader.load_form("contact").name
            'Contact Us'
        """
        path = self._find_file(slug)
        if path is None:
            logger.error(f"Form file not found for '{slug}' in {self.forms_dir}")
            raise FormNotFoundError(f"Form '{slug}' not found in {self.forms_dir}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                if path.suffix == ".json":
                    raw_data = json.load(f)
                else:
                    raw_data = yaml.safe_load(f)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            logger.error(f"Parse error for form {slug}: {e}")
            raise FormDefinitionError(f"Invalid syntax in form '{slug}': {e}")
        except OSError as e:
            logger.error(f"Error reading form file {path}: {e}")
            raise FormDefinitionError(f"Error reading form '{slug}': {e}")

        if isinstance(raw_data, dict):
            raw_data.setdefault("slug", slug)

        form = parse_definition(raw_data, slug)
        logger.info(f"Loaded form definition: {slug} ({len(form.steps)} step(s))")
        return form

    def list_forms(self) -> list[str]:
        """List the slugs of all definition files.

        Returns:
            Sorted, de-duplicated slugs
        """
        if not self.forms_dir.exists():
            return []

        slugs = {
            path.stem
            for path in self.forms_dir.iterdir()
            if path.is_file() and path.suffix in DEFINITION_SUFFIXES
        }

        logger.debug(f"Found {len(slugs)} form definitions: {sorted(slugs)}")
        return sorted(slugs)

    def clear_cache(self):
        """Clear the definition cache."""
        self.load_form.cache_clear()
        logger.info("Form definition cache cleared")


# Global singleton instance
_loader_instance: Optional[FormLoader] = None


def get_form_loader() -> FormLoader:
    """Get global FormLoader instance.

    Returns:
        Global FormLoader instance
    """
    global _loader_instance
    if _loader_instance is None:
        _loader_instance = FormLoader()
    return _loader_instance
