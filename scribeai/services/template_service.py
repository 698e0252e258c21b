"""
Custom note templates stored in the property store
"""

from typing import Dict, List

from scribeai.core.logging import get_logger
from scribeai.services.property_store import PropertyStore, CUSTOM_TEMPLATES_KEY

logger = get_logger(__name__)


class TemplateService:
    """Save, list and delete user-defined templates (name -> instructions)."""

    def __init__(self, store: PropertyStore):
        self.store = store

    def list_templates(self) -> Dict[str, str]:
        return self.store.get_json(CUSTOM_TEMPLATES_KEY, {})

    def get_instructions(self, name: str) -> str:
        return self.list_templates().get(name, "")

    def save_template(self, name: str, instructions: str) -> List[str]:
        if not name or not instructions:
            raise ValueError("Template name and instructions are required.")

        templates = self.list_templates()
        templates[name] = instructions
        self.store.set_json(CUSTOM_TEMPLATES_KEY, templates)
        logger.info(f"Saved custom template '{name}' ({len(templates)} total)")
        return sorted(templates)

    def delete_template(self, name: str) -> List[str]:
        templates = self.list_templates()
        if name not in templates:
            raise KeyError(name)

        del templates[name]
        self.store.set_json(CUSTOM_TEMPLATES_KEY, templates)
        logger.info(f"Deleted custom template '{name}'")
        return sorted(templates)
