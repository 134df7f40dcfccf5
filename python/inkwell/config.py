import os
from typing import Dict

from pydantic import BaseModel, Field

from inkwell.models import Category

DEFAULT_STYLE_CLASSES: Dict[Category, str] = {
    Category.CORRECTNESS: "inkwell-correctness-underline",
    Category.CLARITY: "inkwell-clarity-underline",
    Category.ENGAGEMENT: "inkwell-engagement-underline",
    Category.DELIVERY: "inkwell-delivery-underline",
}

HIGHLIGHT_CLASS = "inkwell-highlighted"


class EngineSettings(BaseModel):
    """Tunables shared by the session, the CLI and the MCP server."""

    max_external_per_category: int = Field(3, ge=0)
    max_spelling_candidates: int = Field(3, ge=0)
    max_edit_distance: int = Field(2, ge=0, le=3)
    style_classes: Dict[Category, str] = Field(default_factory=lambda: dict(DEFAULT_STYLE_CLASSES))
    highlight_class: str = HIGHLIGHT_CLASS

    @classmethod
    def from_env(cls, **overrides) -> "EngineSettings":
        """
        Reads INKWELL_MAX_EXTERNAL, INKWELL_MAX_CANDIDATES and INKWELL_MAX_EDIT_DISTANCE.
        Explicit keyword overrides win over the environment.
        """
        env_keys = {
            "max_external_per_category": "INKWELL_MAX_EXTERNAL",
            "max_spelling_candidates": "INKWELL_MAX_CANDIDATES",
            "max_edit_distance": "INKWELL_MAX_EDIT_DISTANCE",
        }
        values = {}
        for field_name, env_name in env_keys.items():
            raw = os.environ.get(env_name)
            if raw is not None and raw.strip():
                values[field_name] = raw.strip()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(values)
