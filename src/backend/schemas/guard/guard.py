"""Access guard schema."""

from typing import Optional

from core.schema_base import HTTPSchemaModel
from models.model_enum import GuardAction


class GuardDecision(HTTPSchemaModel):
    """What the presentation layer should do for a protected view."""

    action: GuardAction
    target: Optional[str] = None
    from_path: Optional[str] = None

    @property
    def should_render(self) -> bool:
        return self.action == GuardAction.RENDER
