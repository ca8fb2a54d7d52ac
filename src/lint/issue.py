"""Lint findings."""

from typing import List, Optional

from pydantic import BaseModel, Field

from ..pipeline.models import Task


class Issue(BaseModel):
    """A non-fatal validation finding attached to a task or to the whole pipeline."""

    task: Optional[Task] = None
    description: str
    context: List[str] = Field(default_factory=list)
