"""Feature input contracts.

A FeatureInput is what the user submits: a title, a free-text description and
the feature-level context that is merged over the project defaults.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InputContext(BaseModel):
    """Feature-level context supplied alongside the description."""

    model_config = ConfigDict(frozen=True)

    product_area: Optional[str] = None
    stakeholders: List[str] = Field(default_factory=list, description="Stakeholder names")
    constraints: List[str] = Field(default_factory=list)
    non_functional: List[str] = Field(default_factory=list)
    links: List[str] = Field(default_factory=list, description="Reference URLs")
    inherit_from_project: bool = Field(
        default=True,
        description="Merge with the project's active context instead of replacing it",
    )
    overrides: Dict[str, Any] = Field(
        default_factory=dict,
        description="Deep-merged over the resolved context last; wins on conflicts",
    )

    @field_validator("links")
    @classmethod
    def links_must_be_urls(cls, v: List[str]) -> List[str]:
        for link in v:
            parsed = urlparse(link)
            if not parsed.scheme or not parsed.netloc:
                raise ValueError(f"Invalid URL: {link}")
        return v


class FeatureInput(BaseModel):
    """A feature description submitted for specification."""

    model_config = ConfigDict(frozen=True)

    project_id: str
    title: str
    description: str
    context: InputContext = Field(default_factory=InputContext)
