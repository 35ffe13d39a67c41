"""Shared models for the trade-in wizard."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from pydantic import BaseModel, Field, computed_field

from tradein.core.types import JURISDICTIONS, WizardStep

FIELD_NAMES: tuple[str, ...] = (
    "year", "make", "model", "state", "miles", "name", "email", "phone",
)

# Placeholder labels prefixed to each option list. None of them can collide
# with a real catalog value.
YEARS_PLACEHOLDER = "Select Years"
MAKES_PLACEHOLDER = "Select Makes"
MODELS_PLACEHOLDER = "Select Models"

PLACEHOLDERS: dict[str, str] = {
    "year": YEARS_PLACEHOLDER,
    "make": MAKES_PLACEHOLDER,
    "model": MODELS_PLACEHOLDER,
}

ATTRIBUTION_KEYS: tuple[str, ...] = (
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "gclid",
    "fbclid",
)

# Top-level payload keys owned by the submission itself.
RESERVED_PAYLOAD_KEYS = frozenset({"marketValue", "form_data"})


class FormState(BaseModel):
    """User-entered values. ``state`` is the jurisdiction, ``miles`` the mileage."""

    year: str = ""
    make: str = ""
    model: str = ""
    state: str = JURISDICTIONS[0]
    miles: str = ""
    name: str = ""
    email: str = ""
    phone: str = ""


class OptionSet(BaseModel):
    """Dependent option lists, each led by its placeholder once loaded."""

    years: list[str] = Field(default_factory=list)
    makes: list[str] = Field(default_factory=list)
    models: list[str] = Field(default_factory=list)


class AttributionMetadata(BaseModel):
    """Campaign attribution supplied by the embedding page."""

    values: dict[str, str] = Field(
        default_factory=lambda: {key: "" for key in ATTRIBUTION_KEYS}
    )

    @classmethod
    def from_message(cls, message: Mapping[str, Any]) -> AttributionMetadata:
        """Build metadata from a host message bag.

        Named keys missing from the message default to ``""``. Extra keys are
        carried along; ``None`` values become ``""``.
        """
        values = {key: "" for key in ATTRIBUTION_KEYS}
        for key, value in message.items():
            values[str(key)] = "" if value is None else str(value)
        return cls(values=values)


class ValidationResult(BaseModel):
    """Result of checking the required fields of a step."""

    valid: bool
    missing: list[str] = Field(default_factory=list)

    @property
    def message(self) -> str:
        if self.valid:
            return ""
        return f"Please fill in all required fields: {', '.join(self.missing)}"


class RedirectTarget(BaseModel):
    """Where the caller should navigate after an acknowledged submission.

    Navigation happens at the top-level browsing context because the wizard
    may be embedded in a frame.
    """

    base_url: str
    params: dict[str, str] = Field(default_factory=dict)
    fragment: str = "done"
    top_level: bool = True

    @computed_field  # type: ignore[prop-decorator]
    @property
    def url(self) -> str:
        parts = urlsplit(self.base_url)
        query = parse_qsl(parts.query, keep_blank_values=True)
        query.extend(self.params.items())
        return urlunsplit(
            (parts.scheme, parts.netloc, parts.path, urlencode(query), self.fragment)
        )


class WizardSnapshot(BaseModel):
    """Serializable view of a wizard controller."""

    id: str = ""
    step: WizardStep
    form: FormState
    options: OptionSet
    loading: bool = False
    submitting: bool = False
    error: str = ""
    redirect: RedirectTarget | None = None
