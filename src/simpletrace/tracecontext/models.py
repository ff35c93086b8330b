"""Pydantic models for trace context engine configuration.

This module defines the schema of the ``simpletrace`` configuration block.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from simpletrace.tracecontext.vocabulary import OutputVocabulary


class EngineConfig(BaseModel):
    """Configuration of one trace context engine instance.

    Created once at provisioning time and immutable afterwards, so it can be
    shared by every request without synchronization.

    Attributes:
        vocabulary: Log field vocabulary (``format`` in configuration files).
            Accepts the aliases ``gcp`` and ``dd``.
        project_id: Google Cloud project ID used to qualify trace IDs in the
            Cloud Logging vocabulary. Ignored by other vocabularies.
        strict: Reject ``traceparent`` headers whose fields are not well-formed
            hex of the right width. Off by default: only the field count and
            version are checked.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    vocabulary: OutputVocabulary = Field(
        default=OutputVocabulary.OTEL, alias="format", description="Log field vocabulary"
    )
    project_id: str = Field(default="", description="Google Cloud project ID")
    strict: bool = Field(default=False, description="Strict traceparent validation")

    @field_validator("vocabulary", mode="before")
    @classmethod
    def resolve_format_token(cls, v: object) -> object:
        """Resolve aliases; an empty format selects the default vocabulary."""
        if v is None or v == "":
            return OutputVocabulary.OTEL
        if isinstance(v, str):
            try:
                return OutputVocabulary(v.strip())
            except ValueError:
                # Left for the enum validator to report
                return v
        return v

    @field_validator("project_id", mode="before")
    @classmethod
    def strip_project_id(cls, v: object) -> object:
        """Strip surrounding whitespace from the project ID."""
        if v is None:
            return ""
        if isinstance(v, str):
            return v.strip()
        return v
