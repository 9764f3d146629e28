from __future__ import annotations

from typing import Annotated, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator


# The tool writes null for unset fields; read them as the zero value.
def _empty_text(value: object) -> object:
    return "" if value is None else value


def _zero(value: object) -> object:
    return 0 if value is None else value


ToolText = Annotated[str, BeforeValidator(_empty_text)]
ToolInt = Annotated[int, BeforeValidator(_zero)]


class IssuePosition(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    filename: ToolText = Field(default="", alias="Filename")
    line: ToolInt = Field(default=0, alias="Line")
    column: ToolInt = Field(default=0, alias="Column")


class Issue(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    pos: IssuePosition = Field(default_factory=IssuePosition, alias="Pos")
    from_linter: ToolText = Field(default="", alias="FromLinter")
    text: ToolText = Field(default="", alias="Text")
    severity: ToolText = Field(default="", alias="Severity")

    @field_validator("pos", mode="before")
    @classmethod
    def _null_pos(cls, value: object) -> object:
        return {} if value is None else value


class LintResult(BaseModel):
    """Top level JSON object printed by the lint tool."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    issues: List[Issue] = Field(default_factory=list, alias="Issues")

    @field_validator("issues", mode="before")
    @classmethod
    def _null_issues(cls, value: object) -> object:
        # The tool prints "Issues": null when nothing was found.
        return [] if value is None else value


class InitializationOptions(BaseModel):
    model_config = ConfigDict(extra="ignore")

    command: Optional[List[str]] = None


class DiagnosticDTO(BaseModel):
    """Flat rendering of a published diagnostic, used by ``lintbridge check``."""

    line: int
    character: int
    severity: str
    source: Optional[str] = None
    message: str


class CheckResponseDTO(BaseModel):
    uri: str
    diagnostics: List[DiagnosticDTO] = []
