"""Post metadata, lint results, and the parse/extract staging contract"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
)


def parse_post_date(value: Any) -> datetime:
    """Coerce a front-matter date into a naive UTC datetime.

    Accepts YAML dates/datetimes and the string forms site generators write
    ('2023-04-01 10:00:00 +0200', '2023-04-01', ISO 8601).
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        for fmt in DATE_FORMATS:
            try:
                dt = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
        else:
            try:
                dt = datetime.fromisoformat(text)
            except ValueError:
                raise ValueError(f"unrecognised date {value!r}") from None
    else:
        raise ValueError(f"expected a date, got {type(value).__name__}")

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def split_categories(value: Any) -> list[str]:
    """Normalize a categories value (list or space-separated string) to a deduplicated list."""
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split()
    elif isinstance(value, (list, tuple)):
        items = [str(v) for v in value if v is not None]
    else:
        raise ValueError(f"expected a list or string, got {type(value).__name__}")
    return list(dict.fromkeys(i.strip() for i in items if i.strip()))


class PostMeta(BaseModel):
    """Validated post header. Unknown keys are kept as extras."""
    model_config = ConfigDict(extra="allow")

    layout:      str = "post"
    title:       str
    description: str = ""
    date:        datetime
    categories:  list[str] = []
    slug:        Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def merge_category(cls, data: Any) -> Any:
        """Fold a singular 'category' key into 'categories'."""
        if isinstance(data, dict) and "category" in data:
            data = dict(data)
            single = data.pop("category")
            data["categories"] = split_categories(single) + split_categories(data.get("categories"))
        return data

    @field_validator("title", mode="before")
    @classmethod
    def title_to_str(cls, v):
        """YAML reads titles like 2024 or 3.14 as numbers; keep them as text."""
        if isinstance(v, (int, float, date)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title must not be blank")
        return v.strip()

    @field_validator("description", mode="before")
    @classmethod
    def description_default(cls, v):
        return "" if v is None else v

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, v):
        return parse_post_date(v)

    @field_validator("categories", mode="before")
    @classmethod
    def coerce_categories(cls, v):
        return split_categories(v)

    def extras(self) -> dict[str, Any]:
        """Header keys that are not part of the standard schema."""
        return dict(self.model_extra or {})


class FencedBlock(BaseModel):
    """A fenced code block inside a post body."""
    language: str = ""
    content:  str
    line:     int                   # 1-based line of the opening fence in the source file


class StagedPost(BaseModel):
    """Staging contract: written by extract, read by commit."""
    slug:        str
    path:        str
    markdown:    str                # body without front-matter
    frontmatter: dict[str, Any] = {}
    meta:        PostMeta
    blocks:      list[FencedBlock] = []


@dataclass
class ParsedPost:
    """Internal parse result carrying markdown-it tokens; not persisted."""
    path:            Path
    slug:            str
    raw_markdown:    str            # full file content (includes front-matter)
    markdown:        str            # body only
    frontmatter:     dict[str, Any]
    has_frontmatter: bool
    body_offset:     int            # number of source lines before the body
    tokens:          list = field(default_factory=list)


class Severity(str, Enum):
    error = "error"
    warning = "warning"


class LintIssue(BaseModel):
    path:     str
    line:     Optional[int] = None
    code:     str
    severity: Severity
    message:  str

    def format(self) -> str:
        where = f"{self.path}:{self.line}" if self.line else self.path
        return f"{where}: {self.severity.value} [{self.code}] {self.message}"


class LintReport(BaseModel):
    path:   str
    issues: list[LintIssue] = []

    @property
    def errors(self) -> list[LintIssue]:
        return [i for i in self.issues if i.severity == Severity.error]

    @property
    def warnings(self) -> list[LintIssue]:
        return [i for i in self.issues if i.severity == Severity.warning]

    @property
    def ok(self) -> bool:
        return not self.errors
