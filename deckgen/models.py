import logging
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .parser import repair_bullet_points

logger = logging.getLogger(__name__)

MAX_TABLE_COLUMNS = 6
MAX_TABLE_ROWS = 6
MAX_CHART_ITEMS = 6


class Attribution(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    photographer: Optional[str] = None
    source_url: Optional[str] = Field(default=None, alias="sourceUrl")


class Image(BaseModel):
    data: Optional[str] = Field(default=None, description="data:<mime>;base64,... URL")
    url: Optional[str] = None
    attribution: Optional[Attribution] = None
    idea: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def accept_data_url_key(cls, v):
        if isinstance(v, str):
            return {"idea": v}
        # The prompt advertises `dataUrl`; our own enrichment writes `data`.
        if isinstance(v, dict) and "data" not in v and "dataUrl" in v:
            v = {**v, "data": v["dataUrl"]}
        return v


class Table(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    headers: List[str]
    rows: List[List[str]] = Field(default_factory=list)

    @model_validator(mode="after")
    def clamp(self):
        if not self.headers:
            raise ValueError("table has no headers")
        self.headers = self.headers[:MAX_TABLE_COLUMNS]
        self.rows = [r[: len(self.headers)] for r in self.rows[:MAX_TABLE_ROWS]]
        return self


class Chart(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    type: Literal["bar", "line", "pie"] = "bar"
    labels: List[str]
    values: List[float]
    title: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def default_type(cls, v):
        return v if v in ("bar", "line", "pie") else "bar"

    @model_validator(mode="after")
    def clamp(self):
        n = min(len(self.labels), len(self.values), MAX_CHART_ITEMS)
        if n == 0:
            raise ValueError("chart has no usable data points")
        self.labels = self.labels[:n]
        self.values = self.values[:n]
        return self


def _optional(model, value, field: str):
    if value is None:
        return None
    try:
        return model.model_validate(value)
    except ValidationError as ve:
        logger.info("Dropping malformed %s: %s", field, ve.errors()[0].get("msg"))
        return None


class Slide(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    slide_title: str = Field(default="Untitled Slide", alias="slideTitle")
    bullet_points: List[str] = Field(default_factory=list, alias="bulletPoints")
    layout: Optional[str] = None
    visual_hint: Optional[str] = Field(default=None, alias="visualHint")
    image: Optional[Image] = None
    table: Optional[Table] = None
    chart: Optional[Chart] = None

    @model_validator(mode="before")
    @classmethod
    def tolerate_llm_fields(cls, v):
        if not isinstance(v, dict):
            return v
        v = dict(v)
        for key in ("slideTitle", "slide_title"):
            if key in v and not (isinstance(v[key], str) and v[key].strip()):
                v.pop(key)
        for key in ("layout", "visualHint", "visual_hint"):
            if key in v and not isinstance(v[key], str):
                v.pop(key)
        for key, model in (("image", Image), ("table", Table), ("chart", Chart)):
            if key in v:
                v[key] = _optional(model, v[key], key)
        return v

    @field_validator("bullet_points", mode="before")
    @classmethod
    def repair_bullets(cls, v):
        return repair_bullet_points(v)


class Outline(BaseModel):
    title: Optional[str] = None
    slides: Optional[List[Slide]] = None

    @field_validator("title", mode="before")
    @classmethod
    def title_text(cls, v):
        return v if isinstance(v, str) and v.strip() else None

    @field_validator("slides", mode="before")
    @classmethod
    def keep_slide_objects(cls, v):
        if not isinstance(v, list):
            return None
        return [s for s in v if isinstance(s, (dict, Slide))]


class Theme(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    background: str
    title: str
    text: str
    accent: str


class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    topic: Any = None
    slide_count: Any = Field(default=None, alias="slideCount")
    presentation_style: Any = Field(default=None, alias="presentationStyle")
    audience_level: Any = Field(default=None, alias="audienceLevel")
    include_conclusion: Any = Field(default=None, alias="includeConclusion")
    color_theme: Any = Field(default=None, alias="colorTheme")


class GenerateOptions(BaseModel):
    """A ``GenerateRequest`` after validation, with defaults applied."""

    topic: str
    slide_count: Literal[3, 5, 7, 10] = 5
    presentation_style: Literal["professional", "casual", "academic", "creative"] = "professional"
    audience_level: Literal["beginner", "general", "expert"] = "general"
    include_conclusion: bool = True
    color_theme: Literal["blue", "green", "purple", "red", "orange", "teal", "gray"] = "blue"
