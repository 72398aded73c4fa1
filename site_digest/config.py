"""
Loading and validation of the SiteDigest crawler configuration.
Pydantic describes the schema; YAML and JSON files are accepted.

The scoring constants used by link discovery, query re-ranking and the
readability strategy are empirical; they live here so they can be tuned
per deployment without touching the code.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
    model_validator,
)

__all__ = (
    "LinkWeights",
    "RelevanceWeights",
    "ExtractionSettings",
    "SearchSettings",
    "SummarySettings",
    "CrawlerConfig",
    "CrawlRequest",
    "load_config",
)


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class LinkWeights(_Section):
    """Priority points for candidate links found on a page."""

    url_hints: Dict[str, int] = Field(
        default_factory=lambda: {
            "article": 20,
            "post": 15,
            "blog": 15,
            "news": 18,
            "story": 16,
            "content": 10,
        },
        description="Points added when the lower-cased URL contains the key.",
    )
    anchor_hints: Dict[str, int] = Field(
        default_factory=lambda: {
            "read more": 25,
            "continue reading": 25,
            "full article": 30,
            "details": 15,
        },
        description="Points added when the lower-cased anchor text contains the key.",
    )
    descriptive_anchor: int = 10
    context_hint: int = 10
    short_anchor_penalty: int = 10
    long_anchor_penalty: int = 5
    numeric_anchor_penalty: int = 20
    max_links: int = Field(10, ge=1, description="Candidates kept per page.")


class RelevanceWeights(_Section):
    """Per query-term points used when re-ranking links against a query."""

    anchor: int = 30
    context: int = 20
    url: int = 15


class ExtractionSettings(_Section):
    """Thresholds of the content-extraction cascade."""

    min_content_length: int = Field(100, ge=0, description="A strategy result must be longer.")
    min_container_length: int = Field(200, ge=0, description="Semantic/selector containers must be longer.")
    min_paragraph_length: int = Field(50, ge=0)
    max_content_length: int = Field(50_000, ge=1)
    paragraph_bonus: int = 50
    paragraph_bonus_range: tuple[int, int] = (100, 1000)
    container_bonus: int = 30
    link_penalty: int = 10
    link_density_threshold: int = Field(3, ge=0)


class SearchSettings(_Section):
    endpoint: str = "https://api.tavily.com/search"
    api_key: Optional[str] = Field(
        default_factory=lambda: os.environ.get("TAVILY_API_KEY"),
        exclude=True,
        repr=False,
        description="Bearer key; defaults to $TAVILY_API_KEY.",
    )
    max_results: int = Field(5, ge=1)
    max_seeds: int = Field(2, ge=1, description="Top results crawled as seeds.")
    timeout: float = Field(20.0, gt=0)


class SummarySettings(_Section):
    endpoint: str = "https://generativelanguage.googleapis.com/v1beta/models"
    model: str = "gemini-2.0-flash"
    api_key: Optional[str] = Field(
        default_factory=lambda: os.environ.get("GEMINI_API_KEY"),
        exclude=True,
        repr=False,
        description="API key; defaults to $GEMINI_API_KEY.",
    )
    char_budget: int = Field(40_000, ge=1)
    timeout: float = Field(60.0, gt=0)


class CrawlerConfig(BaseModel):
    """Configuration shared by every crawl run by one process."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_depth: int = Field(2, ge=0, description="Maximum link-follow hops from a seed.")
    max_links_per_page: int = Field(3, ge=0, description="Links followed from each page.")
    timeout: float = Field(20.0, gt=0, description="Timeout of a single request (seconds).")
    max_redirects: int = Field(5, ge=0)
    fallback_delay: float = Field(2.0, ge=0, description="Pause before the third request profile.")
    min_delay: float = Field(1.0, ge=0, description="Lower bound of the politeness delay.")
    max_delay: float = Field(3.0, ge=0, description="Upper bound of the politeness delay.")
    crawl_deadline: Optional[float] = Field(
        None, gt=0, description="Wall-clock budget of one seed crawl (seconds)."
    )
    seed_concurrency: int = Field(2, ge=1, description="Seeds crawled at the same time.")
    random_seed: Optional[int] = Field(None, description="Seed for user-agent and delay choice.")

    links: LinkWeights = Field(default_factory=LinkWeights)
    relevance: RelevanceWeights = Field(default_factory=RelevanceWeights)
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    summary: SummarySettings = Field(default_factory=SummarySettings)

    @model_validator(mode="after")
    def _check_delay_range(self) -> CrawlerConfig:
        if self.max_delay < self.min_delay:
            raise ValueError("max_delay must be >= min_delay")
        return self


class CrawlRequest(BaseModel):
    """One crawl invocation: a seed URL, a query, or both."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    url: Optional[HttpUrl] = None
    query: Optional[str] = None
    max_depth: int = Field(2, ge=0)
    max_links_per_page: int = Field(3, ge=0)
    summarize: bool = False

    @field_validator("query", mode="before")
    def _blank_query_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def _require_url_or_query(self) -> CrawlRequest:
        if self.url is None and self.query is None:
            raise ValueError("Provide url or query")
        return self


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None] = None) -> CrawlerConfig:
    """
    Read YAML or JSON and return a validated :class:`CrawlerConfig`.

    Without *path* the default ``configs/default.yaml`` is used when present,
    otherwise the built-in defaults. An explicit path that does not exist
    raises FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return CrawlerConfig()
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Unsupported config format: {suffix}")

    return CrawlerConfig(**data)
