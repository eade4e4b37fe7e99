from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from productrules.products import ProductId, SignalKind

DEFAULT_COINSTALL_GROUPS: tuple[frozenset[ProductId], ...] = (
    frozenset({ProductId.COMMERCE, ProductId.EXPERIMENTATION}),
    frozenset({ProductId.CONTENT_ONPREM, ProductId.EXPERIMENTATION}),
    frozenset({ProductId.CONTENT_CLOUD, ProductId.EXPERIMENTATION}),
)


@dataclass(frozen=True)
class ScoringConfig:
    """Weights and policy for evidence scoring.

    Injected into the extractors and the scorer so tests can substitute
    alternate tables. Never mutated after construction.
    """

    file_pattern_weight: float = 3.0
    directory_weight: float = 5.0
    dependency_weight: float = 8.0
    config_file_weight: float = 6.0

    # k-th repeated hit of one pattern weighs base * repeat_decay ** (k - 1)
    repeat_decay: float = 0.5
    max_repeats: int = 5

    walk_depth: int = 4
    directory_depth: int = 3

    threshold: float = 0.6
    margin: float = 0.15

    coinstall_groups: tuple[frozenset[ProductId], ...] = field(
        default=DEFAULT_COINSTALL_GROUPS
    )

    def __post_init__(self) -> None:
        if not 0.0 < self.threshold <= 1.0:
            raise ValueError(f"threshold must be in (0, 1], got {self.threshold}")
        if not 0.0 <= self.margin < 1.0:
            raise ValueError(f"margin must be in [0, 1), got {self.margin}")
        if not 0.0 < self.repeat_decay <= 1.0:
            raise ValueError(f"repeat_decay must be in (0, 1], got {self.repeat_decay}")
        if self.max_repeats < 1:
            raise ValueError("max_repeats must be at least 1")
        for kind in SignalKind:
            if self.weight_for(kind) <= 0:
                raise ValueError(f"{kind.value} weight must be positive")

    def weight_for(self, kind: SignalKind) -> float:
        return {
            SignalKind.FILE_PATTERN: self.file_pattern_weight,
            SignalKind.DIRECTORY: self.directory_weight,
            SignalKind.DEPENDENCY: self.dependency_weight,
            SignalKind.CONFIG_FILE: self.config_file_weight,
        }[kind]

    @property
    def ambiguity_floor(self) -> float:
        """Lowest top confidence still reported as ambiguous rather than none."""
        return max(0.0, self.threshold - self.margin)

    def coinstallable(self, products: set[ProductId]) -> bool:
        """True when every product in the set belongs to one declared group."""
        return len(products) > 1 and any(products <= group for group in self.coinstall_groups)


@dataclass(frozen=True)
class MatchWeights:
    """Score components for the rule matcher."""

    keyword: float = 1.0
    category_bonus: float = 2.0
    glob_bonus: float = 1.5
    technology_bonus: float = 0.5
    high_priority_bonus: float = 1.0
    medium_priority_bonus: float = 0.5
    low_priority_bonus: float = 0.0


class Settings(BaseSettings):
    """Library settings loaded from environment variables.

    Every field can be set through PRODUCTRULES_<NAME> or a .env file.
    List and nested values (coinstall_groups) are read as JSON.
    """

    model_config = SettingsConfigDict(
        env_prefix="PRODUCTRULES_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Detection policy
    threshold: float = Field(default=0.6, gt=0.0, le=1.0)
    margin: float = Field(default=0.15, ge=0.0, lt=1.0)

    file_pattern_weight: float = Field(default=3.0, gt=0.0)
    directory_weight: float = Field(default=5.0, gt=0.0)
    dependency_weight: float = Field(default=8.0, gt=0.0)
    config_file_weight: float = Field(default=6.0, gt=0.0)
    repeat_decay: float = Field(default=0.5, gt=0.0, le=1.0)
    max_repeats: int = Field(default=5, ge=1)

    walk_depth: int = Field(default=4, ge=0, le=12)
    directory_depth: int = Field(default=3, ge=0, le=12)

    coinstall_groups: list[list[ProductId]] = [
        sorted(group) for group in DEFAULT_COINSTALL_GROUPS
    ]

    # Explicit product selection, e.g. PRODUCTRULES_PRODUCT=commerce-platform.
    # Short-circuits detection when set.
    product: Optional[str] = None

    # Rule sources, applied in this order (later wins by rule id)
    rules_dir: Optional[Path] = None
    remote_repository: str = ""
    remote_ref: str = "main"
    remote_path: str = "rules"
    github_token: str = ""
    docs_api_url: str = ""

    http_timeout: float = Field(default=10.0, gt=0.0)

    # Logging
    debug: bool = False

    @field_validator("product", mode="before")
    @classmethod
    def blank_product_is_unset(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def scoring_config(self) -> ScoringConfig:
        return ScoringConfig(
            file_pattern_weight=self.file_pattern_weight,
            directory_weight=self.directory_weight,
            dependency_weight=self.dependency_weight,
            config_file_weight=self.config_file_weight,
            repeat_decay=self.repeat_decay,
            max_repeats=self.max_repeats,
            walk_depth=self.walk_depth,
            directory_depth=self.directory_depth,
            threshold=self.threshold,
            margin=self.margin,
            coinstall_groups=tuple(frozenset(g) for g in self.coinstall_groups if g),
        )

    def default_sources(self) -> list:
        """Build the configured rule sources in precedence order.

        Local rules load first so remote and API rules can override them
        by id.
        """
        from productrules.rules.sources import (
            DocumentationApiSource,
            LocalDirectorySource,
            RemoteRepositorySource,
        )

        sources: list = []
        if self.rules_dir is not None:
            sources.append(LocalDirectorySource(path=str(self.rules_dir)))
        if self.remote_repository:
            sources.append(
                RemoteRepositorySource(
                    repository=self.remote_repository,
                    ref=self.remote_ref,
                    path=self.remote_path,
                    token=self.github_token,
                    timeout=self.http_timeout,
                )
            )
        if self.docs_api_url:
            sources.append(
                DocumentationApiSource(base_url=self.docs_api_url, timeout=self.http_timeout)
            )
        return sources


def get_settings() -> Settings:
    return Settings()
