"""
Application settings management.

Settings are loaded from environment variables with .env file support.
Coaching heuristics (depth table, time model, mode thresholds) are loaded
from config/coaching_config.yaml. All configuration is validated using Pydantic.
"""

from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment.

    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # ==========================================================================
    # Paths
    # ==========================================================================

    config_dir: Path = Field(
        default=Path("config"),
        description="Directory containing YAML configuration files",
    )
    data_dir: Path = Field(
        default=Path("data"), description="Directory for database and other data files"
    )
    crisis_lexicon_path: Optional[Path] = Field(
        default=None,
        description="Override path to the crisis lexicon YAML (default: config/crisis/lexicon_v1.yaml)",
    )

    # ==========================================================================
    # Database
    # ==========================================================================

    database_path: Path = Field(
        default=Path("data/coach.db"), description="Path to SQLite database file"
    )

    # ==========================================================================
    # LLM Configuration
    # ==========================================================================
    #
    # Two-client architecture:
    # - generation: coaching / discovery / check-in replies
    # - crisis: structured risk assessment after a lexicon hit
    #
    # Defaults are defined in src/llm/client.py. Set environment variables
    # below only to override defaults (e.g., LLM_CRISIS_PROVIDER=anthropic)

    llm_generation_provider: Optional[str] = Field(
        default=None,
        description="Override generation LLM provider (default: openai)",
    )
    llm_crisis_provider: Optional[str] = Field(
        default=None, description="Override crisis LLM provider (default: openai)"
    )

    # API Keys (required for providers you use)
    anthropic_api_key: Optional[str] = Field(
        default=None, description="Anthropic API key"
    )
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    kimi_api_key: Optional[str] = Field(
        default=None, description="Kimi (Moonshot AI) API key"
    )
    deepseek_api_key: Optional[str] = Field(
        default=None, description="DeepSeek API key"
    )

    # ==========================================================================
    # Server Configuration
    # ==========================================================================

    host: str = Field(default="127.0.0.1", description="Server host address")
    port: int = Field(default=8000, ge=1, le=65535, description="Server port")
    debug: bool = Field(default=False, description="Enable debug mode")


# ============================================================================
# Coaching Configuration (from YAML)
# ============================================================================


class DepthConfig(BaseModel):
    """Minimum Reality exploration depth per declared time budget.

    Budgets not listed fall back to ``default``.
    """

    by_budget: Dict[int, int] = Field(
        default_factory=lambda: {5: 2, 15: 6, 30: 9, 50: 10},
        description="Budget minutes -> minimum reality depth before options",
    )
    default: int = Field(default=10, ge=0)

    def min_depth_for(self, budget_minutes: int) -> int:
        return self.by_budget.get(budget_minutes, self.default)


class TimeModelConfig(BaseModel):
    """Elapsed-time estimate used while no wall clock is tracked."""

    minutes_per_turn: float = Field(default=2.0, gt=0)
    setup_minutes: int = Field(default=1, ge=0)
    extension_window_minutes: int = Field(
        default=5,
        ge=0,
        description="Remaining minutes at which the extension hint is raised",
    )


class BudgetConfig(BaseModel):
    """Declared time budgets."""

    allowed: List[int] = Field(default_factory=lambda: [5, 15, 30, 50])
    discovery_minutes: int = Field(default=10, ge=1)
    default_by_mode: Dict[str, int] = Field(
        default_factory=lambda: {
            "coaching": 30,
            "check-in": 15,
            "partial-discovery": 15,
            "discovery": 10,
        }
    )

    @field_validator("allowed")
    @classmethod
    def allowed_not_empty(cls, v: List[int]) -> List[int]:
        if not v:
            raise ValueError("at least one time budget must be allowed")
        return sorted(set(v))


class ModeConfig(BaseModel):
    """Mode selection thresholds."""

    partial_discovery_threshold: int = Field(
        default=80,
        ge=1,
        le=100,
        description="Completeness below this (and above 0) resumes intake",
    )


class PhaseConfig(BaseModel):
    """GROW phase progression."""

    goal_turns: int = Field(
        default=1,
        ge=1,
        description="Assistant turns spent in goal before moving to reality",
    )


class SessionServiceConfig(BaseModel):
    """Session orchestrator configuration."""

    history_window: int = Field(
        default=50, ge=1, le=200, description="Recent turns passed to generation"
    )
    crisis_history_window: int = Field(
        default=6, ge=0, le=50, description="Recent turns passed to crisis assessment"
    )
    max_message_length: int = Field(default=5000, ge=1)
    technical_difficulty_message: str = Field(
        default="I'm experiencing some technical difficulties. Please try again in a moment."
    )


class CoachingConfig(BaseModel):
    """
    Complete coaching configuration loaded from coaching_config.yaml.

    The 2-minutes-per-turn time model and the 80% completeness threshold are
    heuristics; both live here rather than in code.
    """

    depth: DepthConfig = Field(default_factory=DepthConfig)
    time_model: TimeModelConfig = Field(default_factory=TimeModelConfig)
    budgets: BudgetConfig = Field(default_factory=BudgetConfig)
    modes: ModeConfig = Field(default_factory=ModeConfig)
    phases: PhaseConfig = Field(default_factory=PhaseConfig)
    session_service: SessionServiceConfig = Field(default_factory=SessionServiceConfig)


def load_coaching_config(config_path: Optional[Path] = None) -> CoachingConfig:
    """
    Load coaching configuration from YAML file.

    Args:
        config_path: Path to coaching_config.yaml. If None, uses default path.

    Returns:
        CoachingConfig with validated settings (defaults if no file exists)

    Raises:
        ValueError: If config validation fails
    """
    if config_path is None:
        project_config = (
            Path(__file__).resolve().parent.parent.parent
            / "config"
            / "coaching_config.yaml"
        )
        cwd_config = Path.cwd() / "config" / "coaching_config.yaml"
        if project_config.exists():
            config_path = project_config
        elif cwd_config.exists():
            config_path = cwd_config
        else:
            return CoachingConfig()

    config_path = Path(config_path).resolve()

    if not config_path.exists():
        return CoachingConfig()

    with open(str(config_path)) as f:
        config_data = yaml.safe_load(f)

    if not config_data:
        return CoachingConfig()

    return CoachingConfig(**config_data)


# Global settings instance
settings = Settings()

# Global coaching config instance
coaching_config = load_coaching_config()
