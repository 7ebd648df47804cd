"""
Rule configuration and validation.
"""

from pydantic import BaseModel, Field, field_validator


class RuleConfig(BaseModel):
    """Tunable constants of the game."""

    target_score: int = Field(
        default=21,
        ge=1,
        description="Exact score that wins the game",
    )
    hand_limit: int = Field(
        default=9,
        ge=1,
        description="Maximum hand size allowed when a turn ends",
    )
    swap_bar_size: int = Field(
        default=3,
        ge=1,
        le=7,
        description="Number of swap-bar slots (odd, the middle slot starts face-up)",
    )
    initial_hand_size: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Cards dealt to each player at game start",
    )
    lucky_draw_chain_limit: int = Field(
        default=1,
        ge=0,
        description="How many times a Lucky Draw may chain into a drawn 7 per resolution",
    )
    hand_reveal_turns: int = Field(
        default=2,
        ge=0,
        description="Turns an opponent's hand stays revealed after a second 8",
    )
    adapter_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="How long an AI adapter may think before the fallback fires",
    )

    @field_validator("swap_bar_size")
    @classmethod
    def validate_swap_bar_size(cls, v):
        """The swap bar needs a single middle slot."""
        if v % 2 == 0:
            raise ValueError(f"swap_bar_size ({v}) must be odd")
        return v

    @property
    def middle_slot(self) -> int:
        """Index of the swap-bar slot dealt face-up."""
        return self.swap_bar_size // 2


def create_rules(**overrides) -> RuleConfig:
    """Create a rule configuration with optional overrides."""
    return RuleConfig(**overrides)
