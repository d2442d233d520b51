"""
Engine configuration: policy constants, pydantic policy models and the
JSON config file helpers.
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

DATA_DIR = Path(__file__).parent.parent / "data"
CONFIG_ENV_VAR = "REFERRAL_ENGINE_CONFIG"

# Growth model
REFERRAL_CAP = 10       # lifetime successful referrals per user
INITIAL_COHORT = 100    # fresh referrers assumed when the network is empty

# Bonus search grid
BONUS_INCREMENT = 10    # bonus offered in $10 steps
MAX_BONUS = 1000

TOP_N = 10

SCENARIOS = {
    "conservative": 0.2,
    "moderate":     0.35,
    "aggressive":   0.5,
}


class GrowthPolicy(BaseModel):
    """Constants of the expected-value growth model."""
    referral_cap: int = Field(REFERRAL_CAP, ge=1)
    initial_cohort: float = Field(INITIAL_COHORT, ge=0)


class BonusSearch(BaseModel):
    """Bonus grid: multiples of increment in [0, max_bonus]."""
    max_bonus: int = Field(MAX_BONUS, ge=0)
    increment: int = Field(BONUS_INCREMENT, ge=1)

    @model_validator(mode="after")
    def _max_bonus_on_grid(self) -> "BonusSearch":
        if self.max_bonus % self.increment:
            raise ValueError(
                f"max_bonus {self.max_bonus} is not a multiple of increment {self.increment}"
            )
        return self

    @property
    def steps(self) -> int:
        """Index of the largest grid point."""
        return self.max_bonus // self.increment


class EngineConfig(BaseModel):
    growth: GrowthPolicy = Field(default_factory=GrowthPolicy)
    bonus: BonusSearch = Field(default_factory=BonusSearch)
    top_n: int = Field(TOP_N, ge=1)
    scenarios: dict[str, float] = Field(default_factory=lambda: dict(SCENARIOS))

    @field_validator("scenarios")
    @classmethod
    def _probabilities_in_range(cls, v: dict[str, float]) -> dict[str, float]:
        for name, p in v.items():
            if not 0.0 <= p <= 1.0:
                raise ValueError(f"scenario '{name}' probability {p} is outside [0, 1]")
        return v


def config_path() -> Path:
    """Config file location: $REFERRAL_ENGINE_CONFIG, else data/engine.json."""
    env = os.environ.get(CONFIG_ENV_VAR)
    return Path(env) if env else DATA_DIR / "engine.json"


def read_engine_config(path: Optional[Path] = None) -> EngineConfig:
    p = Path(path) if path else config_path()
    if p.exists():
        return EngineConfig.model_validate(json.loads(p.read_text()))
    return EngineConfig()


def write_engine_config(config: EngineConfig, path: Optional[Path] = None) -> Path:
    p = Path(path) if path else config_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(config.model_dump_json(indent=2))
    return p
