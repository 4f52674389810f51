"""Configuration models for SliceFlow.

All tunables live here so that degenerate settings are rejected when the
configuration is built, before any image is touched.
"""

import os
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

DEFAULT_PROMPT = (
    "Extract text. JSON Array ONLY. Fields: text, category (speech, thought, box, "
    "narration, small_text, sfx, system, scream, linked). Ignore generic SFX."
)

DEFAULT_MODEL = "gemini-2.5-flash"
CREDENTIALS_ENV_VAR = "GEMINI_API_KEYS"


class ConfigurationError(ValueError):
    """Raised when the run cannot start because of invalid settings."""


class SegmentationConfig(BaseModel):
    """
    Parameters of the seam search.
    Heights are in pixels; strides control the scan subsampling.
    """

    max_slice_height: int = Field(default=3000, gt=0)
    min_slice_height: int = Field(default=1500, gt=0)
    row_stride: int = Field(default=4, gt=0)
    pixel_stride: int = Field(default=10, gt=0)
    penalty_weight: float = Field(default=0.2, ge=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_bounds(self) -> "SegmentationConfig":
        if self.min_slice_height >= self.max_slice_height:
            raise ValueError(
                f"min_slice_height must be less than max_slice_height, "
                f"got {self.min_slice_height} >= {self.max_slice_height}"
            )
        return self


class EncoderConfig(BaseModel):
    format: Literal["jpeg", "png"] = "jpeg"
    quality: int = Field(default=85, ge=1, le=100)

    model_config = {"frozen": True}


class DispatchConfig(BaseModel):
    """Extraction service settings."""

    model: str = DEFAULT_MODEL
    prompt: str = DEFAULT_PROMPT
    max_workers: int = Field(default=4, ge=1)
    request_timeout_s: float = Field(default=120.0, gt=0)

    model_config = {"frozen": True}


class SliceFlowConfig(BaseModel):
    segmentation: SegmentationConfig = SegmentationConfig()
    encoder: EncoderConfig = EncoderConfig()
    dispatch: DispatchConfig = DispatchConfig()

    model_config = {"frozen": True}


def parse_credentials(value: str) -> list[str]:
    """Split a comma separated key list, dropping blanks."""
    return [token.strip() for token in value.split(",") if token.strip()]


def load_credentials(value: str | None = None, env_var: str = CREDENTIALS_ENV_VAR) -> list[str]:
    """Load API keys from an explicit value or from the environment.

    Parameters
    ----------
    value : str, optional
        Comma separated keys. When omitted, ``env_var`` is read after
        loading a ``.env`` file if one is found.
    env_var : str, default="GEMINI_API_KEYS"
        Environment variable holding the comma separated keys.

    Returns
    -------
    list[str]
        Keys in their configured order.
    """
    if value is None:
        load_dotenv(override=False)
        value = os.environ.get(env_var, "")
    tokens = parse_credentials(value)
    if not tokens:
        raise ConfigurationError(
            f"No credentials configured. Set {env_var} to a comma separated list "
            "with at least one key."
        )
    return tokens
