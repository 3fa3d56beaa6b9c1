"""Configuration models for the replay controller and headless layout."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator


class PlaybackConfig(BaseModel):
    turn_duration: float = Field(2.0, description="Seconds between the starts of consecutive turns.")
    move_duration: float = Field(1.5, description="Seconds one move animation takes.")
    loop_dwell: float = Field(2.0, description="Seconds to hold the final turn before looping.")
    restart_delay: float = Field(1.0, description="Seconds between the loop reset and the first turn.")
    frame_rate: float = Field(60.0, description="Animation samples per second.")
    loop: bool = Field(True, description="Restart from turn 0 once playback completes.")

    @field_validator("turn_duration", "move_duration", "loop_dwell", "restart_delay")
    @classmethod
    def validate_non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("durations must be >= 0")
        return value

    @field_validator("frame_rate")
    @classmethod
    def validate_frame_rate(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("frame rate must be positive")
        return value

    @model_validator(mode="after")
    def validate_move_fits_turn(self) -> "PlaybackConfig":
        """Moves must settle before the next turn is due."""
        if self.move_duration > self.turn_duration:
            raise ValueError("move_duration cannot exceed turn_duration")
        return self

    @property
    def frame_interval(self) -> float:
        return 1.0 / self.frame_rate

    @property
    def inter_turn_delay(self) -> float:
        return self.turn_duration - self.move_duration


class LayoutConfig(BaseModel):
    scale: float = Field(10.0, description="Multiplier applied to room coordinates.")
    tube_radius: float = Field(1.2, description="Radius of a tunnel; agents wander within 30% of it.")
    arc_height: float = Field(5.0, description="Peak lift of a move that has no tunnel path.")
    ring_size: int = Field(8, description="Agents per ring when several share a room.")
    agent_lift: float = Field(2.0, description="Vertical offset of an agent resting in a room.")

    @field_validator("scale")
    @classmethod
    def validate_scale(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("scale must be positive")
        return value

    @field_validator("ring_size")
    @classmethod
    def validate_ring_size(cls, value: int) -> int:
        if value < 1:
            raise ValueError("ring size must be >= 1")
        return value


class ReplayRuntimeConfig(BaseModel):
    playback: PlaybackConfig = Field(default_factory=PlaybackConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    verbose: bool = Field(False, description="Log controller activity at debug level.")

