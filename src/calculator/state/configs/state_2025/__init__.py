"""2025 state calculators. Importing this package registers every state."""

from calculator.state.configs.state_2025 import (
    california,
    illinois,
    kentucky,
    massachusetts,
    north_carolina,
    pennsylvania,
)

__all__ = [
    "california",
    "illinois",
    "kentucky",
    "massachusetts",
    "north_carolina",
    "pennsylvania",
]
