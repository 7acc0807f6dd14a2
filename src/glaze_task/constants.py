from __future__ import annotations

import numpy as np


SOURCE_LEFT = "left"
SOURCE_RIGHT = "right"

# Source centers on the normalized 0-1 horizontal axis.
LEFT_SOURCE_MEAN = 0.25
RIGHT_SOURCE_MEAN = 0.75
SOURCE_DISTANCE = RIGHT_SOURCE_MEAN - LEFT_SOURCE_MEAN
VERTICAL_MEAN = 0.5
SCREEN_CENTER = 0.5

POSITION_MIN = 0.05
POSITION_MAX = 0.95
MIN_CENTER_OFFSET = 0.01
MAX_REJECTION_ATTEMPTS = 1000

ALLOWED_HAZARD_RATES: tuple[float, ...] = (0.05, 0.1, 0.3, 0.5, 0.7, 0.9, 0.95)
ALLOWED_SIGMA_LEVELS: tuple[float, ...] = (0.24, 0.33, 0.41)

HAZARD_CLAMP_EPS = 1e-6
LIKELIHOOD_EPS = 1e-10
CHOICE_BETA = 1.0
# Beyond this |L| the prior expectation equals +/- log((1 - H) / H) to double precision.
BELIEF_SATURATION = 100.0

HAZARD_GRID_START = 0.001
HAZARD_GRID_STOP = 0.999
HAZARD_GRID_STEP = 0.01
HAZARD_GRID: np.ndarray = np.round(
    HAZARD_GRID_START
    + HAZARD_GRID_STEP
    * np.arange(int((HAZARD_GRID_STOP - HAZARD_GRID_START) / HAZARD_GRID_STEP) + 1),
    3,
)
HAZARD_GRID.setflags(write=False)

PHASE_MANUAL = "manual"
PHASE_WITHOUT_REPLACEMENT = "without_replacement"
PHASE_WITH_REPLACEMENT = "with_replacement"

SESSION_COLUMNS: tuple[str, ...] = (
    "block_id",
    "trial_index",
    "hazard_rate",
    "noise_sigma",
    "sampling_phase",
    "source",
    "x",
    "y",
    "correct_side",
)

REQUIRED_CHOICE_COLUMNS: tuple[str, ...] = (
    "block_id",
    "trial_index",
    "hazard_rate",
    "choice",
)

# Choice tables carry evidence either as LLR or as raw position plus noise ratio.
LLR_COLUMN = "LLR"
POSITION_EVIDENCE_COLUMNS: tuple[str, ...] = ("x", "noise_sigma")
