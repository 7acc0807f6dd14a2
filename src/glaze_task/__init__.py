"""Public API for the hazard-switching triangles task."""

from .analysis import (
    attach_evidence_columns,
    build_choice_table,
    fit_session_blocks,
    hazard_recovery_regression,
    psychometric_curve,
    reward_magnitude,
    trial_reward,
)
from .belief_model import (
    belief_trajectory,
    choice_negative_log_likelihood,
    choice_probability_right,
    clamp_hazard_rate,
    position_to_llr,
    psi_function,
    score_hazard_rate,
    update_belief,
)
from .data_loading import load_choice_data, prepare_choice_data
from .hazard_fitter import fit_hazard_rate, fit_hazard_rate_from_positions, hazard_likelihood_profile
from .observer import simulate_observer_choices
from .records import Block, FitResult, Trial
from .sampling import box_muller_pair, draw_session_sigma, fisher_yates_shuffle, resolve_rng
from .session import (
    build_session_config,
    compose_session,
    compose_session_from_config,
    iter_block_hazard_rates,
    session_to_frame,
)
from .trial_generator import generate_block_trials

__all__ = [
    "Trial",
    "Block",
    "FitResult",
    "generate_block_trials",
    "build_session_config",
    "iter_block_hazard_rates",
    "compose_session",
    "compose_session_from_config",
    "session_to_frame",
    "position_to_llr",
    "clamp_hazard_rate",
    "psi_function",
    "update_belief",
    "belief_trajectory",
    "choice_probability_right",
    "choice_negative_log_likelihood",
    "score_hazard_rate",
    "fit_hazard_rate",
    "fit_hazard_rate_from_positions",
    "hazard_likelihood_profile",
    "simulate_observer_choices",
    "attach_evidence_columns",
    "build_choice_table",
    "fit_session_blocks",
    "hazard_recovery_regression",
    "psychometric_curve",
    "reward_magnitude",
    "trial_reward",
    "load_choice_data",
    "prepare_choice_data",
    "resolve_rng",
    "box_muller_pair",
    "fisher_yates_shuffle",
    "draw_session_sigma",
]
