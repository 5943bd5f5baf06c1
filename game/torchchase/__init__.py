"""Torch Chase - cursor-chase arcade game core"""

from .config import ChaseConfig
from .session import EndReason, GameSession, Phase, SessionState, UIState
from .chase_env import ChaseEnv, run_random_episode

__all__ = [
    'ChaseConfig',
    'GameSession',
    'SessionState',
    'UIState',
    'Phase',
    'EndReason',
    'ChaseEnv',
    'run_random_episode',
]
