"""
Challenges module - weekly challenge progress and reward claims
"""
from . import repository
from . import service

from .service import compute_progress, list_challenges, claim_weekly_challenge

__all__ = [
    'repository',
    'service',
    'compute_progress',
    'list_challenges',
    'claim_weekly_challenge'
]
