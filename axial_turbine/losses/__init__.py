# File: axial_turbine/losses/__init__.py

"""
Loss calculation framework

Exports:
- LossCalculator: Main interface for loss calculations
- compute_loss: Loss coefficient and entropy generation of a cascade
- Loss coefficient definitions and conversions
- Individual loss models (for advanced users)
"""

from .calculator import (
    LossCalculator,
    LossBreakdown,
    available_models,
    compute_loss,
    convert_loss_coefficient,
    entropy_from_loss_coefficient,
    loss_coefficient_from_states,
)
from .models import AVAILABLE_MODELS, LOSS_COMPONENTS

from .models import (
    AinleyMathiesonLossModel,
    DunhamCameLossModel,
    KackerOkapuuLossModel,
)

__all__ = [
    'LossCalculator',
    'LossBreakdown',
    'available_models',
    'compute_loss',
    'convert_loss_coefficient',
    'entropy_from_loss_coefficient',
    'loss_coefficient_from_states',
    'AVAILABLE_MODELS',
    'LOSS_COMPONENTS',
    'AinleyMathiesonLossModel',
    'DunhamCameLossModel',
    'KackerOkapuuLossModel',
]
