# File: axial_turbine/core/exceptions.py
"""
Exceptions raised by the mean-line model

PropertyEvaluationError lives in thermodynamics.py next to the property
oracle it belongs to.
"""


class ModelDomainError(Exception):
    """A loss correlation or diffuser model was evaluated outside its valid range"""
    pass


class ConfigurationError(Exception):
    """Malformed problem definition (bounds, array lengths, enumerations)"""
    pass
