"""
Service layer for form trees.

Mode-dispatched value coordination, validation, change dispatch and the
cross-cutting helpers they share.
"""

from .signal_service import SignalService
from .flag_context_manager import FlagContextManager, FormFlag
from .mode_service_abc import ModeServiceABC
from .model_value_coordinator import (
    ModelValueCoordinator,
    ValueDerivationService,
    ValueDistributionService,
)
from .validator_resolver import ValidatorResolver, CONTROL_CONFIG_KEYS, normalize_error_table
from .validation_aggregator import ValidationAggregator
from .value_change_dispatcher import ValueChangeDispatcher, ValueChangeEvent

__all__ = [
    "SignalService",
    "FlagContextManager",
    "FormFlag",
    "ModeServiceABC",
    "ModelValueCoordinator",
    "ValueDerivationService",
    "ValueDistributionService",
    "ValidatorResolver",
    "CONTROL_CONFIG_KEYS",
    "normalize_error_table",
    "ValidationAggregator",
    "ValueChangeDispatcher",
    "ValueChangeEvent",
]
