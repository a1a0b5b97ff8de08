"""Per-surface rule evaluators feeding a :class:`ReportAggregator`."""

from node_setup_check.rules.app_config import evaluate_app_config
from node_setup_check.rules.config_dir import evaluate_config_directory, evaluate_config_file
from node_setup_check.rules.correlate import evaluate_correlations
from node_setup_check.rules.data import (
    evaluate_data_directory,
    evaluate_state_file,
    evaluate_validator_state,
)
from node_setup_check.rules.home import evaluate_home
from node_setup_check.rules.key_files import evaluate_node_key, evaluate_validator_key
from node_setup_check.rules.keyring import evaluate_keyrings
from node_setup_check.rules.network_config import evaluate_network_config
from node_setup_check.rules.service_unit import evaluate_service_unit

__all__ = [
    "evaluate_app_config",
    "evaluate_config_directory",
    "evaluate_config_file",
    "evaluate_correlations",
    "evaluate_data_directory",
    "evaluate_home",
    "evaluate_keyrings",
    "evaluate_network_config",
    "evaluate_node_key",
    "evaluate_service_unit",
    "evaluate_state_file",
    "evaluate_validator_key",
    "evaluate_validator_state",
]
