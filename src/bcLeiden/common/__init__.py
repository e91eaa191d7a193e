"""
Common utilities for the bcLeiden library.

This module provides shared functionality used across the network modules:
- Custom exception hierarchy
- Vertex ID mapping for NetworkIt interoperability
- Edge list validation
- Logging configuration
"""

from .exceptions import (
    NetworkAnalysisError,
    ValidationError,
    GraphConstructionError,
    ConfigurationError,
    ComputationError,
    DataFormatError,
    ConvergenceWarning,
    validate_parameter,
    require_positive
)

from .id_mapper import IDMapper
from .validators import validate_edgelist_dataframe

from .logging_config import (
    setup_logging,
    get_logger,
    configure_external_library_logging,
    log_function_entry,
    log_performance_metric,
    LoggingTimer,
    JSONFormatter,
    PerformanceFilter
)
