"""
Tests for the custom exception hierarchy.

This module checks inheritance, message formatting and the structured
details/context carried by every bcLeiden exception.
"""

import warnings

import pytest

from bcLeiden.common.exceptions import (
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


class TestNetworkAnalysisError:
    """Test the base NetworkAnalysisError class."""

    def test_basic_error(self):
        """Test basic error creation."""
        error = NetworkAnalysisError("Test error")
        assert str(error) == "Test error"
        assert error.message == "Test error"
        assert error.details == {}
        assert error.context == {}
        assert error.cause is None

    def test_error_with_details(self):
        """Test that details are rendered into the message."""
        error = NetworkAnalysisError("Graph error", details={"vertices": 6, "edges": 0})

        assert "Graph error" in str(error)
        assert "vertices=6" in str(error)
        assert "edges=0" in str(error)

    def test_long_details_are_truncated(self):
        """Test that long collections are summarised instead of printed."""
        error = NetworkAnalysisError("Too much", details={"vertices": list(range(200))})
        assert "<list with 200 items>" in str(error)

    def test_error_with_cause(self):
        """Test exception chaining through the cause argument."""
        original = ValueError("Original problem")
        error = NetworkAnalysisError("Wrapped", cause=original)

        assert error.cause is original
        assert error.__cause__ is original

    def test_add_context(self):
        """Test adding context after creation."""
        error = NetworkAnalysisError("Failed").add_context(source=3, phase="dependencies")
        assert error.context == {"source": 3, "phase": "dependencies"}

    def test_get_debug_info(self):
        """Test the debug info dictionary."""
        error = NetworkAnalysisError("Failed", details={"a": 1}, cause=KeyError("k"))
        info = error.get_debug_info()

        assert info["exception_type"] == "NetworkAnalysisError"
        assert info["message"] == "Failed"
        assert info["details"] == {"a": 1}
        assert "k" in info["cause"]


class TestSpecificErrors:
    """Test the specialised exception classes."""

    def test_validation_error_with_field(self):
        """Test the field prefix and structured details."""
        error = ValidationError("Edge endpoint not in vertex set", field="dst", value=7)

        assert isinstance(error, NetworkAnalysisError)
        assert str(error).startswith("Validation error in field 'dst':")
        assert error.details["invalid_value"] == 7
        assert error.field == "dst"

    def test_validation_error_without_field(self):
        """Test the generic prefix."""
        error = ValidationError("Bad input")
        assert str(error).startswith("Validation error: Bad input")

    def test_graph_construction_error_context(self):
        """Test that graph sizes end up in the context."""
        error = GraphConstructionError(
            "Conversion failed", vertex_count=4, edge_count=3, operation="to_networkit"
        )

        assert error.context == {"vertex_count": 4, "edge_count": 3, "operation": "to_networkit"}

    def test_configuration_error_lists_options(self):
        """Test that valid options are appended to the message."""
        error = ConfigurationError(
            "Invalid distance",
            parameter="distance",
            value="euclidean",
            valid_options=["hop", "weight"]
        )

        assert "Valid options for 'distance': ['hop', 'weight']" in str(error)
        assert error.details["invalid_value"] == "euclidean"

    def test_computation_error(self):
        """Test operation and error type bookkeeping."""
        error = ComputationError(
            "Division by zero",
            operation="merge_gain",
            error_type="numerical",
            resource_info={"edges": 0}
        )

        assert error.context == {"operation": "merge_gain", "error_type": "numerical"}
        assert error.details["edges"] == 0

    def test_data_format_error_is_validation_error(self):
        """Test DataFormatError inheritance and details."""
        error = DataFormatError("Cannot read", format_type="CSV", file_path="edges.csv")

        assert isinstance(error, ValidationError)
        assert error.details["file_path"] == "edges.csv"
        assert error.details["format_type"] == "CSV"

    def test_convergence_warning_category(self):
        """Test that ConvergenceWarning is a regular warning."""
        assert issubclass(ConvergenceWarning, UserWarning)
        with pytest.warns(ConvergenceWarning, match="sweeps"):
            warnings.warn("stopped after 3 sweeps", ConvergenceWarning)


class TestConvenienceFunctions:
    """Test the validation helpers."""

    def test_validate_parameter_accepts_valid(self):
        """Test that valid values pass silently."""
        validate_parameter("hop", ["hop", "weight"], "distance")

    def test_validate_parameter_rejects_invalid(self):
        """Test that invalid values raise ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Invalid value for parameter 'distance'"):
            validate_parameter("euclidean", ["hop", "weight"], "distance", "edge_betweenness")

    def test_require_positive(self):
        """Test positive and non-negative checks."""
        require_positive(1, "top_k")
        require_positive(0, "count", allow_zero=True)

        with pytest.raises(ConfigurationError, match="must be positive"):
            require_positive(0, "top_k")
        with pytest.raises(ConfigurationError, match="must be non-negative"):
            require_positive(-1, "count", allow_zero=True)
