"""
Errors raised by bcLeiden.

Invalid graphs and parameters are reported as soon as they are seen, before
any path search or sweep starts. Non-convergence is not an error: the
optimizer keeps its best partition and emits ``ConvergenceWarning``.

Every error class derives from ``NetworkAnalysisError`` and carries two
dictionaries: ``details`` (what was wrong with the data) and ``context``
(which operation was running). Both are rendered into ``str(error)``.
"""

from typing import Dict, Any, Optional, List, Union
import traceback

# Collections whose repr is longer than this are summarised in messages
_MAX_DETAIL_LENGTH = 100


def _render_detail(key: str, value: Any) -> str:
    if isinstance(value, (list, dict, tuple, set, frozenset)) and len(str(value)) > _MAX_DETAIL_LENGTH:
        return f"{key}=<{type(value).__name__} with {len(value)} items>"
    return f"{key}={value}"


def _drop_none(**fields: Any) -> Dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


class NetworkAnalysisError(Exception):
    """
    Root of the bcLeiden error hierarchy.

    Parameters
    ----------
    message : str
        What went wrong
    details : Dict[str, Any], optional
        Offending values, e.g. ``{"vertices": 0, "edges": 10}``
    cause : Exception, optional
        Lower-level exception; also set as ``__cause__``
    context : Dict[str, Any], optional
        The operation and its inputs at the time of failure

    Examples
    --------
    >>> raise NetworkAnalysisError("Betweenness computation failed", details={"source": 4})
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        self.message = message
        self.details = details or {}
        self.cause = cause
        self.context = context or {}

        super().__init__(self._compose())

        if cause is not None:
            self.__cause__ = cause

    def _compose(self) -> str:
        text = self.message
        if self.details:
            text += " (Details: " + ", ".join(_render_detail(k, v) for k, v in self.details.items()) + ")"
        if self.context:
            text += " (Context: " + ", ".join(f"{k}={v}" for k, v in self.context.items()) + ")"
        return text

    def add_context(self, **kwargs: Any) -> 'NetworkAnalysisError':
        """Record extra context and return ``self`` so it can be re-raised inline."""
        self.context.update(kwargs)
        self.args = (self._compose(),)
        return self

    def get_debug_info(self) -> Dict[str, Any]:
        """Everything known about the failure as a plain dictionary."""
        return {
            "exception_type": type(self).__name__,
            "message": self.message,
            "details": self.details,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
            "traceback": traceback.format_exc() if self.__traceback__ is not None else None
        }


class ValidationError(NetworkAnalysisError):
    """
    Malformed input: unknown edge endpoint, bad weight, duplicate pair,
    unknown source vertex or a broken edge-list table.

    ``field``, ``value`` and ``expected`` are kept as attributes and copied
    into ``details``.

    Examples
    --------
    >>> raise ValidationError("Edge endpoint not in vertex set", field="dst", value=7)
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        expected: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> None:
        self.field = field
        self.value = value
        self.expected = expected

        merged = dict(details or {})
        merged.update(_drop_none(field=field, invalid_value=value, expected=expected))

        prefix = f"Validation error in field '{field}'" if field else "Validation error"
        super().__init__(f"{prefix}: {message}", details=merged, **kwargs)


class GraphConstructionError(NetworkAnalysisError):
    """A graph value could not be assembled or converted to NetworkIt."""

    def __init__(
        self,
        message: str,
        vertex_count: Optional[int] = None,
        edge_count: Optional[int] = None,
        operation: Optional[str] = None,
        **kwargs
    ) -> None:
        self.vertex_count = vertex_count
        self.edge_count = edge_count
        self.operation = operation

        context = _drop_none(vertex_count=vertex_count, edge_count=edge_count, operation=operation or None)
        super().__init__(message, context=context, **kwargs)


class ConfigurationError(NetworkAnalysisError):
    """
    Unsupported parameter value or an optimizer phase called out of order.

    When both ``parameter`` and ``valid_options`` are given, the accepted
    values are appended to the message.

    Examples
    --------
    >>> raise ConfigurationError(
    ...     "Invalid distance function",
    ...     parameter="distance",
    ...     value="euclidean",
    ...     valid_options=["hop", "weight", "inverse_weight", "hop_inverse_weight"]
    ... )
    """

    def __init__(
        self,
        message: str,
        parameter: Optional[str] = None,
        value: Optional[Any] = None,
        valid_options: Optional[List[Any]] = None,
        function: Optional[str] = None,
        **kwargs
    ) -> None:
        self.parameter = parameter
        self.value = value
        self.valid_options = valid_options
        self.function = function

        details = kwargs.pop("details", None) or {}
        details.update(_drop_none(
            parameter=parameter or None,
            invalid_value=value,
            valid_options=valid_options or None,
            function=function or None
        ))

        if parameter and valid_options:
            message = f"{message}. Valid options for '{parameter}': {valid_options}"
        super().__init__(message, details=details, **kwargs)


class ComputationError(NetworkAnalysisError):
    """
    A numeric evaluation or a worker process failed.

    The modularity gains divide by the edge count, so on an edge-less graph
    they raise this error (``error_type="numerical"``) with the original
    ``ZeroDivisionError`` as its cause. ``resource_info`` describes the graph
    and is merged into ``details``.
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        error_type: Optional[str] = None,
        resource_info: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> None:
        self.operation = operation
        self.error_type = error_type
        self.resource_info = resource_info or {}

        details = kwargs.pop("details", None) or {}
        details.update(self.resource_info)
        kwargs.pop("context", None)
        context = _drop_none(operation=operation or None, error_type=error_type or None)

        super().__init__(message, details=details, context=context, **kwargs)


class DataFormatError(ValidationError):
    """An edge-list file could not be read or parsed."""

    def __init__(
        self,
        message: str,
        format_type: Optional[str] = None,
        file_path: Optional[str] = None,
        **kwargs
    ) -> None:
        details = kwargs.pop("details", None) or {}
        details.update(_drop_none(format_type=format_type or None, file_path=file_path or None))
        super().__init__(message, details=details, **kwargs)


class ConvergenceWarning(UserWarning):
    """Warning emitted when an optimizer phase stops at its sweep cap."""


def validate_parameter(
    value: Any,
    valid_options: List[Any],
    parameter_name: str,
    function_name: Optional[str] = None
) -> None:
    """Raise ``ConfigurationError`` unless ``value`` is one of ``valid_options``."""
    if value not in valid_options:
        raise ConfigurationError(
            f"Invalid value for parameter '{parameter_name}': {value}",
            parameter=parameter_name,
            value=value,
            valid_options=valid_options,
            function=function_name
        )


def require_positive(
    value: Union[int, float],
    parameter_name: str,
    allow_zero: bool = False
) -> None:
    """
    Raise ``ConfigurationError`` unless ``value > 0`` (``>= 0`` with ``allow_zero``).
    """
    if allow_zero:
        if value < 0:
            raise ConfigurationError(
                f"Parameter '{parameter_name}' must be non-negative, got {value}",
                parameter=parameter_name,
                value=value
            )
    elif value <= 0:
        raise ConfigurationError(
            f"Parameter '{parameter_name}' must be positive, got {value}",
            parameter=parameter_name,
            value=value
        )
