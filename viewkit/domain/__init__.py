"""Domain package exports for value objects, ports and errors."""

from .errors import DataServiceError, FragmentLoadError, RequestDescriptorError, ViewKitError
from .filters import Filter, FilterOperator, Sorter, build_filters
from .descriptor import NormalizedRequestParameters, OperationKind, RequestDescriptor, UNSET

__all__ = [
    "DataServiceError",
    "Filter",
    "FilterOperator",
    "FragmentLoadError",
    "NormalizedRequestParameters",
    "OperationKind",
    "RequestDescriptor",
    "RequestDescriptorError",
    "Sorter",
    "UNSET",
    "ViewKitError",
    "build_filters",
]
