"""Tree execution: operations, the sequential executor and its checkpoint."""

from .context import ContextStore, ExecutionContext
from .executor import TreeSession, execute_build_order, format_package_error
from .operations import (
    BuiltInOperation,
    Operation,
    PublishOperation,
    ShellOperation,
    build_operation,
    validate_tree_config,
)
from .types import (
    OperationKind,
    OperationResult,
    PackageContext,
    PublishedVersion,
    TreeConfig,
)

__all__ = [
    "OperationKind",
    "OperationResult",
    "PackageContext",
    "PublishedVersion",
    "TreeConfig",
    "Operation",
    "ShellOperation",
    "BuiltInOperation",
    "PublishOperation",
    "build_operation",
    "validate_tree_config",
    "ContextStore",
    "ExecutionContext",
    "TreeSession",
    "execute_build_order",
    "format_package_error",
]
