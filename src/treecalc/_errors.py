"""Error taxonomy shared by the stores, the engines and the HTTP boundary."""


class TreecalcError(Exception):
    """Base class for all errors raised by treecalc."""


class NotFoundError(TreecalcError):
    """Raised when a variable, calculation or resource does not exist."""

    def __init__(self, kind: str, entity_id: int) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind.capitalize()} with ID {entity_id} not found")


class VariableNotFoundError(NotFoundError):
    """Raised when a variable-reference token resolves to no variable."""

    def __init__(self, variable_id: int) -> None:
        super().__init__("variable", variable_id)


class ValidationError(TreecalcError):
    """Raised when a tree mutation would break the forest invariant."""


class SelfParentError(ValidationError):
    """Raised when a resource is made its own parent."""

    def __init__(self, resource_id: int) -> None:
        self.resource_id = resource_id
        super().__init__(f"Resource {resource_id} cannot be its own parent")


class CycleError(ValidationError):
    """Raised when a reparent would make a resource its own ancestor."""

    def __init__(self, resource_id: int, new_parent_id: int) -> None:
        self.resource_id = resource_id
        self.new_parent_id = new_parent_id
        super().__init__(
            f"Resource {new_parent_id} is a descendant of resource {resource_id}; reparenting would create a cycle",
        )


class DanglingParentError(ValidationError):
    """Raised when a resource is created under a parent that does not exist."""

    def __init__(self, parent_id: int) -> None:
        self.parent_id = parent_id
        super().__init__(f"Parent resource with ID {parent_id} not found")


class ReferenceParseError(TreecalcError):
    """Raised when an embedded variable-reference token is malformed."""

    def __init__(self, snippet: str, reason: str, position: int | None = None) -> None:
        self.snippet = snippet
        self.reason = reason
        self.position = position
        super().__init__(f"Invalid variable reference {snippet!r}: {reason}")


class EvaluationError(TreecalcError):
    """Raised when the arithmetic of an expression cannot be evaluated."""

    def __init__(self, message: str, position: int | None = None) -> None:
        self.position = position
        if position is not None:
            message = f"{message} (at position {position})"
        super().__init__(message)
