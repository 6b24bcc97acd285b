class MappingError(Exception):
    """Base exception for mapping store invariant violations."""


class DuplicateIdError(MappingError):
    """Raised when an entity id is already present in the store."""


class UnknownEntityError(MappingError):
    """Raised when an operation targets an id the store does not hold."""


class InvalidSubstituteError(MappingError):
    """Raised when a substitute is empty or equal to its original."""


class ConflictingSubstituteError(MappingError):
    """Raised when one (original, type) pair would map to two substitutes."""
