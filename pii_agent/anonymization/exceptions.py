class SubstitutionError(Exception):
    """Raised when substitutes cannot be generated or applied."""
