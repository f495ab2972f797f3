class InvalidReferenceError(ValueError):
    """A payload points at a row that is missing, deleted or in another site."""
