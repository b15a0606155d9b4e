"""
errors.py
Exceptions shared by the store, the finance core and the pages.
"""


class DahiraError(Exception):
    pass


class ValidationError(DahiraError):
    """Rejected user input; pages show it inline and keep going."""

    def __init__(self, errors):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class PersistenceError(DahiraError):
    """A store read or write did not land."""


class DuplicateCotisationError(PersistenceError):
    pass


class NotFoundError(PersistenceError):
    pass
