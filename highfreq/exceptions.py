"""
Exceptions raised by the high-frequency terms engine.
"""


class HighFreqTermsError(Exception):
    """Base exception for term statistics extraction"""
    pass


class ConfigurationError(HighFreqTermsError, ValueError):
    """Invalid result count or selector capacity"""
    pass


class IndexUnavailableError(HighFreqTermsError):
    """Index is closed, missing or its root structure cannot be read"""
    pass


class FieldReadError(HighFreqTermsError):
    """Hard fault while scanning a field's term dictionary"""

    def __init__(self, field: str, message: str):
        super().__init__(f"field {field!r}: {message}")
        self.field = field


class StatUnavailableError(HighFreqTermsError):
    """A per-term or per-field statistic cannot be computed"""
    pass
