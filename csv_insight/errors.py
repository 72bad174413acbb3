"""
Error taxonomy for the CSV pipeline.

Every error carries a message that can be shown to an end user as-is.
Cell-level problems never raise; they fall back to well-defined defaults.
"""


class CsvInsightError(RuntimeError):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class EmptyInputError(CsvInsightError):
    """No usable rows after parsing."""


class UnsupportedSourceError(CsvInsightError):
    """A file reference could not be resolved to bytes."""


class NoDataError(CsvInsightError):
    """A row query was run with no table available."""
