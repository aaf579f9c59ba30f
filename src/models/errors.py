"""
Exception types for annocode

Only programming and configuration mistakes raise. Author mistakes in
directives, comments or highlight ranges are logged and degrade the
rendering of the affected line or block instead.
"""


class AnnocodeError(Exception):
    """Base class for annocode exceptions"""
    pass


class PipelineConfigError(AnnocodeError):
    """Raised when the stage order violates a declared dependency"""
    pass


class MetaStoreFrozenError(AnnocodeError):
    """Raised when a directive value is written after preprocessing"""
    pass
