"""
Errors raised while generating the swagger document
"""


class SchemaResolutionError(ValueError):
    """Raised when a type reference cannot be resolved to a schema"""


class SwaggerWriteError(OSError):
    """Raised when a serialized swagger document cannot be written"""
