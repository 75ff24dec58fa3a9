"""
Generate a Swagger 2.0 document and HTTP adapter path records from protobuf
service definitions
"""

# Local
from .errors import SchemaResolutionError, SwaggerWriteError
from .gen_adapter import get_path_objects
from .models import PathDescriptor, PathObjects
