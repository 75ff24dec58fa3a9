"""
Shared constants for the library
"""

# Standard
import os

DEFAULT_OUTPUT_DIR = os.path.join(os.path.dirname(__file__), "build")
SWAGGER_JSON = "swagger.json"
SWAGGER_YAML = "swagger.yml"

# Messages nested deeper than this are dropped from the registry
DEFAULT_MAX_DEPTH = 10

## Proto scalar families #######################################################

NUMBER_TYPES = frozenset(["fixed32", "uint32", "float", "double"])
STRING_TYPES = frozenset(
    ["string", "bytes", "fixed64", "uint64", "Timestamp", "Duration", "FieldMask"]
)
BOOLEAN_TYPES = frozenset(["bool"])
INTEGER_TYPES = frozenset(
    ["int32", "int64", "sint32", "sint64", "sfixed32", "sfixed64"]
)
OBJECT_TYPES = frozenset(["Any", "Struct"])

# google.protobuf well-known types that the loader treats as scalars
WELL_KNOWN_TYPES = frozenset(["Timestamp", "Duration", "FieldMask", "Any", "Struct"])
WELL_KNOWN_PACKAGE = "google.protobuf"

## OpenAPI #####################################################################

FORMAT_TYPES = frozenset(
    [
        "int32",
        "int64",
        "float",
        "double",
        "byte",
        "binary",
        "date",
        "date-time",
        "password",
    ]
)

DEFINITIONS_REF = "#/definitions/"
JSON_LINES_NOTE = "as newline-delimited JSON, see http://jsonlines.org"
