"""
Normalized, language-neutral description of a proto service file and the
records exported for the HTTP adapter
"""

# Standard
from dataclasses import dataclass, field
from typing import Dict, List, Optional
import enum


class FieldKind(str, enum.Enum):
    INTEGER = "integer"
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    ENUM = "enum"
    OBJECT = "object"


@dataclass
class MessageRef:
    name: str
    is_stream: bool = False


@dataclass
class Operation:
    name: str
    request: MessageRef
    response: MessageRef


@dataclass
class OperationSet:
    service_name: str
    operations: List[Operation] = field(default_factory=list)


@dataclass
class ServiceDescription:
    package_name: str
    services: List[OperationSet] = field(default_factory=list)

    @property
    def package_prefix(self) -> str:
        """The prefix used to qualify definition names in this package"""
        return f"{self.package_name}." if self.package_name else ""


@dataclass
class Field:
    """A single message field. The type is the scalar name for primitive kinds,
    the qualified enum name for enums and the qualified message name for
    objects.
    """

    name: str
    type: str
    kind: FieldKind
    is_repeated: bool = False
    id: int = 0
    enum: Optional[Dict[str, int]] = None


@dataclass
class MessageDescriptor:
    name: str
    fields: List[Field] = field(default_factory=list)


# Qualified message name -> descriptor, in registration order
MessageRegistry = Dict[str, MessageDescriptor]


@dataclass
class PathDescriptor:
    path_name: str
    operation: str
    obj: dict
    is_stream: Optional[bool] = None

    def to_dict(self) -> dict:
        out = {"pathName": self.path_name, "operation": self.operation}
        if self.is_stream is not None:
            out["isStream"] = self.is_stream
        out["obj"] = self.obj
        return out


@dataclass
class PathObjects:
    """The eight categories of path records handed to the HTTP adapter"""

    post_objects: List[PathDescriptor] = field(default_factory=list)
    get_objects: List[PathDescriptor] = field(default_factory=list)
    bi_stream_objects: List[PathDescriptor] = field(default_factory=list)
    out_stream_objects: List[PathDescriptor] = field(default_factory=list)
    in_stream_objects: List[PathDescriptor] = field(default_factory=list)
    no_in_stream_objects: List[PathDescriptor] = field(default_factory=list)
    no_out_stream_objects: List[PathDescriptor] = field(default_factory=list)
    no_out_stream_objects_message: List[PathDescriptor] = field(
        default_factory=list
    )

    CATEGORIES = {
        "postObjects": "post_objects",
        "getObjects": "get_objects",
        "biStreamObjects": "bi_stream_objects",
        "outStreamObjects": "out_stream_objects",
        "inStreamObjects": "in_stream_objects",
        "noInStreamObjects": "no_in_stream_objects",
        "noOutStreamObjects": "no_out_stream_objects",
        "noOutStreamObjectsMessage": "no_out_stream_objects_message",
    }

    def to_dict(self) -> Dict[str, List[dict]]:
        """Export the records keyed by their adapter category names"""
        return {
            category: [record.to_dict() for record in getattr(self, attr)]
            for category, attr in self.CATEGORIES.items()
        }
