"""
Typed nodes for a loaded protobuf definition tree. A tree is rooted at a
Namespace whose children are nested namespaces (one per package segment),
services, messages and enums.
"""

# Standard
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union


class _NamedProtoElement:
    def __str__(self) -> str:
        return self.name


@dataclass
class EnumType(_NamedProtoElement):
    name: str
    values: Dict[str, int] = field(default_factory=dict)
    parent: Optional["Message"] = field(default=None, repr=False, compare=False)
    package: str = ""

    @property
    def qualified_name(self) -> str:
        return _qualify(self.parent, self.name)


@dataclass
class ScalarField(_NamedProtoElement):
    """A field of a scalar or well-known type (e.g. int32, Timestamp, Any)"""

    name: str
    type_name: str
    id: int
    repeated: bool = False


@dataclass
class EnumField(_NamedProtoElement):
    name: str
    resolved_type: EnumType
    id: int = 0
    repeated: bool = False


@dataclass
class MessageField(_NamedProtoElement):
    name: str
    resolved_type: "Message" = field(repr=False, compare=False)
    id: int = 0
    repeated: bool = False


ProtoField = Union[ScalarField, EnumField, MessageField]


@dataclass
class Message(_NamedProtoElement):
    """A message definition. Children are nested messages and fields in
    declaration order.
    """

    name: str
    children: List[Union["Message", ProtoField]] = field(default_factory=list)
    enums: Dict[str, EnumType] = field(default_factory=dict)
    parent: Optional["Message"] = field(default=None, repr=False, compare=False)
    package: str = ""

    @property
    def qualified_name(self) -> str:
        """Name relative to the package, nested names joined with _"""
        return _qualify(self.parent, self.name)

    @property
    def nested_messages(self) -> List["Message"]:
        return [child for child in self.children if isinstance(child, Message)]

    @property
    def fields(self) -> List[ProtoField]:
        return [child for child in self.children if not isinstance(child, Message)]


@dataclass
class Method(_NamedProtoElement):
    name: str
    resolved_request_type: Message
    resolved_response_type: Message
    request_stream: bool = False
    response_stream: bool = False


@dataclass
class Service(_NamedProtoElement):
    name: str
    children: List[Method] = field(default_factory=list)


@dataclass
class Namespace(_NamedProtoElement):
    name: str
    children: Dict[str, Union["Namespace", Service, Message, EnumType]] = field(
        default_factory=dict
    )

    def namespace(self, name: str) -> "Namespace":
        """Get or create the child namespace with the given name"""
        child = self.children.setdefault(name, Namespace(name=name))
        assert isinstance(child, Namespace), f"{name} is not a namespace"
        return child


def _qualify(parent: Optional[Message], name: str) -> str:
    if parent is None:
        return name
    return f"{parent.qualified_name}_{name}"


def registry_name(node: Union[Message, EnumType], package: str) -> str:
    """Name of a message or enum as seen from the given package. Types from
    another package keep their own package as a prefix.
    """
    if node.package and node.package != package:
        return f"{node.package}.{node.qualified_name}"
    return node.qualified_name
