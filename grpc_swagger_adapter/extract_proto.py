"""
This module holds the extractor that walks a loaded proto Namespace tree and
produces the normalized ServiceDescription and MessageRegistry used to
generate the swagger document.
"""

# Standard
from typing import Dict, List, Optional, Set, Tuple

# Local
from .constants import (
    BOOLEAN_TYPES,
    DEFAULT_MAX_DEPTH,
    INTEGER_TYPES,
    NUMBER_TYPES,
    OBJECT_TYPES,
    STRING_TYPES,
)
from .errors import SchemaResolutionError
from .log import log
from .models import (
    Field,
    FieldKind,
    MessageDescriptor,
    MessageRef,
    MessageRegistry,
    Operation,
    OperationSet,
    ServiceDescription,
)
from .proto_ast import (
    EnumField,
    Message,
    MessageField,
    Namespace,
    ProtoField,
    ScalarField,
    Service,
    registry_name,
)


def scalar_kind(type_name: str) -> FieldKind:
    """Classify a scalar or well-known proto type into its field kind"""
    if type_name in NUMBER_TYPES:
        return FieldKind.NUMBER
    if type_name in STRING_TYPES:
        return FieldKind.STRING
    if type_name in BOOLEAN_TYPES:
        return FieldKind.BOOLEAN
    if type_name in INTEGER_TYPES:
        return FieldKind.INTEGER
    if type_name in OBJECT_TYPES:
        return FieldKind.OBJECT
    raise SchemaResolutionError(f"Unknown scalar type [{type_name}]")


def resolve_package(root: Namespace) -> Tuple[str, Namespace]:
    """Descend through single-child namespaces to find the package name and the
    node that holds the services
    """
    parts = []
    node = root
    while len(node.children) == 1:
        (child,) = node.children.values()
        if not isinstance(child, Namespace):
            break
        parts.append(child.name)
        node = child
    return ".".join(parts), node


def extract_operations(service: Service, package: str = "") -> OperationSet:
    operation_set = OperationSet(service_name=service.name)
    for method in service.children:
        operation_set.operations.append(
            Operation(
                name=method.name,
                request=MessageRef(
                    name=registry_name(method.resolved_request_type, package),
                    is_stream=method.request_stream,
                ),
                response=MessageRef(
                    name=registry_name(method.resolved_response_type, package),
                    is_stream=method.response_stream,
                ),
            )
        )
    return operation_set


class MessageCollector:
    """Depth-bounded, memoized discovery of every message reachable from a set
    of operations. Each message is registered once under its qualified name,
    prefixed with its own package when it comes from another package;
    the first path to reach it wins, and a message that is still being expanded
    is not entered again, so cyclic type graphs terminate.
    """

    def __init__(
        self,
        max_depth: int = DEFAULT_MAX_DEPTH,
        strict_depth: bool = False,
        package: str = "",
    ):
        self.package = package
        self.max_depth = max_depth
        self.strict_depth = strict_depth
        self.registry: MessageRegistry = {}
        self.truncated: List[str] = []
        self._visiting: Set[str] = set()
        self._sources: Dict[str, Message] = {}

    def collect(self, message: Message, name: str, depth: int = 1):
        source = self._sources.get(name)
        if source is not None and source is not message:
            raise SchemaResolutionError(
                f"Registry name [{name}] is shared by two different messages"
            )
        if name in self.registry or name in self._visiting:
            return
        if depth >= self.max_depth:
            if self.strict_depth:
                raise SchemaResolutionError(
                    f"Message [{name}] exceeds the maximum depth of {self.max_depth}"
                )
            log.warning(
                "Dropping message [%s]: maximum depth %d reached", name, self.max_depth
            )
            self.truncated.append(name)
            return

        self._sources[name] = message
        self._visiting.add(name)
        local_nested: Set[str] = set()
        for nested in message.nested_messages:
            local_nested.add(nested.name)
            self.collect(nested, f"{name}_{nested.name}", depth + 1)

        fields = [
            self._make_field(proto_field, name, local_nested, depth)
            for proto_field in message.fields
        ]
        log.debug("Registering message [%s] with %d fields", name, len(fields))
        self.registry[name] = MessageDescriptor(name=name, fields=fields)
        self._visiting.discard(name)

    def _make_field(
        self,
        proto_field: ProtoField,
        message_name: str,
        local_nested: Set[str],
        depth: int,
    ) -> Field:
        enum_values: Optional[dict] = None
        if isinstance(proto_field, MessageField):
            kind = FieldKind.OBJECT
            referenced = proto_field.resolved_type
            if referenced.name in local_nested:
                type_name = f"{message_name}_{referenced.name}"
            else:
                type_name = registry_name(referenced, self.package)
                self.collect(referenced, type_name, depth + 1)
        elif isinstance(proto_field, EnumField):
            kind = FieldKind.ENUM
            type_name = registry_name(proto_field.resolved_type, self.package)
            enum_values = dict(proto_field.resolved_type.values)
        elif isinstance(proto_field, ScalarField):
            kind = scalar_kind(proto_field.type_name)
            type_name = proto_field.type_name
        else:
            raise SchemaResolutionError(
                f"Unresolved field [{proto_field}] in message [{message_name}]"
            )
        return Field(
            name=proto_field.name,
            type=type_name,
            kind=kind,
            is_repeated=proto_field.repeated,
            id=proto_field.id,
            enum=enum_values,
        )


def extract_service_description(
    root: Namespace,
    max_depth: int = DEFAULT_MAX_DEPTH,
    strict_depth: bool = False,
) -> Tuple[ServiceDescription, MessageRegistry]:
    """Given a loaded proto tree, extract the package, its services and the
    registry of every message they reach
    """
    package_name, package_node = resolve_package(root)
    log.debug("Resolved package [%s]", package_name)
    description = ServiceDescription(package_name=package_name)
    services = [
        child for child in package_node.children.values() if isinstance(child, Service)
    ]

    collector = MessageCollector(
        max_depth=max_depth, strict_depth=strict_depth, package=package_name
    )
    for service in services:
        for method in service.children:
            request = method.resolved_request_type
            collector.collect(request, registry_name(request, package_name))
            response = method.resolved_response_type
            collector.collect(response, registry_name(response, package_name))

    for service in services:
        log.debug("Adding service %s -> %s", package_name, service)
        description.services.append(extract_operations(service, package_name))
    return description, collector.registry
