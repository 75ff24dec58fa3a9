"""
This utility module holds the logic for loading a set of protobuf files into
typed Namespace trees that the extractor can walk.

The loader understands the subset of the proto2/proto3 grammar needed to
describe services: packages, (nested) messages, enums, oneofs and rpcs. Options,
reserved ranges, imports and extensions are skipped.
"""

# Standard
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple, Union
import re

# Local
from .constants import WELL_KNOWN_PACKAGE, WELL_KNOWN_TYPES
from .errors import SchemaResolutionError
from .log import log
from .proto_ast import (
    EnumField,
    EnumType,
    Message,
    MessageField,
    Method,
    Namespace,
    ScalarField,
    Service,
)

PROTO_SCALARS = frozenset(
    [
        "double",
        "float",
        "int32",
        "int64",
        "uint32",
        "uint64",
        "sint32",
        "sint64",
        "fixed32",
        "fixed64",
        "sfixed32",
        "sfixed64",
        "bool",
        "string",
        "bytes",
    ]
)

# Well-known message types that carry no fields of their own
WELL_KNOWN_MESSAGES = frozenset(["Empty"])

FIELD_LABELS = frozenset(["repeated", "optional", "required"])

_COMMENT_RE = re.compile(
    r"(\"(?:[^\"\\\n]|\\.)*\"|'(?:[^'\\\n]|\\.)*')|//[^\n]*|/\*.*?\*/", re.DOTALL
)
_TOKEN_RE = re.compile(
    r"\"(?:[^\"\\\n]|\\.)*\"|'(?:[^'\\\n]|\\.)*'|[A-Za-z_.][\w.]*|-?\d[\w.]*|\S"
)

Token = Tuple[str, int]

_OCTAL_RE = re.compile(r"-?0[0-7]+")


@dataclass
class _PendingField:
    name: str
    type_name: str
    id: int
    repeated: bool
    lineno: int


@dataclass
class _PendingRpc:
    name: str
    request_type: str
    request_stream: bool
    response_type: str
    response_stream: bool
    lineno: int


## Tokenizing ##################################################################


def strip_comments(content: str) -> str:
    """Remove // and /* */ comments, keeping string literals and line count"""
    return _COMMENT_RE.sub(
        lambda match: match.group(1) or "\n" * match.group(0).count("\n"), content
    )


def tokenize(content: str) -> List[Token]:
    """Split proto source into (token, line number) pairs"""
    content = strip_comments(content)
    tokens = []
    lineno = 1
    last_pos = 0
    for match in _TOKEN_RE.finditer(content):
        lineno += content.count("\n", last_pos, match.start())
        last_pos = match.start()
        tokens.append((match.group(0), lineno))
    return tokens


def parse_int(number: str) -> int:
    """Parse a proto integer literal: decimal, 0x hex or 0-prefixed octal"""
    if _OCTAL_RE.fullmatch(number):
        return int(number, 8)
    return int(number, 0)


## Parsing #####################################################################


class _ProtoFileParser:
    """Parser for a single proto file. Types are collected into the shared
    index; fields and rpcs stay pending until every file has been read.
    """

    def __init__(self, fname: str, content: str, types: Dict[str, object]):
        self.fname = fname
        self.tokens = tokenize(content)
        self.pos = 0
        self.types = types
        self.root = Namespace(name="")
        self.package = ""
        self.package_node = self.root
        self.pending_fields: List[Tuple[Message, str, _PendingField]] = []
        self.pending_rpcs: List[Tuple[Service, _PendingRpc]] = []

    ## Token helpers ##

    def _error(self, msg: str, lineno: Optional[int] = None) -> SchemaResolutionError:
        if lineno is None:
            lineno = self._peek()[1] if self.pos < len(self.tokens) else "EOF"
        return SchemaResolutionError(f"{self.fname}:{lineno}: {msg}")

    def _peek(self, offset: int = 0) -> Token:
        if self.pos + offset >= len(self.tokens):
            raise self._error("Unexpected end of file", "EOF")
        return self.tokens[self.pos + offset]

    def _next(self) -> Token:
        token = self._peek()
        self.pos += 1
        return token

    def _expect(self, value: str) -> Token:
        token = self._next()
        if token[0] != value:
            raise self._error(f"Expected [{value}], got [{token[0]}]", token[1])
        return token

    def _skip_statement(self):
        """Skip to the end of the current statement, including any aggregate
        option values in braces
        """
        depth = 0
        while True:
            value, _ = self._next()
            if value == "{":
                depth += 1
            elif value == "}":
                depth -= 1
            elif value == ";" and depth == 0:
                return

    def _skip_block(self):
        """Skip a {...} block, starting at its opening brace"""
        self._expect("{")
        depth = 1
        while depth:
            value, _ = self._next()
            if value == "{":
                depth += 1
            elif value == "}":
                depth -= 1

    ## Grammar ##

    def parse(self) -> Namespace:
        while self.pos < len(self.tokens):
            value, lineno = self._next()
            if value == "package":
                self._parse_package(lineno)
            elif value == "message":
                self._parse_message(parent=None)
            elif value == "enum":
                self._parse_enum(parent=None)
            elif value == "service":
                self._parse_service()
            elif value == "extend":
                log.warning("Skipping extension at %s:%d", self.fname, lineno)
                self._next()
                self._skip_block()
            elif value in ["syntax", "edition", "import", "option"]:
                self._skip_statement()
            elif value != ";":
                raise self._error(f"Unexpected token [{value}]", lineno)
        return self.root

    def _parse_package(self, lineno: int):
        if self.package:
            raise self._error("Can't have multiple package declarations", lineno)
        self.package, _ = self._next()
        self._expect(";")
        for part in self.package.split("."):
            self.package_node = self.package_node.namespace(part)
        log.debug("Setting current package: %s", self.package)

    def _full_name(self, qualified_parts: List[str]) -> str:
        return ".".join(([self.package] if self.package else []) + qualified_parts)

    def _scope_parts(self, parent: Optional[Message]) -> List[str]:
        parts = []
        while parent is not None:
            parts.insert(0, parent.name)
            parent = parent.parent
        return parts

    def _register_type(
        self, node: Union[Message, EnumType], parent: Optional[Message], lineno: int
    ):
        full_name = self._full_name(self._scope_parts(parent) + [node.name])
        if full_name in self.types:
            raise self._error(f"Duplicate type [{full_name}]", lineno)
        self.types[full_name] = node
        if parent is None:
            self.package_node.children[node.name] = node

    def _parse_message(self, parent: Optional[Message]) -> Message:
        name, lineno = self._next()
        message = Message(name=name, parent=parent, package=self.package)
        self._register_type(message, parent, lineno)
        log.debug("Adding message [%s] in package [%s]", name, self.package)
        scope = self._full_name(self._scope_parts(message))
        self._expect("{")
        while True:
            value, lineno = self._peek()
            if value == "}":
                self._next()
                break
            if value == "message":
                self._next()
                message.children.append(self._parse_message(parent=message))
            elif value == "enum":
                self._next()
                enum_type = self._parse_enum(parent=message)
                message.enums[enum_type.name] = enum_type
            elif value == "oneof":
                # The oneof's own name is not important in this interface
                self._next()
                self._next()
                self._expect("{")
                while self._peek()[0] != "}":
                    if self._peek()[0] == "option":
                        self._skip_statement()
                    else:
                        self._parse_field(message, scope)
                self._expect("}")
            elif value == "extend":
                log.warning("Skipping extension at %s:%d", self.fname, lineno)
                self._next()
                self._next()
                self._skip_block()
            elif value == "map" and self._peek(1)[0] == "<":
                log.warning(
                    "Skipping unsupported map field in [%s] at %s:%d",
                    name,
                    self.fname,
                    lineno,
                )
                self._skip_statement()
            elif value in ["option", "reserved", "extensions"]:
                self._skip_statement()
            elif value == ";":
                self._next()
            else:
                self._parse_field(message, scope)
        return message

    def _parse_field(self, message: Message, scope: str):
        value, lineno = self._next()
        repeated = False
        if value in FIELD_LABELS:
            repeated = value == "repeated"
            value, _ = self._next()
        if value == "group":
            raise self._error("Groups are not supported", lineno)
        type_name = value
        name, _ = self._next()
        self._expect("=")
        number, _ = self._next()
        try:
            field_id = parse_int(number)
        except ValueError:
            raise self._error(f"Invalid field number [{number}]", lineno)
        # Field options such as [default = 1] are not needed
        if self._peek()[0] == "[":
            while self._next()[0] != "]":
                pass
        self._expect(";")
        pending = _PendingField(
            name=name,
            type_name=type_name,
            id=field_id,
            repeated=repeated,
            lineno=lineno,
        )
        message.children.append(pending)
        self.pending_fields.append((message, scope, pending))

    def _parse_enum(self, parent: Optional[Message]) -> EnumType:
        name, lineno = self._next()
        enum_type = EnumType(name=name, parent=parent, package=self.package)
        self._register_type(enum_type, parent, lineno)
        self._expect("{")
        while True:
            value, lineno = self._next()
            if value == "}":
                break
            if value in ["option", "reserved"]:
                self._skip_statement()
            elif value != ";":
                self._expect("=")
                number, _ = self._next()
                try:
                    enum_type.values[value] = parse_int(number)
                except ValueError:
                    raise self._error(f"Invalid enum value [{number}]", lineno)
                if self._peek()[0] == "[":
                    while self._next()[0] != "]":
                        pass
                self._expect(";")
        return enum_type

    def _parse_service(self):
        name, _ = self._next()
        service = Service(name=name)
        self.package_node.children[name] = service
        log.debug("Setting current service: %s", service)
        self._expect("{")
        while True:
            value, lineno = self._next()
            if value == "}":
                break
            if value == "rpc":
                self._parse_rpc(service, lineno)
            elif value == "option":
                self._skip_statement()
            elif value != ";":
                raise self._error(f"Unexpected token [{value}] in service", lineno)

    def _parse_rpc_type(self) -> Tuple[str, bool]:
        self._expect("(")
        type_name, _ = self._next()
        is_stream = False
        if type_name == "stream" and self._peek()[0] != ")":
            is_stream = True
            type_name, _ = self._next()
        self._expect(")")
        return type_name, is_stream

    def _parse_rpc(self, service: Service, lineno: int):
        name, _ = self._next()
        request_type, request_stream = self._parse_rpc_type()
        self._expect("returns")
        response_type, response_stream = self._parse_rpc_type()
        if self._peek()[0] == "{":
            self._skip_block()
        else:
            self._expect(";")
        log.debug("Parsing rpc %s -> %s -> %s", self.package, service, name)
        self.pending_rpcs.append(
            (
                service,
                _PendingRpc(
                    name=name,
                    request_type=request_type,
                    request_stream=request_stream,
                    response_type=response_type,
                    response_stream=response_stream,
                    lineno=lineno,
                ),
            )
        )


## Resolution ##################################################################


def _well_known_name(type_name: str) -> Optional[str]:
    name = type_name.lstrip(".")
    prefix = WELL_KNOWN_PACKAGE + "."
    if name.startswith(prefix):
        name = name[len(prefix) :]
    if name in WELL_KNOWN_TYPES or name in WELL_KNOWN_MESSAGES:
        return name
    return None


def resolve_type(
    type_name: str, scope: str, types: Dict[str, object]
) -> Optional[object]:
    """Resolve a type reference following the protobuf scoping rules: an
    absolute name (leading .) is looked up directly, otherwise the innermost
    enclosing scope is searched first, moving outward.
    """
    if type_name.startswith("."):
        return types.get(type_name[1:])
    scope_parts = scope.split(".") if scope else []
    while True:
        candidate = ".".join(scope_parts + [type_name])
        if candidate in types:
            return types[candidate]
        if not scope_parts:
            return None
        scope_parts.pop()


class _ProtoResolver:
    """Turns pending fields and rpcs into typed nodes once all files are known"""

    def __init__(self, types: Dict[str, object]):
        self.types = types
        self.well_known_messages: Dict[str, Message] = {}

    def _well_known_message(self, name: str) -> Message:
        return self.well_known_messages.setdefault(name, Message(name=name))

    def resolve_field(self, parser: _ProtoFileParser, scope: str, pending: _PendingField):
        if pending.type_name in PROTO_SCALARS:
            return ScalarField(
                name=pending.name,
                type_name=pending.type_name,
                id=pending.id,
                repeated=pending.repeated,
            )
        resolved = resolve_type(pending.type_name, scope, self.types)
        if isinstance(resolved, Message):
            return MessageField(
                name=pending.name,
                resolved_type=resolved,
                id=pending.id,
                repeated=pending.repeated,
            )
        if isinstance(resolved, EnumType):
            return EnumField(
                name=pending.name,
                resolved_type=resolved,
                id=pending.id,
                repeated=pending.repeated,
            )
        well_known = _well_known_name(pending.type_name)
        if well_known in WELL_KNOWN_MESSAGES:
            return MessageField(
                name=pending.name,
                resolved_type=self._well_known_message(well_known),
                id=pending.id,
                repeated=pending.repeated,
            )
        if well_known is not None:
            return ScalarField(
                name=pending.name,
                type_name=well_known,
                id=pending.id,
                repeated=pending.repeated,
            )
        raise parser._error(
            f"Unresolved type [{pending.type_name}] for field [{pending.name}]",
            pending.lineno,
        )

    def resolve_message(
        self, parser: _ProtoFileParser, type_name: str, lineno: int
    ) -> Message:
        resolved = resolve_type(type_name, parser.package, self.types)
        if isinstance(resolved, Message):
            return resolved
        if _well_known_name(type_name) in WELL_KNOWN_MESSAGES:
            return self._well_known_message(_well_known_name(type_name))
        raise parser._error(f"Unresolved message type [{type_name}]", lineno)

    def resolve(self, parser: _ProtoFileParser):
        for message, scope, pending in parser.pending_fields:
            idx = next(
                i for i, child in enumerate(message.children) if child is pending
            )
            message.children[idx] = self.resolve_field(parser, scope, pending)
        for service, rpc in parser.pending_rpcs:
            service.children.append(
                Method(
                    name=rpc.name,
                    resolved_request_type=self.resolve_message(
                        parser, rpc.request_type, rpc.lineno
                    ),
                    resolved_response_type=self.resolve_message(
                        parser, rpc.response_type, rpc.lineno
                    ),
                    request_stream=rpc.request_stream,
                    response_stream=rpc.response_stream,
                )
            )


## Public ######################################################################


def parse_proto_content(contents: Dict[str, str]) -> List[Namespace]:
    """Load proto sources given as {file name: content}. Types declared in
    any of the files can be referenced from all of them. One Namespace root is
    returned per file, in input order.
    """
    types: Dict[str, object] = {}
    parsers = []
    for fname, content in contents.items():
        log.debug("Parsing %s", fname)
        parser = _ProtoFileParser(fname, content, types)
        parser.parse()
        parsers.append(parser)

    resolver = _ProtoResolver(types)
    for parser in parsers:
        resolver.resolve(parser)
    return [parser.root for parser in parsers]


def parse_proto_files(proto_files: Iterable[str]) -> List[Namespace]:
    """Given a set of protobuf files, load them into Namespace trees"""
    contents = {}
    for proto_file in proto_files:
        with open(proto_file, "r") as handle:
            contents[proto_file] = handle.read()
    return parse_proto_content(contents)
