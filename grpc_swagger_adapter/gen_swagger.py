"""
This module holds the gen_swagger function which is responsible for mapping
the extracted service descriptions onto a Swagger 2.0 document and onto the
path records used to wire up the HTTP adapter.

Every rpc becomes an asynchronous "instance" resource:

    POST /{package}/{service}/{rpc}                      create an instance
    GET|PATCH .../instances/{id}                         read/start it
    PUT .../instances/{id}/in/fields/{field}             unary input fields
    GET .../instances/{id}/out[/fields/{field}]          unary output
    POST .../instances/{id}/in/stream                    streamed input
    GET .../instances/{id}/out/stream                    streamed output
    GET .../instances/{id}/bi/stream                     both directions
"""

# Standard
from typing import Iterable, Tuple
import copy
import dataclasses

# Local
from .constants import DEFINITIONS_REF, FORMAT_TYPES, JSON_LINES_NOTE
from .errors import SchemaResolutionError
from .log import log
from .models import (
    Field,
    FieldKind,
    MessageRegistry,
    Operation,
    PathDescriptor,
    PathObjects,
    ServiceDescription,
)

## Templates ###################################################################

SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "REST API",
        "description": "Generated from gRPC API",
        "version": "1.0.0",
    },
    "basePath": "/",
    "paths": {},
    "definitions": {},
}

INSTANCE_DEFINITIONS = {
    "Instance": {
        "type": "object",
        "properties": {
            "id": {"type": "string", "description": "Unique identifier of instance"},
            "started": {"type": "boolean"},
            "done": {"type": "boolean"},
            "createdAt": {"type": "string"},
            "startedAt": {"type": "string"},
            "doneAt": {"type": "string"},
            "error": {
                "type": "string",
                "description": "Error message if instance failed",
            },
            "links": {
                "type": "object",
                "description": "Links to relevant resources such as output",
            },
        },
    },
    "InstanceWritable": {
        "type": "object",
        "properties": {"started": {"type": "boolean"}},
    },
}

START_PARAM = {"name": "start", "in": "query", "type": "boolean", "default": True}

INSTANCE_ID_PARAM = {
    "name": "id",
    "in": "path",
    "description": "Unique identifier of instance",
    "required": True,
    "type": "string",
}

EXCLUDE_OUTPUT_PARAM = {
    "name": "excludeOutput",
    "in": "query",
    "description": "Omit instance output in response",
    "type": "boolean",
    "default": False,
}

RESPONSE_202 = {
    "202": {
        "description": "Instance resource",
        "headers": {
            "Content-Location": {
                "description": "Path to created instance resource",
                "type": "string",
            }
        },
        "schema": {"$ref": DEFINITIONS_REF + "Instance"},
    }
}

RESPONSE_200_EMPTY = {"200": {"description": "Empty body"}}


def _ref(name: str) -> dict:
    return {"$ref": DEFINITIONS_REF + name}


def _id_param() -> dict:
    return copy.deepcopy(INSTANCE_ID_PARAM)


def _stream_param(schema: dict) -> dict:
    return {
        "name": "stream",
        "description": "Input stream",
        "in": "body",
        "required": True,
        "schema": schema,
    }


## Schemas #####################################################################


def field_schema(field: Field, package_prefix: str) -> dict:
    """Build the schema fragment for a single message field"""
    if field.is_repeated:
        return {
            "type": "array",
            "items": field_schema(
                dataclasses.replace(field, is_repeated=False), package_prefix
            ),
        }
    if field.kind == FieldKind.OBJECT:
        return _ref(package_prefix + field.type)
    if field.kind == FieldKind.ENUM:
        return {"type": "string", "enum": list(field.enum or {})}
    schema = {"type": field.kind.value}
    if field.type in FORMAT_TYPES:
        schema["format"] = field.type
    return schema


def gen_definitions(
    description: ServiceDescription, registry: MessageRegistry
) -> dict:
    """Build one object schema per registered message, keyed by qualified name"""
    prefix = description.package_prefix
    definitions = {}
    for message in registry.values():
        definitions[prefix + message.name] = {
            "type": "object",
            "properties": {
                field.name: field_schema(field, prefix) for field in message.fields
            },
        }
    return definitions


## Paths #######################################################################


class _OperationPaths:
    """Emits the paths for a single operation into the shared swagger document
    and path record lists
    """

    def __init__(
        self,
        description: ServiceDescription,
        service_name: str,
        operation: Operation,
        registry: MessageRegistry,
        swagger: dict,
        path_objects: PathObjects,
    ):
        self.operation = operation
        self.registry = registry
        self.swagger = swagger
        self.path_objects = path_objects
        self.prefix = description.package_prefix
        self.service_tag = self.prefix + service_name
        self.operation_tag = f"{self.service_tag}.{operation.name}"
        segments = [description.package_name, service_name, operation.name]
        self.base_path = "/" + "/".join(segment for segment in segments if segment)
        self.instance_path = self.base_path + "/instances/{id}"
        self.adapter_instance_path = self.base_path + "/instances/:id"
        self.request_ref = self.prefix + operation.request.name
        self.response_ref = self.prefix + operation.response.name

    def _tags(self, *extra: str) -> list:
        return list(extra) + [self.service_tag, self.operation_tag]

    def _message_fields(self, name: str):
        if name not in self.registry:
            raise SchemaResolutionError(
                f"Operation [{self.operation_tag}] references unknown message [{name}]"
            )
        return self.registry[name].fields

    def _add(self, category: list, suffix: str, path_obj: dict, **kwargs):
        path_name = self.instance_path + suffix
        log.debug("Adding path [%s]", path_name)
        self.swagger["paths"][path_name] = path_obj
        category.append(
            PathDescriptor(
                path_name=self.adapter_instance_path + suffix,
                operation=self.operation.name,
                obj=path_obj,
                **kwargs,
            )
        )

    def emit(self):
        request = self.operation.request
        response = self.operation.response
        self._message_fields(request.name)
        self._message_fields(response.name)

        self.create_path()
        self.instance_paths()
        if not request.is_stream:
            self.in_field_paths()
        if not response.is_stream:
            self.out_field_paths()
        if request.is_stream:
            self.in_stream_path()
        if response.is_stream:
            self.out_stream_path()
        if request.is_stream and response.is_stream:
            self.bi_stream_path()

    def create_path(self):
        path_obj = {
            "post": {
                "summary": self.operation.name,
                "consumes": ["application/json"],
                "tags": self._tags(),
                "parameters": [
                    copy.deepcopy(START_PARAM),
                    {"name": "input", "in": "body", "schema": _ref(self.request_ref)},
                ],
                "responses": copy.deepcopy(RESPONSE_202),
            }
        }
        log.debug("Adding path [%s]", self.base_path)
        self.swagger["paths"][self.base_path] = path_obj
        self.path_objects.post_objects.append(
            PathDescriptor(
                path_name=self.base_path,
                operation=self.operation.name,
                obj=path_obj,
                is_stream=self.operation.response.is_stream,
            )
        )

    def instance_paths(self):
        is_stream = self.operation.response.is_stream
        params = [_id_param()]
        if is_stream:
            schema = _ref("Instance")
        else:
            params.append(copy.deepcopy(EXCLUDE_OUTPUT_PARAM))
            schema = {
                "type": "object",
                "allOf": [
                    _ref("Instance"),
                    {
                        "type": "object",
                        "properties": {"out": _ref(self.response_ref)},
                    },
                ],
            }
        path_obj = {
            "patch": {
                "summary": "Update instance resource",
                "consumes": ["application/json"],
                "parameters": [
                    _id_param(),
                    {
                        "name": "instance",
                        "in": "body",
                        "description": "Updated parts of instance resource",
                        "required": True,
                        "schema": _ref("InstanceWritable"),
                    },
                ],
                "tags": self._tags("Instances"),
                "responses": copy.deepcopy(RESPONSE_200_EMPTY),
            },
            "get": {
                "summary": "Get instance resource",
                "produces": ["application/json"],
                "parameters": params,
                "tags": self._tags("Instances"),
                "responses": {
                    "200": {"description": "Instance resource", "schema": schema}
                },
            },
        }
        self._add(self.path_objects.get_objects, "", path_obj, is_stream=is_stream)

    def in_field_paths(self):
        for field in self._message_fields(self.operation.request.name):
            path_obj = {
                "put": {
                    "summary": "Set input field",
                    "parameters": [
                        _id_param(),
                        {
                            "name": "value",
                            "in": "body",
                            "description": "Field value",
                            "required": True,
                            "schema": field_schema(field, self.prefix),
                        },
                    ],
                    "tags": self._tags("Instances", "Fields"),
                    "responses": copy.deepcopy(RESPONSE_200_EMPTY),
                }
            }
            self._add(
                self.path_objects.no_in_stream_objects,
                f"/in/fields/{field.name}",
                path_obj,
            )

    def out_field_paths(self):
        for field in self._message_fields(self.operation.response.name):
            path_obj = {
                "get": {
                    "summary": "Get output field",
                    "parameters": [_id_param()],
                    "tags": self._tags("Instances", "Fields"),
                    "responses": {
                        "200": {
                            "description": "Field value",
                            "schema": field_schema(field, self.prefix),
                        }
                    },
                }
            }
            self._add(
                self.path_objects.no_out_stream_objects,
                f"/out/fields/{field.name}",
                path_obj,
            )

        path_obj = {
            "get": {
                "summary": "Get output message",
                "parameters": [_id_param()],
                "tags": self._tags("Instances", "Fields"),
                "responses": {
                    "200": {
                        "description": "Output message",
                        "schema": _ref(self.response_ref),
                    }
                },
            }
        }
        self._add(self.path_objects.no_out_stream_objects_message, "/out", path_obj)

    def in_stream_path(self):
        path_obj = {
            "post": {
                "summary": f"Stream of input messages {JSON_LINES_NOTE}",
                "parameters": [_id_param(), _stream_param(_ref(self.request_ref))],
                "tags": self._tags("Instances", "Streams"),
                "responses": copy.deepcopy(RESPONSE_200_EMPTY),
            }
        }
        self._add(self.path_objects.in_stream_objects, "/in/stream", path_obj)

    def out_stream_path(self):
        path_obj = {
            "get": {
                "summary": f"Stream of output messages {JSON_LINES_NOTE}",
                "parameters": [_id_param()],
                "tags": self._tags("Instances", "Streams"),
                "responses": {
                    "200": {
                        "description": "Output stream",
                        "schema": _ref(self.response_ref),
                    }
                },
            }
        }
        self._add(self.path_objects.out_stream_objects, "/out/stream", path_obj)

    def bi_stream_path(self):
        path_obj = {
            "get": {
                "summary": (
                    f"Bidirectional stream of input and output messages {JSON_LINES_NOTE}"
                ),
                "parameters": [_id_param(), _stream_param(_ref(self.request_ref))],
                "tags": self._tags("Instances", "Streams"),
                "responses": {
                    "200": {
                        "description": "Output stream",
                        "schema": _ref(self.response_ref),
                    }
                },
            }
        }
        self._add(self.path_objects.bi_stream_objects, "/bi/stream", path_obj)


## Main ########################################################################


def gen_swagger(
    extracted: Iterable[Tuple[ServiceDescription, MessageRegistry]]
) -> Tuple[dict, PathObjects]:
    """Given (description, registry) pairs, one per proto file, generate the
    swagger document and the path records for the adapter
    """
    swagger = copy.deepcopy(SWAGGER_TEMPLATE)
    swagger["definitions"].update(copy.deepcopy(INSTANCE_DEFINITIONS))
    path_objects = PathObjects()
    for description, registry in extracted:
        for operation_set in description.services:
            for operation in operation_set.operations:
                _OperationPaths(
                    description,
                    operation_set.service_name,
                    operation,
                    registry,
                    swagger,
                    path_objects,
                ).emit()
        swagger["definitions"].update(gen_definitions(description, registry))
    return swagger, path_objects
