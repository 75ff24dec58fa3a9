"""
Tests for the functionality in parse_proto_files
"""

# Third Party
import pytest

# Local
from grpc_swagger_adapter.errors import SchemaResolutionError
from grpc_swagger_adapter.parse_proto_files import (
    parse_int,
    parse_proto_content,
    parse_proto_files,
    strip_comments,
    tokenize,
)
from grpc_swagger_adapter.proto_ast import (
    EnumField,
    EnumType,
    Message,
    MessageField,
    Namespace,
    ScalarField,
    Service,
)
from tests.helpers import TEST_PROTOS, temp_protos

## tokenize ####################################################################


def test_strip_comments_keeps_strings_and_lines():
    """Make sure comments are removed without touching string literals or the
    line count
    """
    content = 'option x = "a//b"; // trailing\n/* block\n comment */ message'
    stripped = strip_comments(content)
    assert '"a//b"' in stripped
    assert "trailing" not in stripped
    assert "block" not in stripped
    assert stripped.count("\n") == content.count("\n")


def test_tokenize_line_numbers():
    """Make sure tokens carry the line they were found on"""
    tokens = tokenize("syntax = 'proto3';\n\n// skipped\nmessage Foo {}")
    assert tokens[0] == ("syntax", 1)
    assert ("message", 4) in tokens
    assert tokens[-1] == ("}", 4)


## parse_proto_files ###########################################################


def test_parse_proto_files_single_service():
    """Test an example of a protobuf file with a single service"""
    with temp_protos(
        """
        syntax = "proto3";
        package tests.nested;

        /** The message */
        message TheOne {
            string the_field = 1; // A comment about the field
            repeated int32 numbers = 2 [packed = true];
        }

        service TheService {
            option (some.option) = { value: 1 };
            rpc TheDoit(TheOne) returns (stream TheOne) {}
        }
        """
    ) as proto_files:
        (root,) = parse_proto_files(proto_files)

    assert isinstance(root, Namespace)
    assert list(root.children.keys()) == ["tests"]
    pkg = root.children["tests"].children["nested"]
    assert list(pkg.children.keys()) == ["TheOne", "TheService"]

    msg = pkg.children["TheOne"]
    assert isinstance(msg, Message)
    assert [fld.name for fld in msg.fields] == ["the_field", "numbers"]
    the_field, numbers = msg.fields
    assert isinstance(the_field, ScalarField)
    assert the_field.type_name == "string"
    assert the_field.id == 1
    assert not the_field.repeated
    assert numbers.repeated
    assert numbers.type_name == "int32"

    svc = pkg.children["TheService"]
    assert isinstance(svc, Service)
    (rpc,) = svc.children
    assert rpc.name == "TheDoit"
    assert rpc.resolved_request_type is msg
    assert rpc.resolved_response_type is msg
    assert not rpc.request_stream
    assert rpc.response_stream

    # For coverage ;)
    assert str(rpc) == rpc.name


def test_parse_proto_files_nested_types():
    """Make sure nested messages and enums resolve with protobuf scoping"""
    with temp_protos(
        """
        syntax = "proto3";
        package shop;

        message Order {
            enum State {
                OPEN = 0;
                CLOSED = 1;
            }
            message Line {
                string sku = 1;
            }
            repeated Line lines = 1;
            State state = 2;
            oneof payment {
                string card = 3;
                string voucher = 4;
            }
        }

        message Summary {
            Order.Line first = 1;
        }
        """
    ) as proto_files:
        (root,) = parse_proto_files(proto_files)

    pkg = root.children["shop"]
    order = pkg.children["Order"]
    (line,) = order.nested_messages
    assert line.name == "Line"
    assert line.qualified_name == "Order_Line"
    assert line.parent is order

    lines, state, card, voucher = order.fields
    assert isinstance(lines, MessageField)
    assert lines.resolved_type is line
    assert lines.repeated
    assert isinstance(state, EnumField)
    assert isinstance(state.resolved_type, EnumType)
    assert state.resolved_type.values == {"OPEN": 0, "CLOSED": 1}
    assert state.resolved_type.qualified_name == "Order_State"
    assert [card.name, voucher.name] == ["card", "voucher"]

    (first,) = pkg.children["Summary"].fields
    assert first.resolved_type is line


def test_parse_proto_files_well_known_types():
    """Make sure well-known types resolve without their imports being loaded"""
    with temp_protos(
        """
        syntax = "proto3";
        package wk;
        import "google/protobuf/timestamp.proto";
        import "google/protobuf/empty.proto";

        message Event {
            google.protobuf.Timestamp at = 1;
            google.protobuf.Any payload = 2;
        }

        service Events {
            rpc Publish(Event) returns (google.protobuf.Empty);
        }
        """
    ) as proto_files:
        (root,) = parse_proto_files(proto_files)

    pkg = root.children["wk"]
    at, payload = pkg.children["Event"].fields
    assert isinstance(at, ScalarField)
    assert at.type_name == "Timestamp"
    assert payload.type_name == "Any"
    (rpc,) = pkg.children["Events"].children
    assert rpc.resolved_response_type.name == "Empty"
    assert rpc.resolved_response_type.children == []


def test_parse_proto_files_cross_file_types():
    """Types declared in one file can be used from another"""
    with temp_protos(
        {
            "types.proto": """
                syntax = "proto3";
                package common;
                message Money { int64 cents = 1; }
            """,
            "service.proto": """
                syntax = "proto3";
                package billing;
                message Bill { common.Money amount = 1; }
                service Billing { rpc Pay(Bill) returns (Bill); }
            """,
        }
    ) as proto_files:
        types_root, service_root = parse_proto_files(proto_files)

    money = types_root.children["common"].children["Money"]
    (amount,) = service_root.children["billing"].children["Bill"].fields
    assert amount.resolved_type is money


def test_parse_proto_files_no_package():
    """Files without a package put their types at the root"""
    (root,) = parse_proto_content(
        {"nopkg.proto": "message Foo { bool ok = 1; }\nservice S { rpc Do(Foo) returns (Foo); }"}
    )
    assert list(root.children.keys()) == ["Foo", "S"]


def test_parse_proto_files_skips_map_fields():
    """Map fields are not supported and are skipped"""
    (root,) = parse_proto_content(
        {
            "map.proto": """
                package m;
                message Foo {
                    map<string, int32> counts = 1;
                    string name = 2;
                }
            """
        }
    )
    assert [fld.name for fld in root.children["m"].children["Foo"].fields] == ["name"]


def test_parse_proto_files_unresolved_type():
    """Test that unknown types raise a resolution error naming the line"""
    with pytest.raises(SchemaResolutionError, match="bad.proto:4"):
        parse_proto_content(
            {
                "bad.proto": """
                    package bad;
                    message Foo {
                        Missing thing = 1;
                    }
                """
            }
        )


def test_parse_proto_files_unbalanced():
    """Test that a truncated file raises a resolution error"""
    with pytest.raises(SchemaResolutionError):
        parse_proto_content({"trunc.proto": "package t; message Foo { string a = 1;"})


def test_parse_proto_files_test_data():
    """Make sure the bundled test protos load"""
    roots = parse_proto_files(TEST_PROTOS)
    assert len(roots) == len(TEST_PROTOS)
    shop = roots[0].children["webshop"].children["Shop"]
    assert [rpc.name for rpc in shop.children] == [
        "Buy",
        "WatchPrices",
        "UploadItems",
        "Chat",
    ]


def test_parse_int_literals():
    """Decimal, hex and octal literals are all accepted"""
    assert parse_int("10") == 10
    assert parse_int("0") == 0
    assert parse_int("0x1F") == 31
    assert parse_int("010") == 8
    assert parse_int("-010") == -8
    assert parse_int("-3") == -3


def test_parse_proto_files_octal_numbers():
    """Octal field numbers and enum values load"""
    (root,) = parse_proto_content(
        {
            "o.proto": """
                package o;
                enum E { A = 0; B = 010; }
                message M { string x = 010; }
            """
        }
    )
    pkg = root.children["o"]
    assert pkg.children["E"].values == {"A": 0, "B": 8}
    assert pkg.children["M"].fields[0].id == 8
