"""
Tests for serializing and writing the swagger document
"""

# Standard
import json
import os
import tempfile

# Third Party
import pytest
import yaml

# Local
from grpc_swagger_adapter.constants import SWAGGER_JSON, SWAGGER_YAML
from grpc_swagger_adapter.errors import SwaggerWriteError
from grpc_swagger_adapter.gen_swagger import gen_swagger
from grpc_swagger_adapter.write_swagger import serialize_swagger, write_swagger
from tests.helpers import shop_description

## Helpers #####################################################################


@pytest.fixture
def swagger():
    doc, _ = gen_swagger([shop_description(request_stream=True)])
    return doc


## Tests #######################################################################


def test_serialize_swagger_round_trip(swagger):
    """Both encodings parse back to the same document"""
    json_str, yaml_str = serialize_swagger(swagger)
    assert json.loads(json_str) == swagger
    assert yaml.safe_load(yaml_str) == swagger


def test_serialize_swagger_keeps_key_order(swagger):
    """Keys are emitted in generation order, not sorted"""
    json_str, yaml_str = serialize_swagger(swagger)
    assert json_str.index('"swagger"') < json_str.index('"info"')
    assert yaml_str.startswith("swagger:")
    assert list(yaml.safe_load(yaml_str)["paths"]) == list(swagger["paths"])


def test_serialize_swagger_no_aliases(swagger):
    """Repeated parameters are written out in full"""
    _, yaml_str = serialize_swagger(swagger)
    assert "&id" not in yaml_str
    assert "*id" not in yaml_str


def test_write_swagger(swagger):
    """Both files are written into the output dir"""
    with tempfile.TemporaryDirectory() as workdir:
        output_dir = os.path.join(workdir, "out")
        json_fname, yaml_fname = write_swagger(swagger, output_dir)
        assert json_fname == os.path.join(output_dir, SWAGGER_JSON)
        assert yaml_fname == os.path.join(output_dir, SWAGGER_YAML)
        with open(json_fname, "r") as handle:
            from_json = json.load(handle)
        with open(yaml_fname, "r") as handle:
            from_yaml = yaml.safe_load(handle)
        assert from_json == from_yaml == swagger


def test_write_swagger_bad_output_dir(swagger):
    """Test that an unwritable location raises a write error"""
    with tempfile.NamedTemporaryFile("w") as handle:
        with pytest.raises(SwaggerWriteError):
            write_swagger(swagger, os.path.join(handle.name, "nested"))
