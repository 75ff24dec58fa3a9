"""
Common test helpers
"""

# Standard
from contextlib import contextmanager
from typing import Dict, List, Tuple, Union
import copy
import glob
import os
import sys
import tempfile

# Local
from grpc_swagger_adapter.models import (
    Field,
    FieldKind,
    MessageDescriptor,
    MessageRef,
    MessageRegistry,
    Operation,
    OperationSet,
    ServiceDescription,
)

TEST_DATA_DIR = os.path.realpath(
    os.path.join(
        os.path.dirname(__file__),
        "data",
    )
)

TEST_PROTOS_DIR = os.path.join(TEST_DATA_DIR, "protos")
TEST_PROTOS = sorted(glob.glob(f"{TEST_PROTOS_DIR}/*.proto"))


@contextmanager
def temp_protos(protos: Union[str, Dict[str, str]]) -> List[str]:
    """Create temporary protobuf files and yield their names"""
    with tempfile.TemporaryDirectory() as workdir:
        if isinstance(protos, str):
            protos = {"test.proto": protos}
        proto_files = []
        for proto_name, proto_content in protos.items():
            fname = os.path.join(workdir, proto_name)
            proto_files.append(fname)
            with open(fname, "w") as handle:
                handle.write(proto_content)
        yield proto_files


@contextmanager
def cli_args(*args):
    """Mock out the sys.argv set so that argparse gets the desired values"""
    real_args = copy.deepcopy(sys.argv)
    sys.argv = sys.argv[:1] + list(args)
    yield
    sys.argv = real_args


def shop_description(
    request_stream: bool = False, response_stream: bool = False
) -> Tuple[ServiceDescription, MessageRegistry]:
    """The shop.Store.Buy description used across the mapper tests"""
    description = ServiceDescription(
        package_name="shop",
        services=[
            OperationSet(
                service_name="Store",
                operations=[
                    Operation(
                        name="Buy",
                        request=MessageRef("BuyRequest", request_stream),
                        response=MessageRef("BuyResponse", response_stream),
                    )
                ],
            )
        ],
    )
    registry = {
        "BuyRequest": MessageDescriptor(
            name="BuyRequest",
            fields=[Field(name="item", type="string", kind=FieldKind.STRING, id=1)],
        ),
        "BuyResponse": MessageDescriptor(
            name="BuyResponse",
            fields=[Field(name="total", type="double", kind=FieldKind.NUMBER, id=1)],
        ),
    }
    return description, registry
