"""
This is the main entrypoint script to generate the swagger document and the
HTTP adapter path records for a set of gRPC services.
"""

# Standard
from typing import Iterable, Optional
import argparse
import json
import os

# Third Party
import alog

# Local
from .constants import DEFAULT_MAX_DEPTH
from .extract_proto import extract_service_description
from .gen_swagger import gen_swagger
from .log import log
from .models import PathObjects
from .parse_proto_files import parse_proto_files
from .proto_ast import Namespace
from .write_swagger import write_swagger, write_text

## Entrypoint ##################################################################


def get_path_objects(
    namespaces: Iterable[Namespace],
    output_dir: Optional[str] = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
    strict_depth: bool = False,
) -> PathObjects:
    """Generate the swagger document for the loaded proto trees, write it to
    the output dir and return the path records for the adapter
    """
    extracted = [
        extract_service_description(
            namespace, max_depth=max_depth, strict_depth=strict_depth
        )
        for namespace in namespaces
    ]
    swagger, path_objects = gen_swagger(extracted)
    json_fname, yaml_fname = write_swagger(swagger, output_dir)
    log.info("Wrote swagger to %s and %s", json_fname, yaml_fname)
    return path_objects


## Main ########################################################################


def main():
    # Command line args
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--proto_files",
        "-p",
        required=True,
        nargs="+",
        help="The proto files to generate from",
    )
    parser.add_argument(
        "--output_dir",
        "-o",
        default=None,
        help="Location for swagger.json and swagger.yml. Defaults to the package dir",
    )
    parser.add_argument(
        "--path_objects",
        "-x",
        default=None,
        help="If set, write the adapter path records to this json file",
    )
    parser.add_argument(
        "--max_depth",
        "-m",
        type=int,
        default=int(os.environ.get("MAX_DEPTH", DEFAULT_MAX_DEPTH)),
        help="Maximum message nesting depth to expand",
    )
    parser.add_argument(
        "--strict_depth",
        "-s",
        action="store_true",
        default=False,
        help="Fail instead of dropping messages beyond the maximum depth",
    )
    parser.add_argument(
        "--log_level",
        "-l",
        default=os.environ.get("LOG_LEVEL", "info"),
        help="Log level for informational logging",
    )

    # Parse command line args
    args = parser.parse_args()

    # Update the log level for the shared logger
    alog.configure(default_level=args.log_level.lower())

    # Load the protos and generate everything
    namespaces = parse_proto_files(args.proto_files)
    path_objects = get_path_objects(
        namespaces,
        output_dir=args.output_dir,
        max_depth=args.max_depth,
        strict_depth=args.strict_depth,
    )

    # Dump the adapter records if requested
    if args.path_objects:
        log.debug("Writing path objects to %s", args.path_objects)
        write_text(args.path_objects, json.dumps(path_objects.to_dict(), indent=2))
