"""
Utilities to serialize the generated swagger document and write it out as
swagger.json and swagger.yml
"""

# Standard
from typing import Optional, Tuple
import json
import os

# Third Party
import yaml

# Local
from .constants import DEFAULT_OUTPUT_DIR, SWAGGER_JSON, SWAGGER_YAML
from .errors import SwaggerWriteError
from .log import log


def serialize_swagger(swagger: dict) -> Tuple[str, str]:
    """Render the document as pretty-printed JSON and as YAML. Key order is
    kept as generated so repeated runs produce identical output.
    """
    json_str = json.dumps(swagger, indent=2)
    yaml_str = yaml.safe_dump(
        json.loads(json_str), sort_keys=False, default_flow_style=False
    )
    return json_str, yaml_str


def write_text(fname: str, content: str):
    """Write a text file, reporting failures as SwaggerWriteError"""
    try:
        log.debug("Writing [%s]", fname)
        with open(fname, "w") as handle:
            handle.write(content)
    except OSError as err:
        log.error("Failed to write [%s]: %s", fname, err)
        raise SwaggerWriteError(f"Failed to write [{fname}]: {err}") from err


def write_swagger(swagger: dict, output_dir: Optional[str] = None) -> Tuple[str, str]:
    """Write swagger.json and swagger.yml into the output dir and return their
    paths. The two writes are independent; a failure on the second leaves the
    first in place.
    """
    output_dir = output_dir or DEFAULT_OUTPUT_DIR
    json_str, yaml_str = serialize_swagger(swagger)
    try:
        os.makedirs(output_dir, exist_ok=True)
    except OSError as err:
        log.error("Bad output dir [%s]: %s", output_dir, err)
        raise SwaggerWriteError(
            f"Bad output dir [{output_dir}]: {err}"
        ) from err
    json_fname = os.path.join(output_dir, SWAGGER_JSON)
    yaml_fname = os.path.join(output_dir, SWAGGER_YAML)
    write_text(json_fname, json_str)
    write_text(yaml_fname, yaml_str)
    return json_fname, yaml_fname
