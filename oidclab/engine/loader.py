"""Load chain files (YAML or JSON) into StepDefinitions + ExecutionContext.

File shape::

    chain:
      - fn: createJwtAssertion
        id: clientAuth
        inputs:
          privateJwk: "{{config.privateJwk}}"
          ...
    context:
      config: {...}
      state: {...}
"""

import json
from pathlib import Path
from typing import Union

import yaml
from pydantic import ValidationError

from oidclab.engine.chain import parse_chain
from oidclab.exceptions import ChainValidationError
from oidclab.types import ExecutionContext, StepDefinition


def load_chain_file(path: Union[str, Path]) -> tuple[list[StepDefinition], ExecutionContext]:
    """Read a chain definition file.

    Args:
        path: ``.yaml``/``.yml`` or ``.json`` file

    Returns:
        (steps, context)

    Raises:
        FileNotFoundError: if the file does not exist.
        ChainValidationError: if the document does not describe a chain.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Chain file not found: {p}")

    text = p.read_text()
    try:
        if p.suffix.lower() == ".json":
            raw = json.loads(text)
        else:
            raw = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ChainValidationError(f"Could not parse {p.name}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ChainValidationError(f"{p.name} must contain a mapping with a \"chain\" list")

    steps = parse_chain(raw.get("chain"))
    try:
        context = ExecutionContext.model_validate(raw.get("context") or {})
    except ValidationError as exc:
        raise ChainValidationError(f"Invalid context in {p.name}: {exc}") from None
    return steps, context
