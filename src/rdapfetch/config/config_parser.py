"""Reading and validating rdapfetch configuration.

Brief:
  A config is a YAML mapping with an optional `variables` table. Variables
  may also come from RDAPFETCH_<KEY> environment entries and from -v/--var
  command-line assignments; later sources win. The merged table feeds the
  ${KEY} expansion done in config_schema before pydantic validation.
"""

from __future__ import annotations

import os
import re
from typing import Any, Dict, Iterable, Mapping, Optional

import yaml

from .config_schema import ClientConfig, validate_config

ENV_PREFIX = "RDAPFETCH_"

_VAR_NAME = re.compile(r"[A-Z_][A-Z0-9_]*")


def _is_var_key(key: str) -> bool:
    """Brief: True for ALL_UPPERCASE names matching [A-Z_][A-Z0-9_]*."""

    return bool(_VAR_NAME.fullmatch(key or ""))


def _yaml_scalar(text: str) -> Any:
    # Unparseable values are kept as plain strings.
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError:
        return text


def _env_variables(environ: Mapping[str, str]) -> Dict[str, Any]:
    found: Dict[str, Any] = {}
    for key, value in environ.items():
        if not isinstance(key, str) or not key.startswith(ENV_PREFIX):
            continue
        name = key[len(ENV_PREFIX) :]
        if _is_var_key(name):
            found[name] = _yaml_scalar(str(value))
    return found


def _cli_variables(assignments: Iterable[str]) -> Dict[str, Any]:
    """Brief: Decode `KEY=YAML` assignments from -v/--var.

    Inputs:
      - assignments: Raw command-line strings.

    Outputs:
      - dict: KEY -> parsed YAML value.

    Raises:
      - ValueError: Missing '=' or an invalid KEY.
    """

    found: Dict[str, Any] = {}
    for item in assignments:
        name, sep, raw = item.partition("=")
        if not sep:
            raise ValueError(f"Invalid -v/--var value (expected KEY=YAML), got: {item!r}")
        name = name.strip()
        if not _is_var_key(name):
            raise ValueError(
                f"Invalid variable name {name!r} "
                "(must be ALL_UPPERCASE and match [A-Z_][A-Z0-9_]*)"
            )
        found[name] = _yaml_scalar(raw)
    return found


def parse_config_variables(
    cfg: Dict[str, Any],
    *,
    cli_vars: Optional[Iterable[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """Brief: Merge file, environment and CLI variables into cfg['variables'].

    Inputs:
      - cfg: Config mapping, updated in place.
      - cli_vars: `KEY=YAML` assignments.
      - environ: Environment mapping; os.environ when None.

    Outputs:
      - dict: The merged table (also stored on cfg).

    Example:
      >>> cfg = {'variables': {'TIMEOUT': 100}}
      >>> parse_config_variables(cfg, cli_vars=['TIMEOUT=300'], environ={})['TIMEOUT']
      300
    """

    declared = cfg.get("variables") or {}
    if not isinstance(declared, dict):
        raise ValueError("config.variables must be a mapping when present")

    merged: Dict[str, Any] = dict(declared)
    merged.update(_env_variables(os.environ if environ is None else environ))
    merged.update(_cli_variables(cli_vars or ()))
    cfg["variables"] = merged
    return merged


def read_config_file(config_path: str) -> Dict[str, Any]:
    """Brief: Load a YAML file whose root must be a mapping.

    Inputs:
      - config_path: File to read.

    Outputs:
      - dict: Parsed mapping; {} for an empty file.

    Raises:
      - OSError: File cannot be opened.
      - ValueError: Bad YAML or a non-mapping root.
    """

    with open(config_path, "r", encoding="utf-8") as fh:
        text = fh.read()
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Configuration root must be a mapping")
    return data


def load_config(
    cfg: Optional[Dict[str, Any]] = None,
    *,
    cli_vars: Optional[Iterable[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
    config_path: str = "<config>",
) -> ClientConfig:
    """Brief: Merge variables into a copy of cfg and validate it.

    Inputs:
      - cfg: Raw mapping; None means all defaults.
      - cli_vars: `KEY=YAML` assignments.
      - environ: Environment mapping.
      - config_path: Source label for error messages.

    Outputs:
      - ClientConfig.
    """

    data: Dict[str, Any] = dict(cfg or {})
    parse_config_variables(data, cli_vars=cli_vars, environ=environ)
    return validate_config(data, config_path=config_path)


def parse_config_file(
    config_path: str,
    *,
    cli_vars: Optional[Iterable[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ClientConfig:
    """Brief: read_config_file followed by load_config."""

    return load_config(
        read_config_file(config_path),
        cli_vars=cli_vars,
        environ=environ,
        config_path=config_path,
    )
