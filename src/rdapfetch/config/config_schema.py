"""Typed validation for rdapfetch YAML configuration.

Brief:
  Variables are expanded into the parsed YAML mapping and the result is
  validated with the pydantic ClientConfig model.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, validator

from rdapfetch.transport import DEFAULT_TIMEOUT_MS, IANA_BOOTSTRAP

logger = logging.getLogger(__name__)

_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)\}")
_VAR_KEY = re.compile(r"[A-Z_][A-Z0-9_]*")


class ClientConfig(BaseModel):
    """Brief: Typed configuration model for the RDAP client.

    Inputs:
      - bootstrap: Bootstrap registry URL template ('{}' replaced by dns, asn,
        ipv4 or ipv6). None disables bootstrapping.
      - servers: Candidate RDAP base URIs for direct mode. When non-empty the
        bootstrap registry is not consulted.
      - x_forwarded_for: Optional client address forwarded to RDAP servers.
      - timeout_ms: Per-request HTTP timeout in milliseconds (>= 1).
      - verify_tls: Verify TLS certificates.
      - cache: Cache plugin spec (alias string, {module, config} mapping,
        or null to disable caching).
      - cache_ttl: Seconds to keep responses lacking Cache-Control max-age.
      - logging: Mapping handed to init_logging().

    Outputs:
      - ClientConfig instance with normalized field types.
    """

    bootstrap: Optional[str] = Field(default=IANA_BOOTSTRAP)
    servers: List[str] = Field(default_factory=list)
    x_forwarded_for: Optional[str] = None
    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, ge=1)
    verify_tls: bool = True
    cache: Optional[Any] = Field(default="in_memory_ttl")
    cache_ttl: int = Field(default=3600, ge=0)
    logging: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        extra = "forbid"

    @validator("bootstrap", pre=True)
    def _normalize_bootstrap(cls, v: object) -> Optional[str]:  # type: ignore[override]
        """Brief: Treat blank bootstrap URLs as disabled.

        Inputs:
          - v: Raw bootstrap value.

        Outputs:
          - Optional[str]: Stripped URL or None.
        """

        if v is None:
            return None
        text = str(v).strip()
        if not text:
            return None
        if not text.lower().startswith(("http://", "https://")):
            raise ValueError("bootstrap must be an http(s) URL")
        return text

    @validator("servers", pre=True)
    def _normalize_servers(cls, v: object) -> List[str]:  # type: ignore[override]
        """Brief: Accept a single URI or a list of URIs.

        Inputs:
          - v: Raw servers value.

        Outputs:
          - list[str]: Non-empty http(s) URIs.
        """

        if v is None:
            return []
        items = [v] if isinstance(v, str) else list(v)  # type: ignore[arg-type]
        out: List[str] = []
        for item in items:
            text = str(item).strip()
            if not text:
                continue
            if not text.lower().startswith(("http://", "https://")):
                raise ValueError(f"server {text!r} must be an http(s) URL")
            out.append(text)
        return out

    @validator("logging", pre=True)
    def _normalize_logging(cls, v: object) -> Dict[str, Any]:  # type: ignore[override]
        if v is None:
            return {}
        if not isinstance(v, dict):
            raise ValueError("logging must be a mapping")
        return v


def expand_variables(cfg: Dict[str, Any]) -> None:
    """Brief: Expand `variables` into the config and remove the group.

    Inputs:
      - cfg: Parsed YAML configuration mapping (mutated in-place).

    Outputs:
      - None.

    Behavior:
      - A string value that is exactly `${KEY}` is replaced with the
        variable's YAML value (list/dict/int/etc.).
      - Other `${KEY}` occurrences inside strings are replaced textually.
      - Unknown variables are left untouched.

    Example:
      >>> cfg = {"variables": {"HOST": "https://rdap.example"}, "servers": ["${HOST}"]}
      >>> expand_variables(cfg)
      >>> cfg
      {'servers': ['https://rdap.example']}
    """

    variables = cfg.pop("variables", None)
    if variables is None:
        return
    if not isinstance(variables, dict):
        raise ValueError("config.variables must be a mapping when present")
    for k in variables:
        if not isinstance(k, str) or not _VAR_KEY.fullmatch(k):
            raise ValueError(f"config.variables key {k!r} must match [A-Z_][A-Z0-9_]*")

    def _expand_string(text: str) -> Any:
        if text.startswith("${") and text.endswith("}") and text[2:-1] in variables:
            return copy.deepcopy(variables[text[2:-1]])

        def _repl(match: re.Match[str]) -> str:
            key = match.group(1)
            if key not in variables:
                return match.group(0)
            v = variables[key]
            if isinstance(v, bool):
                return "true" if v else "false"
            if v is None:
                return "null"
            if isinstance(v, (int, float, str)):
                return str(v)
            return json.dumps(v)

        return _VAR_PATTERN.sub(_repl, text)

    def _expand_obj(obj: Any) -> Any:
        if isinstance(obj, str):
            return _expand_string(obj)
        if isinstance(obj, list):
            return [_expand_obj(item) for item in obj]
        if isinstance(obj, dict):
            return {k: _expand_obj(v) for k, v in obj.items()}
        return obj

    for top_key in list(cfg.keys()):
        cfg[top_key] = _expand_obj(cfg[top_key])


def validate_config(cfg: Dict[str, Any], *, config_path: str = "<config>") -> ClientConfig:
    """Brief: Expand variables and validate a parsed config mapping.

    Inputs:
      - cfg: Parsed YAML configuration mapping (mutated by expansion).
      - config_path: Path used in error messages.

    Outputs:
      - ClientConfig: Validated configuration.

    Raises:
      - ValueError: With a readable summary when validation fails.
    """

    expand_variables(cfg)
    try:
        return ClientConfig(**cfg)
    except ValidationError as exc:
        logger.debug("Config validation failed for %s: %s", config_path, exc)
        raise ValueError(f"Invalid configuration in {config_path}:\n{exc}") from exc
