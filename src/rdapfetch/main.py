from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from .client import new_client
from .config.config_parser import load_config, read_config_file
from .config.logging_config import init_logging
from .errors import RDAPError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rdapfetch",
        description=(
            "Query RDAP servers for domains, AS numbers, IP addresses, "
            "networks and entities"
        ),
    )
    parser.add_argument("--config", default=None, help="Path to YAML config")
    parser.add_argument(
        "-v",
        "--var",
        dest="vars",
        action="append",
        default=[],
        metavar="KEY=YAML",
        help="Set a config variable (overrides environment and config file)",
    )
    parser.add_argument(
        "--bootstrap",
        default=None,
        metavar="URL",
        help="Bootstrap registry URL template ('{}' is replaced by dns, asn, ipv4 or ipv6)",
    )
    parser.add_argument(
        "--host",
        dest="hosts",
        action="append",
        default=[],
        metavar="URI",
        help="Query this RDAP server directly instead of bootstrapping (repeatable)",
    )
    parser.add_argument(
        "--no-cache", action="store_true", help="Disable the HTTP response cache"
    )
    parser.add_argument(
        "-S",
        "--skip-tls-verification",
        action="store_true",
        help="Do not verify TLS certificates",
    )
    parser.add_argument(
        "--forwarded-for",
        default=None,
        metavar="IP",
        help="Client address sent to RDAP servers as X-Forwarded-For",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (debug, info, warn, error, crit)",
    )
    parser.add_argument(
        "objects",
        nargs="*",
        metavar="OBJECT",
        help="Domain, AS number, IP address, CIDR network or entity handle",
    )
    return parser


def apply_overrides(cfg: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """
    Brief: Fold command-line flags into a raw config mapping.

    Inputs:
      - cfg: Raw (unvalidated) configuration mapping; mutated in-place.
      - args: Parsed argparse namespace.

    Outputs:
      - dict: The same mapping, for chaining.

    Example:
      >>> ns = argparse.Namespace(bootstrap=None, hosts=["https://rdap.example"],
      ...     forwarded_for=None, skip_tls_verification=True, no_cache=False)
      >>> apply_overrides({}, ns)
      {'servers': ['https://rdap.example'], 'verify_tls': False}
    """
    if args.bootstrap:
        cfg["bootstrap"] = args.bootstrap
    if args.hosts:
        cfg["servers"] = list(args.hosts)
    if args.forwarded_for:
        cfg["x_forwarded_for"] = args.forwarded_for
    if args.skip_tls_verification:
        cfg["verify_tls"] = False
    if args.no_cache:
        cfg["cache"] = None
    return cfg


def main(argv: List[str] | None = None) -> int:
    """
    Main entry point for the RDAP client.
    Parses arguments, loads configuration, and prints one JSON document per object.

    Args:
        argv: Command-line arguments.

    Returns:
        An exit code: 0 on success, 1 when any lookup or the configuration
        fails, 2 when no object was given.

    Example use:
        CLI:
            rdapfetch example.com AS3333 192.0.2.1
            rdapfetch --host https://rdap.registro.br registro.br
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.objects:
        parser.print_usage(sys.stderr)
        print("rdapfetch: error: at least one OBJECT is required", file=sys.stderr)
        return 2

    config_path: Optional[str] = args.config
    try:
        raw = read_config_file(config_path) if config_path else {}
        apply_overrides(raw, args)
        config = load_config(
            raw, cli_vars=args.vars, config_path=config_path or "<command line>"
        )
    except (OSError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        return 1

    # Initialize logging before any other operations
    init_logging(config.logging, level=args.log_level)
    logger = logging.getLogger("rdapfetch.main")
    if config_path:
        logger.info("Loaded config from %s", config_path)

    try:
        client = new_client(config)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    exit_code = 0
    for obj in args.objects:
        try:
            document, _response = client.query(obj)
        except RDAPError as exc:
            logger.debug("Lookup of %s failed", obj, exc_info=True)
            print(f"{obj}: {exc}", file=sys.stderr)
            exit_code = 1
            continue
        print(json.dumps(document, indent=2, ensure_ascii=False))

    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())  # pragma: no cover
