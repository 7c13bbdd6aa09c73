"""
vSphere Reconciler - Main Entry Point

Command-line driver that applies, refreshes or destroys the objects declared
in a YAML file.

Author: uldyssian-sh
License: MIT
"""

import argparse
import json
import os
import sys
from typing import Any, Dict, List, Optional

import structlog
import yaml

from . import __version__
from .client import VSphereClient, load_config
from .exceptions import ConfigurationError, ReconcilerError
from .logging_config import setup_logging
from .metrics import metrics
from .provider import LifecycleResult, Provider

logger = structlog.get_logger(__name__)


def load_declarations(path: str) -> List[Dict[str, Any]]:
    """Read the ``resources`` list of a declaration file"""
    if not os.path.exists(path):
        raise ConfigurationError(f"Declaration file {path} not found")
    with open(path, "r") as f:
        document = yaml.safe_load(f) or {}

    resources = document.get("resources") if isinstance(document, dict) else None
    if not isinstance(resources, list):
        raise ConfigurationError(f"Declaration file {path} must contain a 'resources' list")

    declarations = []
    for index, entry in enumerate(resources):
        if not isinstance(entry, dict) or "type" not in entry:
            raise ConfigurationError(f"resources[{index}] must be a mapping with a 'type'")
        declarations.append({
            "type": entry["type"],
            "attributes": entry.get("attributes") or {},
        })
    return declarations


def run_pass(provider: Provider, command: str,
             declarations: List[Dict[str, Any]]) -> List[LifecycleResult]:
    """Run one lifecycle operation for every declared object"""
    operation = {"apply": "create", "refresh": "read", "destroy": "delete"}[command]
    if command == "destroy":
        declarations = list(reversed(declarations))

    results = []
    for declaration in declarations:
        resource_type = declaration["type"]
        try:
            data = provider.new_data(resource_type, declaration["attributes"])
        except ReconcilerError as e:
            logger.error("Invalid declaration", resource_type=resource_type, error=str(e))
            results.append(LifecycleResult(resource_type, operation, False, {}, e))
            continue
        results.append(getattr(provider, operation)(resource_type, data))
    return results


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vsphere-reconciler",
        description="Reconcile declared vSphere inventory objects against vCenter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create or adopt every declared object and converge its configuration
  vsphere-reconciler apply -f inventory.yaml

  # Read declared objects back from vCenter
  vsphere-reconciler --config vcenter.yaml refresh -f inventory.yaml

  # Delete declared objects (those with keep: true are left in place)
  vsphere-reconciler destroy -f inventory.yaml
        """
    )

    parser.add_argument(
        "--config", "-c",
        help="Endpoint configuration file (defaults to VSPHERE_* environment variables)",
        default=None
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level"
    )
    parser.add_argument("--log-dir", help="Also write logs to this directory", default=None)
    parser.add_argument("--json-logs", action="store_true", help="Render logs as JSON")
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"vSphere Reconciler {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    for name, help_text in (
        ("apply", "Create or adopt declared objects and converge them"),
        ("refresh", "Read declared objects back from vCenter"),
        ("destroy", "Delete declared objects in reverse order"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--file", "-f", required=True, help="Declaration file")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, args.log_dir, args.json_logs)

    try:
        declarations = load_declarations(args.file)
        config = load_config(args.config)
        with VSphereClient(config) as client:
            results = run_pass(Provider(client), args.command, declarations)
    except ReconcilerError as e:
        logger.error("Reconciliation aborted", error=str(e))
        return 1

    print(json.dumps({
        "results": [r.to_dict() for r in results],
        "metrics": metrics.get_metrics()["counters"],
    }, indent=2))
    return 0 if all(r.success for r in results) else 1


if __name__ == "__main__":
    sys.exit(main())
