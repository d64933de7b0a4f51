"""Command line entry point for crowdsale-deployments library."""

import argparse
import logging
import sys
from typing import List, Optional

from .artifacts import load_artifacts
from .exceptions import DeploymentError
from .migrations import CROWDSALE_ARTIFACTS, crowdsale_migration
from .networks import available_networks, get_network_context
from .orchestrator import DeploymentOrchestrator
from .paths import get_default_build_dir, get_registry_path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crowdsale-deploy",
        description="Deploy and link the interactive crowdsale libraries.",
    )
    parser.add_argument(
        "--network", "-n", default="development", choices=available_networks()
    )
    parser.add_argument(
        "--build-dir",
        default=None,
        help="Directory of compiled artifacts (defaults to ./build/contracts)",
    )
    parser.add_argument(
        "--registry",
        default=None,
        help="Deployment registry file (defaults to ./.crowdsale-deployments/deployments.json)",
    )
    parser.add_argument("--rpc-url", default=None, help="Override the profile's RPC endpoint")
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        build_dir = args.build_dir if args.build_dir is not None else get_default_build_dir()
        artifacts = load_artifacts(build_dir, CROWDSALE_ARTIFACTS)
        context = get_network_context(args.network, rpc_url=args.rpc_url)
        orchestrator = DeploymentOrchestrator(
            artifacts.values(),
            crowdsale_migration(),
            network=context,
            registry_path=args.registry if args.registry is not None else get_registry_path(),
        )
        report = orchestrator.run()
    except DeploymentError as e:
        logging.getLogger(__name__).error("Deployment failed: %s", e)
        return 1

    for name, address in report.addresses.items():
        print(f"{name}: {address}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
