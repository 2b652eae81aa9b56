#!/usr/bin/env python3
"""
Command line entry point for deploying the SafeSend contract
Exit code 0 on success, 1 when the factory, deployment or confirmation step fails
"""

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import replace
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

from .config import DeploymentConfig
from .deployer import Deployer
from .exceptions import SafeSendDeploymentError

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging():
    """Log to both the console and DEPLOY_LOG_FILE"""
    level = os.getenv("DEPLOY_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(os.getenv("DEPLOY_LOG_FILE", "safesend_deploy.log")),
            logging.StreamHandler()
        ]
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Deploy and verify the SafeSend contract")
    parser.add_argument("--network", help="Network name; selects <NETWORK>_RPC_URL and <NETWORK>_PRIVATE_KEY")
    parser.add_argument("--contract", help="Artifact to deploy (default: SafeSend)")
    parser.add_argument("--confirmations", type=int, help="Block confirmations to wait for (default: 5)")
    parser.add_argument("--no-verify", action="store_true", help="Skip block explorer verification")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> DeploymentConfig:
    config = DeploymentConfig.from_env(network=args.network)
    if args.contract:
        config.contract_name = args.contract
    if args.confirmations is not None:
        config = replace(config, confirmations=args.confirmations)
    if args.no_verify:
        config.verify = False
    return config


def build_deployer(config: DeploymentConfig) -> Deployer:
    return Deployer(config)


def main(argv: Optional[List[str]] = None) -> int:
    """Run one deployment and return the process exit code"""
    args = parse_args(argv)
    # DEPLOY_LOG_* may come from .env
    load_dotenv(find_dotenv(usecwd=True))
    configure_logging()

    try:
        config = build_config(args)
        deployer = build_deployer(config)
        result = asyncio.run(deployer.run())
    except SafeSendDeploymentError as e:
        logger.error(f"Deployment failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.error("Deployment interrupted by user")
        return 1
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1

    logger.info(f"Done. {config.contract_name} lives at {result.contract_address} on {result.network}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
