"""
Command-line entry point: value a deployed LP vault from the chain.
"""
import os
import sys
import json
import asyncio
import logging
import argparse
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from vault.services.chain import ChainVaultReader
from vault.utils.env import DEFAULT_PAIRED_TOKEN_DISCOUNT_BPS

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stderr)]
)
logger = logging.getLogger(__name__)


def get_config(argv: Optional[List[str]] = None) -> Dict[str, Any]:
    """Load configuration from environment and arguments."""
    load_dotenv()

    parser = argparse.ArgumentParser(description='LP vault valuation report')
    parser.add_argument('--chain-id', type=int, default=int(os.getenv('CHAIN_ID', 8453)), help='Chain id')
    parser.add_argument('--vault', type=str, default=os.getenv('VAULT_ADDRESS'), help='Vault address')
    parser.add_argument('--asset', type=str, default=os.getenv('ASSET_ADDRESS'), help='Vault asset token address')
    parser.add_argument('--liquidity-manager', type=str, default=os.getenv('LIQUIDITY_MANAGER_ADDRESS'), help='Liquidity manager address')
    parser.add_argument('--pool', type=str, default=os.getenv('POOL_ADDRESS'), help='Pool address')
    parser.add_argument(
        '--discount-bps',
        type=int,
        default=DEFAULT_PAIRED_TOKEN_DISCOUNT_BPS,
        help='Haircut applied to idle paired tokens',
    )
    parser.add_argument('--positions', action='store_true', help='Also list liquidity manager ranges')

    args = parser.parse_args(argv)

    missing = [name for name in ('vault', 'asset', 'liquidity_manager', 'pool') if not getattr(args, name)]
    if missing:
        parser.error(f"Missing addresses: {', '.join(missing)}")

    return {
        'chain_id': args.chain_id,
        'vault': args.vault,
        'asset': args.asset,
        'liquidity_manager': args.liquidity_manager,
        'pool': args.pool,
        'discount_bps': args.discount_bps,
        'positions': args.positions,
    }


async def build_report(config: Dict[str, Any]) -> Dict[str, Any]:
    reader = ChainVaultReader(
        config['chain_id'],
        config['vault'],
        config['asset'],
        config['liquidity_manager'],
        config['pool'],
    )
    snapshot = await reader.snapshot()
    report = {
        'snapshot': snapshot.model_dump(),
        'lp_vault_in_asset': str(await reader.lp_vault_in_asset()),
        'estimated_total_asset': str(await reader.estimated_total_asset(config['discount_bps'])),
    }
    if config['positions']:
        report['positions'] = [p.model_dump() for p in await reader.get_positions()]
    return report


def main(argv: Optional[List[str]] = None) -> int:
    config = get_config(argv)
    logger.info(f"Valuing vault {config['vault']} on chain {config['chain_id']}")

    try:
        report = asyncio.run(build_report(config))
    except ValueError as e:
        logger.error(f"Could not value vault: {e}")
        return 1

    print(json.dumps(report, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
