import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.contract import AsyncContract

from vault.utils.env import (
    MAINNET_RPC,
    BASE_RPC,
    POLYGON_RPC,
)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
DEFAULT_ABI_PATH = Path(__file__).parent / "abis"
CHAIN_ID_TO_RPC = {
    1: MAINNET_RPC,
    137: POLYGON_RPC,
    8453: BASE_RPC,
}


def same_address(a: str, b: str) -> bool:
    """Case-insensitive address equality."""
    return Web3.to_checksum_address(a) == Web3.to_checksum_address(b)


@lru_cache(maxsize=None)
def _read_abi(path: Path) -> str:
    with open(path, "r") as f:
        return f.read()


class AsyncWeb3Helper:
    """Builds read-only contract handles for one chain."""

    def __init__(self, chain_id: Optional[int] = None) -> None:
        self.chain_id = chain_id
        self.web3: Optional[AsyncWeb3] = None

    @classmethod
    def make_web3(cls, chain_id: int) -> "AsyncWeb3Helper":
        if chain_id not in CHAIN_ID_TO_RPC:
            raise ValueError(f"Invalid chain id {chain_id}")
        instance = cls(chain_id)
        instance.web3 = AsyncWeb3(AsyncHTTPProvider(CHAIN_ID_TO_RPC[chain_id]))
        return instance

    def load_abi(self, path: Path) -> Union[List[Any], Dict[str, Any]]:
        """Load an ABI file (bare list or a build artifact with an "abi" key)."""
        if not path.is_file():
            raise ValueError(f"Invalid ABI file path {path}")

        abi_data = json.loads(_read_abi(path))
        if isinstance(abi_data, dict):
            return abi_data.get("abi", abi_data)
        return abi_data

    def make_contract(self, abi_path: Path, addr: str) -> AsyncContract:
        if self.web3 is None:
            raise ValueError("Web3 not initialized")
        if same_address(addr, ZERO_ADDRESS):
            raise ValueError(f"Refusing to bind {abi_path.stem} to the zero address")
        abi = self.load_abi(abi_path)
        return self.web3.eth.contract(address=Web3.to_checksum_address(addr), abi=abi)

    def make_contract_by_name(self, name: str, addr: str) -> AsyncContract:
        """Contract handle using the bundled ABI `abis/<name>.json`."""
        return self.make_contract(DEFAULT_ABI_PATH / f"{name}.json", addr)
