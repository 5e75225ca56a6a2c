"""ContractUtility: Web3 initialization and the contract ABIs the engine uses."""

import os

from web3 import AsyncWeb3

# Only the members the engine touches are described.
UNISWAP_V2_ROUTER_ABI: list[dict] = [
    {
        "inputs": [],
        "name": "factory",
        "outputs": [{"internalType": "address", "name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
]

UNISWAP_V2_FACTORY_ABI: list[dict] = [
    {
        "inputs": [
            {"internalType": "address", "name": "tokenA", "type": "address"},
            {"internalType": "address", "name": "tokenB", "type": "address"},
        ],
        "name": "getPair",
        "outputs": [{"internalType": "address", "name": "pair", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
]

UNISWAP_V2_PAIR_ABI: list[dict] = [
    {
        "inputs": [],
        "name": "getReserves",
        "outputs": [
            {"internalType": "uint112", "name": "_reserve0", "type": "uint112"},
            {"internalType": "uint112", "name": "_reserve1", "type": "uint112"},
            {"internalType": "uint32", "name": "_blockTimestampLast", "type": "uint32"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "token0",
        "outputs": [{"internalType": "address", "name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "internalType": "address", "name": "sender", "type": "address"},
            {"indexed": False, "internalType": "uint256", "name": "amount0In", "type": "uint256"},
            {"indexed": False, "internalType": "uint256", "name": "amount1In", "type": "uint256"},
            {"indexed": False, "internalType": "uint256", "name": "amount0Out", "type": "uint256"},
            {"indexed": False, "internalType": "uint256", "name": "amount1Out", "type": "uint256"},
            {"indexed": True, "internalType": "address", "name": "to", "type": "address"},
        ],
        "name": "Swap",
        "type": "event",
    },
]

NETWORKS: dict[str, str] = {
    "mainnet": "https://ethereum-rpc.publicnode.com",
    "sepolia": "https://ethereum-sepolia-rpc.publicnode.com",
    "localnet": "http://localhost:8545",
}


class ContractUtility:
    """Utility for Web3 connection setup.

    :ivar network: Network RPC URL.
    :ivar w3: Configured AsyncWeb3 instance.
    """

    def __init__(self, network_name: str) -> None:
        """Initialize the contract utility.

        :param network_name: Name of the network, or an RPC URL.
        """
        # RPC_URL env var overrides the default for the network
        self.network = os.environ.get("RPC_URL") or NETWORKS.get(network_name, network_name)

        self.w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(self.network))
