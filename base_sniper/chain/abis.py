"""
Contract ABIs - Minimal fragments for tokens, V2/V3 factories, pairs and routers
"""

from web3 import Web3


def _fn(name, inputs, outputs=(), mutability="view"):
    return {
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "name": name,
        "outputs": [{"name": n, "type": t} for n, t in outputs],
        "stateMutability": mutability,
        "type": "function"
    }


def _event(name, inputs):
    return {
        "anonymous": False,
        "inputs": [{"indexed": indexed, "name": n, "type": t} for n, t, indexed in inputs],
        "name": name,
        "type": "event"
    }


ERC20_ABI = [
    _fn("name", [], [("", "string")]),
    _fn("symbol", [], [("", "string")]),
    _fn("decimals", [], [("", "uint8")]),
    _fn("totalSupply", [], [("", "uint256")]),
    _fn("balanceOf", [("account", "address")], [("", "uint256")]),
    _fn("allowance", [("owner", "address"), ("spender", "address")], [("", "uint256")]),
    _fn("approve", [("spender", "address"), ("amount", "uint256")], [("", "bool")], "nonpayable"),
]

V2_PAIR_ABI = [
    _fn("getReserves", [], [("reserve0", "uint112"), ("reserve1", "uint112"), ("blockTimestampLast", "uint32")]),
    _fn("token0", [], [("", "address")]),
    _fn("token1", [], [("", "address")]),
]

V2_FACTORY_ABI = [
    _fn("getPair", [("tokenA", "address"), ("tokenB", "address")], [("pair", "address")]),
    _event("PairCreated", [
        ("token0", "address", True),
        ("token1", "address", True),
        ("pair", "address", False),
        ("", "uint256", False),
    ]),
]

AERODROME_FACTORY_ABI = [
    _event("PoolCreated", [
        ("token0", "address", True),
        ("token1", "address", True),
        ("stable", "bool", True),
        ("pool", "address", False),
        ("", "uint256", False),
    ]),
]

V3_FACTORY_ABI = [
    _event("PoolCreated", [
        ("token0", "address", True),
        ("token1", "address", True),
        ("fee", "uint24", True),
        ("tickSpacing", "int24", False),
        ("pool", "address", False),
    ]),
]

V3_POOL_ABI = [
    _event("Mint", [
        ("sender", "address", False),
        ("owner", "address", True),
        ("tickLower", "int24", True),
        ("tickUpper", "int24", True),
        ("amount", "uint128", False),
        ("amount0", "uint256", False),
        ("amount1", "uint256", False),
    ]),
]

ROUTER_ABI = [
    _fn("factory", [], [("", "address")], "pure"),
    _fn("getAmountsOut", [("amountIn", "uint256"), ("path", "address[]")], [("amounts", "uint256[]")]),
    _fn("swapExactETHForTokens",
        [("amountOutMin", "uint256"), ("path", "address[]"), ("to", "address"), ("deadline", "uint256")],
        [("amounts", "uint256[]")], "payable"),
    _fn("swapExactETHForTokensSupportingFeeOnTransferTokens",
        [("amountOutMin", "uint256"), ("path", "address[]"), ("to", "address"), ("deadline", "uint256")],
        [], "payable"),
    _fn("swapETHForExactTokens",
        [("amountOut", "uint256"), ("path", "address[]"), ("to", "address"), ("deadline", "uint256")],
        [("amounts", "uint256[]")], "payable"),
    _fn("swapExactTokensForETH",
        [("amountIn", "uint256"), ("amountOutMin", "uint256"), ("path", "address[]"),
         ("to", "address"), ("deadline", "uint256")],
        [("amounts", "uint256[]")], "nonpayable"),
    _fn("swapExactTokensForETHSupportingFeeOnTransferTokens",
        [("amountIn", "uint256"), ("amountOutMin", "uint256"), ("path", "address[]"),
         ("to", "address"), ("deadline", "uint256")],
        [], "nonpayable"),
    _fn("swapExactTokensForTokens",
        [("amountIn", "uint256"), ("amountOutMin", "uint256"), ("path", "address[]"),
         ("to", "address"), ("deadline", "uint256")],
        [("amounts", "uint256[]")], "nonpayable"),
]

UNIVERSAL_ROUTER_ABI = [
    _fn("execute", [("commands", "bytes"), ("inputs", "bytes[]"), ("deadline", "uint256")], [], "payable"),
]

# Router calls that spend native ETH on a token
ETH_BUY_METHODS = (
    "swapExactETHForTokens",
    "swapExactETHForTokensSupportingFeeOnTransferTokens",
    "swapETHForExactTokens",
)


def event_signature(abi: list, event_name: str) -> str:
    for entry in abi:
        if entry.get("type") == "event" and entry.get("name") == event_name:
            types = ",".join(i["type"] for i in entry["inputs"])
            return f"{event_name}({types})"
    raise KeyError(f"Event {event_name} not in ABI")


def event_topic(abi: list, event_name: str) -> str:
    """keccak topic0 of an event, 0x-prefixed"""
    return Web3.to_hex(Web3.keccak(text=event_signature(abi, event_name)))
