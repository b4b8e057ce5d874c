from __future__ import annotations

from web3 import Web3
from web3.contract import Contract

# Subset of the ERC-20 ABI used for allowance checks and approvals.
ERC20_ABI: list[dict] = [
    {
        "constant": True,
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": False,
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]


def load_erc20_abi() -> list[dict]:
    """Load the ERC20 ABI."""
    return ERC20_ABI


def erc20_contract(w3: Web3, token_address: str) -> Contract:
    """Bind the ERC-20 ABI to ``token_address``."""
    return w3.eth.contract(
        address=Web3.to_checksum_address(token_address), abi=load_erc20_abi()
    )


def encode_approve(token_address: str, spender: str, amount: int) -> tuple[str, bytes]:
    """Encode approve() transaction data.

    Args:
        token_address: ERC-20 contract receiving the call
        spender: Address being authorized
        amount: Allowance in native units

    Returns:
        Tuple of (to_address, encoded_calldata)
    """
    contract = erc20_contract(Web3(), token_address)
    calldata_hex = contract.encode_abi(
        abi_element_identifier="approve",
        args=[Web3.to_checksum_address(spender), amount],
    )
    return (
        Web3.to_checksum_address(token_address),
        bytes.fromhex(calldata_hex.removeprefix("0x")),
    )
