"""Library link placeholder handling for crowdsale-deployments library."""

import re
from typing import Any, List

from .constants import LINK_PLACEHOLDER_LENGTH, LINK_PLACEHOLDER_NAME_LENGTH


def link_placeholder(library: str) -> str:
    """
    Build the solc link placeholder for a library.

    Args:
        library: Library contract name

    Returns:
        40-character placeholder, e.g. "__BasicMathLib__________________________"
    """
    prefix = "__" + library[:LINK_PLACEHOLDER_NAME_LENGTH]
    return prefix.ljust(LINK_PLACEHOLDER_LENGTH, "_")


def is_address(value: Any) -> bool:
    """Check for a 20-byte hex address, with or without 0x prefix."""
    if not isinstance(value, str):
        return False
    stripped = value[2:] if value.lower().startswith("0x") else value
    return re.fullmatch(r"[0-9a-fA-F]{40}", stripped) is not None


def _normalize_address(address: str) -> str:
    if not is_address(address):
        raise ValueError(f"Invalid address for linking: {address!r}")
    return address[-40:].lower()


def link_bytecode(bytecode: str, library: str, address: str) -> str:
    """
    Substitute every placeholder for a library with its deployed address.

    Args:
        bytecode: Bytecode template (with or without 0x prefix)
        library: Library contract name
        address: Deployed library address

    Returns:
        Bytecode with the library's placeholders replaced

    Raises:
        ValueError: If address is not a 20-byte hex address
    """
    return bytecode.replace(link_placeholder(library), _normalize_address(address))


def find_link_references(bytecode: str) -> List[str]:
    """
    List the library names still referenced by placeholders in bytecode.

    Names are truncated the same way solc truncates them, and returned in
    order of first appearance without duplicates.

    Args:
        bytecode: Bytecode template

    Returns:
        List of referenced library names
    """
    names: List[str] = []
    position = bytecode.find("__")
    while position != -1:
        chunk = bytecode[position:position + LINK_PLACEHOLDER_LENGTH]
        if len(chunk) < LINK_PLACEHOLDER_LENGTH:
            break
        name = chunk[2:].rstrip("_")
        if name and name not in names:
            names.append(name)
        position = bytecode.find("__", position + LINK_PLACEHOLDER_LENGTH)
    return names


def references_library(bytecode: str, library: str) -> bool:
    """Check whether bytecode still holds a placeholder for library."""
    return link_placeholder(library) in bytecode
