"""Reference crowdsale migration for crowdsale-deployments library."""

from typing import List

from .types import Deploy, Link, Step

BASIC_MATH_LIB = "BasicMathLib"
TOKEN_LIB = "TokenLib"
LINKED_LIST_LIB = "LinkedListLib"
INTERACTIVE_CROWDSALE_LIB = "InteractiveCrowdsaleLib"
INTERACTIVE_CROWDSALE_TOKEN = "InteractiveCrowdsaleToken"
INTERACTIVE_CROWDSALE_TEST_CONTRACT = "InteractiveCrowdsaleTestContract"

# Artifacts the migration touches, in declaration order
CROWDSALE_ARTIFACTS = [
    BASIC_MATH_LIB,
    TOKEN_LIB,
    LINKED_LIST_LIB,
    INTERACTIVE_CROWDSALE_TOKEN,
    INTERACTIVE_CROWDSALE_LIB,
    INTERACTIVE_CROWDSALE_TEST_CONTRACT,
]

# The test contract is only wired up on local chains
TEST_NETWORKS = frozenset(["development", "coverage"])


def crowdsale_migration() -> List[Step]:
    """
    Steps deploying the interactive crowdsale libraries.

    The libraries are deployed without overwrite, so an existing deployment
    on the target network is reused. The token and the test contract are
    only linked; deploying them needs sale parameters supplied by the caller.

    Returns:
        Deploy and Link steps in declaration order
    """
    return [
        Deploy(BASIC_MATH_LIB, overwrite=False),
        Link(BASIC_MATH_LIB, TOKEN_LIB),
        Deploy(TOKEN_LIB, overwrite=False),
        Deploy(LINKED_LIST_LIB, overwrite=False),
        Link(BASIC_MATH_LIB, INTERACTIVE_CROWDSALE_LIB),
        Link(LINKED_LIST_LIB, INTERACTIVE_CROWDSALE_LIB),
        Link(TOKEN_LIB, INTERACTIVE_CROWDSALE_LIB),
        Deploy(INTERACTIVE_CROWDSALE_LIB, overwrite=False),
        Link(TOKEN_LIB, INTERACTIVE_CROWDSALE_TOKEN),
        Link(
            INTERACTIVE_CROWDSALE_LIB,
            INTERACTIVE_CROWDSALE_TEST_CONTRACT,
            networks=TEST_NETWORKS,
        ),
    ]
