"""Account routing schemes used by BIND (CBU, CVU, alias)."""
from __future__ import annotations

from typing import Dict, Literal

RoutingScheme = Literal["CBU", "CVU", "ALIAS"]

# CVUs are issued by virtual-wallet providers whose entity code is all zeros.
CVU_PREFIX = "000000"


def detect_scheme(address: str) -> RoutingScheme:
    """Guess the routing scheme of ``address``.

    This is a heuristic over the numbering plan, not a validation: an
    address starting with ``000000`` is taken as a CVU, any other address of
    ASCII digits as a CBU, and anything else as an alias. Check digits are left to
    the API (see ``BindClient.validate_cbu_cvu``).
    """
    value = address.strip()
    if not (value.isascii() and value.isdigit()):
        return "ALIAS"
    if value.startswith(CVU_PREFIX):
        return "CVU"
    return "CBU"


def account_routing(address: str) -> Dict[str, str]:
    return {"scheme": detect_scheme(address), "address": address}
