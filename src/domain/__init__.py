"""Domain layer of the custodial vault ledger.

Balances, the asset registry, price resolution and the deposit/withdraw
protocol live here as plain in-memory objects. Collaborators (admin gate,
asset transfers, price feeds) are only seen through the protocols in
``collaborators`` and ``pricing`` so the accounting rules can be tested
without any I/O.
"""

__all__ = [
    "balance_ledger",
    "base_types",
    "capacity",
    "collaborators",
    "decimals",
    "errors",
    "events",
    "oracle",
    "pricing",
    "registry",
    "vault",
]
