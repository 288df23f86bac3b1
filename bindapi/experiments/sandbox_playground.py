"""
Experimental helper to walk the BIND sandbox without writing any code.

Credentials come from environment variables (or `.env`) and are never
hardcoded in the repo.

Usage:
    export BIND_USERNAME=...
    export BIND_PASSWORD=...
    export BIND_CONSUMER_KEY=...
    python -m bindapi.experiments.sandbox_playground
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import pathlib
from typing import Any

from bindapi.config import settings
from bindapi.core import BindAPIError, BindClient

SAMPLE_CBU = os.getenv("SAMPLE_CBU", "0140000000000123456789")
EXPORT_ROOT = os.getenv("EXPORT_ROOT")


def _write_json(filename: str, payload: Any) -> None:
    if not EXPORT_ROOT:
        return
    base_dir = pathlib.Path(EXPORT_ROOT)
    base_dir.mkdir(parents=True, exist_ok=True)
    target = base_dir / filename
    target.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    print(f"💾 Saved {target}")


async def run_playground() -> None:
    async with BindClient.from_settings(settings) as client:
        print("Authenticating...")
        token = await client.authenticate()
        print(f"Token obtained: {token[:20]}...")

        print("\nGetting accounts...")
        accounts = await client.get_accounts()
        for account in accounts:
            print(f"  - {account.label}: {account.id}")
        _write_json("accounts.json", [account.model_dump(by_alias=True) for account in accounts])

        if accounts:
            account_id = accounts[0].id

            print(f"\nAccount detail {account_id}:")
            detail = await client.get_account_detail(account_id)
            if detail.balance:
                print(f"  Balance: {detail.balance.currency} {detail.balance.amount}")

            print("\nRecent transactions:")
            transactions = await client.get_transactions(account_id, limit=5)
            for txn in transactions:
                if txn.details and txn.details.value:
                    print(f"  - {txn.details.posted}: {txn.details.value.amount} - {txn.details.description}")
            _write_json("transactions.json", [txn.model_dump(by_alias=True) for txn in transactions])

        print(f"\nValidating {SAMPLE_CBU}...")
        validation = await client.validate_cbu_cvu(SAMPLE_CBU)
        if validation.valid:
            print(f"  Holder: {validation.holder.name if validation.holder else '-'}")
            print(f"  Bank: {validation.bank.name if validation.bank else '-'}")
        else:
            print(f"  Invalid address: {validation.error}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    if not settings.has_credentials:
        raise SystemExit("Set BIND_USERNAME, BIND_PASSWORD and BIND_CONSUMER_KEY first.")
    try:
        asyncio.run(run_playground())
    except BindAPIError as exc:
        print(f"\n⚠️  API error: {exc}")
        print(f"  Code: {exc.error_code}")
        print(f"  Status: {exc.status_code}")
        if exc.details:
            print(f"  Details: {exc.details}")
