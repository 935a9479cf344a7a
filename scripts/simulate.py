"""
Rush Hour Simulation Script

Fires many concurrent customer orders at one table's public menu to check
that every submission lands as a complete order and reaches the dashboard.

Run from project root:
    python scripts/simulate.py --token <qr_token> --orders 50

Author: Khalil Bannouri
Version: 1.0.0
"""

import argparse
import asyncio
import random
import sys
import time
from decimal import Decimal
from typing import Any

import httpx

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_ORDERS = 50

NOTES = [None, None, None, "No onions", "Extra napkins", "Bring the bill with the food", "Allergic to nuts"]


def generate_random_items(products: list[dict]) -> list[dict]:
    """Pick 1-4 random products from the menu."""
    picked = random.sample(products, k=min(len(products), random.randint(1, 4)))
    return [
        {"product_id": product["id"], "quantity": random.randint(1, 3)}
        for product in picked
    ]


def expected_total(items: list[dict], prices: dict[str, Decimal]) -> Decimal:
    return sum((prices[i["product_id"]] * i["quantity"] for i in items), Decimal("0"))


async def fetch_menu(client: httpx.AsyncClient, base_url: str, token: str) -> dict[str, Any]:
    response = await client.get(f"{base_url}/api/menu/{token}")
    response.raise_for_status()
    return response.json()


async def send_order(
    client: httpx.AsyncClient,
    base_url: str,
    token: str,
    products: list[dict],
    prices: dict[str, Decimal],
    order_num: int,
) -> dict[str, Any]:
    """Submit one random order and time it."""
    items = generate_random_items(products)
    payload = {
        "items": items,
        "payment_method": random.choice(["cash", "card"]),
        "customer_note": random.choice(NOTES),
    }
    start_time = time.time()

    try:
        response = await client.post(
            f"{base_url}/api/menu/{token}/orders",
            json=payload,
            timeout=30.0,
        )
        elapsed = round(time.time() - start_time, 3)

        if response.status_code == 201:
            data = response.json()
            total = Decimal(str(data["total"]))
            return {
                "order_num": order_num,
                "success": True,
                "order_id": data.get("order_id"),
                "total": total,
                "total_matches": total == expected_total(items, prices),
                "time": elapsed,
            }
        return {
            "order_num": order_num,
            "success": False,
            "error": response.text[:100],
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": elapsed,
        }


async def run_simulation(base_url: str, token: str, num_orders: int) -> dict[str, Any]:
    """Fire `num_orders` concurrent orders at the table behind `token`."""
    async with httpx.AsyncClient() as client:
        menu = await fetch_menu(client, base_url, token)
        products = [p for section in menu["sections"] for p in section["products"]]
        if not products:
            print("❌ The menu has no available products.")
            return {"total": num_orders, "successful": 0, "failed": num_orders, "results": []}
        prices = {p["id"]: Decimal(str(p["price"])) for p in products}

        print("\n" + "=" * 70)
        print(f"🚀 RUSH HOUR: {num_orders} orders for table {menu['table_number']} "
              f"of {menu['profile']['restaurant_name']}")
        print("=" * 70)

        start_time = time.time()
        results = await asyncio.gather(*[
            send_order(client, base_url, token, products, prices, i + 1)
            for i in range(num_orders)
        ])

    total_time = round(time.time() - start_time, 2)

    # Analyze results
    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]
    mismatched = [r for r in successful if not r["total_matches"]]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)

    print(f"\n✅ Successful Orders: {len(successful)}/{num_orders}")
    print(f"❌ Failed Orders: {len(failed)}/{num_orders}")
    print(f"🧮 Totals not matching the menu: {len(mismatched)}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        revenue = sum((r["total"] for r in successful), Decimal("0"))

        print("\n📈 Performance Metrics:")
        print(f"   Average Response: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")
        print(f"   💰 Total: {revenue} {menu['currency']}")

    if failed:
        print("\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    print("\n" + "=" * 70)
    print("🔍 VERIFICATION STEPS")
    print("=" * 70)
    print("1. Open the dashboard: every order above should have arrived live")
    print("2. GET /api/orders should list each order with all of its items")
    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


async def preflight(base_url: str, token: str) -> bool:
    """Check the API and the table's menu before the rush."""
    print("\n" + "=" * 70)
    print("🧪 PRE-FLIGHT")
    print("=" * 70)

    async with httpx.AsyncClient() as client:
        print("\n1️⃣ Health Check...")
        response = await client.get(f"{base_url}/health")
        if response.status_code != 200:
            print(f"   ❌ Failed: {response.text}")
            return False
        data = response.json()
        print(f"   ✅ Status: {data.get('status')}")
        print(f"   Database: {data.get('database')}")
        print(f"   Realtime: {data.get('realtime')}")

        print("\n2️⃣ Table Menu...")
        response = await client.get(f"{base_url}/api/menu/{token}")
        if response.status_code != 200:
            print(f"   ❌ {response.json().get('error', response.text)}")
            return False
        menu = response.json()
        count = sum(len(s["products"]) for s in menu["sections"])
        print(f"   ✅ Table {menu['table_number']}, {count} product(s) available")

    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Rush Hour Simulation Script")
    parser.add_argument("--token", required=True, help="QR token of the table to order from")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--base-url", default=API_BASE_URL, help="API base URL")
    parser.add_argument("--skip-checks", action="store_true", help="Skip pre-flight checks")
    args = parser.parse_args()

    if not args.skip_checks and not asyncio.run(preflight(args.base_url, args.token)):
        print("\n❌ Pre-flight checks failed. Fix issues before running the simulation.")
        sys.exit(1)

    summary = asyncio.run(run_simulation(args.base_url, args.token, args.orders))
    sys.exit(0 if summary["failed"] == 0 else 1)
