"""
Rush Hour Simulation Script

Fires concurrent orders at a running server, then walks a share of them
through the kitchen workflow, to exercise the transactional writes and
the live event fan-out under load.
Run from project root: python scripts/simulate.py

Version: 1.0.0
"""

import argparse
import asyncio
import random
import sys
import time
from datetime import datetime
from typing import Any

import httpx

# Configuration
API_BASE_URL = "http://localhost:3000"
TOTAL_ORDERS = 50
WORKFLOW = ["PREPARING", "READY", "COMPLETED"]

# Sample data for random orders
FIRST_NAMES = ["Thandi", "Sipho", "Lerato", "Ann", "Bongani", "Naledi", "Pieter", "Zanele", "Kabelo", "Ruth"]


def generate_random_customer() -> dict[str, str]:
    """Generate random customer info."""
    return {
        "customerName": random.choice(FIRST_NAMES),
        "phone": f"08{random.randint(2, 4)}{random.randint(1000000, 9999999)}",
    }


def generate_random_items(item_ids: list[int]) -> list[dict[str, int]]:
    """Pick 1-4 random menu lines."""
    return [
        {"itemId": random.choice(item_ids), "qty": random.randint(1, 3)}
        for _ in range(random.randint(1, 4))
    ]


async def fetch_available_items(client: httpx.AsyncClient) -> list[int]:
    response = await client.get(f"{API_BASE_URL}/api/menu")
    response.raise_for_status()
    return [
        item["id"]
        for category in response.json()["categories"]
        for item in category["items"]
        if item["available"]
    ]


# =============================================================================
# ORDER TRAFFIC
# =============================================================================

async def send_order(
    client: httpx.AsyncClient,
    order_num: int,
    item_ids: list[int],
) -> dict[str, Any]:
    """Place one order."""
    payload = {**generate_random_customer(), "items": generate_random_items(item_ids)}
    start_time = time.time()

    try:
        response = await client.post(f"{API_BASE_URL}/api/orders", json=payload, timeout=30.0)
        elapsed = round(time.time() - start_time, 3)

        if response.status_code == 200:
            data = response.json()
            return {
                "order_num": order_num,
                "success": True,
                "order_id": data["orderId"],
                "total_cents": data["order"]["total_cents"],
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


async def advance_order(client: httpx.AsyncClient, order_id: int, steps: int) -> list[str]:
    """Move an order ``steps`` positions along the workflow."""
    reached = []
    for status in WORKFLOW[:steps]:
        response = await client.patch(
            f"{API_BASE_URL}/api/orders/{order_id}/status",
            json={"status": status},
            timeout=30.0,
        )
        if response.status_code != 200:
            print(f"   ⚠️ Order #{order_id} -> {status}: {response.text[:80]}")
            break
        reached.append(status)
    return reached


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    """
    Run the rush hour simulation.

    Args:
        num_orders: Number of orders to place concurrently
    """
    print("=" * 70)
    print("🔥 RUSH HOUR SIMULATION")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient() as client:
        item_ids = await fetch_available_items(client)
        if not item_ids:
            print("\n❌ No available menu items. Seed the catalog first.")
            return {"total": num_orders, "successful": 0, "failed": num_orders}

        print("\n🚀 Firing orders...\n")
        results = await asyncio.gather(*[
            send_order(client, i + 1, item_ids) for i in range(num_orders)
        ])

        successful = [r for r in results if r["success"]]
        print("👩‍🍳 Advancing orders through the kitchen...\n")
        progress = await asyncio.gather(*[
            advance_order(client, r["order_id"], random.randint(0, len(WORKFLOW)))
            for r in successful
        ])

        active = (await client.get(f"{API_BASE_URL}/api/orders")).json()

    total_time = round(time.time() - start_time, 2)
    failed = [r for r in results if not r["success"]]
    completed = sum(1 for reached in progress if reached and reached[-1] == "COMPLETED")

    print("=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Successful Orders: {len(successful)}/{num_orders}")
    print(f"❌ Failed Orders: {len(failed)}/{num_orders}")
    print(f"🏁 Completed: {completed}")
    print(f"📺 Still active on the board: {active['total']}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        revenue = sum(r["total_cents"] for r in successful) / 100
        print(f"\n📈 Average Response: {avg_time}s")
        print(f"💰 Total Revenue: {revenue:.2f}")

    if failed:
        print("\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    print("\n" + "=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "completed": completed,
        "total_time": total_time,
    }


async def check_health() -> bool:
    """Make sure the server is up before generating load."""
    async with httpx.AsyncClient() as client:
        try:
            response = await client.get(f"{API_BASE_URL}/health", timeout=5.0)
        except httpx.HTTPError as e:
            print(f"❌ Server unreachable: {e}")
            return False

    data = response.json()
    print(f"🩺 Health: {data.get('status')} (database: {data.get('database')}, "
          f"broadcaster: {data.get('broadcaster')}, observers: {data.get('observers')})")
    return response.status_code == 200


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Rush Hour Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--url", default=API_BASE_URL, help="Server base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")

    if not asyncio.run(check_health()):
        sys.exit(1)

    asyncio.run(run_simulation(args.orders))
