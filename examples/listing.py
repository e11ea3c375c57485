#!/usr/bin/env python3
"""
Filtering and pagination example.

Usage:
    export LEADSDB_API_KEY="your-api-key"
    python examples/listing.py
"""

import asyncio

from leadsdb import AND, OR, LeadsClient, ListOptions, SortOrder, attr_sort, create_cancel_pair


async def first_page(client: LeadsClient) -> None:
    """Fetch one page with filters and sorting."""
    options = (
        ListOptions.builder()
        .limit(25)
        .filter(AND.city.eq("Berlin"), AND.rating.gte(4.5))
        .filter(OR.tags.contains("vegan"), OR.tags.contains("organic"))
        .sort(attr_sort("employees"), SortOrder.DESC)
        .build()
    )
    page = await client.list(options)
    print(f"{page.count} leads, more: {page.has_more}")


async def every_lead(client: LeadsClient) -> None:
    """Walk every page lazily."""
    options = ListOptions(limit=100, filters=(AND.location.within_radius(52.52, 13.405, 10),))
    total = 0
    async for lead in client.iterate(options):
        total += 1
        if total <= 5:
            print(f"  {lead.name} ({lead.city})")
    print(f"Iterated {total} leads near Berlin")


async def push_based(client: LeadsClient) -> None:
    """Consume leads from outlets and stop early."""
    handle, token = create_cancel_pair(timeout=30.0)
    outlets = client.iterate_outlets(ListOptions(limit=50), token=token)

    seen = 0
    async for lead in outlets.results:
        seen += 1
        if seen == 10:
            handle.cancel()
            break
    await outlets.wait()
    print(f"Stopped after {seen} leads")


async def main() -> None:
    async with LeadsClient() as client:
        await first_page(client)
        await every_lead(client)
        await push_based(client)


if __name__ == "__main__":
    asyncio.run(main())
