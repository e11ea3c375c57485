#!/usr/bin/env python3
"""
Basic lead management example.

This example demonstrates creating, updating, annotating and deleting
a lead with leadsdb.

Usage:
    export LEADSDB_API_KEY="your-api-key"
    python examples/basic_crud.py
"""

import asyncio

from leadsdb import ApiError, ErrorCategory, Lead, LeadsClient, UpdateLeadInput


async def main() -> None:
    """Run the CRUD walkthrough."""
    async with LeadsClient() as client:
        lead = await client.create(
            Lead(
                name="Blue Bottle Coffee",
                source="manual",
                city="Oakland",
                country="US",
                tags=["coffee", "roaster"],
            )
        )
        print(f"Created {lead.id} at {lead.created_at}")

        lead = await client.update(lead.id, UpdateLeadInput(rating=4.6, review_count=812))
        print(f"Rating now {lead.rating} ({lead.review_count} reviews)")

        note = await client.create_note(lead.id, "Asked for wholesale pricing")
        await client.update_note(note.id, "Sent wholesale price list")
        for n in await client.list_notes(lead.id):
            print(f"Note {n.id}: {n.content}")

        await client.delete(lead.id)

        try:
            await client.get(lead.id)
        except ApiError as e:
            if e.is_category(ErrorCategory.NOT_FOUND):
                print("Lead is gone")
            else:
                raise


if __name__ == "__main__":
    asyncio.run(main())
