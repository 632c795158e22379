# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

"""
Seed a demo account with guests, expenses and tasks.

Guests are read-only in the app itself, so this is the way to populate the
RSVP numbers on the dashboard for local runs.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import date, timedelta

from planner.data import InMemoryDataClient
from planner.dependencies import get_data_client, get_identity_service
from planner.errors import AuthError
from shared.constants import EXPENSES_TABLE, GUESTS_TABLE, TASKS_TABLE

logger = logging.getLogger(__name__)

DEMO_GUESTS = (
    ("Ada Lovelace", "Accepted"),
    ("Grace Hopper", "Accepted"),
    ("Alan Turing", "Pending"),
    ("Katherine Johnson", "Declined"),
    ("Edsger Dijkstra", "Pending"),
)

DEMO_EXPENSES = (
    ("Venue", "Reception hall deposit", 5000, 2500, "Paid"),
    ("Catering", "Dinner for 120", 9000, 0, "Pending"),
    ("Photography", "Full-day coverage", 3000, 1000, "Overdue"),
)

DEMO_TASKS = (
    ("Book wedding venue", 14, "High Priority", "Venue"),
    ("Send save-the-dates", 30, "Medium Priority", "Guests"),
    ("Choose florist", 60, "Low Priority", "Florals"),
)


async def seed(email: str, password: str, full_name: str) -> str:
    identity_service = get_identity_service()
    try:
        identity = await identity_service.sign_up(email, password, full_name)
    except AuthError as exc:
        logger.info("Sign-up failed (%s); signing in instead", exc.message)
        identity = None
    if identity is None:
        identity = await identity_service.sign_in(email, password)

    client = get_data_client().bind(identity.access_token)
    user_id = identity.user_id
    await client.insert(
        GUESTS_TABLE,
        [{"user_id": user_id, "name": n, "rsvp_status": s} for n, s in DEMO_GUESTS],
    )
    await client.insert(
        EXPENSES_TABLE,
        [
            {
                "user_id": user_id,
                "category": category,
                "item": item,
                "estimated": estimated,
                "actual": actual,
                "status": status,
            }
            for category, item, estimated, actual, status in DEMO_EXPENSES
        ],
    )
    today = date.today()
    await client.insert(
        TASKS_TABLE,
        [
            {
                "user_id": user_id,
                "title": title,
                "due_date": (today + timedelta(days=days)).isoformat(),
                "priority": priority,
                "category": category,
                "completed": False,
            }
            for title, days, priority, category in DEMO_TASKS
        ],
    )
    return user_id


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed a demo wedding planner account")
    parser.add_argument("--email", default="demo@example.com")
    parser.add_argument("--password", default="demo-password")
    parser.add_argument("--full-name", default="Demo Couple")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")

    if isinstance(get_data_client(), InMemoryDataClient):
        logger.warning("No DATABASE_URL or HOSTED_URL configured; data will not persist")

    user_id = asyncio.run(seed(args.email, args.password, args.full_name))
    logger.info("Seeded demo data for user %s", user_id)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
