#!/usr/bin/env python3
"""
Demo Data Seeding Script for Ballot Core.

Creates:
- An admin role (admin capability) and a voter role
- An administrator and three voters
- A category visible to the voter role
- One ballot of every type, created through the API as the administrator

Users come from the identity provider in production, so they and their roles
are written straight to the database; the bearer tokens printed at the end can
be used against the running API.

Usage:
    python scripts/seed_demo_data.py

Requires:
    - Database reachable at DATABASE_URL
    - Backend running at http://localhost:8000
"""
import asyncio
import sys
from datetime import datetime, timedelta, timezone

import httpx
from sqlalchemy import select

from ballotcore.core.config import settings
from ballotcore.core.security import create_access_token
from ballotcore.db.base import async_session_maker, init_db
from ballotcore.models.role import Role
from ballotcore.models.user import User
from ballotcore.models.category import Category

# Configuration
BASE_URL = "http://localhost:8000"
CATEGORY_NAME = "Student Council"
VOTER_EMAILS = ["alice@example.com", "bob@example.com", "carol@example.com"]

DEMO_BALLOTS = [
    ("Council president", "SINGLE_CHOICE", ["Ada", "Grace", "Linus"]),
    ("Club activities", "MULTIPLE_CHOICE", ["Hiking", "Chess", "Robotics", "Film"]),
    ("Cafeteria menu", "RANKED_CHOICE", ["Pizza", "Curry", "Salad"]),
    ("Rate the semester", "LINEAR_CHOICE", ["1,Poor", "2", "3", "4", "5,Excellent"]),
    ("Suggestions", "TEXT_INPUT", []),
    ("Extend library hours?", "YES_NO", []),
]


async def get_or_create_role(session, name: str, is_admin: bool) -> Role:
    result = await session.execute(select(Role).where(Role.name == name))
    role = result.scalar_one_or_none()
    if role is None:
        role = Role(name=name, is_admin=is_admin)
        session.add(role)
        await session.flush()
        print(f"Created role {name} (admin={is_admin})")
    return role


async def get_or_create_user(session, email: str, name: str, roles: list[Role]) -> User:
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is None:
        user = User(email=email, name=name, is_active=True)
        user.roles = roles
        session.add(user)
        await session.flush()
        print(f"Created user {email}")
    return user


async def seed_identities() -> tuple[User, list[User], Category]:
    """Roles, users and the demo category."""
    print("Seeding roles, users and category...")
    await init_db()

    async with async_session_maker() as session:
        admin_role = await get_or_create_role(session, settings.ADMIN_ROLE_NAMES[0], is_admin=True)
        voter_role = await get_or_create_role(session, "voter", is_admin=False)

        admin = await get_or_create_user(session, "admin@example.com", "Demo Admin", [admin_role])
        voters = [
            await get_or_create_user(session, email, email.split("@")[0].title(), [voter_role])
            for email in VOTER_EMAILS
        ]

        result = await session.execute(select(Category).where(Category.name == CATEGORY_NAME))
        category = result.scalar_one_or_none()
        if category is None:
            category = Category(name=CATEGORY_NAME, description="Demo category")
            category.roles = [voter_role]
            session.add(category)
            await session.flush()
            print(f"Created category {CATEGORY_NAME}")

        await session.commit()
        return admin, voters, category


async def create_ballots(client: httpx.AsyncClient, headers: dict, category_id: str) -> list[dict]:
    print("\nCreating ballots...")
    limit_date = (datetime.now(timezone.utc) + timedelta(days=7)).isoformat()
    created = []
    for title, ballot_type, options in DEMO_BALLOTS:
        response = await client.post(
            f"{BASE_URL}{settings.API_V1_PREFIX}/ballots",
            headers=headers,
            json={
                "title": title,
                "category_id": category_id,
                "limit_date": limit_date,
                "ballot_type": ballot_type,
                "options": [{"title": option} for option in options],
            },
        )
        if response.status_code != 201:
            print(f"Failed to create {title}: {response.text}")
            sys.exit(1)
        ballot = response.json()
        print(f"  {ballot_type:<16} {ballot['id']}  {title}")
        created.append(ballot)
    return created


async def cast_sample_votes(client: httpx.AsyncClient, voter_headers: list[dict], ballots: list[dict]):
    print("\nCasting sample votes...")
    for index, headers in enumerate(voter_headers):
        for ballot in ballots:
            option_ids = [option["id"] for option in ballot["options"]]
            ballot_type = ballot["ballot_type"]
            if ballot_type == "RANKED_CHOICE":
                shift = index % len(option_ids)
                payload = {"option_ids": option_ids[shift:] + option_ids[:shift]}
            elif ballot_type == "MULTIPLE_CHOICE":
                payload = {"option_ids": option_ids[index % len(option_ids):][:2]}
            elif ballot_type == "TEXT_INPUT":
                payload = {"text_response": f"Suggestion number {index + 1}"}
            else:
                payload = {"option_id": option_ids[index % len(option_ids)]}

            response = await client.post(
                f"{BASE_URL}{settings.API_V1_PREFIX}/ballots/{ballot['id']}/votes",
                headers=headers,
                json=payload,
            )
            if response.status_code != 201:
                print(f"  Vote on {ballot['title']} failed: {response.text}")


async def main():
    admin, voters, category = await seed_identities()

    admin_token = create_access_token(subject=admin.id)
    voter_tokens = [create_access_token(subject=voter.id) for voter in voters]

    async with httpx.AsyncClient(timeout=30.0) as client:
        try:
            await client.get(f"{BASE_URL}/api/health")
        except httpx.ConnectError:
            print(f"Backend not reachable at {BASE_URL}")
            sys.exit(1)

        headers = {"Authorization": f"Bearer {admin_token}"}
        ballots = await create_ballots(client, headers, category.id)
        await cast_sample_votes(
            client,
            [{"Authorization": f"Bearer {token}"} for token in voter_tokens],
            ballots,
        )

    print("\n" + "=" * 60)
    print("Demo data seeded")
    print("=" * 60)
    print(f"Admin  {admin.email}\n  {admin_token}")
    for voter, token in zip(voters, voter_tokens):
        print(f"Voter  {voter.email}\n  {token}")


if __name__ == "__main__":
    asyncio.run(main())
