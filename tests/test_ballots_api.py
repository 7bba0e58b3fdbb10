"""
Tests for the ballots v1 API.

Tests cover:
- Ballot creation and option validation per type
- Visibility by category role, listing filters and voted/unvoted partition
- Suspend / unsuspend / end early and their ownership rule
- Analytics
- Optimistic version check on concurrent transitions
"""
import pytest
from datetime import datetime, timezone, timedelta
from httpx import AsyncClient
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ballotcore.models.category import Category
from ballotcore.models.ballot import Ballot, BallotType
from ballotcore.models.vote import Vote
from ballotcore.core.errors import InvalidStateError
from ballotcore.core.permissions import Principal
from ballotcore.core.security import create_access_token
from ballotcore.services import lifecycle


def _future(**kwargs) -> str:
    return (datetime.now(timezone.utc) + timedelta(**(kwargs or {"days": 2}))).isoformat()


def _payload(category: Category, ballot_type: str, options: list[str], **overrides) -> dict:
    payload = {
        "title": "Pick a colour",
        "description": "Team colour for next season",
        "category_id": category.id,
        "limit_date": _future(),
        "ballot_type": ballot_type,
        "options": [{"title": title} for title in options],
    }
    payload.update(overrides)
    return payload


# ============================================================================
# CREATE
# ============================================================================

@pytest.mark.asyncio(loop_scope="function")
class TestCreateBallot:
    """Tests for POST /api/v1/ballots."""

    async def test_create_single_choice(self, client: AsyncClient, admin_headers: dict, admin_user, test_category: Category):
        response = await client.post(
            "/api/v1/ballots",
            json=_payload(test_category, "SINGLE_CHOICE", ["Red", "Green", "Blue"]),
            headers=admin_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["ballot_type"] == "SINGLE_CHOICE"
        assert data["admin_id"] == admin_user.id
        assert data["status"] == "Active"
        assert data["is_suspended"] is False
        assert data["time_left"] is None
        assert [o["title"] for o in data["options"]] == ["Red", "Green", "Blue"]

    async def test_yes_no_defaults_options(self, client: AsyncClient, admin_headers: dict, test_category: Category):
        response = await client.post(
            "/api/v1/ballots",
            json=_payload(test_category, "YES_NO", []),
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert [o["title"] for o in response.json()["options"]] == ["Yes", "No"]

    async def test_text_input_gets_single_text_option(self, client: AsyncClient, admin_headers: dict, test_category: Category):
        response = await client.post(
            "/api/v1/ballots",
            json=_payload(test_category, "TEXT_INPUT", []),
            headers=admin_headers,
        )
        assert response.status_code == 201
        options = response.json()["options"]
        assert len(options) == 1
        assert options[0]["title"] == "Text Response"
        assert options[0]["is_text"] is True

    async def test_linear_choice_requires_numeric_titles(self, client: AsyncClient, admin_headers: dict, test_category: Category):
        response = await client.post(
            "/api/v1/ballots",
            json=_payload(test_category, "LINEAR_CHOICE", ["1,Bad", "Great"]),
            headers=admin_headers,
        )
        assert response.status_code == 400

    async def test_duplicate_options_rejected(self, client: AsyncClient, admin_headers: dict, test_category: Category):
        response = await client.post(
            "/api/v1/ballots",
            json=_payload(test_category, "MULTIPLE_CHOICE", ["A", "A"]),
            headers=admin_headers,
        )
        assert response.status_code == 400

    async def test_too_few_options_rejected(self, client: AsyncClient, admin_headers: dict, test_category: Category):
        response = await client.post(
            "/api/v1/ballots",
            json=_payload(test_category, "RANKED_CHOICE", ["Only"]),
            headers=admin_headers,
        )
        assert response.status_code == 400

    async def test_past_limit_date_rejected(self, client: AsyncClient, admin_headers: dict, test_category: Category):
        past = (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()
        response = await client.post(
            "/api/v1/ballots",
            json=_payload(test_category, "SINGLE_CHOICE", ["A", "B"], limit_date=past),
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Limit date must be in the future"

    async def test_unknown_category(self, client: AsyncClient, admin_headers: dict, test_category: Category):
        payload = _payload(test_category, "SINGLE_CHOICE", ["A", "B"], category_id="missing")
        response = await client.post("/api/v1/ballots", json=payload, headers=admin_headers)
        assert response.status_code == 404

    async def test_non_admin_cannot_create(self, client: AsyncClient, voter_headers: dict, test_category: Category):
        response = await client.post(
            "/api/v1/ballots",
            json=_payload(test_category, "SINGLE_CHOICE", ["A", "B"]),
            headers=voter_headers,
        )
        assert response.status_code == 403

    async def test_requires_authentication(self, client: AsyncClient, test_category: Category):
        response = await client.post(
            "/api/v1/ballots",
            json=_payload(test_category, "SINGLE_CHOICE", ["A", "B"]),
        )
        assert response.status_code == 401

    async def test_invalid_token(self, client: AsyncClient, test_category: Category):
        response = await client.get("/api/v1/ballots", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    async def test_expired_token(self, client: AsyncClient, voter_user):
        token = create_access_token(subject=voter_user.id, expires_delta=timedelta(minutes=-1))
        response = await client.get("/api/v1/ballots", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    async def test_non_auth_token_type(self, client: AsyncClient, voter_user):
        token = create_access_token(subject=voter_user.id, additional_claims={"type": "refresh"})
        response = await client.get("/api/v1/ballots", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


# ============================================================================
# VISIBILITY AND LISTING
# ============================================================================

@pytest.mark.asyncio(loop_scope="function")
class TestListBallots:
    """Tests for GET /api/v1/ballots and GET /api/v1/ballots/{id}."""

    async def test_filters(self, client: AsyncClient, voter_headers: dict, make_ballot):
        now = datetime.now(timezone.utc)
        active = await make_ballot(title="Active")
        past = await make_ballot(title="Past", limit_date=now - timedelta(days=1))
        suspended = await make_ballot(
            title="Suspended",
            limit_date=now + timedelta(days=36500),
            is_suspended=True,
            time_left=3600,
        )

        async def ids(filter_value: str) -> list[str]:
            response = await client.get(f"/api/v1/ballots?filter={filter_value}", headers=voter_headers)
            assert response.status_code == 200
            return [b["id"] for b in response.json()]

        assert await ids("active") == [active.id]
        assert await ids("past") == [past.id]
        assert await ids("suspended") == [suspended.id]

    async def test_default_filter_is_active(self, client: AsyncClient, voter_headers: dict, make_ballot):
        ballot = await make_ballot()
        await make_ballot(limit_date=datetime.now(timezone.utc) - timedelta(minutes=1))

        response = await client.get("/api/v1/ballots", headers=voter_headers)
        assert [b["id"] for b in response.json()] == [ballot.id]

    async def test_sorted_by_deadline(self, client: AsyncClient, voter_headers: dict, make_ballot):
        now = datetime.now(timezone.utc)
        later = await make_ballot(title="Later", limit_date=now + timedelta(days=5))
        sooner = await make_ballot(title="Sooner", limit_date=now + timedelta(hours=5))

        response = await client.get("/api/v1/ballots", headers=voter_headers)
        assert [b["id"] for b in response.json()] == [sooner.id, later.id]

    async def test_partition(self, client: AsyncClient, db_session: AsyncSession, voter_headers: dict, voter_user, make_ballot):
        voted = await make_ballot(title="Voted")
        unvoted = await make_ballot(title="Unvoted")
        db_session.add(Vote(ballot_id=voted.id, user_id=voter_user.id, option_id=voted.options[0].id))
        await db_session.flush()

        response = await client.get("/api/v1/ballots?partition=true", headers=voter_headers)
        assert response.status_code == 200
        data = response.json()
        assert [b["id"] for b in data["voted"]] == [voted.id]
        assert [b["id"] for b in data["unvoted"]] == [unvoted.id]
        assert data["voted"][0]["has_voted"] is True
        assert data["unvoted"][0]["has_voted"] is False

    async def test_hidden_category_not_listed(self, client: AsyncClient, voter_headers: dict, outsider_headers: dict, admin_headers: dict, make_ballot, hidden_category: Category):
        visible = await make_ballot()
        hidden = await make_ballot(category=hidden_category)

        response = await client.get("/api/v1/ballots", headers=voter_headers)
        assert [b["id"] for b in response.json()] == [visible.id]

        response = await client.get("/api/v1/ballots", headers=outsider_headers)
        assert response.json() == []

        # Admin capability sees every category
        response = await client.get("/api/v1/ballots", headers=admin_headers)
        assert {b["id"] for b in response.json()} == {visible.id, hidden.id}

    async def test_get_ballot(self, client: AsyncClient, voter_headers: dict, make_ballot):
        ballot = await make_ballot(ballot_type=BallotType.YES_NO)

        response = await client.get(f"/api/v1/ballots/{ballot.id}", headers=voter_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == ballot.id
        assert data["has_voted"] is False
        assert [o["title"] for o in data["options"]] == ["Yes", "No"]

    async def test_get_invisible_ballot_is_not_found(self, client: AsyncClient, outsider_headers: dict, make_ballot):
        ballot = await make_ballot()

        response = await client.get(f"/api/v1/ballots/{ballot.id}", headers=outsider_headers)
        assert response.status_code == 404

        response = await client.get("/api/v1/ballots/does-not-exist", headers=outsider_headers)
        assert response.status_code == 404


# ============================================================================
# LIFECYCLE
# ============================================================================

@pytest.mark.asyncio(loop_scope="function")
class TestLifecycleEndpoints:
    """Tests for suspend, unsuspend and end."""

    async def test_suspend_and_resume(self, client: AsyncClient, admin_headers: dict, make_ballot):
        ballot = await make_ballot(limit_date=datetime.now(timezone.utc) + timedelta(hours=3))

        response = await client.post(f"/api/v1/ballots/{ballot.id}/suspend", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "Suspended"
        assert data["is_suspended"] is True
        assert 3 * 3600 - 5 <= data["time_left"] <= 3 * 3600

        response = await client.post(f"/api/v1/ballots/{ballot.id}/unsuspend", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "Active"
        assert data["time_left"] is None

    async def test_suspend_twice(self, client: AsyncClient, admin_headers: dict, make_ballot):
        ballot = await make_ballot()
        await client.post(f"/api/v1/ballots/{ballot.id}/suspend", headers=admin_headers)

        response = await client.post(f"/api/v1/ballots/{ballot.id}/suspend", headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Ballot is already suspended"

    async def test_unsuspend_active(self, client: AsyncClient, admin_headers: dict, make_ballot):
        ballot = await make_ballot()
        response = await client.post(f"/api/v1/ballots/{ballot.id}/unsuspend", headers=admin_headers)
        assert response.status_code == 400

    async def test_end_early_is_final(self, client: AsyncClient, admin_headers: dict, make_ballot):
        ballot = await make_ballot()

        response = await client.post(f"/api/v1/ballots/{ballot.id}/end", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "Ended"

        response = await client.post(f"/api/v1/ballots/{ballot.id}/end", headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Ballot is already ended"

        response = await client.post(f"/api/v1/ballots/{ballot.id}/suspend", headers=admin_headers)
        assert response.status_code == 400

    async def test_end_suspended(self, client: AsyncClient, admin_headers: dict, make_ballot):
        ballot = await make_ballot()
        await client.post(f"/api/v1/ballots/{ballot.id}/suspend", headers=admin_headers)

        response = await client.post(f"/api/v1/ballots/{ballot.id}/end", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["is_suspended"] is False
        assert data["time_left"] is None

    async def test_only_owner_may_transition(self, client: AsyncClient, db_session: AsyncSession, other_admin_headers: dict, voter_headers: dict, make_ballot):
        ballot = await make_ballot()

        for headers in (other_admin_headers, voter_headers):
            for action in ("suspend", "end"):
                response = await client.post(f"/api/v1/ballots/{ballot.id}/{action}", headers=headers)
                assert response.status_code == 403

        result = await db_session.execute(select(Ballot).where(Ballot.id == ballot.id))
        assert result.scalar_one().is_suspended is False

    async def test_transition_on_invisible_ballot(self, client: AsyncClient, outsider_headers: dict, make_ballot):
        ballot = await make_ballot()
        response = await client.post(f"/api/v1/ballots/{ballot.id}/suspend", headers=outsider_headers)
        assert response.status_code == 404


# ============================================================================
# ANALYTICS
# ============================================================================

@pytest.mark.asyncio(loop_scope="function")
class TestAnalytics:
    """Tests for GET /api/v1/ballots/{id}/analytics."""

    async def test_empty_ballot(self, client: AsyncClient, voter_headers: dict, voter_user, make_ballot):
        ballot = await make_ballot()

        response = await client.get(f"/api/v1/ballots/{ballot.id}/analytics", headers=voter_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["total_votes"] == 0
        assert data["eligible_users"] == 1
        assert data["participation_rate"] == 0.0
        assert [o["votes"] for o in data["choice_distribution"]] == [0, 0, 0]
        assert len(data["hourly_distribution"]) == 24

    async def test_after_votes(self, client: AsyncClient, voter_headers: dict, second_voter_headers: dict, make_ballot):
        ballot = await make_ballot()
        red, green = ballot.options[0].id, ballot.options[1].id

        await client.post(f"/api/v1/ballots/{ballot.id}/votes", json={"option_id": red}, headers=voter_headers)
        await client.post(f"/api/v1/ballots/{ballot.id}/votes", json={"option_id": green}, headers=second_voter_headers)

        response = await client.get(f"/api/v1/ballots/{ballot.id}/analytics", headers=voter_headers)
        data = response.json()
        assert data["total_voters"] == 2
        assert data["eligible_users"] == 2
        assert data["participation_rate"] == 1.0
        assert [o["votes"] for o in data["choice_distribution"]] == [1, 1, 0]
        assert [o["percentage"] for o in data["choice_distribution"]] == [50.0, 50.0, 0.0]
        assert sum(slot["votes"] for slot in data["hourly_distribution"]) == 2

    async def test_ranked_analytics(self, client: AsyncClient, voter_headers: dict, make_ballot):
        ballot = await make_ballot(ballot_type=BallotType.RANKED_CHOICE)
        ids = [o.id for o in ballot.options]

        await client.post(
            f"/api/v1/ballots/{ballot.id}/votes",
            json={"option_ids": [ids[2], ids[0], ids[1]]},
            headers=voter_headers,
        )

        response = await client.get(f"/api/v1/ballots/{ballot.id}/analytics", headers=voter_headers)
        data = response.json()
        assert data["winner_option_id"] == ids[2]
        ranks = {r["option_id"]: r["ranks"] for r in data["rank_distribution"]}
        assert ranks[ids[2]]["1"] == 1
        assert ranks[ids[1]]["3"] == 1

    async def test_invisible_ballot(self, client: AsyncClient, outsider_headers: dict, make_ballot):
        ballot = await make_ballot()
        response = await client.get(f"/api/v1/ballots/{ballot.id}/analytics", headers=outsider_headers)
        assert response.status_code == 404


@pytest.mark.asyncio(loop_scope="function")
class TestConcurrentTransitions:
    """Another transaction changes the ballot between load and flush."""

    async def test_version_mismatch_is_invalid_state(self, db_session: AsyncSession, admin_user, make_ballot, monkeypatch):
        ballot = await make_ballot()
        load_ballot = lifecycle.get_visible_ballot

        async def load_then_bump_version(db, principal, ballot_id, for_update=False):
            loaded = await load_ballot(db, principal, ballot_id, for_update=for_update)
            # Core statement, so the loaded instance keeps its old version
            table = Ballot.__table__
            await db.execute(
                update(table)
                .where(table.c.id == ballot_id)
                .values(version=table.c.version + 1)
            )
            return loaded

        monkeypatch.setattr(lifecycle, "get_visible_ballot", load_then_bump_version)

        with pytest.raises(InvalidStateError) as exc:
            await lifecycle.suspend_ballot(db_session, Principal.from_user(admin_user), ballot.id)
        assert exc.value.detail == "Ballot was modified concurrently"
