"""HTTP surface tests via httpx ASGITransport.

Services are built from the temp database and scripted LLM clients through
dependency overrides. ASGITransport does not run the lifespan, so no real
LLM client is ever constructed.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.dependencies import get_profile_service, get_session_service
from src.core.exceptions import LLMTimeoutError
from src.domain.models.profile import ChildProfile, ParentProfile
from src.main import app
from src.services.profile_service import ProfileService
from src.services.session_service import SessionService

HEADERS = {"X-User-ID": "parent-1"}


@pytest.fixture
def clients(llm_factory):
    return llm_factory(), llm_factory()


@pytest.fixture
async def client(session_repo, utterance_repo, profile_repo, lexicon, clients):
    generation, crisis = clients
    service = SessionService(
        session_repo=session_repo,
        turn_store=utterance_repo,
        profile_store=profile_repo,
        generation_llm_client=generation,
        crisis_llm_client=crisis,
        lexicon=lexicon,
    )
    profiles = ProfileService(profile_store=profile_repo, session_store=session_repo)

    app.dependency_overrides[get_session_service] = lambda: service
    app.dependency_overrides[get_profile_service] = lambda: profiles
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as http:
        yield http
    app.dependency_overrides.clear()


async def post_message(client, message, **fields):
    return await client.post(
        "/messages", json={"message": message, **fields}, headers=HEADERS
    )


class TestMessages:
    @pytest.mark.asyncio
    async def test_submit_message(self, client):
        response = await post_message(client, "Hello")

        assert response.status_code == 200
        body = response.json()
        assert body["reply_text"] == "Tell me more about that."
        assert body["mode"] == "check-in"
        assert body["crisis_flag"] is False
        assert body["turn_number"] == 1
        assert "X-Request-ID" in response.headers

    @pytest.mark.asyncio
    async def test_missing_user_header(self, client):
        response = await client.post("/messages", json={"message": "Hello"})

        assert response.status_code == 401
        assert response.json()["error"]["type"] == "AuthenticationError"

    @pytest.mark.asyncio
    async def test_blank_message(self, client):
        response = await post_message(client, "   ")

        assert response.status_code == 400
        assert response.json()["error"]["type"] == "ValidationError"

    @pytest.mark.asyncio
    async def test_unsupported_budget(self, client):
        response = await post_message(client, "Hello", time_budget_minutes=45)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_session(self, client):
        response = await post_message(client, "Hello", session_id="nope")

        assert response.status_code == 404
        assert response.json()["error"]["type"] == "SessionNotFoundError"

    @pytest.mark.asyncio
    async def test_crisis_reply(self, client, clients, verdict):
        _, crisis = clients
        crisis.replies.append(verdict("critical", reply="Please call 999 now."))

        response = await post_message(client, "I want to end my life")

        assert response.status_code == 200
        body = response.json()
        assert body["crisis_flag"] is True
        assert body["crisis_status"] == "escalated"
        assert body["reply_text"] == "Please call 999 now."
        assert body["resources"]

    @pytest.mark.asyncio
    async def test_technical_difficulty_is_503_with_body(self, client, clients):
        generation, _ = clients
        generation.replies.append(LLMTimeoutError("slow"))

        response = await post_message(client, "Hello")

        assert response.status_code == 503
        body = response.json()
        assert body["error"] == "technical_difficulty"
        assert body["state_persisted"] is False
        assert "technical difficulties" in body["reply_text"]


class TestSessions:
    @pytest.mark.asyncio
    async def test_get_and_list(self, client):
        session_id = (await post_message(client, "Hello")).json()["session_id"]

        response = await client.get(f"/sessions/{session_id}", headers=HEADERS)
        assert response.status_code == 200
        assert response.json()["turn_count"] == 1
        assert response.json()["time_remaining_minutes"] == 15
        assert response.json()["usage"] == {"input_tokens": 12, "output_tokens": 8}

        listing = (await client.get("/sessions", headers=HEADERS)).json()
        assert listing["total"] == 1
        assert listing["sessions"][0]["usage"] == {}

    @pytest.mark.asyncio
    async def test_completed_hidden_by_default(self, client):
        await post_message(client, "Hello")
        await post_message(client, "Again", force_new=True)

        active = (await client.get("/sessions", headers=HEADERS)).json()
        everything = (
            await client.get("/sessions?include_completed=true", headers=HEADERS)
        ).json()

        assert active["total"] == 1
        assert everything["total"] == 2

    @pytest.mark.asyncio
    async def test_other_user_gets_404(self, client):
        session_id = (await post_message(client, "Hello")).json()["session_id"]

        response = await client.get(
            f"/sessions/{session_id}", headers={"X-User-ID": "intruder"}
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_signals_on_check_in_conflict(self, client):
        session_id = (await post_message(client, "Hello")).json()["session_id"]

        response = await client.post(
            f"/sessions/{session_id}/signals",
            json={"emotions_reflected": True},
            headers=HEADERS,
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_signals_and_extension_on_coaching(self, client, profile_repo):
        await profile_repo.upsert_parent(ParentProfile(user_id="parent-1", parent_name="Jo"))
        await profile_repo.upsert_child(
            ChildProfile(
                user_id="parent-1",
                child_name="Max",
                child_age=8,
                main_challenges=["focus"],
                strengths=["kind"],
                school_type="public",
                therapy_status="none",
            )
        )
        session_id = (
            await post_message(client, "Help with mornings", explicit_mode="coaching")
        ).json()["session_id"]

        response = await client.post(
            f"/sessions/{session_id}/signals",
            json={"emotions_reflected": True, "advance_to": "options"},
            headers=HEADERS,
        )
        assert response.status_code == 409

        response = await client.post(
            f"/sessions/{session_id}/signals",
            json={"emotions_reflected": True},
            headers=HEADERS,
        )
        assert response.status_code == 200
        assert response.json()["phase"]["emotions_reflected"] is True

        response = await client.post(
            f"/sessions/{session_id}/time-extension", headers=HEADERS
        )
        assert response.status_code == 200
        assert response.json()["phase"]["time_extension_offered"] is True


class TestProfiles:
    @pytest.mark.asyncio
    async def test_completeness_empty(self, client):
        response = await client.get("/profiles/me/completeness", headers=HEADERS)

        assert response.status_code == 200
        body = response.json()
        assert body["completion_percentage"] == 0
        assert body["progress_message"] == "Let's get started with your profile."

    @pytest.mark.asyncio
    async def test_discovery_profile_writes(self, client):
        session_id = (
            await post_message(client, "Set up", explicit_mode="discovery")
        ).json()["session_id"]

        response = await client.put(
            f"/sessions/{session_id}/profile/parent",
            json={"parent_name": "Jo"},
            headers=HEADERS,
        )
        assert response.status_code == 200
        assert response.json()["user_id"] == "parent-1"

        response = await client.put(
            f"/sessions/{session_id}/profile/children",
            json={"children": [{"child_name": "Max", "child_age": 8}]},
            headers=HEADERS,
        )
        assert response.status_code == 200
        assert response.json()[0]["child_name"] == "Max"

        body = (await client.get("/profiles/me/completeness", headers=HEADERS)).json()
        assert body["completion_percentage"] == 40

    @pytest.mark.asyncio
    async def test_profile_write_outside_discovery(self, client):
        session_id = (await post_message(client, "Hello")).json()["session_id"]

        response = await client.put(
            f"/sessions/{session_id}/profile/parent",
            json={"parent_name": "Jo"},
            headers=HEADERS,
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_children_list_required(self, client):
        response = await client.put(
            "/sessions/any/profile/children", json={"children": []}, headers=HEADERS
        )
        assert response.status_code == 422


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        body = (await client.get("/health")).json()

        assert body["status"] == "healthy"
        assert body["components"]["database"]["status"] == "healthy"
        assert body["components"]["crisis_lexicon"]["version"] == "1"

    @pytest.mark.asyncio
    async def test_ready_and_live(self, client):
        assert (await client.get("/health/live")).json() == {"status": "alive"}
        assert (await client.get("/health/ready")).status_code == 200

    @pytest.mark.asyncio
    async def test_root(self, client):
        body = (await client.get("/")).json()
        assert body["name"] == "Parent Coach Orchestrator"
