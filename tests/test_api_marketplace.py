"""Tests for the users, tasks, contributions, models and marketplace REST routes."""

import uuid
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from fedmarket.db.repositories import TaskRepository


async def _create_user(client: httpx.AsyncClient, name="Linus", wallet="0xlinus") -> dict:
    resp = await client.post(
        "/api/v1/users",
        json={"name": name, "email": f"{name.lower()}@example.com", "wallet_address": wallet},
    )
    assert resp.status_code == 201
    return resp.json()


def _task_payload(creator_id: str, **overrides) -> dict:
    payload = {
        "title": "Sentiment model",
        "description": "Crowdsourced sentiment classifier",
        "dataset_uri": "ipfs://QmReviews",
        "target_accuracy": 0.9,
        "reward_pool": 1000,
        "creator_id": creator_id,
    }
    payload.update(overrides)
    return payload


class TestUsersAPI:
    async def test_create_and_get(self, client: httpx.AsyncClient):
        user = await _create_user(client)
        assert user["reputation_score"] == 0
        assert user["total_earnings"] == 0

        resp = await client.get(f"/api/v1/users/{user['id']}")
        assert resp.status_code == 200
        assert resp.json()["wallet_address"] == "0xlinus"

    async def test_duplicate_wallet(self, client: httpx.AsyncClient):
        await _create_user(client)
        resp = await client.post(
            "/api/v1/users",
            json={"name": "Other", "email": "other@example.com", "wallet_address": "0xlinus"},
        )
        assert resp.status_code == 409

    async def test_list(self, client: httpx.AsyncClient):
        await _create_user(client, "A", "0xa")
        await _create_user(client, "B", "0xb")
        resp = await client.get("/api/v1/users")
        assert len(resp.json()) == 2

    async def test_not_found(self, client: httpx.AsyncClient):
        resp = await client.get(f"/api/v1/users/{uuid.uuid4()}")
        assert resp.status_code == 404


class TestTasksAPI:
    async def test_create_task(self, client: httpx.AsyncClient):
        user = await _create_user(client)
        resp = await client.post("/api/v1/tasks", json=_task_payload(user["id"]))
        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "PENDING"
        assert data["current_accuracy"] == 0.0
        assert data["reward_pool"] == 1000

    async def test_create_task_validation(self, client: httpx.AsyncClient):
        user = await _create_user(client)
        resp = await client.post(
            "/api/v1/tasks", json=_task_payload(user["id"], target_accuracy=1.5)
        )
        assert resp.status_code == 422

    async def test_create_task_unknown_creator(self, client: httpx.AsyncClient):
        resp = await client.post("/api/v1/tasks", json=_task_payload(str(uuid.uuid4())))
        assert resp.status_code == 400

    async def test_list_filter_by_status(self, client: httpx.AsyncClient, db_session):
        user = await _create_user(client)
        await client.post("/api/v1/tasks", json=_task_payload(user["id"]))
        created = await client.post("/api/v1/tasks", json=_task_payload(user["id"]))
        await TaskRepository(db_session).update(
            uuid.UUID(created.json()["id"]), status="COMPLETED"
        )

        resp = await client.get("/api/v1/tasks", params={"status": "PENDING"})
        assert len(resp.json()) == 1
        resp = await client.get("/api/v1/tasks", params={"creator_id": user["id"]})
        assert len(resp.json()) == 2

    async def test_list_unknown_status(self, client: httpx.AsyncClient):
        resp = await client.get("/api/v1/tasks", params={"status": "DONE"})
        assert resp.status_code == 400

    async def test_get_not_found(self, client: httpx.AsyncClient):
        resp = await client.get(f"/api/v1/tasks/{uuid.uuid4()}")
        assert resp.status_code == 404


class TestContributionsAPI:
    async def _setup(self, client):
        user = await _create_user(client)
        task = (await client.post(
            "/api/v1/tasks", json=_task_payload(user["id"], reward_pool=5000)
        )).json()
        return user, task

    async def test_create_contribution_is_pending(self, client: httpx.AsyncClient):
        user, task = await self._setup(client)
        resp = await client.post(
            "/api/v1/contributions",
            json={
                "task_id": task["id"],
                "contributor_id": user["id"],
                "improvement_bp": 200,
                "model_update_uri": "ipfs://QmUpdate",
            },
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "PENDING"
        assert data["round_number"] == 1
        assert data["reward_amount"] == pytest.approx(10.0)

        # Pending submissions do not move task accuracy
        task_resp = await client.get(f"/api/v1/tasks/{task['id']}")
        assert task_resp.json()["current_accuracy"] == 0.0

    async def test_round_number_must_increase(self, client: httpx.AsyncClient):
        user, task = await self._setup(client)
        body = {
            "task_id": task["id"],
            "contributor_id": user["id"],
            "round_number": 2,
            "improvement_bp": 50,
            "model_update_uri": "ipfs://QmUpdate",
        }
        assert (await client.post("/api/v1/contributions", json=body)).status_code == 201
        resp = await client.post("/api/v1/contributions", json=body)
        assert resp.status_code == 409

        body.pop("round_number")
        resp = await client.post("/api/v1/contributions", json=body)
        assert resp.json()["round_number"] == 3

    async def test_improvement_out_of_range(self, client: httpx.AsyncClient):
        user, task = await self._setup(client)
        resp = await client.post(
            "/api/v1/contributions",
            json={
                "task_id": task["id"],
                "contributor_id": user["id"],
                "improvement_bp": 20000,
                "model_update_uri": "ipfs://QmUpdate",
            },
        )
        assert resp.status_code == 422

    async def test_task_not_found(self, client: httpx.AsyncClient):
        user = await _create_user(client)
        resp = await client.post(
            "/api/v1/contributions",
            json={
                "task_id": str(uuid.uuid4()),
                "contributor_id": user["id"],
                "improvement_bp": 100,
                "model_update_uri": "ipfs://QmUpdate",
            },
        )
        assert resp.status_code == 404

    async def test_list_filters(self, client: httpx.AsyncClient):
        user, task = await self._setup(client)
        for _ in range(2):
            await client.post(
                "/api/v1/contributions",
                json={
                    "task_id": task["id"],
                    "contributor_id": user["id"],
                    "improvement_bp": 100,
                    "model_update_uri": "ipfs://QmUpdate",
                },
            )
        resp = await client.get("/api/v1/contributions", params={"task_id": task["id"]})
        assert len(resp.json()) == 2
        resp = await client.get(
            "/api/v1/contributions", params={"contributor_id": str(uuid.uuid4())}
        )
        assert resp.json() == []

    async def test_concurrent_round_claim_conflicts(self, client: httpx.AsyncClient):
        user, task = await self._setup(client)
        body = {
            "task_id": task["id"],
            "contributor_id": user["id"],
            "improvement_bp": 100,
            "model_update_uri": "ipfs://QmUpdate",
        }
        assert (await client.post("/api/v1/contributions", json=body)).status_code == 201

        # Another writer committed round 1 after this request read the latest round
        with patch(
            "fedmarket.api.routes.contributions.ContributionRepository.get_latest",
            new_callable=AsyncMock,
            return_value=None,
        ):
            resp = await client.post("/api/v1/contributions", json=body)

        assert resp.status_code == 409
        listed = await client.get("/api/v1/contributions", params={"task_id": task["id"]})
        assert len(listed.json()) == 1


async def _mint(client: httpx.AsyncClient, task_id: str, creator_id: str, **overrides) -> httpx.Response:
    payload = {
        "task_id": task_id,
        "name": "Fraud detector v1",
        "description": "Federated fraud classifier",
        "model_type": "dense",
        "accuracy": 0.91,
        "training_rounds": 12,
        "ipfs_uri": "ipfs://QmWeights",
        "metadata_uri": "ipfs://QmMetadata",
        "creator_id": creator_id,
    }
    payload.update(overrides)
    return await client.post("/api/v1/models", json=payload)


class TestModelsAPI:
    async def _setup(self, client):
        creator = await _create_user(client, "Creator", "0xcreator")
        task = (await client.post("/api/v1/tasks", json=_task_payload(creator["id"]))).json()
        return creator, task

    async def test_mint_with_contributor_shares(self, client: httpx.AsyncClient):
        creator, task = await self._setup(client)
        helper = await _create_user(client, "Helper", "0xhelper")

        resp = await _mint(
            client,
            task["id"],
            creator["id"],
            contributor_shares=[
                {"contributor_id": creator["id"], "share_percentage": 60},
                {"contributor_id": helper["id"], "share_percentage": 40},
            ],
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["token_id"].startswith("token_")
        assert data["current_owner_id"] == creator["id"]
        assert data["is_listed"] is False
        assert data["price"] is None
        shares = {s["contributor_id"]: s["share_percentage"] for s in data["contributor_shares"]}
        assert shares == {creator["id"]: 60, helper["id"]: 40}

        fetched = await client.get(f"/api/v1/models/{data['id']}")
        assert fetched.status_code == 200
        assert len(fetched.json()["contributor_shares"]) == 2

    async def test_token_ids_are_unique(self, client: httpx.AsyncClient):
        creator, task = await self._setup(client)
        first = (await _mint(client, task["id"], creator["id"])).json()
        second = (await _mint(client, task["id"], creator["id"])).json()
        assert first["token_id"] != second["token_id"]

    async def test_shares_over_one_hundred_percent(self, client: httpx.AsyncClient):
        creator, task = await self._setup(client)
        resp = await _mint(
            client,
            task["id"],
            creator["id"],
            contributor_shares=[
                {"contributor_id": creator["id"], "share_percentage": 70},
                {"contributor_id": creator["id"], "share_percentage": 40},
            ],
        )
        assert resp.status_code == 422

    async def test_unknown_task(self, client: httpx.AsyncClient):
        creator, _ = await self._setup(client)
        resp = await _mint(client, str(uuid.uuid4()), creator["id"])
        assert resp.status_code == 404

    async def test_unknown_share_contributor(self, client: httpx.AsyncClient):
        creator, task = await self._setup(client)
        resp = await _mint(
            client,
            task["id"],
            creator["id"],
            contributor_shares=[{"contributor_id": str(uuid.uuid4()), "share_percentage": 10}],
        )
        assert resp.status_code == 400

    async def test_list_filter_by_owner(self, client: httpx.AsyncClient):
        creator, task = await self._setup(client)
        await _mint(client, task["id"], creator["id"])
        resp = await client.get("/api/v1/models", params={"current_owner_id": creator["id"]})
        assert len(resp.json()) == 1
        resp = await client.get("/api/v1/models", params={"current_owner_id": str(uuid.uuid4())})
        assert resp.json() == []

    async def test_get_not_found(self, client: httpx.AsyncClient):
        resp = await client.get(f"/api/v1/models/{uuid.uuid4()}")
        assert resp.status_code == 404


class TestMarketplaceAPI:
    async def _minted(self, client):
        owner = await _create_user(client, "Owner", "0xowner")
        task = (await client.post("/api/v1/tasks", json=_task_payload(owner["id"]))).json()
        model_nft = (await _mint(client, task["id"], owner["id"])).json()
        return owner, model_nft

    async def test_owner_lists_model(self, client: httpx.AsyncClient):
        owner, model_nft = await self._minted(client)
        resp = await client.post(
            "/api/v1/marketplace",
            json={"model_nft_id": model_nft["id"], "seller_id": owner["id"], "price": 250.0},
        )
        assert resp.status_code == 201
        listing = resp.json()
        assert listing["status"] == "ACTIVE"
        assert listing["price"] == 250.0
        assert listing["model_nft"]["is_listed"] is True

        fetched = await client.get(f"/api/v1/models/{model_nft['id']}")
        assert fetched.json()["is_listed"] is True
        assert fetched.json()["price"] == 250.0

    async def test_non_owner_forbidden(self, client: httpx.AsyncClient):
        _, model_nft = await self._minted(client)
        stranger = await _create_user(client, "Stranger", "0xstranger")
        resp = await client.post(
            "/api/v1/marketplace",
            json={"model_nft_id": model_nft["id"], "seller_id": stranger["id"], "price": 10.0},
        )
        assert resp.status_code == 403

        fetched = await client.get(f"/api/v1/models/{model_nft['id']}")
        assert fetched.json()["is_listed"] is False

    async def test_already_listed(self, client: httpx.AsyncClient):
        owner, model_nft = await self._minted(client)
        body = {"model_nft_id": model_nft["id"], "seller_id": owner["id"], "price": 99.0}
        assert (await client.post("/api/v1/marketplace", json=body)).status_code == 201
        resp = await client.post("/api/v1/marketplace", json=body)
        assert resp.status_code == 409

    async def test_model_not_found(self, client: httpx.AsyncClient):
        owner = await _create_user(client, "Owner", "0xowner")
        resp = await client.post(
            "/api/v1/marketplace",
            json={"model_nft_id": str(uuid.uuid4()), "seller_id": owner["id"], "price": 5.0},
        )
        assert resp.status_code == 404

    async def test_price_must_be_positive(self, client: httpx.AsyncClient):
        owner, model_nft = await self._minted(client)
        resp = await client.post(
            "/api/v1/marketplace",
            json={"model_nft_id": model_nft["id"], "seller_id": owner["id"], "price": 0},
        )
        assert resp.status_code == 422

    async def test_list_filters(self, client: httpx.AsyncClient):
        owner, model_nft = await self._minted(client)
        await client.post(
            "/api/v1/marketplace",
            json={"model_nft_id": model_nft["id"], "seller_id": owner["id"], "price": 42.0},
        )
        resp = await client.get("/api/v1/marketplace", params={"status": "ACTIVE"})
        assert len(resp.json()) == 1
        assert resp.json()[0]["model_nft"]["id"] == model_nft["id"]
        resp = await client.get("/api/v1/marketplace", params={"seller_id": str(uuid.uuid4())})
        assert resp.json() == []

    async def test_list_unknown_status(self, client: httpx.AsyncClient):
        resp = await client.get("/api/v1/marketplace", params={"status": "GONE"})
        assert resp.status_code == 400
