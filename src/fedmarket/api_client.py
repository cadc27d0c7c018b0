import httpx


class APIClient:
    def __init__(self, base_url: str = "http://localhost:8000", api_key: str | None = None) -> None:
        self.base_url = base_url
        headers = {"X-API-Key": api_key} if api_key else {}
        # Simulations sleep 1-3 s per round
        self.client = httpx.Client(base_url=base_url, timeout=600.0, headers=headers)

    def health(self) -> dict:
        resp = self.client.get("/health")
        resp.raise_for_status()
        return resp.json()

    def list_tasks(self, status: str | None = None) -> list[dict]:
        params = {}
        if status:
            params["status"] = status
        resp = self.client.get("/api/v1/tasks", params=params)
        resp.raise_for_status()
        return resp.json()

    def simulate(self, task_id: str, contributor_id: str, rounds: int | None = None) -> dict:
        payload: dict = {"task_id": task_id, "contributor_id": contributor_id}
        if rounds is not None:
            payload["rounds"] = rounds
        resp = self.client.post("/api/v1/simulation", json=payload)
        resp.raise_for_status()
        return resp.json()

    def simulation_status(self, task_id: str) -> dict:
        resp = self.client.get(f"/api/v1/simulation/{task_id}")
        resp.raise_for_status()
        return resp.json()

    def train(self, config: dict) -> dict:
        resp = self.client.post("/api/v1/train", json=config)
        resp.raise_for_status()
        return resp.json()

    def close(self) -> None:
        self.client.close()
