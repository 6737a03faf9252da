"""Concurrent deliveries through the HTTP layer.

Many threads post signed deliveries to two webhook ids at once; every
admitted delivery must be recorded exactly once and rejected ones never.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from fastapi.testclient import TestClient

from webhook_receiver.serve import create_app
from webhook_receiver.webhooks.registry import WebhookRegistry
from webhook_receiver.webhooks.verification import sign_payload

SECRETS = {"whk_a": "secret-a", "whk_b": "secret-b"}


def _post(client: TestClient, webhook_id: str, n: int, valid: bool) -> int:
    payload = {"webhook": webhook_id, "n": n}
    signature = sign_payload(SECRETS[webhook_id], payload) if valid else "00" * 32
    resp = client.post(
        "/webhook",
        json=payload,
        headers={
            "X-Webhook-Signature": signature,
            "X-Webhook-Id": webhook_id,
            "X-Webhook-Event": "load.test",
        },
    )
    return resp.status_code


class TestConcurrentDelivery:
    def test_parallel_deliveries_all_recorded(self, settings):
        registry = WebhookRegistry()
        app = create_app(registry=registry, settings=settings)
        per_id = 40

        with TestClient(app) as client:
            for wid, secret in SECRETS.items():
                client.post("/register-webhook", json={"webhookId": wid, "secret": secret})

            jobs = [
                (wid, n, n % 4 != 0)  # every fourth delivery is forged
                for wid in SECRETS
                for n in range(per_id)
            ]
            with ThreadPoolExecutor(max_workers=16) as pool:
                codes = list(pool.map(lambda job: _post(client, *job), jobs))

            listing = client.get("/webhooks").json()["webhooks"]

        expected_ok = sum(1 for _, _, valid in jobs if valid)
        assert codes.count(200) == expected_ok
        assert codes.count(400) == len(jobs) - expected_ok

        admitted_per_id = per_id - per_id // 4
        assert listing == [
            {"id": "whk_a", "eventCount": admitted_per_id},
            {"id": "whk_b", "eventCount": admitted_per_id},
        ]
        for wid in SECRETS:
            ns = sorted(e.payload["n"] for e in registry.events_of(wid))
            assert ns == [n for n in range(per_id) if n % 4 != 0]
            stamps = [e.timestamp for e in registry.events_of(wid)]
            assert stamps == sorted(stamps)
