# Star Registry - test_node.py

from __future__ import annotations

from collections.abc import Generator
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest
from flask.testing import FlaskClient

from star_registry import node
from star_registry.chain import Blockchain

if TYPE_CHECKING:
    from conftest import Wallet

ISSUED_AT = 1_700_000_000
STAR = {"dec": "68° 52' 56.9", "ra": "16h 29m 1.0s", "story": "Found it"}


@pytest.fixture
def client(
    blockchain: Blockchain,
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[FlaskClient, None, None]:
    """Return a test client bound to a fresh chain."""
    monkeypatch.setattr(node, "blockchain", blockchain)
    node.app.config["TESTING"] = True
    with node.app.test_client() as test_client:
        yield test_client


def _request_challenge(client: FlaskClient, address: str) -> str:
    with patch("star_registry.ownership.now_ts", return_value=ISSUED_AT):
        response = client.post("/request_validation", json={"address": address})
    assert response.status_code == 200
    return response.get_json()["message"]


def _submit(
    client: FlaskClient,
    payload: dict,
    elapsed: int = 30,
):
    with patch(
        "star_registry.ownership.now_ts",
        return_value=ISSUED_AT + elapsed,
    ):
        return client.post("/submit_star", json=payload)


def test_chain_height_and_status(client: FlaskClient) -> None:
    assert client.get("/get_chain_height").get_json() == {"height": 0}
    status = client.get("/status").get_json()
    assert status["status"] == "ok"
    assert status["height"] == 0


def test_genesis_block_by_height(client: FlaskClient) -> None:
    response = client.get("/block/height/0")
    assert response.status_code == 200
    body = response.get_json()
    assert body["height"] == 0
    assert body["previous_block_hash"] is None


def test_missing_blocks_are_404(client: FlaskClient) -> None:
    assert client.get("/block/height/5").status_code == 404
    assert client.get(f"/block/hash/{'0' * 64}").status_code == 404


def test_request_validation(client: FlaskClient, wallet: Wallet) -> None:
    message = _request_challenge(client, wallet.address)
    assert message == f"{wallet.address}:{ISSUED_AT}:starRegistry"


@pytest.mark.parametrize("payload", [None, {}, {"address": 42}])
def test_request_validation_rejects_bad_body(
    client: FlaskClient,
    payload: dict | None,
) -> None:
    response = client.post("/request_validation", json=payload)
    assert response.status_code == 400
    assert "error" in response.get_json()


def test_submit_star_flow(client: FlaskClient, wallet: Wallet) -> None:
    message = _request_challenge(client, wallet.address)
    response = _submit(
        client,
        {
            "address": wallet.address,
            "message": message,
            "signature": wallet.sign(message),
            "star": STAR,
        },
    )
    assert response.status_code == 201
    block = response.get_json()
    assert block["height"] == 1

    assert client.get("/get_chain_height").get_json() == {"height": 1}
    assert client.get(f"/block/hash/{block['hash']}").get_json() == block
    assert client.get("/block/height/1").get_json() == block
    assert client.get(f"/blocks/{wallet.address}").get_json() == {
        "stars": [{"owner": wallet.address, "star": STAR}],
    }
    assert client.get("/validate_chain").get_json() == {
        "valid": True,
        "errors": [],
    }


def test_submit_star_missing_fields(client: FlaskClient, wallet: Wallet) -> None:
    response = _submit(client, {"address": wallet.address})
    assert response.status_code == 400


def test_submit_star_expired(client: FlaskClient, wallet: Wallet) -> None:
    message = _request_challenge(client, wallet.address)
    response = _submit(
        client,
        {
            "address": wallet.address,
            "message": message,
            "signature": wallet.sign(message),
            "star": STAR,
        },
        elapsed=301,
    )
    assert response.status_code == 403
    assert client.get("/get_chain_height").get_json() == {"height": 0}


def test_submit_star_wrong_wallet(
    client: FlaskClient,
    wallet: Wallet,
    other_wallet: Wallet,
) -> None:
    message = _request_challenge(client, wallet.address)
    response = _submit(
        client,
        {
            "address": wallet.address,
            "message": message,
            "signature": other_wallet.sign(message),
            "star": STAR,
        },
    )
    assert response.status_code == 401
    assert client.get("/get_chain_height").get_json() == {"height": 0}


def test_submit_star_malformed_message(client: FlaskClient, wallet: Wallet) -> None:
    response = _submit(
        client,
        {
            "address": wallet.address,
            "message": "hello",
            "signature": wallet.sign("hello"),
            "star": STAR,
        },
    )
    assert response.status_code == 400


def test_submit_star_on_tampered_chain(
    client: FlaskClient,
    blockchain: Blockchain,
    wallet: Wallet,
) -> None:
    genesis = blockchain.get_block_by_height(0)
    assert genesis is not None
    genesis.time = 3

    message = _request_challenge(client, wallet.address)
    response = _submit(
        client,
        {
            "address": wallet.address,
            "message": message,
            "signature": wallet.sign(message),
            "star": STAR,
        },
    )
    assert response.status_code == 500
    assert response.get_json()["errors"] == ["Block at height 0 is not valid"]
    assert client.get("/validate_chain").get_json() == {
        "valid": False,
        "errors": ["Block at height 0 is not valid"],
    }
