import pytest
from fastapi.testclient import TestClient

from ledger_monitor.api.server import create_app
from ledger_monitor.core.models import AddressInfo, Block, Transaction


class FakeMonitor:
    node_url = "http://node.test"
    height = 120

    def __init__(self):
        self.block_keys = []

    def get_block(self, id_or_height):
        self.block_keys.append(id_or_height)
        if id_or_height in (5, "0xfive"):
            return Block(hash="0xfive", index=5)
        return None

    def get_transaction(self, tx_hash):
        return Transaction(hash=tx_hash) if tx_hash == "0xtx" else None

    def get_address(self, address):
        if address == "NGood":
            return AddressInfo(address=address, neo_balance=3, gas_balance=0)
        return None

    def is_block_populated(self, height):
        return height % 2 == 0

    def is_filter_available(self):
        return True


@pytest.fixture
def monitor():
    return FakeMonitor()


@pytest.fixture
def client(monitor):
    with TestClient(create_app(monitor=monitor)) as c:
        yield c


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_height(client):
    assert client.get("/height").json() == {"height": 120, "node_url": "http://node.test"}


def test_block_by_height_and_hash(client, monitor):
    assert client.get("/blocks/5").json()["hash"] == "0xfive"
    assert client.get("/blocks/0xfive").json()["index"] == 5
    assert monitor.block_keys == [5, "0xfive"]


def test_missing_block_is_404(client):
    response = client.get("/blocks/77")
    assert response.status_code == 404
    assert "block 77" in response.text


def test_transaction(client):
    assert client.get("/transactions/0xtx").json()["hash"] == "0xtx"
    assert client.get("/transactions/0xnope").status_code == 404


def test_address(client):
    body = client.get("/addresses/NGood").json()
    assert body == {"address": "NGood", "neo_balance": 3, "gas_balance": 0}
    assert client.get("/addresses/NBad").status_code == 404


def test_populated(client):
    assert client.get("/blocks/4/populated").json() == {"height": 4, "populated": True}
    assert client.get("/blocks/5/populated").json()["populated"] is False


def test_negative_height_is_400(client):
    response = client.get("/blocks/-1/populated")
    assert response.status_code == 400


def test_features(client):
    assert client.get("/features").json() == {"populated_blocks": True}
