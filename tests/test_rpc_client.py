import pytest
import requests

from waterfall_rpc.errors import ProtocolRejection, TransportFault
from waterfall_rpc.models import RpcRequest
from waterfall_rpc.rpc_client import RpcClient, is_protocol_rejection

URL = "https://node.example"


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self._text = text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if self._text is not None:
            raise ValueError("Expecting value")
        return self._payload


def _client(monkeypatch, *responses, **kwargs):
    client = RpcClient(URL, **kwargs)
    queue = list(responses)
    sent = []

    def post(url, json=None, timeout=None):
        sent.append(json)
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    monkeypatch.setattr(client.session, "post", post)
    monkeypatch.setattr("waterfall_rpc.rpc_client.time.sleep", lambda _: None)
    return client, sent


def test_perform_returns_result(monkeypatch):
    client, sent = _client(monkeypatch, FakeResponse(payload={"jsonrpc": "2.0", "id": 1, "result": "0x10"}))

    assert client.perform(RpcRequest("eth_chainId")) == "0x10"
    assert sent == [{"jsonrpc": "2.0", "id": 1, "method": "eth_chainId", "params": []}]


def test_request_ids_increase(monkeypatch):
    client, sent = _client(
        monkeypatch,
        FakeResponse(payload={"result": "0x1"}),
        FakeResponse(payload={"result": "0x2"}),
    )

    client.call("eth_blockNumber")
    client.call("eth_blockNumber")

    assert [p["id"] for p in sent] == [1, 2]


def test_revert_is_protocol_rejection(monkeypatch):
    error = {"code": 3, "message": "execution reverted: not owner", "data": "0x08c379a0"}
    client, _ = _client(monkeypatch, FakeResponse(payload={"error": error}))

    with pytest.raises(ProtocolRejection) as excinfo:
        client.call("eth_call", [{"to": "0x0"}, "latest"])

    assert excinfo.value.code == 3
    assert excinfo.value.data == "0x08c379a0"
    assert excinfo.value.url == URL


def test_other_rpc_errors_are_transport_faults(monkeypatch):
    client, _ = _client(
        monkeypatch,
        FakeResponse(payload={"error": {"code": -32005, "message": "limit exceeded"}}),
    )

    with pytest.raises(TransportFault) as excinfo:
        client.call("eth_getLogs", [{}])
    assert excinfo.value.url == URL


@pytest.mark.parametrize(
    "error_obj, expected",
    [
        ({"code": 3, "message": "boom"}, True),
        ({"code": -32000, "message": "execution reverted"}, True),
        ({"code": -32015, "message": "VM execution error: Reverted 0x"}, True),
        ({"code": -32601, "message": "the method eth_foo does not exist"}, False),
        ({"code": -32603, "message": "internal error"}, False),
        ({"code": 429, "message": "Too Many Requests"}, False),
    ],
)
def test_classification(error_obj, expected):
    assert is_protocol_rejection(error_obj) is expected


def test_connection_error_is_transport_fault(monkeypatch):
    client, _ = _client(monkeypatch, requests.ConnectionError("refused"))

    with pytest.raises(TransportFault):
        client.call("eth_blockNumber")


def test_http_error_is_transport_fault(monkeypatch):
    client, _ = _client(monkeypatch, FakeResponse(status_code=403, payload={}))

    with pytest.raises(TransportFault):
        client.call("eth_blockNumber")


def test_malformed_json_is_transport_fault(monkeypatch):
    client, _ = _client(monkeypatch, FakeResponse(text="<html>"))

    with pytest.raises(TransportFault):
        client.call("eth_blockNumber")


def test_missing_result_is_transport_fault(monkeypatch):
    client, _ = _client(monkeypatch, FakeResponse(payload={"jsonrpc": "2.0", "id": 1}))

    with pytest.raises(TransportFault):
        client.call("eth_blockNumber")


def test_rate_limited_response_is_retried(monkeypatch):
    client, sent = _client(
        monkeypatch,
        FakeResponse(status_code=429),
        FakeResponse(payload={"result": "0x2a"}),
        max_retries=2,
    )

    assert client.get_block_number() == 42
    assert len(sent) == 2


def test_get_block_number_rejects_garbage(monkeypatch):
    client, _ = _client(monkeypatch, FakeResponse(payload={"result": "latest"}))

    with pytest.raises(TransportFault):
        client.get_block_number()


def test_params_must_be_list():
    client = RpcClient(URL)

    with pytest.raises(ValueError):
        client.call("eth_getBalance", "0xabc")


def test_empty_url_rejected():
    with pytest.raises(ValueError):
        RpcClient("  ")
