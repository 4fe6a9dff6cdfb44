import responses

from evm_debug_labels.app import create_app
from evm_debug_labels.chain.rpc import clear_cache
from evm_debug_labels.config import Config
from tests.fixtures.struct_logs import STRUCT_LOGS, TX_HASH, rpc_trace_response


RPC_URL = "http://127.0.0.1:8545"


def setup_function():
    clear_cache()


def teardown_function():
    clear_cache()


def test_health_endpoint(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}


# --- /annotate ---


def test_annotate_mstore(client):
    resp = client.post("/annotate", json={"opcode": 0x52, "stack": ["0x40", "0x80"], "pc": 4})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["name"] == "MSTORE"
    assert data["opcode"] == 0x52
    assert data["pc"] == 4
    assert data["depth"] == 1
    assert data["stack_items"] == [
        {"index": 0, "label": "offset", "value": "0x40"},
        {"index": 1, "label": "value", "value": "0x80"},
    ]
    assert data["memory_word"] == {
        "opcode": 0x52,
        "name": "MSTORE",
        "word": 2,
        "start": 64,
        "end": 96,
    }


def test_annotate_opcode_by_name(client):
    resp = client.post("/annotate", json={"opcode": "swap2", "stack": [1, 2, 3]})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["name"] == "SWAP2"
    assert data["stack_items"] == [
        {"index": 0, "label": "a", "value": "0x1"},
        {"index": 2, "label": "swap_value", "value": "0x3"},
    ]
    assert data["memory_word"] is None


def test_annotate_opcode_hex_string(client):
    resp = client.post("/annotate", json={"opcode": "0x51", "stack": []})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["name"] == "MLOAD"
    assert data["stack_items"] == [{"index": 0, "label": "offset", "value": None}]
    assert data["memory_word"] is None


def test_annotate_cheatcode(client):
    resp = client.post("/annotate", json={"cheatcode": "0xffa18649", "stack": ["0x40"]})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["opcode"] is None
    assert data["name"] == "CHEATCODE_0xffa18649"
    assert data["stack_items"] == []
    assert data["memory_word"] is None


def test_annotate_missing_instruction(client):
    resp = client.post("/annotate", json={"stack": []})
    assert resp.status_code == 422
    assert "Missing" in resp.get_json()["error"]


def test_annotate_non_json_body(client):
    resp = client.post("/annotate", data="opcode=82")
    assert resp.status_code == 422


def test_annotate_unknown_opcode_name(client):
    resp = client.post("/annotate", json={"opcode": "FROB"})
    assert resp.status_code == 422
    assert "Unknown opcode" in resp.get_json()["error"]


def test_annotate_opcode_out_of_range(client):
    resp = client.post("/annotate", json={"opcode": 256})
    assert resp.status_code == 422


def test_annotate_bad_cheatcode(client):
    resp = client.post("/annotate", json={"cheatcode": "0x1234"})
    assert resp.status_code == 422


def test_annotate_bad_stack(client):
    resp = client.post("/annotate", json={"opcode": 1, "stack": ["0xnothex"]})
    assert resp.status_code == 422
    resp = client.post("/annotate", json={"opcode": 1, "stack": "0x1"})
    assert resp.status_code == 422


def test_annotate_bad_pc(client):
    resp = client.post("/annotate", json={"opcode": 1, "pc": "4"})
    assert resp.status_code == 422


def test_annotate_get_not_allowed(client):
    resp = client.get("/annotate")
    assert resp.status_code == 405


# --- /trace ---


def test_trace_missing_hash(client):
    resp = client.get("/trace")
    assert resp.status_code == 422
    assert "Missing" in resp.get_json()["error"]


def test_trace_invalid_hash(client):
    resp = client.get("/trace?tx=0x1234")
    assert resp.status_code == 422
    assert "Invalid" in resp.get_json()["error"]


@responses.activate
def test_trace_success(client):
    responses.post(RPC_URL, json=rpc_trace_response())
    resp = client.get(f"/trace?tx={TX_HASH}")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["tx"] == TX_HASH
    assert data["step_count"] == len(STRUCT_LOGS)
    assert data["truncated"] is False
    assert [s["name"] for s in data["steps"]] == [
        "PUSH1",
        "PUSH1",
        "MSTORE",
        "CALLVALUE",
        "DUP1",
        "ISZERO",
    ]

    mstore = data["steps"][2]
    assert mstore["stack_items"][0] == {"index": 0, "label": "offset", "value": "0x40"}
    assert mstore["memory_word"]["word"] == 2

    dup = data["steps"][4]
    assert dup["stack_items"] == [{"index": 0, "label": "dup_value", "value": "0x0"}]


@responses.activate
def test_trace_post_body(client):
    responses.post(RPC_URL, json=rpc_trace_response())
    resp = client.post("/trace", json={"tx": TX_HASH})
    assert resp.status_code == 200
    assert resp.get_json()["tx"] == TX_HASH


@responses.activate
def test_trace_truncated(test_config):
    config = Config(rpc_url=test_config.rpc_url, max_trace_steps=2)
    app = create_app(config=config)
    app.config["TESTING"] = True
    responses.post(RPC_URL, json=rpc_trace_response())

    resp = app.test_client().get(f"/trace?tx={TX_HASH}")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["truncated"] is True
    assert data["step_count"] == len(STRUCT_LOGS)
    assert len(data["steps"]) == 2


@responses.activate
def test_trace_rpc_error(client):
    responses.post(
        RPC_URL,
        json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "transaction not found"}},
    )
    resp = client.get(f"/trace?tx={TX_HASH}")
    assert resp.status_code == 502
    assert "transaction not found" in resp.get_json()["error"]


@responses.activate
def test_trace_malformed_struct_log(client):
    responses.post(RPC_URL, json=rpc_trace_response([{"pc": 0, "op": "FROB", "stack": []}]))
    resp = client.get(f"/trace?tx={TX_HASH}")
    assert resp.status_code == 502
    assert "Malformed trace" in resp.get_json()["error"]


@responses.activate
def test_trace_non_object_struct_log(client):
    responses.post(RPC_URL, json=rpc_trace_response([None]))
    resp = client.get(f"/trace?tx={TX_HASH}")
    assert resp.status_code == 502
    assert "not an object" in resp.get_json()["error"]


def test_annotate_bool_pc_and_depth(client):
    resp = client.post("/annotate", json={"opcode": 1, "pc": True})
    assert resp.status_code == 422
    resp = client.post("/annotate", json={"opcode": 1, "depth": False})
    assert resp.status_code == 422


def test_annotate_negative_pc_and_depth(client):
    resp = client.post("/annotate", json={"opcode": 1, "pc": -1})
    assert resp.status_code == 422
    assert "non-negative" in resp.get_json()["error"]
    resp = client.post("/annotate", json={"opcode": 1, "depth": -3})
    assert resp.status_code == 422


def test_annotate_oversized_stack_word(client):
    resp = client.post("/annotate", json={"opcode": 1, "stack": ["0x1" + "0" * 64]})
    assert resp.status_code == 422


def test_annotate_opcode_hex_with_underscore(client):
    resp = client.post("/annotate", json={"opcode": "0x_5"})
    assert resp.status_code == 422
    resp = client.post("/annotate", json={"opcode": "0x123"})
    assert resp.status_code == 422
