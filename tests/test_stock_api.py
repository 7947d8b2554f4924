from decimal import Decimal

import pytest

from tests.conftest import ACTOR_ID

pytestmark = pytest.mark.asyncio

HEADERS = {"X-Actor-Id": str(ACTOR_ID)}


def _adjustment(key, delta, movement_type="ADJUSTMENT", reference_doc=None):
    return {
        **key.as_dict(),
        "delta": delta,
        "movement_type": movement_type,
        "reference_doc": reference_doc,
    }


class TestAdjustmentsApi:

    async def test_receipt_then_issue(self, test_client, key_a_ok):
        res = await test_client.post(
            "/stock/adjustments", json=_adjustment(key_a_ok, "100", "RECEIPT", "GRN-1"), headers=HEADERS
        )
        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        assert Decimal(body["data"]["new_quantity"]) == Decimal("100")

        res = await test_client.post(
            "/stock/adjustments", json=_adjustment(key_a_ok, "-30", "ISSUE"), headers=HEADERS
        )
        assert res.status_code == 200
        assert Decimal(res.json()["data"]["new_quantity"]) == Decimal("70")

    async def test_insufficient_stock_is_409(self, test_client, receive, ledger_state, key_a_ok):
        await receive(key_a_ok, "70")

        res = await test_client.post(
            "/stock/adjustments", json=_adjustment(key_a_ok, "-150", "ISSUE"), headers=HEADERS
        )

        assert res.status_code == 409
        body = res.json()
        assert body["success"] is False
        assert body["error_code"] == "INSUFFICIENT_STOCK"
        assert Decimal(body["details"]["available"]) == Decimal("70")
        assert body["details"]["key"] == key_a_ok.as_dict()
        assert await ledger_state(key_a_ok) == (Decimal("70"), 1)

    async def test_missing_actor_is_401(self, test_client, ledger_state, key_a_ok):
        res = await test_client.post("/stock/adjustments", json=_adjustment(key_a_ok, "5", "RECEIPT"))

        assert res.status_code == 401
        assert res.json()["error_code"] == "UNAUTHORIZED"
        assert await ledger_state(key_a_ok) == (None, 0)

    async def test_zero_delta_is_422(self, test_client, key_a_ok):
        res = await test_client.post(
            "/stock/adjustments", json=_adjustment(key_a_ok, "0"), headers=HEADERS
        )

        assert res.status_code == 422
        assert res.json()["error_code"] == "VALIDATION_ERROR"

    async def test_wrong_sign_for_type_is_400(self, test_client, key_a_ok):
        res = await test_client.post(
            "/stock/adjustments", json=_adjustment(key_a_ok, "5", "ISSUE"), headers=HEADERS
        )

        assert res.status_code == 400
        assert res.json()["error_code"] == "VALIDATION_ERROR"

    async def test_unknown_location_is_422(self, test_client, refs):
        payload = {
            "part_id": refs.part_id,
            "lot_id": refs.lot_id,
            "location_id": 9999,
            "status_id": refs.ok,
            "delta": "5",
            "movement_type": "RECEIPT",
        }

        res = await test_client.post("/stock/adjustments", json=payload, headers=HEADERS)

        assert res.status_code == 422
        assert res.json()["error_code"] == "REFERENTIAL_VIOLATION"


class TestTransfersApi:

    async def test_transfer(self, test_client, receive, ledger_state, refs, key_a_ok, key_b_hold):
        await receive(key_a_ok, "70")

        res = await test_client.post(
            "/stock/transfers",
            json={
                "part_id": refs.part_id,
                "lot_id": refs.lot_id,
                "from_location_id": refs.loc_a,
                "from_status_id": refs.ok,
                "to_location_id": refs.loc_b,
                "to_status_id": refs.hold,
                "quantity": "20",
            },
            headers=HEADERS,
        )

        assert res.status_code == 200
        data = res.json()["data"]
        assert Decimal(data["source_quantity"]) == Decimal("50")
        assert Decimal(data["destination_quantity"]) == Decimal("20")
        assert (await ledger_state(key_b_hold))[0] == Decimal("20")

    async def test_same_key_is_422(self, test_client, refs):
        res = await test_client.post(
            "/stock/transfers",
            json={
                "part_id": refs.part_id,
                "lot_id": refs.lot_id,
                "from_location_id": refs.loc_a,
                "from_status_id": refs.ok,
                "to_location_id": refs.loc_a,
                "to_status_id": refs.ok,
                "quantity": "1",
            },
            headers=HEADERS,
        )

        assert res.status_code == 422


class TestReadApi:

    async def test_balances_hide_zero_rows_by_default(self, test_client, receive, key_a_ok, key_b_hold):
        await receive(key_a_ok, "5")
        await receive(key_b_hold, "2")
        await test_client.post(
            "/stock/adjustments", json=_adjustment(key_b_hold, "-2", "ISSUE"), headers=HEADERS
        )

        res = await test_client.get("/stock/balances")
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["total"] == 1
        row = data["items"][0]
        assert row["part_no"] == "P-100"
        assert row["lot_number"] == "L-0001"
        assert row["location_code"] == "A"
        assert row["status_code"] == "OK"
        assert Decimal(row["quantity"]) == Decimal("5")

        res = await test_client.get("/stock/balances", params={"include_zero": "true"})
        assert res.json()["data"]["total"] == 2

    async def test_balances_search_part_and_location(self, test_client, receive, key_a_ok, key_b_hold):
        await receive(key_a_ok, "5")
        await receive(key_b_hold, "2")

        res = await test_client.get("/stock/balances", params={"search": "hex bolt"})
        assert res.json()["data"]["total"] == 2

        res = await test_client.get("/stock/balances", params={"search": "p-10"})
        assert res.json()["data"]["total"] == 2

        # only location code "A" contains an "a"
        res = await test_client.get("/stock/balances", params={"search": "a"})
        data = res.json()["data"]
        assert data["total"] == 1
        assert data["items"][0]["location_code"] == "A"

        res = await test_client.get("/stock/balances", params={"search": "washer"})
        data = res.json()["data"]
        assert data["total"] == 0
        assert data["items"] == []

    async def test_movement_history_newest_first(self, test_client, receive, refs, key_a_ok):
        await receive(key_a_ok, "5", reference_doc="GRN-A")
        await receive(key_a_ok, "6", reference_doc="GRN-B")

        res = await test_client.get("/stock/movements", params={"part_id": refs.part_id})

        assert res.status_code == 200
        data = res.json()["data"]
        assert data["total"] == 2
        assert [m["reference_doc"] for m in data["items"]] == ["GRN-B", "GRN-A"]
        assert data["items"][0]["created_by"] == ACTOR_ID

    async def test_movement_history_requires_part(self, test_client):
        res = await test_client.get("/stock/movements")
        assert res.status_code == 422

    async def test_reconciliation_clean(self, test_client, receive, key_a_ok):
        await receive(key_a_ok, "5")

        res = await test_client.get("/stock/reconciliation")

        assert res.status_code == 200
        assert res.json()["data"]["discrepancies"] == []


class TestReceiptsApi:

    async def test_post_receipt(self, test_client, ledger_state, refs, key_a_ok):
        res = await test_client.post(
            "/receipts/post",
            json={
                "lines": [
                    {
                        "part_id": refs.part_id,
                        "lot_id": refs.lot_id,
                        "location_id": refs.loc_a,
                        "status_id": refs.ok,
                        "quantity": "12",
                    }
                ]
            },
            headers=HEADERS,
        )

        assert res.status_code == 200
        data = res.json()["data"]
        assert data["receipt_number"].startswith("GRN-")
        assert Decimal(data["lines"][0]["receipt"]["new_quantity"]) == Decimal("12")
        assert await ledger_state(key_a_ok) == (Decimal("12"), 1)

    async def test_empty_receipt_is_422(self, test_client):
        res = await test_client.post("/receipts/post", json={"lines": []}, headers=HEADERS)
        assert res.status_code == 422
