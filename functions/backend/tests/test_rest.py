import json
import unittest
from unittest.mock import MagicMock

import requests

from backend.config import SupabaseConfig
from backend.errors import PhoneConflictError, UpstreamError
from backend.identity import PhoneIdentity, RestPhoneIdentityStore
from backend.industries import DEFAULT_INDUSTRIES, RestIndustryStore
from backend.rest import RestTable

CONFIG = SupabaseConfig(base_url="https://proj.supabase.co", service_key="service-key")
TABLE_URL = "https://proj.supabase.co/rest/v1/user_phones"
BASE_HEADERS = {
    "Authorization": "Bearer service-key",
    "apikey": "service-key",
    "Content-Type": "application/json",
}


def _response(status_code=200, payload=None, text=None, headers=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.text = text if text is not None else (
        json.dumps(payload) if payload is not None else ""
    )
    response.content = response.text.encode("utf-8")
    response.json.return_value = payload
    response.headers = headers or {}
    return response


class RestPhoneIdentityStoreTests(unittest.TestCase):
    def setUp(self):
        self.session = MagicMock()
        self.store = RestPhoneIdentityStore(
            RestTable(CONFIG, "user_phones", session=self.session)
        )

    def test_find_by_phone_issues_filtered_limited_select(self):
        self.session.request.return_value = _response(
            payload=[{"uid": "uid_a", "phone": "13812345678"}]
        )
        found = self.store.find_by_phone("13812345678")
        self.assertEqual(found.public(), {"uid": "uid_a", "phone": "13812345678"})
        self.session.request.assert_called_once_with(
            "GET",
            TABLE_URL,
            params={"phone": "eq.13812345678", "select": "uid,phone", "limit": 1},
            json=None,
            headers=BASE_HEADERS,
            timeout=None,
        )

    def test_find_by_phone_no_rows(self):
        self.session.request.return_value = _response(payload=[])
        self.assertIsNone(self.store.find_by_phone("13812345678"))

    def test_find_by_phone_failure_carries_status_and_body(self):
        self.session.request.return_value = _response(status_code=503, text="down")
        with self.assertRaises(UpstreamError) as ctx:
            self.store.find_by_phone("13812345678")
        self.assertEqual(ctx.exception.message, "查询失败: 503 down")
        self.assertEqual(ctx.exception.status_code, 503)
        self.assertEqual(ctx.exception.body, "down")

    def test_transport_failure_is_upstream_error(self):
        self.session.request.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(UpstreamError) as ctx:
            self.store.find_by_phone("13812345678")
        self.assertIn("查询失败", ctx.exception.message)
        self.assertIsNone(ctx.exception.status_code)

    def test_create_upserts_on_uid_and_returns_representation(self):
        stored = {
            "uid": "uid_a",
            "phone": "13812345678",
            "dosage": 10,
            "resettime": "2025-03-01T08:30:00+00:00",
        }
        self.session.request.return_value = _response(status_code=201, payload=[stored])
        identity = PhoneIdentity.from_row(stored)

        created = self.store.create(identity)
        self.assertEqual(created, identity)
        self.session.request.assert_called_once_with(
            "POST",
            TABLE_URL,
            params={"on_conflict": "uid"},
            json=[stored],
            headers={
                **BASE_HEADERS,
                "Prefer": "resolution=merge-duplicates,return=representation",
            },
            timeout=None,
        )

    def test_create_failure_message(self):
        self.session.request.return_value = _response(
            status_code=401, text='{"message":"Invalid API key"}'
        )
        with self.assertRaises(UpstreamError) as ctx:
            self.store.create(PhoneIdentity(uid="uid_a", phone="13812345678"))
        self.assertNotIsInstance(ctx.exception, PhoneConflictError)
        self.assertEqual(
            ctx.exception.message, '创建失败: 401 {"message":"Invalid API key"}'
        )

    def test_create_unique_violation_is_conflict(self):
        self.session.request.return_value = _response(
            status_code=409,
            text='{"code":"23505","message":"duplicate key value violates unique constraint"}',
        )
        with self.assertRaises(PhoneConflictError):
            self.store.create(PhoneIdentity(uid="uid_a", phone="13812345678"))

    def test_update_patches_by_uid(self):
        self.session.request.return_value = _response(
            payload=[{"uid": "uid_a", "phone": "13812345678", "dosage": 4}]
        )
        updated = self.store.update("uid_a", {"dosage": 4})
        self.assertEqual(updated.dosage, 4)
        method, url = self.session.request.call_args.args
        kwargs = self.session.request.call_args.kwargs
        self.assertEqual((method, url), ("PATCH", TABLE_URL))
        self.assertEqual(kwargs["params"], {"uid": "eq.uid_a"})
        self.assertEqual(kwargs["json"]["dosage"], 4)
        self.assertIn("updatedat", kwargs["json"])
        self.assertEqual(kwargs["headers"]["Prefer"], "return=representation")

    def test_update_no_match(self):
        self.session.request.return_value = _response(payload=[])
        self.assertIsNone(self.store.update("uid_missing", {"dosage": 1}))

    def test_count_reads_content_range(self):
        self.session.request.return_value = _response(
            headers={"Content-Range": "*/42"}
        )
        self.assertEqual(self.store.count(), 42)
        self.assertEqual(self.session.request.call_args.args[0], "HEAD")
        self.assertEqual(
            self.session.request.call_args.kwargs["headers"]["Prefer"], "count=exact"
        )

    def test_timeout_is_forwarded(self):
        table = RestTable(
            SupabaseConfig("https://proj.supabase.co", "service-key", timeout=5.0),
            "user_phones",
            session=self.session,
        )
        self.session.request.return_value = _response(payload=[])
        table.select()
        self.assertEqual(self.session.request.call_args.kwargs["timeout"], 5.0)


class RestIndustryStoreTests(unittest.TestCase):
    def setUp(self):
        self.session = MagicMock()
        self.store = RestIndustryStore(
            RestTable(CONFIG, "industries", session=self.session)
        )

    def test_list_all_orders_by_sort_order(self):
        self.session.request.return_value = _response(
            payload=[
                {
                    "id": 1,
                    "primary_category": "美食",
                    "secondary_category": None,
                    "level": 1,
                    "sort_order": 1,
                }
            ]
        )
        records = self.store.list_all()
        self.assertEqual(records[0].id, "1")
        self.assertEqual(records[0].secondary_category, "")
        self.assertEqual(
            self.session.request.call_args.kwargs["params"],
            {"select": "*", "order": "sort_order.asc"},
        )

    def test_replace_all_deletes_then_inserts(self):
        self.session.request.return_value = _response(status_code=204)
        count = self.store.replace_all(DEFAULT_INDUSTRIES)
        self.assertEqual(count, len(DEFAULT_INDUSTRIES))
        methods = [call.args[0] for call in self.session.request.call_args_list]
        self.assertEqual(methods, ["DELETE", "POST"])
        delete_kwargs = self.session.request.call_args_list[0].kwargs
        self.assertEqual(delete_kwargs["params"], {"id": "not.is.null"})
        insert_kwargs = self.session.request.call_args_list[1].kwargs
        self.assertEqual(len(insert_kwargs["json"]), len(DEFAULT_INDUSTRIES))


if __name__ == "__main__":
    unittest.main()
