"""
End-to-end tests of the HTTP API against an in-memory database.
Run from backend dir: python -m pytest tests/test_api.py -v
"""
import unittest
import uuid

import httpx

from config import settings
from main import app
from models import Assessment
from services.blobstore import DEFAULT_BUCKET
from tests.support import TEST_BASE_URL, TEST_PASSWORD, DatabaseTestCase

API = settings.base_path

BORROWER_PAYLOAD = {
    "name": "Jane Borrower",
    "email": "jane@example.com",
    "password": TEST_PASSWORD,
    "country": "CA",
    "employer": "Acme Corp",
    "jobTitle": "Analyst",
}


class ApiTestCase(DatabaseTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self._auto_adjudicate = settings.auto_adjudicate
        self.client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=TEST_BASE_URL)

    async def asyncTearDown(self):
        await self.client.aclose()
        settings.auto_adjudicate = self._auto_adjudicate
        await super().asyncTearDown()

    async def register_borrower(self, **overrides) -> dict:
        response = await self.client.post(f"{API}/borrowers", json={**BORROWER_PAYLOAD, **overrides})
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    async def post_file(self, url: str, file_name: str, content: bytes = b"%PDF-1.4 body"):
        return await self.client.post(url, files={"file": (file_name, content, "application/pdf")})


class TestLookupsApi(ApiTestCase):
    async def test_health(self):
        response = await self.client.get("/health")
        self.assertEqual(response.json(), {"status": "ok"})
        self.assertIn("X-Request-ID", response.headers)

    async def test_amortizations(self):
        response = await self.client.get(f"{API}/amortizations")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual([a["months"] for a in body], [6, 12, 36, 60])

    async def test_countries_and_ratings(self):
        countries = (await self.client.get(f"{API}/countries")).json()
        self.assertEqual({c["code"] for c in countries}, {"CA", "US", "GB"})
        ratings = (await self.client.get(f"{API}/ratings")).json()
        self.assertEqual([r["name"] for r in ratings], ["A", "B", "C", "D", "E"])


class TestUsersApi(ApiTestCase):
    async def test_register_and_fetch_borrower(self):
        created = await self.register_borrower()
        self.assertEqual(created["email"], "jane@example.com")
        self.assertEqual(created["country"], "CA")
        self.assertEqual(created["jobTitle"], "Analyst")
        self.assertNotIn("password", created)

        response = await self.client.get(f"{API}/borrowers/{created['reference']}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["reference"], created["reference"])

    async def test_register_conflicts_and_bad_country(self):
        await self.register_borrower()
        response = await self.client.post(f"{API}/borrowers", json=BORROWER_PAYLOAD)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["code"], 1002)

        response = await self.client.post(f"{API}/borrowers", json={**BORROWER_PAYLOAD, "email": "x@example.com", "country": "ZZ"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], 1003)

    async def test_unknown_user_is_404(self):
        for reference in (str(uuid.uuid4()), "not-a-uuid"):
            response = await self.client.get(f"{API}/investors/{reference}")
            self.assertEqual(response.status_code, 404)
            self.assertEqual(response.json(), {"code": 1001, "message": "User not found"})

    async def test_borrower_is_not_an_investor(self):
        created = await self.register_borrower()
        response = await self.client.get(f"{API}/investors/{created['reference']}")
        self.assertEqual(response.status_code, 404)

    async def test_edit_borrower(self):
        created = await self.register_borrower()
        response = await self.client.put(
            f"{API}/borrowers/{created['reference']}",
            json={"name": "Jane Q.", "address1": "1 Main St", "city": "Ottawa", "postCode": "K1A 0A1"},
        )
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertEqual(body["name"], "Jane Q.")
        self.assertEqual(body["postCode"], "K1A 0A1")

    async def test_bank_connections(self):
        investor = (
            await self.client.post(
                f"{API}/investors",
                json={"name": "Ian", "email": "ian@example.com", "password": TEST_PASSWORD, "country": "US"},
            )
        ).json()
        banks_url = f"{API}/investors/{investor['reference']}/banks"

        response = await self.client.post(banks_url, json={"institution": "001", "transit": "00011", "account": "7654321"})
        self.assertEqual(response.status_code, 201, response.text)
        bank = response.json()

        self.assertEqual([b["reference"] for b in (await self.client.get(banks_url)).json()], [bank["reference"]])
        connected = (await self.client.get(f"{API}/investors/{investor['reference']}", params={"connected": "true"})).json()
        self.assertEqual(len(connected["bankConnections"]), 1)

        self.assertEqual((await self.client.delete(f"{banks_url}/{bank['reference']}")).status_code, 204)
        response = await self.client.delete(f"{banks_url}/{bank['reference']}")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["code"], 1200)


class TestAssessmentsApi(ApiTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.borrower = await self.register_borrower()
        self.assessments_url = f"{API}/borrowers/{self.borrower['reference']}/assessments"

    async def _create(self) -> dict:
        response = await self.client.post(self.assessments_url)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    async def issued_upload_url(self, reference: str) -> str:
        response = await self.client.get(f"{self.assessments_url}/{reference}")
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()["uploadUrl"]

    async def upload(self, reference: str, file_name: str, content: bytes = b"%PDF-1.4 body"):
        return await self.post_file(await self.issued_upload_url(reference), file_name, content)

    async def test_create_returns_reference_and_upload_url(self):
        created = await self._create()
        self.assertEqual(created["status"], 1)
        self.assertIn(f"{API}/uploads/assessments/{created['reference']}", created["uploadUrl"])
        self.assertEqual(created["files"], [])

        fetched = (await self.client.get(f"{self.assessments_url}/{created['reference']}")).json()
        self.assertNotIn("reference", fetched)
        self.assertIn("uploadUrl", fetched)

        listed = (await self.client.get(self.assessments_url)).json()
        self.assertEqual([a["reference"] for a in listed], [created["reference"]])

    async def test_full_lifecycle_with_auto_adjudication(self):
        settings.auto_adjudicate = True
        created = await self._create()
        reference = created["reference"]

        response = await self.client.post(f"{self.assessments_url}/{reference}/submit")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["code"], 1101)

        uploaded = await self.upload(reference, "id.pdf")
        self.assertEqual(uploaded.status_code, 201, uploaded.text)
        self.assertEqual(uploaded.json()["fileName"], "id.pdf")
        self.assertEqual((await self.upload(reference, "id.pdf")).status_code, 409)
        self.assertEqual((await self.upload(reference, "empty.pdf", b"")).status_code, 400)
        self.assertEqual((await self.upload(reference, "paystub.pdf")).status_code, 201)

        response = await self.client.post(f"{self.assessments_url}/{reference}/submit")
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertEqual(body["status"], 3)
        self.assertNotIn("uploadUrl", body)
        self.assertIn(body["ratingInfo"]["name"], ("A", "B", "C", "D", "E"))
        self.assertEqual([f["fileName"] for f in body["files"]], ["id.pdf", "paystub.pdf"])

        response = await self.post_file(f"{API}/uploads/assessments/{reference}", "late.pdf")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["code"], 1102)

        approved = (await self.client.get(f"{self.assessments_url}/approved")).json()
        self.assertEqual(approved["reference"], reference)

    async def test_submit_without_adjudication_stays_pending(self):
        settings.auto_adjudicate = False
        reference = (await self._create())["reference"]
        await self.upload(reference, "a.pdf")
        await self.upload(reference, "b.pdf")
        body = (await self.client.post(f"{self.assessments_url}/{reference}/submit")).json()
        self.assertEqual(body["status"], 2)
        self.assertNotIn("ratingInfo", body)
        self.assertEqual((await self.client.get(f"{self.assessments_url}/approved")).status_code, 404)

    async def test_unknown_assessment_is_404(self):
        unknown = str(uuid.uuid4())
        for response in (
            await self.client.get(f"{self.assessments_url}/{unknown}"),
            await self.client.post(f"{self.assessments_url}/{unknown}/submit"),
            await self.post_file(f"{API}/uploads/assessments/{unknown}", "a.pdf"),
        ):
            self.assertEqual(response.status_code, 404)
            self.assertEqual(response.json()["code"], 1100)

    async def test_upload_requires_issued_token(self):
        reference = (await self._create())["reference"]
        callback = f"{API}/uploads/assessments/{reference}"
        for url in (callback, f"{callback}?token=guessed"):
            response = await self.post_file(url, "a.pdf")
            self.assertEqual(response.status_code, 403)
            self.assertEqual(response.json()["code"], 1106)

        upload_url = await self.issued_upload_url(reference)
        self.assertEqual((await self.post_file(upload_url, "a.pdf")).status_code, 201)
        response = await self.post_file(upload_url, "b.pdf")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["code"], 1106)

        fetched = (await self.client.get(f"{self.assessments_url}/{reference}")).json()
        self.assertEqual([f["fileName"] for f in fetched["files"]], ["a.pdf"])

    async def test_token_of_another_assessment_is_refused(self):
        first = await self._create()
        second = await self._create()
        token = httpx.URL(first["uploadUrl"]).params["token"]
        response = await self.post_file(f"{API}/uploads/assessments/{second['reference']}?token={token}", "a.pdf")
        self.assertEqual(response.status_code, 403)

    async def test_upload_bucket_is_chosen_by_server(self):
        reference = (await self._create())["reference"]
        upload_url = httpx.URL(await self.issued_upload_url(reference))
        sibling = f"sibling-{uuid.uuid4().hex}"
        response = await self.post_file(upload_url.copy_set_param("bucket", f"../{sibling}"), "a.pdf")
        self.assertEqual(response.status_code, 201, response.text)

        assessment = await Assessment().get_for_reference(reference)
        stored = assessment.files[0]
        self.assertEqual(stored.bucket, DEFAULT_BUCKET)
        self.assertTrue((self.blobstore.root / DEFAULT_BUCKET / stored.blob_key).is_file())
        self.assertFalse((self.blobstore.root.parent / sibling).exists())

    async def test_assessment_of_other_borrower_is_404(self):
        reference = (await self._create())["reference"]
        other = await self.register_borrower(email="other@example.com")
        response = await self.client.get(f"{API}/borrowers/{other['reference']}/assessments/{reference}")
        self.assertEqual(response.status_code, 404)


if __name__ == "__main__":
    unittest.main()
