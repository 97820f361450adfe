"""Shared fixtures: a fresh in-memory database with reference data for every test."""
import tempfile
import unittest

import database
from db.seed import seed_reference_data
from models import AssessmentFile, Borrower, Country, Investor
from services.blobstore import LocalBlobstore, set_blobstore

TEST_BASE_URL = "http://testserver"
TEST_PASSWORD = "correct-horse-battery"


class DatabaseTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        database.configure_engine("sqlite+aiosqlite://")
        await database.init_db()
        await seed_reference_data()
        self._upload_dir = tempfile.TemporaryDirectory()
        self.blobstore = LocalBlobstore(self._upload_dir.name, TEST_BASE_URL)
        set_blobstore(self.blobstore)

    async def asyncTearDown(self):
        set_blobstore(None)
        self._upload_dir.cleanup()
        await database.engine.dispose()

    async def create_borrower(self, email: str = "borrower@example.com") -> Borrower:
        country = await Country().get_for_code("CA")
        borrower = Borrower(name="Jane Borrower", country=country, email=email)
        borrower.set_password(TEST_PASSWORD)
        borrower.employer = "Acme Corp"
        self.assertTrue(await borrower.add_to_database())
        return borrower

    async def create_investor(self, email: str = "investor@example.com") -> Investor:
        country = await Country().get_for_code("US")
        investor = Investor(name="Ian Investor", country=country, email=email)
        investor.set_password(TEST_PASSWORD)
        self.assertTrue(await investor.add_to_database())
        return investor

    async def attach_file(self, assessment, file_name: str) -> bool:
        blob_key = self.blobstore.store(None, file_name, b"%PDF-1.4 test")
        return await assessment.add_file(AssessmentFile(file_name=file_name, bucket="default", blob_key=blob_key))
