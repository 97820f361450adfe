"""
Tests for assessments: lifecycle predicates, storage round trips, submission, decisions
and API views.
Run from backend dir: python -m pytest tests/test_assessment.py -v
"""
import unittest
import uuid

from db.errors import StatementBuildError
from models import Assessment, AssessmentFile, Decision, Status
from tests.support import DatabaseTestCase


def _assessment(status: Status, file_count: int = 0) -> Assessment:
    assessment = Assessment()
    assessment.status = status
    assessment.reference = uuid.uuid4()
    assessment.files = [AssessmentFile(file_name=f"doc-{i}.pdf") for i in range(file_count)]
    return assessment


class TestAssessmentPredicates(unittest.TestCase):
    def test_only_started_accepts_uploads(self):
        self.assertTrue(_assessment(Status.STARTED).can_upload())
        for status in (Status.PENDING, Status.APPROVED, Status.REJECTED):
            self.assertFalse(_assessment(status).can_upload())

    def test_can_be_submitted_needs_two_files(self):
        self.assertFalse(_assessment(Status.STARTED, 0).can_be_submitted())
        self.assertFalse(_assessment(Status.STARTED, 1).can_be_submitted())
        self.assertTrue(_assessment(Status.STARTED, 2).can_be_submitted())
        self.assertTrue(_assessment(Status.STARTED, 5).can_be_submitted())

    def test_can_be_submitted_needs_started(self):
        self.assertFalse(_assessment(Status.PENDING, 3).can_be_submitted())
        self.assertFalse(_assessment(Status.APPROVED, 3).can_be_submitted())

    def test_file_matching_by_name(self):
        assessment = _assessment(Status.STARTED, 2)
        self.assertIs(assessment.get_file_that_matches(AssessmentFile(file_name="doc-1.pdf")), assessment.files[1])
        self.assertIsNone(assessment.get_file_that_matches(AssessmentFile(file_name="other.pdf")))

    def test_select_requires_borrower_or_reference(self):
        with self.assertRaises(StatementBuildError):
            Assessment().build_select_sql()

    def test_select_by_reference_left_joins_rating(self):
        sql = Assessment().build_select_sql(reference=str(uuid.uuid4())).render()
        self.assertIn("WHERE assessments.reference=:assessment_reference", sql)
        self.assertIn("LEFT JOIN ratings ON ratings.id=assessments.rating", sql)

    def test_decision_validity(self):
        self.assertTrue(Decision(Status.APPROVED, 3).is_valid())
        self.assertTrue(Decision(Status.REJECTED).is_valid())
        self.assertFalse(Decision(Status.APPROVED).is_valid())
        self.assertFalse(Decision(Status.REJECTED, 2).is_valid())
        self.assertFalse(Decision(Status.PENDING).is_valid())


class TestAssessmentApiViews(unittest.TestCase):
    class _Blobstore:
        def __init__(self):
            self.calls = []

        def create_upload_url(self, callback_path, bucket=None):
            self.calls.append((callback_path, bucket))
            return "https://uploads.example.com/one-time"

        def store(self, bucket, filename, content):
            return "unused"

    def test_info_with_reference_and_upload_url(self):
        assessment = _assessment(Status.STARTED, 1)
        blobstore = self._Blobstore()
        info = assessment.get_api_info(include_reference=True, blobstore=blobstore)
        self.assertEqual(info.reference, str(assessment.reference))
        self.assertEqual(info.upload_url, "https://uploads.example.com/one-time")
        self.assertEqual(len(info.files), 1)
        callback_path, bucket = blobstore.calls[0]
        self.assertEqual(callback_path, f"/core/v1/uploads/assessments/{assessment.reference}")
        self.assertIsNone(bucket)

    def test_info_without_reference(self):
        info = _assessment(Status.STARTED).get_api_info(include_reference=False, blobstore=self._Blobstore())
        self.assertIsNone(info.reference)
        self.assertIsNotNone(info.upload_url)
        self.assertNotIn("reference", info.model_dump(by_alias=True, exclude_none=True))

    def test_no_upload_url_once_submitted(self):
        blobstore = self._Blobstore()
        for include_reference in (True, False):
            info = _assessment(Status.PENDING, 2).get_api_info(include_reference, blobstore=blobstore)
            self.assertIsNone(info.upload_url)
        self.assertEqual(blobstore.calls, [])

    def test_summary(self):
        assessment = _assessment(Status.REJECTED)
        summary = assessment.get_api_summary()
        self.assertEqual(summary.reference, str(assessment.reference))
        self.assertEqual(summary.status, 4)
        self.assertEqual(summary.rating, 0)


class TestAssessmentStorage(DatabaseTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.borrower = await self.create_borrower()

    async def _new_assessment(self) -> Assessment:
        assessment = Assessment()
        self.assertTrue(await assessment.add_to_database(self.borrower))
        return assessment

    async def test_add_then_reselect_round_trip(self):
        assessment = await self._new_assessment()
        self.assertGreater(assessment.id, 0)
        self.assertEqual(assessment.status, Status.STARTED)
        self.assertEqual(assessment.borrower_id, self.borrower.id)
        self.assertIsNotNone(assessment.registered)
        self.assertIsNone(assessment.rating)

        fetched = await Assessment().get_assessment(self.borrower, str(assessment.reference))
        self.assertIsNotNone(fetched)
        self.assertEqual(fetched.id, assessment.id)
        self.assertEqual(fetched.reference, assessment.reference)
        self.assertEqual(fetched.status, Status.STARTED)
        self.assertEqual(fetched.registered, assessment.registered)
        self.assertEqual(fetched.files, [])

    async def test_not_found_is_none(self):
        self.assertIsNone(await Assessment().get_assessment(self.borrower, str(uuid.uuid4())))
        self.assertIsNone(await Assessment().get_assessment(self.borrower, "not-a-uuid"))
        self.assertIsNone(await Assessment().get_last_approved(self.borrower))

    async def test_other_borrower_cannot_fetch(self):
        assessment = await self._new_assessment()
        other = await self.create_borrower(email="other@example.com")
        self.assertIsNone(await Assessment().get_assessment(other, str(assessment.reference)))
        self.assertIsNotNone(await Assessment().get_for_reference(str(assessment.reference)))

    async def test_submit_without_enough_files_is_noop(self):
        assessment = await self._new_assessment()
        self.assertTrue(await self.attach_file(assessment, "id.pdf"))
        self.assertFalse(await assessment.submit())
        fetched = await Assessment().get_assessment(self.borrower, str(assessment.reference))
        self.assertEqual(fetched.status, Status.STARTED)
        self.assertEqual(len(fetched.files), 1)

    async def test_submit_moves_to_pending_and_closes_uploads(self):
        assessment = await self._new_assessment()
        self.assertTrue(await self.attach_file(assessment, "id.pdf"))
        self.assertTrue(await self.attach_file(assessment, "paystub.pdf"))
        self.assertFalse(await self.attach_file(assessment, "paystub.pdf"))
        self.assertTrue(await assessment.submit())
        self.assertEqual(assessment.status, Status.PENDING)

        fetched = await Assessment().get_assessment(self.borrower, str(assessment.reference))
        self.assertEqual(fetched.status, Status.PENDING)
        self.assertGreaterEqual(fetched.updated, fetched.registered)
        self.assertEqual([f.file_name for f in fetched.files], ["id.pdf", "paystub.pdf"])
        self.assertFalse(fetched.can_upload())
        self.assertFalse(await self.attach_file(fetched, "late.pdf"))
        self.assertFalse(await fetched.submit())

    async def _pending_assessment(self) -> Assessment:
        assessment = await self._new_assessment()
        await self.attach_file(assessment, "a.pdf")
        await self.attach_file(assessment, "b.pdf")
        self.assertTrue(await assessment.submit())
        return assessment

    async def test_approved_carries_rating(self):
        assessment = await self._pending_assessment()
        self.assertTrue(await assessment.apply_decision(Decision(Status.APPROVED, 2)))
        self.assertEqual(assessment.rating.name, "B")

        fetched = await Assessment().get_assessment(self.borrower, str(assessment.reference))
        self.assertEqual(fetched.status, Status.APPROVED)
        self.assertIsNotNone(fetched.rating)
        self.assertEqual(fetched.rating.id, 2)
        self.assertEqual(fetched.get_api_info(include_reference=True).rating_info.name, "B")

        last = await Assessment().get_last_approved(self.borrower)
        self.assertEqual(last.reference, assessment.reference)

    async def test_started_has_no_rating(self):
        assessment = await self._new_assessment()
        fetched = await Assessment().get_assessment(self.borrower, str(assessment.reference))
        self.assertIsNone(fetched.rating)

    async def test_rejected_has_no_rating(self):
        assessment = await self._pending_assessment()
        self.assertTrue(await assessment.apply_decision(Decision(Status.REJECTED)))
        fetched = await Assessment().get_assessment(self.borrower, str(assessment.reference))
        self.assertEqual(fetched.status, Status.REJECTED)
        self.assertIsNone(fetched.rating)

    async def test_decision_requires_pending(self):
        assessment = await self._new_assessment()
        self.assertFalse(await assessment.apply_decision(Decision(Status.APPROVED, 1)))
        pending = await self._pending_assessment()
        self.assertFalse(await pending.apply_decision(Decision(Status.APPROVED)))
        self.assertTrue(await pending.apply_decision(Decision(Status.APPROVED, 1)))
        self.assertFalse(await pending.apply_decision(Decision(Status.REJECTED)))

    async def test_approval_with_unknown_rating_is_refused(self):
        assessment = await self._pending_assessment()
        self.assertFalse(await assessment.apply_decision(Decision(Status.APPROVED, 99)))
        self.assertEqual(assessment.status, Status.PENDING)

        fetched = await Assessment().get_for_reference(str(assessment.reference))
        self.assertEqual(fetched.status, Status.PENDING)
        self.assertIsNone(fetched.rating)
        self.assertTrue(await fetched.apply_decision(Decision(Status.APPROVED, 5)))

    async def test_in_memory_state_matches_storage_after_transitions(self):
        assessment = await self._pending_assessment()
        fetched = await Assessment().get_for_reference(str(assessment.reference))
        self.assertEqual(assessment.updated, fetched.updated)

        self.assertTrue(await assessment.apply_decision(Decision(Status.APPROVED, 4)))
        fetched = await Assessment().get_for_reference(str(assessment.reference))
        self.assertEqual(assessment.updated, fetched.updated)
        self.assertEqual(assessment.rating_id, fetched.rating_id)
        self.assertEqual(assessment.rating.name, "D")
        self.assertEqual(len(assessment.files), 2)

    async def test_all_for_borrower(self):
        first = await self._new_assessment()
        second = await self._new_assessment()
        assessments = await self.borrower.get_assessments()
        self.assertEqual([a.reference for a in assessments], [first.reference, second.reference])


if __name__ == "__main__":
    unittest.main()
