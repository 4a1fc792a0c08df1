import asyncio
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from services import receipt_pipeline
from services.receipt_pipeline import (
    ReceiptJob,
    ReceiptStatus,
    process_receipt,
    spawn_receipt_processing,
)

JOB = ReceiptJob(
    receipt_id="rcpt-1",
    image_url="https://files.example.com/rcpt-1.jpg",
    file_type="image/jpeg",
    user_id="user-1",
    group_id="trip-3",
    user_notes="team lunch",
)


class FakeStore:
    def __init__(self, fail_on_create=False):
        self.transactions = []
        self.statuses = []
        self.fail_on_create = fail_on_create

    async def create_transaction(self, transaction):
        if self.fail_on_create:
            raise RuntimeError("db unavailable")
        self.transactions.append(transaction)

    async def update_receipt_status(self, receipt_id, status, error=None):
        self.statuses.append((receipt_id, status, error))


def _processor(result=None, error=None):
    processor = MagicMock()
    processor.execute = AsyncMock(return_value=result, side_effect=error)
    return processor


def _ocr(confidence, **extracted):
    data = {"merchant_name": "Truffles", "total_amount": 1450.0, "currency": "INR"}
    data.update(extracted)
    return _processor({"extracted_data": data, "ocr_confidence": confidence})


@pytest.fixture
def classifier():
    return _processor({"category": "Food & Dining", "subcategory": "Restaurant"})


def test_confident_receipt_is_recorded_and_approved(classifier):
    store = FakeStore()
    ocr = _ocr(0.92, transaction_date="2024-03-14", gst_details={"total_gst": 69.0})

    status = asyncio.run(process_receipt(JOB, ocr, classifier, store))

    assert status is ReceiptStatus.COMPLETED
    assert store.statuses == [("rcpt-1", ReceiptStatus.COMPLETED, None)]

    [txn] = store.transactions
    assert txn["status"] == "approved"
    assert txn["amount"] == 1450.0
    assert txn["description"] == "Receipt from Truffles"
    assert txn["category"] == "Food & Dining"
    assert txn["subcategory"] == "Restaurant"
    assert txn["transaction_date"] == "2024-03-14"
    assert txn["gst_applicable"] is True
    assert txn["gst_amount"] == 69.0
    assert txn["group_id"] == "trip-3"
    assert txn["notes"] == "team lunch"
    assert txn["source"] == "image"

    request, _ = classifier.execute.await_args.args
    assert request["merchant_name"] == "Truffles"
    assert request["amount"] == 1450.0


def test_moderate_confidence_is_recorded_as_pending(classifier, monkeypatch):
    monkeypatch.setattr(receipt_pipeline, "get_today", lambda: date(2024, 3, 15))
    store = FakeStore()

    asyncio.run(process_receipt(JOB, _ocr(0.8), classifier, store))

    [txn] = store.transactions
    assert txn["status"] == "pending"
    assert txn["transaction_date"] == "2024-03-15"
    assert txn["gst_applicable"] is False
    assert txn["gst_amount"] is None


@pytest.mark.parametrize(
    "ocr",
    [
        _ocr(0.6),
        _ocr(0.95, merchant_name=None),
        _ocr(0.95, total_amount=None),
    ],
)
def test_weak_receipt_needs_review(ocr, classifier):
    store = FakeStore()

    status = asyncio.run(process_receipt(JOB, ocr, classifier, store))

    assert status is ReceiptStatus.NEEDS_REVIEW
    assert store.transactions == []
    assert store.statuses == [("rcpt-1", ReceiptStatus.NEEDS_REVIEW, None)]
    classifier.execute.assert_not_awaited()


def test_ocr_failure_marks_receipt_failed(classifier):
    store = FakeStore()
    ocr = _processor(error=RuntimeError("vision model down"))

    status = asyncio.run(process_receipt(JOB, ocr, classifier, store))

    assert status is ReceiptStatus.FAILED
    assert store.statuses == [("rcpt-1", ReceiptStatus.FAILED, "vision model down")]


def test_store_failure_marks_receipt_failed(classifier):
    store = FakeStore(fail_on_create=True)

    status = asyncio.run(process_receipt(JOB, _ocr(0.9), classifier, store))

    assert status is ReceiptStatus.FAILED
    assert store.statuses == [("rcpt-1", ReceiptStatus.FAILED, "db unavailable")]


def test_spawned_chain_runs_without_being_awaited_by_caller(classifier):
    store = FakeStore()

    async def scenario():
        task = spawn_receipt_processing(JOB, _ocr(0.9), classifier, store)
        assert task in receipt_pipeline._background_tasks
        status = await task
        await asyncio.sleep(0)
        return task, status

    task, status = asyncio.run(scenario())

    assert status is ReceiptStatus.COMPLETED
    assert task not in receipt_pipeline._background_tasks


def test_spawned_chain_failure_stays_inside_task(classifier):
    store = FakeStore()
    ocr = _processor(error=ValueError("corrupt image"))

    async def scenario():
        return await spawn_receipt_processing(JOB, ocr, classifier, store)

    assert asyncio.run(scenario()) is ReceiptStatus.FAILED
    assert store.statuses[-1][1] is ReceiptStatus.FAILED


def test_cancelled_chain_still_writes_terminal_status(classifier):
    store = FakeStore()

    async def scenario():
        started = asyncio.Event()

        async def hang(request, context):
            started.set()
            await asyncio.sleep(60)

        ocr = MagicMock()
        ocr.execute = hang
        task = spawn_receipt_processing(JOB, ocr, classifier, store)
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())

    assert store.statuses == [("rcpt-1", ReceiptStatus.FAILED, "Receipt processing cancelled")]
