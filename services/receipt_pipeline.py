# FILE: services/receipt_pipeline.py
"""
Background receipt chain: OCR -> classify -> record.

The request that uploads a receipt does not await this. The chain runs as its
own asyncio task, catches and logs its own failures, and always leaves the
receipt in a terminal status.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Protocol, Set

from config import RECEIPT_AUTO_APPROVE_THRESHOLD, RECEIPT_RECORD_THRESHOLD
from core.context import ExecutionContext
from core.logs import get_logger
from executors.base import BaseProcessor
from services.date_resolver import get_today

logger = get_logger("receipt_pipeline")


class ReceiptStatus(str, Enum):
    COMPLETED = "completed"
    NEEDS_REVIEW = "needs_review"
    FAILED = "failed"


class TransactionStatus(str, Enum):
    APPROVED = "approved"
    PENDING = "pending"


@dataclass(frozen=True)
class ReceiptJob:
    receipt_id: str
    image_url: str
    file_type: str
    user_id: str
    group_id: Optional[str] = None
    user_notes: Optional[str] = None


class ReceiptStore(Protocol):
    async def create_transaction(self, transaction: Dict[str, Any]) -> None:
        ...

    async def update_receipt_status(
        self, receipt_id: str, status: ReceiptStatus, error: Optional[str] = None
    ) -> None:
        ...


def should_record(extracted: Dict[str, Any], confidence: float) -> bool:
    return bool(
        extracted.get("merchant_name")
        and extracted.get("total_amount")
        and confidence > RECEIPT_RECORD_THRESHOLD
    )


def build_transaction(
    job: ReceiptJob,
    extracted: Dict[str, Any],
    confidence: float,
    classification: Dict[str, Any],
) -> Dict[str, Any]:
    gst = extracted.get("gst_details") or None
    return {
        "user_id": job.user_id,
        "amount": extracted["total_amount"],
        "currency": extracted.get("currency"),
        "description": f"Receipt from {extracted['merchant_name']}",
        "merchant_name": extracted["merchant_name"],
        "transaction_date": extracted.get("transaction_date") or get_today().isoformat(),
        "category": classification.get("category"),
        "subcategory": classification.get("subcategory"),
        "gst_applicable": gst is not None,
        "gst_amount": gst.get("total_gst") if gst else None,
        "receipt_id": job.receipt_id,
        "group_id": job.group_id,
        "notes": job.user_notes,
        "source": "image",
        "confidence_score": confidence,
        "raw_data": extracted,
        "status": (
            TransactionStatus.APPROVED
            if confidence > RECEIPT_AUTO_APPROVE_THRESHOLD
            else TransactionStatus.PENDING
        ).value,
    }


async def process_receipt(
    job: ReceiptJob,
    ocr: BaseProcessor,
    classifier: BaseProcessor,
    store: ReceiptStore,
) -> ReceiptStatus:
    """
    Run the chain once. Never raises except on cancellation; the terminal
    status is written in every case.
    """
    status = ReceiptStatus.FAILED
    error: Optional[str] = None

    try:
        ocr_result = await ocr.execute(
            {
                "receipt_id": job.receipt_id,
                "image_url": job.image_url,
                "file_type": job.file_type,
                "user_id": job.user_id,
            },
            ExecutionContext.new(job.user_id),
        )
        extracted = ocr_result.get("extracted_data") or {}
        confidence = float(ocr_result.get("ocr_confidence") or 0.0)

        if should_record(extracted, confidence):
            classification = await classifier.execute(
                {
                    "description": extracted["merchant_name"],
                    "merchant_name": extracted["merchant_name"],
                    "amount": extracted["total_amount"],
                    "user_id": job.user_id,
                },
                ExecutionContext.new(job.user_id),
            )
            await store.create_transaction(build_transaction(job, extracted, confidence, classification))
            status = ReceiptStatus.COMPLETED
        else:
            logger.info(
                f"Receipt {job.receipt_id} not recorded (confidence={confidence:.2f}), needs review"
            )
            status = ReceiptStatus.NEEDS_REVIEW

    except asyncio.CancelledError:
        error = "Receipt processing cancelled"
        raise
    except Exception as e:
        logger.exception(f"Background OCR processing failed for receipt {job.receipt_id}")
        error = str(e) or type(e).__name__
        status = ReceiptStatus.FAILED
    finally:
        try:
            await store.update_receipt_status(job.receipt_id, status, error)
        except Exception:
            logger.exception(f"Could not write status {status.value} for receipt {job.receipt_id}")

    return status


# Strong references so running chains are not garbage collected
_background_tasks: Set[asyncio.Task] = set()


def spawn_receipt_processing(
    job: ReceiptJob,
    ocr: BaseProcessor,
    classifier: BaseProcessor,
    store: ReceiptStore,
) -> asyncio.Task:
    """Start the chain without awaiting it. Must be called from a running loop."""
    task = asyncio.create_task(
        process_receipt(job, ocr, classifier, store),
        name=f"receipt-{job.receipt_id}",
    )
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task
