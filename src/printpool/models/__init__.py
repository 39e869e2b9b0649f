"""Pydantic models for printpool."""

from printpool.models.job import InvalidTransitionError, JobStatus, PrintJob, TargetResult
from printpool.models.printer import DEFAULT_PORT, DEFAULT_PRINTER_CLASS, PrinterTarget
from printpool.models.request import (
    CashDrawerContent,
    ImageContent,
    LabelContent,
    LabelDescriptor,
    PrintContent,
    PrintRequest,
    ReceiptContent,
)

__all__ = [
    "DEFAULT_PORT",
    "DEFAULT_PRINTER_CLASS",
    "CashDrawerContent",
    "ImageContent",
    "InvalidTransitionError",
    "JobStatus",
    "LabelContent",
    "LabelDescriptor",
    "PrintContent",
    "PrintJob",
    "PrintRequest",
    "PrinterTarget",
    "ReceiptContent",
    "TargetResult",
]
