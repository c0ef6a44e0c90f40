"""MomCare Tools Module.

This module contains deterministic helpers used to build chat context.

Tools:
    format_date_safe: Format a timestamp, degrading to a marker on bad input.
    format_reading_for_context: One-line summary of the latest vital reading.
    format_appointments_for_context: List upcoming appointments.
    format_memory_for_context: List recent user message excerpts.
    parse_appointment_datetime: Combine appointment date and free-text time.
    encode_attachment: Base64-encode an image for inline sending.
"""
from tools.context_formatters import (
    format_date_safe,
    format_reading_for_context,
    format_appointments_for_context,
    format_memory_for_context,
    parse_appointment_datetime,
    parse_timestamp,
)
from tools.attachments import encode_attachment, infer_mime_type

__all__ = [
    "format_date_safe",
    "format_reading_for_context",
    "format_appointments_for_context",
    "format_memory_for_context",
    "parse_appointment_datetime",
    "parse_timestamp",
    "encode_attachment",
    "infer_mime_type",
]
