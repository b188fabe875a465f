"""Presentation of guardrail reports and release results."""
