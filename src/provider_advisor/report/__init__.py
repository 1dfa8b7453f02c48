"""Diagnostic reporting for advisory cycles."""

from provider_advisor.report.emitter import (
    DiagnosticPayload,
    DiagnosticSeverity,
    ReportEmitter,
    emit,
    render,
)

__all__ = [
    "DiagnosticPayload",
    "DiagnosticSeverity",
    "ReportEmitter",
    "emit",
    "render",
]
