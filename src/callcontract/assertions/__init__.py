"""Fast-fail assertions and the batched integrity report."""

from callcontract.assertions.binding import ArgumentBindingAssertion
from callcontract.assertions.chain import (
    ChainIntegrityAssertion,
    ChainStep,
    ChainVerificationResult,
)
from callcontract.assertions.integrity import DataIntegrityAssertion
from callcontract.assertions.reference import (
    ReferenceConsistencyAssertion,
    ReferenceVerification,
)
from callcontract.assertions.report import CHECK_NAMES, CheckResult, IntegrityReport, Violation

__all__ = [
    "ArgumentBindingAssertion",
    "ChainIntegrityAssertion",
    "ChainStep",
    "ChainVerificationResult",
    "DataIntegrityAssertion",
    "ReferenceConsistencyAssertion",
    "ReferenceVerification",
    "CHECK_NAMES",
    "CheckResult",
    "IntegrityReport",
    "Violation",
]
