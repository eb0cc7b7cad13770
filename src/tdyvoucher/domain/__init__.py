"""Domain layer for tdyvoucher application."""

from tdyvoucher.domain.rates import RateResolver
from tdyvoucher.domain.line_items import LineItemAdapter
from tdyvoucher.domain.entitlement import DailyEntitlementCalculator
from tdyvoucher.domain.lodging import LodgingReconciler
from tdyvoucher.domain.aggregators import MileageAggregator, MiscAggregator
from tdyvoucher.domain.estimate import EstimateComposer, EstimateService
from tdyvoucher.domain.compliance import ComplianceChecker
from tdyvoucher.domain.voucher import TripWorkflow, VoucherAssembler

__all__ = [
    "RateResolver",
    "LineItemAdapter",
    "DailyEntitlementCalculator",
    "LodgingReconciler",
    "MileageAggregator",
    "MiscAggregator",
    "EstimateComposer",
    "EstimateService",
    "ComplianceChecker",
    "TripWorkflow",
    "VoucherAssembler",
]
