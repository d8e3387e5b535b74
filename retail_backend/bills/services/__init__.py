from .billing_orchestrator import BillingOrchestrator

__all__ = ["BillingOrchestrator"]
