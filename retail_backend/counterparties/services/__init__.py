from .balance_service import CounterpartyLedgers

__all__ = ["CounterpartyLedgers"]
