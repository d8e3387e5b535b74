# caching/__init__.py

"""
Read-through cache + invalidation routing for ledger reads.

    from caching.cache import LedgerCache, get_ledger_cache
    from caching.router import DataType, InvalidationRouter
"""
