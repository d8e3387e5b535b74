"""
Sale, purchase and return bills: the billing orchestrator and its API.
"""
