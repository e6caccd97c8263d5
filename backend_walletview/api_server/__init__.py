"""
API server package — HTTP interface.

Exposes wallet state, recent transactions, cache revalidation and health.
Delegates to the analytics services; owns no business logic.
"""
