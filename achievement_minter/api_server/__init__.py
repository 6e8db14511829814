"""
API server package — thin control surface over the minting pipeline.

Manual trigger, backlog count and read-only achievement listings. Does not
mint on its own beyond what the orchestrator does.
"""
