"""
ct_submitter — bulk Certificate Transparency chain submitter.

Streams certificate chains out of a PostgreSQL store, rebuilds each chain
(leaf first, then intermediates), and submits them to a CT log's add-chain
endpoint from a bounded pool of worker threads.

Built on the Railway-Oriented Programming (ROP) framework for
explicit, composable, functional error handling.
"""

__version__ = "0.1.0"
