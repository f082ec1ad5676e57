"""Services behind the tool catalogue: classification, ledger reads, security checks and knowledge search."""
