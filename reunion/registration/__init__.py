"""Registration reconciliation: change detection, check-in codes, upsert and notification."""
