"""Owner-controlled ledger of skills, progress updates and goals."""
