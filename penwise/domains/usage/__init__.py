"""Usage domain: append-only ledger and calendar-month quota meter."""
