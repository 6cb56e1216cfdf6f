"""Rate limits domain: named fixed-window policies per client address."""
