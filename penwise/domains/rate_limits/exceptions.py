"""Rate limits domain exceptions."""


class UnknownRateLimitPolicyError(KeyError):
    """Raised when a caller names a policy that was never configured."""

    def __init__(self, policy_name: str) -> None:
        """Initialize with the unknown policy name."""
        self.policy_name = policy_name
        super().__init__(f"Unknown rate limit policy: {policy_name}")
