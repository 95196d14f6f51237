"""Authorization policy: role gate, tenancy guard and plan limits."""
