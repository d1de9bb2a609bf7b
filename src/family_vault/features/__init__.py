"""Feature packages for family-vault."""
