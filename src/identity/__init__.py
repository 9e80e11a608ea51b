"""Identity bounded context: user accounts, authentication and administration."""
